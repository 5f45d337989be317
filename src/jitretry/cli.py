"""CLI interface for jitretry"""

import functools
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from pydantic import ValidationError

from jitretry.application.retrier import Retrier, schedule_outcome
from jitretry.domain.config import CommandConfig, RetryOptions
from jitretry.domain.errors import ConfigError
from jitretry.domain.models.result import Outcome, RetryResult
from jitretry.infrastructure.command import CommandFailedError, CommandOperation, exit_code_policy
from jitretry.infrastructure.config.config_manager import ConfigManager, ConfigurationError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def retry_option_flags(func):
    """Add the retry option overrides shared by all commands"""
    options = [
        click.option("--attempts", type=int, help="Maximum number of attempts. Overrides config."),
        click.option("--base", type=float, help="Delay before the first retry, in seconds."),
        click.option("--max-interval", type=float, help="Longest single delay, in seconds."),
        click.option("--max-wait", type=float, help="Longest total time spent waiting, in seconds."),
        click.option("--exponent", type=float, help="Growth rate of the delay."),
        click.option("--jitter", type=float, help="Randomized fraction of each delay (0-1)."),
    ]
    for option in reversed(options):
        func = option(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        overrides = {
            name: kwargs.pop(name)
            for name in ("attempts", "base", "max_interval", "max_wait", "exponent", "jitter")
        }
        kwargs["overrides"] = {k: v for k, v in overrides.items() if v is not None}
        return func(*args, **kwargs)

    return wrapper


def _load_config(ctx: click.Context) -> ConfigManager:
    verbose = ctx.obj.get("verbose", False)
    try:
        return ConfigManager(config_path=ctx.obj.get("config_path"))
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)


def _build_retry_options(config_manager: ConfigManager, overrides: Dict[str, Any], verbose: bool) -> RetryOptions:
    """Merge CLI overrides on top of configured retry options"""
    merged = config_manager.get_retry_options().model_dump()
    merged.update(overrides)
    try:
        return RetryOptions(**merged)
    except ValidationError as e:
        _die(f"Invalid retry options: {e}", verbose=verbose, exc=e)


def _build_retrier(options: RetryOptions, command_config: Optional[CommandConfig], verbose: bool) -> Retrier:
    policy = exit_code_policy(command_config.stop_on) if command_config is not None else None
    try:
        return Retrier(options, should_retry=policy)
    except ConfigError as e:
        _die(f"Invalid retry options: {e}", verbose=verbose, exc=e)


def _report_failure(result: RetryResult) -> int:
    """Print failed attempts and return the exit status to use"""
    for i, error in enumerate(result.errors, start=1):
        click.echo(f"attempt {i}: {error}", err=True)
    click.echo(f"{result.error} after attempt {result.attempts}", err=True)

    last = result.last_error
    if isinstance(last, CommandFailedError):
        return last.returncode
    return 1


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .jitretry.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """jitretry - retry commands with jittered exponential backoff"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command(context_settings={"ignore_unknown_options": True})
@retry_option_flags
@click.option(
    "--stop-on",
    type=int,
    multiple=True,
    help="Exit code that should not be retried. May be repeated. Adds to config.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Per-attempt timeout in seconds. Overrides config.",
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, command: Tuple[str, ...], stop_on: Tuple[int, ...], timeout: Optional[float], overrides: Dict[str, Any]):
    """Run COMMAND until it exits successfully.

    Use -- to separate COMMAND from jitretry's own options.
    """
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    options = _build_retry_options(config_manager, overrides, verbose)

    command_config = config_manager.get_command_config()
    command_config = CommandConfig(
        stop_on=list(command_config.stop_on) + list(stop_on),
        timeout=timeout if timeout is not None else command_config.timeout,
    )
    retrier = _build_retrier(options, command_config, verbose)

    logger.info(f"Running {' '.join(command)} (up to {options.attempts} attempts)")
    result = retrier.do(CommandOperation(command, timeout=command_config.timeout))

    if result.is_successful:
        if result.errors:
            click.echo(f"succeeded on attempt {result.attempts}", err=True)
        return
    sys.exit(_report_failure(result))


@cli.command()
@retry_option_flags
@click.pass_context
def schedule(ctx, overrides: Dict[str, Any]):
    """Print the delays used when every attempt fails, without jitter."""
    verbose = ctx.obj.get("verbose", False)
    config_manager = _load_config(ctx)
    options = _build_retry_options(config_manager, overrides, verbose)
    retrier = _build_retrier(options, None, verbose)

    delays = retrier.schedule()
    click.echo(f"{'retry':>5}  {'delay (s)':>10}  {'total (s)':>10}")
    total = 0.0
    for i, delay in enumerate(delays, start=1):
        total += delay
        click.echo(f"{i:>5}  {delay:>10.3f}  {total:>10.3f}")

    if schedule_outcome(options) is Outcome.TIMED_OUT:
        click.echo(f"Times out after attempt {len(delays) + 1}: next delay would exceed max wait of {options.max_wait}s")
    else:
        click.echo(f"Gives up after attempt {options.attempts}")
    click.echo(f"Jitter reduces each delay by up to {options.jitter:.0%}")


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
