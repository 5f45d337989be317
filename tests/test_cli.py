"""Tests for CLI interface"""

from __future__ import annotations

import logging
import sys

import click
import pytest
import yaml
from click.testing import CliRunner

from jitretry.cli import _die, cli, setup_logging


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("jitretry.application.retrier.time.sleep", lambda _: None)


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("JITRETRY_ATTEMPTS", "JITRETRY_BASE", "JITRETRY_MAX_WAIT", "JITRETRY_JITTER"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner():
    return CliRunner()


def _python(code: str) -> list:
    return [sys.executable, "-c", code]


class TestSetupLogging:
    """Tests for setup_logging function"""

    def test_setup_logging_info_level(self):
        """Test that logging is set to INFO level by default"""
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test that logging is set to DEBUG level when verbose"""
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG


class TestDie:
    """Tests for _die function"""

    def test_die_without_exception(self):
        """Test _die without exception"""
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=False)

    def test_die_with_exception(self):
        """Test _die with exception"""
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=True, exc=ValueError("Test exception"))


class TestRunCommand:
    """Tests for the run command"""

    def test_run_success(self, runner):
        """Test a succeeding command exits 0"""
        result = runner.invoke(cli, ["run", "--", *_python("pass")])
        assert result.exit_code == 0, result.output

    def test_run_exhausts_attempts(self, runner):
        """Test the command's exit code is propagated after the last attempt"""
        result = runner.invoke(
            cli,
            ["run", "--attempts", "3", "--max-wait", "100", "--", *_python("import sys; sys.exit(4)")],
        )
        assert result.exit_code == 4
        assert "attempt 3: command exited with status 4" in result.output
        assert "reached maximum attempts after attempt 3" in result.output

    def test_run_stop_on(self, runner):
        """Test --stop-on exit codes are not retried"""
        result = runner.invoke(
            cli,
            ["run", "--attempts", "5", "--stop-on", "2", "--", *_python("import sys; sys.exit(2)")],
        )
        assert result.exit_code == 2
        assert "further retries cancelled after attempt 1" in result.output

    def test_run_flaky_command(self, runner, tmp_path):
        """Test a command succeeding on its second attempt"""
        counter = tmp_path / "count"
        code = (
            "import pathlib, sys\n"
            f"p = pathlib.Path({str(counter)!r})\n"
            "first = not p.exists()\n"
            "p.write_text('x')\n"
            "sys.exit(1 if first else 0)\n"
        )
        result = runner.invoke(cli, ["run", "--attempts", "3", "--", *_python(code)])
        assert result.exit_code == 0, result.output
        assert "succeeded on attempt 2" in result.output

    def test_run_invalid_options(self, runner):
        """Test out-of-range options are reported"""
        result = runner.invoke(cli, ["run", "--jitter", "1.5", "--", *_python("pass")])
        assert result.exit_code != 0
        assert "jitter" in result.output

    def test_run_uses_config_file(self, runner, tmp_path):
        """Test stop_on codes come from the config file"""
        config_file = tmp_path / "retry.yml"
        config_file.write_text(yaml.safe_dump({"command": {"stop_on": [9]}}), encoding="utf-8")

        result = runner.invoke(
            cli,
            ["--config", str(config_file), "run", "--", *_python("import sys; sys.exit(9)")],
        )

        assert result.exit_code == 9
        assert "after attempt 1" in result.output

    def test_run_requires_command(self, runner):
        """Test run without a command is a usage error"""
        result = runner.invoke(cli, ["run"])
        assert result.exit_code == 2


class TestScheduleCommand:
    """Tests for the schedule command"""

    def test_schedule(self, runner):
        """Test the jitter-free schedule and totals are printed"""
        result = runner.invoke(
            cli,
            [
                "schedule",
                "--attempts", "5",
                "--base", "1",
                "--max-interval", "3",
                "--max-wait", "100",
                "--exponent", "2",
                "--jitter", "0.25",
            ],
        )
        assert result.exit_code == 0, result.output
        rows = [line.split() for line in result.output.splitlines() if line.split() and line.split()[0].isdigit()]
        assert rows == [
            ["1", "1.000", "1.000"],
            ["2", "2.000", "3.000"],
            ["3", "3.000", "6.000"],
            ["4", "3.000", "9.000"],
        ]
        assert "Gives up after attempt 5" in result.output
        assert "up to 25%" in result.output

    def test_schedule_truncated_by_max_wait(self, runner):
        """Test the schedule reports where the wait budget stops it"""
        result = runner.invoke(
            cli,
            ["schedule", "--attempts", "10", "--base", "1", "--max-interval", "1", "--max-wait", "2.5", "--exponent", "1"],
        )
        assert result.exit_code == 0, result.output
        assert "Times out after attempt 3" in result.output

    def test_schedule_times_out_after_final_attempt(self, runner):
        """Test the budget check after the last attempt is reported"""
        result = runner.invoke(
            cli,
            ["schedule", "--attempts", "2", "--base", "1", "--max-interval", "1", "--max-wait", "1.5", "--exponent", "1"],
        )
        assert result.exit_code == 0, result.output
        assert "Times out after attempt 2" in result.output

    def test_schedule_invalid(self, runner):
        """Test invalid options fail with the offending field"""
        result = runner.invoke(cli, ["schedule", "--attempts", "0"])
        assert result.exit_code == 1
        assert "attempts" in result.output
