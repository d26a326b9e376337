"""
Unit tests for CLI module.

Tests the click commands with CliRunner: run, span and the config group.
"""

import json

import pytest
from click.testing import CliRunner

from finchron import __version__
from finchron.cli import main


@pytest.fixture
def runner():
    return CliRunner()


# ============================================================================
# MAIN GROUP TESTS
# ============================================================================

class TestMain:
    """Test the top-level group."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
        assert "finchron" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("run", "span", "config"):
            assert command in result.output

    def test_invalid_log_level(self, runner):
        result = runner.invoke(main, ["--log-level", "LOUD", "span", "2025-01", "2025-12"])
        assert result.exit_code != 0


# ============================================================================
# RUN COMMAND TESTS
# ============================================================================

class TestRunCommand:
    """Test 'finchron run'."""

    def test_quiet_run(self, runner, portfolio_file):
        result = runner.invoke(main, ["--quiet", "run", "--config", str(portfolio_file)])
        assert result.exit_code == 0, result.output
        assert "Finish Net Worth: $" in result.output
        assert "Total Taxes: $" in result.output

    def test_rich_run(self, runner, portfolio_file):
        result = runner.invoke(main, ["run", "-c", str(portfolio_file)])
        assert result.exit_code == 0, result.output
        assert "Test Plan" in result.output
        assert "Yearly Totals" in result.output

    def test_output_directory(self, runner, portfolio_file, tmp_path):
        out = tmp_path / "results"
        result = runner.invoke(main, ["-q", "run", "-c", str(portfolio_file), "-o", str(out)])
        assert result.exit_code == 0, result.output

        with open(out / "summary.json") as f:
            summary = json.load(f)
        assert summary["total_months"] == 24
        assert summary["first_date"] == "2025-01"
        assert (out / "yearly.csv").exists()
        monthly = (out / "monthly.csv").read_text().splitlines()
        assert monthly[0].startswith("month,")
        assert len(monthly) == 25

    def test_animated_run_uses_file_delay(self, runner, portfolio_file, monkeypatch):
        import finchron.chronometer as chronometer

        delays = []
        real = chronometer.run_animated

        async def recording(portfolio, container, *, delay, on_tick=None):
            delays.append(delay)
            return await real(portfolio, container, delay=delay, on_tick=on_tick)

        monkeypatch.delenv("FINCHRON_ANIMATION_DELAY", raising=False)
        monkeypatch.setattr(chronometer, "run_animated", recording)
        result = runner.invoke(main, ["-q", "run", "-c", str(portfolio_file), "--animate"])
        assert result.exit_code == 0, result.output
        assert delays == [0.0]
        assert "Finish Net Worth: $" in result.output

    def test_animated_run_environment_override(self, runner, portfolio_file, monkeypatch):
        import finchron.chronometer as chronometer

        delays = []

        async def recording(portfolio, container, *, delay, on_tick=None):
            delays.append(delay)
            return chronometer.run(portfolio, on_tick=on_tick)

        monkeypatch.setenv("FINCHRON_ANIMATION_DELAY", "0.25")
        monkeypatch.setattr(chronometer, "run_animated", recording)
        result = runner.invoke(main, ["run", "-c", str(portfolio_file), "--animate"])
        assert result.exit_code == 0, result.output
        assert delays == [0.25]
        assert "Yearly Totals" in result.output

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(main, ["run", "-c", str(tmp_path / "absent.json")])
        assert result.exit_code != 0

    def test_invalid_config(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"assets": [{"instrument": "cash"}]}')
        result = runner.invoke(main, ["run", "-c", str(path)])
        assert result.exit_code == 1
        assert "Error loading config" in result.output

    def test_nothing_to_simulate(self, runner, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text('{"schema_version": "0.1.0", "assets": []}')
        result = runner.invoke(main, ["run", "-c", str(path)])
        assert result.exit_code == 1
        assert "nothing to simulate" in result.output


# ============================================================================
# SPAN COMMAND TESTS
# ============================================================================

class TestSpanCommand:
    """Test 'finchron span'."""

    def test_quarterly(self, runner):
        result = runner.invoke(main, ["span", "2020-02", "2026-12"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"total_months": 82, "combine_months": 3, "offset_months": 2}

    def test_bad_month(self, runner):
        result = runner.invoke(main, ["span", "2020-13", "2026-12"])
        assert result.exit_code == 1
        assert "Error:" in result.output


# ============================================================================
# CONFIG COMMAND TESTS
# ============================================================================

class TestConfigCommands:
    """Test 'finchron config validate|show|create'."""

    def test_validate_quiet(self, runner, portfolio_file):
        result = runner.invoke(main, ["-q", "config", "validate", str(portfolio_file)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "Assets: 5" in result.output

    def test_validate_panel(self, runner, portfolio_file):
        result = runner.invoke(main, ["config", "validate", str(portfolio_file)])
        assert result.exit_code == 0
        assert "Portfolio Configuration Valid" in result.output

    def test_validate_failure(self, runner, tmp_path):
        path = tmp_path / "dup.json"
        asset = {"instrument": "cash", "display_name": "Cash", "start_date": "2025-01", "finish_date": "2025-12"}
        path.write_text(json.dumps({"schema_version": "0.1.0", "assets": [asset, asset]}))
        result = runner.invoke(main, ["config", "validate", str(path)])
        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output

    def test_show_json(self, runner, portfolio_file, portfolio_data):
        result = runner.invoke(main, ["config", "show", str(portfolio_file), "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == portfolio_data

    def test_show_table(self, runner, portfolio_file):
        result = runner.invoke(main, ["config", "show", str(portfolio_file)])
        assert result.exit_code == 0
        assert "Test Plan" in result.output

    def test_create(self, runner, tmp_path):
        path = tmp_path / "plans" / "starter.json"
        result = runner.invoke(main, ["config", "create", str(path)])
        assert result.exit_code == 0
        assert "Created portfolio file" in result.output

        validated = runner.invoke(main, ["-q", "config", "validate", str(path)])
        assert validated.exit_code == 0
        assert "Assets: 5" in validated.output
