"""Tests for the sector_allocation CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

import yaml
from typer.testing import CliRunner

from sector_allocation import __version__
from sector_allocation.cli import app

if TYPE_CHECKING:
    from pathlib import Path

# NO_COLOR=1 prevents ANSI colour codes; FORCE_COLOR=None removes the key
# from os.environ for each invocation.
runner = CliRunner(env={"NO_COLOR": "1", "FORCE_COLOR": None})


def _write_scenario(tmp_path: Path, demand: float = 10.0) -> Path:
    data = {
        "model_time": {"start_year": 2020, "time_step": 10, "periods": 2},
        "region": {
            "name": "usa",
            "sectors": [
                {
                    "name": "electricity",
                    "unit": "EJ",
                    "demand": demand,
                    "subsectors": [
                        {"name": "coal"},
                        {"name": "hydro", "fixed_output": 2.0},
                        {"name": "wind", "capacity_limit": 0.3},
                    ],
                }
            ],
        },
    }
    path = tmp_path / "scenario.yml"
    path.write_text(yaml.dump(data))
    return path


def test_version() -> None:
    """Test that version is defined."""
    assert __version__ is not None
    assert isinstance(__version__, str)


def test_cli_version() -> None:
    """Test CLI version command."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_cli_help() -> None:
    """Test CLI help lists the commands."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "run" in result.stdout
    assert "describe" in result.stdout


def test_run(tmp_path: Path) -> None:
    """Test running a scenario prints one line per sector and period."""
    path = _write_scenario(tmp_path)
    result = runner.invoke(app, ["run", "--config", str(path)])
    assert result.exit_code == 0
    lines = [line for line in result.stdout.splitlines() if "electricity" in line]
    assert len(lines) == 2
    assert lines[0].startswith("2020 electricity: output=10")
    assert "hydro=0.200" in lines[0]


def test_run_periods(tmp_path: Path) -> None:
    """Test limiting the number of periods run."""
    path = _write_scenario(tmp_path)
    result = runner.invoke(app, ["run", "--config", str(path), "--periods", "1"])
    assert result.exit_code == 0
    assert "2030" not in result.stdout


def test_run_missing_config(tmp_path: Path) -> None:
    """Test a missing scenario file is an error."""
    result = runner.invoke(app, ["run", "--config", str(tmp_path / "nope.yml")])
    assert result.exit_code == 1


def test_run_fatal_error(tmp_path: Path) -> None:
    """Test fixed output without demand aborts the run."""
    path = _write_scenario(tmp_path, demand=0.0)
    result = runner.invoke(app, ["run", "--config", str(path)])
    assert result.exit_code == 1


def test_run_too_many_periods(tmp_path: Path) -> None:
    """Test requesting more periods than the scenario has."""
    path = _write_scenario(tmp_path)
    result = runner.invoke(app, ["run", "--config", str(path), "--periods", "5"])
    assert result.exit_code == 1


def test_run_unknown_log_level(tmp_path: Path) -> None:
    """Test an unknown log level is an error, not a traceback."""
    path = _write_scenario(tmp_path)
    result = runner.invoke(app, ["run", "--config", str(path), "--log-level", "LOUD"])
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)


def test_run_log_level_case_insensitive(tmp_path: Path) -> None:
    """Test log levels are accepted in lower case."""
    path = _write_scenario(tmp_path)
    result = runner.invoke(app, ["run", "--config", str(path), "--log-level", "debug"])
    assert result.exit_code == 0


def test_run_no_sectors(tmp_path: Path) -> None:
    """Test a scenario without sectors."""
    path = tmp_path / "empty.yml"
    path.write_text(yaml.dump({"region": {"name": "usa"}}))
    result = runner.invoke(app, ["run", "--config", str(path)])
    assert result.exit_code == 0
    assert "No sectors" in result.stdout


def test_describe(tmp_path: Path) -> None:
    """Test describing a scenario lists subsectors and their flags."""
    path = _write_scenario(tmp_path)
    result = runner.invoke(app, ["describe", "--config", str(path)])
    assert result.exit_code == 0
    assert "Region usa: 2 periods from 2020 every 10 years" in result.stdout
    assert "electricity [EJ]" in result.stdout
    assert "hydro (fixed output)" in result.stdout
    assert "wind (capacity limit)" in result.stdout
    assert "- coal\n" in result.stdout


def test_describe_default_scenario() -> None:
    """Test describing the shipped scenario."""
    result = runner.invoke(app, ["describe"])
    assert result.exit_code == 0
    assert "coal (calibrated)" in result.stdout
