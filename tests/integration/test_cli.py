from __future__ import annotations

import io
from pathlib import Path

import pytest
import yaml

from sleeptracker.cli.track import build_parser, main, run_command
from sleeptracker.config.loader import load_config
from sleeptracker.database.dao import SleepDatabaseDao
from sleeptracker.database.engine import create_session_factory


def _config_file(tmp_path: Path) -> Path:
    data = {
        "config_version": "cli-test",
        "database": {"url": f"sqlite:///{tmp_path / 'nights.db'}"},
        "executor": {"io_workers": 1},
        "display": {"datetime_format": "%Y-%m-%d %H:%M:%S"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def _stored(tmp_path: Path):
    factory = create_session_factory(f"sqlite:///{tmp_path / 'nights.db'}")
    return SleepDatabaseDao(factory).get_all_nights()


@pytest.mark.asyncio
async def test_start_then_stop_across_runs(tmp_path: Path) -> None:
    config = load_config(_config_file(tmp_path))

    out = io.StringIO()
    assert await run_command(config, "start", output=out, now_fn=lambda: 1_000) == 0
    assert "Tonight: tracking since" in out.getvalue()

    out = io.StringIO()
    assert await run_command(config, "stop", output=out, now_fn=lambda: 61_000) == 0
    assert "Tonight: stopped" in out.getvalue()
    assert "0:01:00" in out.getvalue()

    stored = _stored(tmp_path)
    assert len(stored) == 1
    assert (stored[0].start_time_milli, stored[0].end_time_milli) == (1_000, 61_000)


@pytest.mark.asyncio
async def test_stop_with_nothing_tracked_is_noop(tmp_path: Path) -> None:
    config = load_config(_config_file(tmp_path))
    out = io.StringIO()

    await run_command(config, "stop", output=out)

    assert out.getvalue() == "Tonight: not tracking\n"
    assert _stored(tmp_path) == []


@pytest.mark.asyncio
async def test_clear_removes_history(tmp_path: Path) -> None:
    config = load_config(_config_file(tmp_path))
    await run_command(config, "start", output=io.StringIO(), now_fn=lambda: 1_000)

    out = io.StringIO()
    await run_command(config, "clear", output=out)

    assert out.getvalue() == "Tonight: not tracking\n"
    assert _stored(tmp_path) == []


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_main_reports_bad_config(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("config_version: x\n", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        main(["--config", str(path), "show"])
    assert "Config validation failed" in str(exc.value)


def test_main_show_prints_history(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _config_file(tmp_path)

    assert main(["--config", str(path), "start"]) == 0
    assert main(["--config", str(path), "show"]) == 0

    captured = capsys.readouterr().out
    assert "Here is your sleep data" in captured
    assert captured.count("Tonight: tracking since") == 2
