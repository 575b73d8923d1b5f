from __future__ import annotations

from pathlib import Path

import pytest

from sleeptracker.app import build_tracker_app
from sleeptracker.config.loader import Config, DatabaseConfig, DisplayConfig, ExecutorConfig


def _config(tmp_path: Path) -> Config:
    return Config(
        source=Path("config.yaml"),
        config_version="app-test",
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'nights.db'}"),
        executor=ExecutorConfig(io_workers=1),
        display=DisplayConfig(),
    )


@pytest.mark.asyncio
async def test_aclose_cancels_tracker_and_releases_executor(tmp_path: Path) -> None:
    app = build_tracker_app(_config(tmp_path), now_fn=lambda: 100)
    await app.tracker.join()

    await app.aclose()

    assert app.tracker.scope.cancelled
    with pytest.raises(RuntimeError):
        await app.dispatchers.run_io(lambda: None)
