"""Command-line front end for starting, stopping and reviewing sleep nights."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable, Dict, Optional, Sequence, TextIO

from sleeptracker.app import TrackerApp, build_tracker_app
from sleeptracker.cli._helpers import add_common_args, configure_logging, load_cli_config
from sleeptracker.config.loader import Config
from sleeptracker.formatting import Resources, convert_long_to_date_string
from sleeptracker.tracker.sleep_tracker import SleepTracker

LOGGER = logging.getLogger(__name__)

COMMANDS: Dict[str, Callable[[SleepTracker], Optional[asyncio.Task]]] = {
    "start": SleepTracker.on_start_tracking,
    "stop": SleepTracker.on_stop_tracking,
    "clear": SleepTracker.on_clear,
    "show": lambda tracker: None,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sleeptracker",
        description="Track tonight's sleep and review the stored history.",
    )
    add_common_args(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("start", help="Begin recording a new night")
    subparsers.add_parser("stop", help="Finish the night currently being recorded")
    subparsers.add_parser("clear", help="Delete every stored night")
    subparsers.add_parser("show", help="Print the stored history")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    config = load_cli_config(args.config)
    LOGGER.debug("Config loaded (version=%s)", config.config_version)

    return asyncio.run(run_command(config, args.command))


async def run_command(
    config: Config,
    command: str,
    *,
    output: Optional[TextIO] = None,
    now_fn: Optional[Callable[[], int]] = None,
) -> int:
    """Run one tracker operation and print the resulting state."""

    stream = output or sys.stdout
    app = build_tracker_app(config, now_fn=now_fn)
    try:
        tracker = app.tracker
        # Tonight must be known before stop can act on it.
        await tracker.join()
        task = COMMANDS[command](tracker)
        if task is not None:
            await task
        await tracker.join()
        _render(app, stream, Resources.from_config(config.display))
    finally:
        await app.aclose()
    return 0


def _render(app: TrackerApp, stream: TextIO, resources: Resources) -> None:
    tonight = app.tracker.tonight.value
    if tonight is None:
        stream.write("Tonight: not tracking\n")
    elif tonight.is_in_progress:
        started = convert_long_to_date_string(tonight.start_time_milli, resources)
        stream.write(f"Tonight: tracking since {started}\n")
    else:
        stream.write("Tonight: stopped\n")
    history = app.tracker.nights_string.value or ""
    if history:
        stream.write("\n" + history)
    stream.flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
