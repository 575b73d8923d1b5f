"""Human-readable rendering of stored sleep nights."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Optional, Sequence, Tuple

from sleeptracker.config.loader import DEFAULT_DATETIME_FORMAT, DEFAULT_TITLE, DisplayConfig
from sleeptracker.tracker.types import SleepNight

QUALITY_STRINGS: Tuple[str, ...] = (
    "Very bad",
    "Poor",
    "So-so",
    "OK",
    "Pretty good",
    "Excellent",
)


@dataclass(frozen=True)
class Resources:
    """Display strings and locale settings used when formatting nights."""

    title: str = DEFAULT_TITLE
    start_label: str = "Start"
    end_label: str = "End"
    quality_label: str = "Quality"
    duration_label: str = "Hours:Minutes:Seconds"
    quality_strings: Tuple[str, ...] = field(default=QUALITY_STRINGS)
    unknown_quality: str = "--"
    datetime_format: str = DEFAULT_DATETIME_FORMAT
    tz: Optional[tzinfo] = None

    @classmethod
    def from_config(cls, display: DisplayConfig, *, tz: Optional[tzinfo] = None) -> "Resources":
        return cls(title=display.title, datetime_format=display.datetime_format, tz=tz)


def convert_numeric_quality_to_string(quality: int, resources: Resources) -> str:
    if 0 <= quality < len(resources.quality_strings):
        return resources.quality_strings[quality]
    return resources.unknown_quality


def convert_long_to_date_string(system_time_millis: int, resources: Resources) -> str:
    moment = datetime.fromtimestamp(system_time_millis / 1000.0, tz=resources.tz)
    return moment.strftime(resources.datetime_format)


def format_duration(duration_ms: int) -> str:
    total_seconds = duration_ms // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_nights(nights: Optional[Sequence[SleepNight]], resources: Resources) -> str:
    """Render nights in the order given; an empty history renders as ``""``.

    Nights still in progress only show their start time.
    """

    if not nights:
        return ""
    indent = "    "
    lines = [resources.title, ""]
    for night in nights:
        lines.append(f"{resources.start_label}:")
        lines.append(indent + convert_long_to_date_string(night.start_time_milli, resources))
        if not night.is_in_progress:
            lines.append(f"{resources.end_label}:")
            lines.append(indent + convert_long_to_date_string(night.end_time_milli, resources))
            lines.append(f"{resources.quality_label}:")
            lines.append(indent + convert_numeric_quality_to_string(night.sleep_quality, resources))
            lines.append(f"{resources.duration_label}:")
            lines.append(indent + format_duration(night.duration_ms))
        lines.append("")
    return "\n".join(lines)


__all__ = [
    "QUALITY_STRINGS",
    "Resources",
    "convert_long_to_date_string",
    "convert_numeric_quality_to_string",
    "format_duration",
    "format_nights",
]
