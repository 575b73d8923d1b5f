"""Shared dataclasses used across the tracker, storage, and formatting layers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

UNRATED_QUALITY = -1


def current_time_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class SleepNight:
    """One recorded sleep interval.

    A night whose end equals its start has not been stopped yet.
    """

    start_time_milli: int = field(default_factory=current_time_millis)
    end_time_milli: int | None = None
    sleep_quality: int = UNRATED_QUALITY
    night_id: int = 0

    def __post_init__(self) -> None:
        if self.end_time_milli is None:
            self.end_time_milli = self.start_time_milli

    @property
    def is_in_progress(self) -> bool:
        return self.start_time_milli == self.end_time_milli

    @property
    def duration_ms(self) -> int:
        return max(0, self.end_time_milli - self.start_time_milli)


__all__ = ["SleepNight", "UNRATED_QUALITY", "current_time_millis"]
