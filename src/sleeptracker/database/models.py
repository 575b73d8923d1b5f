"""
SQLAlchemy model for the sleep night table.

Represents a single tracked night; one row per start/stop cycle.
"""
from sqlalchemy import BigInteger, Column, Integer
from sqlalchemy.orm import declarative_base

from ..tracker.types import UNRATED_QUALITY, SleepNight

Base = declarative_base()


class SleepNightRecord(Base):
    """Persistent row behind a SleepNight."""

    __tablename__ = "daily_sleep_quality_table"

    # Columns
    night_id = Column("nightId", Integer, primary_key=True, autoincrement=True)
    start_time_milli = Column(BigInteger, nullable=False)
    end_time_milli = Column(BigInteger, nullable=False)
    sleep_quality = Column("quality_rating", Integer, nullable=False, default=UNRATED_QUALITY)

    @classmethod
    def from_night(cls, night: SleepNight) -> "SleepNightRecord":
        record = cls(
            start_time_milli=night.start_time_milli,
            end_time_milli=night.end_time_milli,
            sleep_quality=night.sleep_quality,
        )
        if night.night_id:
            record.night_id = night.night_id
        return record

    def to_night(self) -> SleepNight:
        return SleepNight(
            night_id=self.night_id,
            start_time_milli=self.start_time_milli,
            end_time_milli=self.end_time_milli,
            sleep_quality=self.sleep_quality,
        )

    def __repr__(self):
        return (
            f"<SleepNightRecord(night_id={self.night_id}, "
            f"start={self.start_time_milli}, end={self.end_time_milli})>"
        )
