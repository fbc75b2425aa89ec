"""
SQLAlchemy models for prayer times: AlAdhan fetches and admin-managed Iqamah times.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, Integer, String

from masjid_sign.core.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PrayerTimesRecord(Base):
    """One AlAdhan fetch per day. timings is {prayer_name: "HH:MM"}."""
    __tablename__ = "prayer_times_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fetched_at = Column(DateTime(timezone=False), nullable=False, index=True)
    prayer_date = Column(Date, nullable=False, index=True)
    timings = Column(JSON, nullable=False)
    readable_date = Column(String(64), nullable=True)
    hijri_date = Column(String(64), nullable=True)


class IqamahTime(Base):
    """Congregation start time per prayer (five daily prayers and Jumuah)."""
    __tablename__ = "iqamah_times"

    prayer_name = Column(String(32), primary_key=True)
    iqamah_time = Column(String(5), nullable=False)  # "HH:MM"
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)
