"""
SQLAlchemy models for sign configuration: the settings singleton and downtime rules.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from masjid_sign.core.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DigitalSignSettings(Base):
    """Single row with a fixed id."""
    __tablename__ = "digital_sign_settings"

    id = Column(String(36), primary_key=True)
    max_announcements = Column(Integer, nullable=False, default=3)
    show_descriptions = Column(Boolean, nullable=False, default=True)
    show_images = Column(Boolean, nullable=False, default=True)
    rotation_interval_seconds = Column(Integer, nullable=False, default=15)
    updated_at = Column(DateTime(timezone=False), default=_utc_now, onupdate=_utc_now, nullable=False)


class DowntimeRuleRecord(Base):
    """time_range rules use start/end; prayer_iqamah rules use prayer name and offsets."""
    __tablename__ = "downtime_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(32), nullable=False)
    days_of_week = Column(JSON, nullable=False)  # ["Monday", ...]
    is_active = Column(Boolean, nullable=False, default=True)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    prayer_name = Column(String(32), nullable=True)
    minutes_before_iqamah = Column(Integer, nullable=True)
    minutes_after_iqamah = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
