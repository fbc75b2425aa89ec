"""
SQLAlchemy model for the latest calendar fetch.
"""
from sqlalchemy import JSON, Column, DateTime, Integer

from masjid_sign.core.db import Base


class CalendarEventRecord(Base):
    """One calendar fetch. events is the merged, start-sorted list."""
    __tablename__ = "calendar_event_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fetched_at = Column(DateTime(timezone=False), nullable=False, index=True)
    events = Column(JSON, nullable=False)
