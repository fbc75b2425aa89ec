"""
SQLAlchemy model for announcements shown on the website and the sign.
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text

from masjid_sign.core.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    announcement_date = Column(Date, nullable=False)
    image_path = Column(String(255), nullable=True)  # name inside the announcement bucket
    image_url = Column(String(1024), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    posted_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False, index=True)
    expiration_date = Column(Date, nullable=True)
