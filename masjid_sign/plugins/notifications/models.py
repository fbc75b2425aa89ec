"""
SQLAlchemy model for announcement email subscriptions.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from masjid_sign.core.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    subscribed_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
