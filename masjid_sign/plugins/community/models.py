"""
SQLAlchemy model for the display-ordered community listings (board, trustees, causes, ...).
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from masjid_sign.core.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CommunityEntity(Base):
    __tablename__ = "community_entities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(32), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=True)  # role, program tag, report year, ...
    description = Column(Text, nullable=True)
    link_url = Column(String(1024), nullable=True)
    file_path = Column(String(255), nullable=True)
    file_url = Column(String(1024), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
