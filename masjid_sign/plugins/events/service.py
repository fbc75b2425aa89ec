"""
Service layer: store and load calendar fetches. Only the latest fetch is kept.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select

from masjid_sign.core.db import session_scope
from masjid_sign.plugins.events.models import CalendarEventRecord


def save_events(events: List[Dict[str, Any]]) -> None:
    with session_scope() as session:
        session.execute(delete(CalendarEventRecord))
        session.add(CalendarEventRecord(
            fetched_at=datetime.now(timezone.utc).replace(tzinfo=None),
            events=events,
        ))


def get_latest_events_record() -> Optional[CalendarEventRecord]:
    with session_scope() as session:
        return (
            session.execute(
                select(CalendarEventRecord).order_by(CalendarEventRecord.fetched_at.desc()).limit(1)
            )
            .scalars().first()
        )


def get_latest_events() -> List[Dict[str, Any]]:
    record = get_latest_events_record()
    return list(record.events) if record else []
