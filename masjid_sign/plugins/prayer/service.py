"""
Service layer: prayer times fetches and Iqamah times in the DB.
"""
from datetime import date, datetime, timezone
from typing import Dict, Optional

from sqlalchemy import delete, select

from masjid_sign.core.clock import is_hhmm
from masjid_sign.core.db import session_scope
from masjid_sign.plugins.prayer.models import IqamahTime, PrayerTimesRecord
from masjid_sign.sign.resolver import DAILY_PRAYERS, WEEKLY_PRAYER

IQAMAH_PRAYERS = DAILY_PRAYERS + (WEEKLY_PRAYER,)


def save_prayer_times(
    prayer_date: date,
    timings: Dict[str, str],
    readable_date: Optional[str] = None,
    hijri_date: Optional[str] = None,
) -> PrayerTimesRecord:
    """Replace the stored timings for prayer_date."""
    record = PrayerTimesRecord(
        fetched_at=datetime.now(timezone.utc).replace(tzinfo=None),
        prayer_date=prayer_date,
        timings=dict(timings),
        readable_date=readable_date,
        hijri_date=hijri_date,
    )
    with session_scope() as session:
        session.execute(delete(PrayerTimesRecord).where(PrayerTimesRecord.prayer_date == prayer_date))
        session.add(record)
    return record


def get_latest_prayer_times_record() -> Optional[PrayerTimesRecord]:
    with session_scope() as session:
        return (
            session.execute(
                select(PrayerTimesRecord).order_by(PrayerTimesRecord.fetched_at.desc()).limit(1)
            )
            .scalars().first()
        )


def get_iqamah_times() -> Dict[str, str]:
    """{prayer_name: "HH:MM"} for every stored Iqamah time."""
    with session_scope() as session:
        rows = session.execute(select(IqamahTime)).scalars().all()
        return {row.prayer_name: row.iqamah_time for row in rows}


def get_iqamah_records():
    with session_scope() as session:
        return list(session.execute(select(IqamahTime).order_by(IqamahTime.prayer_name)).scalars().all())


def save_iqamah_time(prayer_name: str, iqamah_time: str) -> IqamahTime:
    """Upsert one Iqamah time. Raises ValueError for unknown prayers or non HH:MM values."""
    if prayer_name not in IQAMAH_PRAYERS:
        raise ValueError(f"Unknown prayer: {prayer_name}")
    iqamah_time = (iqamah_time or "").strip()
    if not is_hhmm(iqamah_time):
        raise ValueError(f"Iqamah time must be HH:MM (24-hour), got {iqamah_time!r}")
    with session_scope() as session:
        row = session.get(IqamahTime, prayer_name)
        if row is None:
            row = IqamahTime(prayer_name=prayer_name, iqamah_time=iqamah_time)
            session.add(row)
        else:
            row.iqamah_time = iqamah_time
        session.flush()
        return row
