"""
Service layer: digital sign settings singleton and downtime rule CRUD.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from masjid_sign.core.clock import WEEKDAY_NAMES, is_hhmm
from masjid_sign.core.db import session_scope
from masjid_sign.plugins.prayer.service import IQAMAH_PRAYERS
from masjid_sign.plugins.sign_config.models import DigitalSignSettings, DowntimeRuleRecord
from masjid_sign.sign.downtime import RULE_TYPES, TIME_RANGE, DowntimeRule
from masjid_sign.sign.rotation import MIN_ROTATION_SECONDS

SETTINGS_ID = "00000000-0000-0000-0000-000000000001"

DEFAULT_SETTINGS = {
    "max_announcements": 3,
    "show_descriptions": True,
    "show_images": True,
    "rotation_interval_seconds": 15,
}

_TIME_RANGE_FIELDS = ("start_time", "end_time")
_PRAYER_FIELDS = ("prayer_name", "minutes_before_iqamah", "minutes_after_iqamah")
RULE_FIELDS = ("type", "days_of_week", "is_active") + _TIME_RANGE_FIELDS + _PRAYER_FIELDS


def get_settings() -> Dict[str, Any]:
    """Current settings, defaults when the row does not exist yet. The interval reads floored at 5 s."""
    with session_scope() as session:
        row = session.get(DigitalSignSettings, SETTINGS_ID)
        if row is None:
            return dict(DEFAULT_SETTINGS)
        return {
            "max_announcements": max(0, row.max_announcements),
            "show_descriptions": bool(row.show_descriptions),
            "show_images": bool(row.show_images),
            "rotation_interval_seconds": max(MIN_ROTATION_SECONDS, row.rotation_interval_seconds),
        }


def save_settings(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and upsert the singleton. Raises ValueError; nothing is written on failure."""
    values = get_settings()
    values.update({k: v for k, v in data.items() if k in DEFAULT_SETTINGS and v is not None})

    try:
        values["max_announcements"] = int(values["max_announcements"])
        values["rotation_interval_seconds"] = int(values["rotation_interval_seconds"])
    except (TypeError, ValueError):
        raise ValueError("Numeric settings must be whole numbers")
    if values["max_announcements"] < 0:
        raise ValueError("Number of announcements must be a non-negative number.")
    if values["rotation_interval_seconds"] < MIN_ROTATION_SECONDS:
        raise ValueError(f"Rotation interval must be at least {MIN_ROTATION_SECONDS} seconds.")

    with session_scope() as session:
        row = session.get(DigitalSignSettings, SETTINGS_ID)
        if row is None:
            row = DigitalSignSettings(id=SETTINGS_ID)
            session.add(row)
        for key, value in values.items():
            setattr(row, key, value)
    return values


def _validate_rule(values: Dict[str, Any]) -> Dict[str, Any]:
    rule_type = values.get("type")
    if rule_type not in RULE_TYPES:
        raise ValueError(f"Rule type must be one of {', '.join(RULE_TYPES)}")

    days = values.get("days_of_week")
    if days is None:
        days = list(WEEKDAY_NAMES)
    days = [str(day).strip().capitalize() for day in days]
    unknown = [day for day in days if day not in WEEKDAY_NAMES]
    if unknown:
        raise ValueError(f"Unknown day(s) of week: {', '.join(unknown)}")
    if not days:
        raise ValueError("At least one day of week is required")
    values["days_of_week"] = [day for day in WEEKDAY_NAMES if day in days]
    values["is_active"] = True if values.get("is_active") is None else bool(values["is_active"])

    if rule_type == TIME_RANGE:
        for name in _TIME_RANGE_FIELDS:
            if not is_hhmm(values.get(name)):
                raise ValueError(f"{name} must be HH:MM (24-hour)")
        if any(values.get(name) is not None for name in _PRAYER_FIELDS):
            raise ValueError("Time range rules cannot have prayer fields")
    else:
        if values.get("prayer_name") not in IQAMAH_PRAYERS:
            raise ValueError(f"prayer_name must be one of {', '.join(IQAMAH_PRAYERS)}")
        for name in ("minutes_before_iqamah", "minutes_after_iqamah"):
            try:
                values[name] = int(values.get(name))
            except (TypeError, ValueError):
                raise ValueError(f"{name} is required")
            if values[name] < 0:
                raise ValueError(f"{name} must be zero or more")
        if any(values.get(name) is not None for name in _TIME_RANGE_FIELDS):
            raise ValueError("Prayer rules cannot have start or end times")
    return values


def list_rules() -> List[DowntimeRuleRecord]:
    with session_scope() as session:
        return list(session.execute(select(DowntimeRuleRecord).order_by(DowntimeRuleRecord.id)).scalars().all())


def get_rule(rule_id: int) -> Optional[DowntimeRuleRecord]:
    with session_scope() as session:
        return session.get(DowntimeRuleRecord, rule_id)


def save_rule(data: Dict[str, Any], rule_id: Optional[int] = None) -> DowntimeRuleRecord:
    """
    Create or replace a rule. Exactly one payload (time range or prayer offsets) may be set;
    switching type clears the other payload. Raises ValueError or LookupError.
    """
    values = {k: data.get(k) for k in RULE_FIELDS}
    values = _validate_rule(values)
    with session_scope() as session:
        if rule_id is None:
            row = DowntimeRuleRecord()
            session.add(row)
        else:
            row = session.get(DowntimeRuleRecord, rule_id)
            if row is None:
                raise LookupError(f"Downtime rule {rule_id} not found")
        for key, value in values.items():
            setattr(row, key, value)
        session.flush()
        return row


def delete_rule(rule_id: int) -> bool:
    with session_scope() as session:
        row = session.get(DowntimeRuleRecord, rule_id)
        if row is None:
            return False
        session.delete(row)
        return True


def to_engine_rule(row: DowntimeRuleRecord) -> DowntimeRule:
    return DowntimeRule(
        id=row.id,
        type=row.type,
        days_of_week=frozenset(row.days_of_week or ()),
        is_active=bool(row.is_active),
        start_time=row.start_time,
        end_time=row.end_time,
        prayer_name=row.prayer_name,
        minutes_before_iqamah=row.minutes_before_iqamah,
        minutes_after_iqamah=row.minutes_after_iqamah,
    )


def get_engine_rules() -> List[DowntimeRule]:
    return [to_engine_rule(row) for row in list_rules()]
