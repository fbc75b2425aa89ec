"""
Wall-clock helpers shared by the sign engine, services and views.
Times are "HH:MM" strings in the mosque's civil timezone; anything else is inert.
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "America/Chicago"

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

_HHMM = re.compile(r"^\d{2}:\d{2}$")


def get_zone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or DEFAULT_TIMEZONE)


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    """Return a time for a strict "HH:MM" string, None for anything else."""
    if not isinstance(value, str) or not _HHMM.match(value):
        return None
    hour, minute = int(value[:2]), int(value[3:])
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def is_hhmm(value: Optional[str]) -> bool:
    return parse_hhmm(value) is not None


def to_local(now: datetime, zone: ZoneInfo) -> datetime:
    """Express an instant in the civil timezone. Naive values are taken as already local."""
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def at_local(day: date, clock_time: time, zone: ZoneInfo) -> datetime:
    """Wall-clock time on a given day as an aware datetime in the zone."""
    return datetime.combine(day, clock_time, tzinfo=zone)


def to_utc(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc)


def seconds_between(later: datetime, earlier: datetime) -> float:
    """Elapsed seconds between two aware instants, DST-safe."""
    return (to_utc(later) - to_utc(earlier)).total_seconds()


def weekday_name(moment: datetime) -> str:
    return WEEKDAY_NAMES[moment.weekday()]


def format_countdown(seconds: float) -> str:
    """Whole seconds as "HHh MMm SSs"."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}h {minutes:02d}m {secs:02d}s"


def format_clock(moment: datetime) -> str:
    """12-hour display string, e.g. "05:30 PM"."""
    return moment.strftime("%I:%M %p")


def format_time_for_display(value: Optional[str]) -> str:
    """Display an "HH:MM" string as "hh:mm AM"; inert values pass through, blanks become "N/A"."""
    if not value or value == "N/A":
        return "N/A"
    parsed = parse_hhmm(value)
    if parsed is None:
        return value
    return format_clock(datetime.combine(date.today(), parsed))


def shift(moment: datetime, **kwargs) -> datetime:
    """Add a real-time delta to an aware datetime and return it in its own zone."""
    return (to_utc(moment) + timedelta(**kwargs)).astimezone(moment.tzinfo)
