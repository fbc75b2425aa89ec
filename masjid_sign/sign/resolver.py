"""
Time-and-Prayer Resolver: next daily prayer occurrence and its one-hour marker.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Mapping, Optional, Tuple

from masjid_sign.core.clock import (
    at_local,
    format_clock,
    format_countdown,
    get_zone,
    parse_hhmm,
    seconds_between,
    shift,
    to_local,
)

DAILY_PRAYERS = ("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha")
WEEKLY_PRAYER = "Jumuah"


@dataclass(frozen=True)
class PrayerOccurrence:
    """A prayer resolved to a concrete instant. Recomputed every tick, never stored."""

    name: str
    at: datetime
    formatted_time: str
    countdown: str


@dataclass(frozen=True)
class Resolution:
    next: Optional[PrayerOccurrence] = None
    one_hour_before: Optional[PrayerOccurrence] = None


def _candidates(schedule: Mapping[str, Optional[str]], now_local: datetime) -> List[Tuple[str, datetime]]:
    zone = now_local.tzinfo
    found = []
    for offset in (0, 1):
        day = now_local.date() + timedelta(days=offset)
        for name in DAILY_PRAYERS:
            clock_time = parse_hhmm(schedule.get(name))
            if clock_time is None:
                continue
            found.append((name, at_local(day, clock_time, zone)))
    found.sort(key=lambda item: seconds_between(item[1], now_local))
    return found


def resolve(
    schedule: Mapping[str, Optional[str]],
    now: datetime,
    timezone_name: Optional[str] = None,
) -> Resolution:
    """
    Find the first prayer strictly after now among today's and tomorrow's times.
    schedule maps daily prayer names to "HH:MM"; other values and names are ignored.
    """
    if not schedule:
        return Resolution()
    zone = get_zone(timezone_name)
    now_local = to_local(now, zone)

    for name, at in _candidates(schedule, now_local):
        remaining = seconds_between(at, now_local)
        if remaining <= 0:
            continue
        upcoming = PrayerOccurrence(
            name=name,
            at=at,
            formatted_time=format_clock(at),
            countdown=format_countdown(remaining),
        )
        marker = None
        marker_at = shift(at, minutes=-60)
        marker_remaining = seconds_between(marker_at, now_local)
        if marker_remaining > 0:
            marker = PrayerOccurrence(
                name=name,
                at=marker_at,
                formatted_time=format_clock(marker_at),
                countdown=format_countdown(marker_remaining),
            )
        return Resolution(next=upcoming, one_hour_before=marker)

    return Resolution()
