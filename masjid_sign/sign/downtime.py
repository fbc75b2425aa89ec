"""
Downtime Evaluator: decides whether the sign should show prayer times only.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Tuple

from masjid_sign.core.clock import (
    WEEKDAY_NAMES,
    at_local,
    get_zone,
    parse_hhmm,
    shift,
    to_local,
    to_utc,
    weekday_name,
)

logger = logging.getLogger(__name__)

TIME_RANGE = "time_range"
PRAYER_IQAMAH = "prayer_iqamah"
RULE_TYPES = (TIME_RANGE, PRAYER_IQAMAH)


@dataclass(frozen=True)
class DowntimeRule:
    id: Optional[int]
    type: str
    days_of_week: frozenset = field(default_factory=lambda: frozenset(WEEKDAY_NAMES))
    is_active: bool = True
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    prayer_name: Optional[str] = None
    minutes_before_iqamah: Optional[int] = None
    minutes_after_iqamah: Optional[int] = None

    def applies_on(self, day_name: str) -> bool:
        return self.is_active and day_name in self.days_of_week


def _within(now: datetime, window: Tuple[datetime, datetime]) -> bool:
    start, end = window
    return to_utc(start) <= to_utc(now) <= to_utc(end)


def _time_range_windows(rule: DowntimeRule, now_local: datetime):
    """Windows anchored on today and, for overnight ranges, on yesterday."""
    start_time = parse_hhmm(rule.start_time)
    end_time = parse_hhmm(rule.end_time)
    if start_time is None or end_time is None:
        return
    overnight = end_time < start_time
    anchors = [now_local.date()]
    if overnight:
        anchors.append(now_local.date() - timedelta(days=1))
    for day in anchors:
        start = at_local(day, start_time, now_local.tzinfo)
        end = at_local(day + timedelta(days=1) if overnight else day, end_time, now_local.tzinfo)
        yield day, (start, end)


def _matches_time_range(rule: DowntimeRule, now_local: datetime) -> bool:
    for day, window in _time_range_windows(rule, now_local):
        if not rule.applies_on(WEEKDAY_NAMES[day.weekday()]):
            continue
        if _within(now_local, window):
            return True
    return False


def _matches_prayer_iqamah(
    rule: DowntimeRule, iqamah_times: Mapping[str, Optional[str]], now_local: datetime
) -> bool:
    if not rule.applies_on(weekday_name(now_local)):
        return False
    iqamah_time = parse_hhmm(iqamah_times.get(rule.prayer_name or ""))
    if iqamah_time is None:
        return False
    before = max(0, rule.minutes_before_iqamah or 0)
    after = max(0, rule.minutes_after_iqamah or 0)

    iqamah = at_local(now_local.date(), iqamah_time, now_local.tzinfo)
    today = (shift(iqamah, minutes=-before), shift(iqamah, minutes=after))
    if _within(now_local, today):
        return True
    if to_utc(now_local) > to_utc(today[1]):
        tomorrow_iqamah = at_local(now_local.date() + timedelta(days=1), iqamah_time, now_local.tzinfo)
        tomorrow = (shift(tomorrow_iqamah, minutes=-before), shift(tomorrow_iqamah, minutes=after))
        return _within(now_local, tomorrow)
    return False


def is_downtime(
    rules: Iterable[DowntimeRule],
    iqamah_times: Mapping[str, Optional[str]],
    now: datetime,
    timezone_name: Optional[str] = None,
) -> bool:
    """True if any active rule covers now. Rules with unusable data never match."""
    now_local = to_local(now, get_zone(timezone_name))
    for rule in rules:
        if rule.type == TIME_RANGE:
            matched = _matches_time_range(rule, now_local)
        elif rule.type == PRAYER_IQAMAH:
            matched = _matches_prayer_iqamah(rule, iqamah_times or {}, now_local)
        else:
            logger.debug(f"Ignoring downtime rule {rule.id} with unknown type {rule.type}")
            continue
        if matched:
            logger.debug(f"Downtime rule {rule.id} ({rule.type}) is active")
            return True
    return False
