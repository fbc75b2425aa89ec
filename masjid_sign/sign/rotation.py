"""
Content Rotation Controller: which views the sign cycles through, and when it advances.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from masjid_sign.core.clock import seconds_between, shift

logger = logging.getLogger(__name__)

DEFAULT_ROTATION_SECONDS = 15
MIN_ROTATION_SECONDS = 5


class ViewKind(Enum):
    PRAYER_TIMES = "prayer_times"
    ANNOUNCEMENT = "announcement"
    UPCOMING_EVENTS = "upcoming_events"
    COMMUNITY_QR = "community_qr"


@dataclass(frozen=True)
class SignView:
    """One slot of the carousel. Only announcement slots carry data."""

    kind: ViewKind
    announcement: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> tuple:
        if self.kind is ViewKind.ANNOUNCEMENT and self.announcement:
            return (self.kind.value, self.announcement.get("id"))
        return (self.kind.value, None)


def rotation_seconds(value: Any) -> int:
    """Configured interval floored at 5 seconds; 15 when unset or unusable."""
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return DEFAULT_ROTATION_SECONDS
    if seconds <= 0:
        return DEFAULT_ROTATION_SECONDS
    return max(seconds, MIN_ROTATION_SECONDS)


def is_eligible(announcement: Dict[str, Any], today: date) -> bool:
    if not announcement.get("is_active"):
        return False
    expiration = announcement.get("expiration_date")
    if expiration is None:
        return True
    if isinstance(expiration, str):
        try:
            expiration = date.fromisoformat(expiration[:10])
        except ValueError:
            return False
    return expiration >= today


def eligible_announcements(announcements: Sequence[Dict[str, Any]], today: date) -> List[Dict[str, Any]]:
    """Active, unexpired announcements, newest posted first."""
    eligible = [a for a in announcements if is_eligible(a, today)]
    eligible.sort(key=lambda a: str(a.get("posted_at") or ""), reverse=True)
    return eligible


def upcoming_events(events: Sequence[Dict[str, Any]], now: datetime) -> List[Dict[str, Any]]:
    """Events that have not ended yet. Date-only values count for the whole day."""
    result = []
    for event in events:
        boundary = event.get("end") or event.get("start")
        if not boundary:
            continue
        try:
            if len(boundary) == 10:
                ends = datetime.combine(date.fromisoformat(boundary) + timedelta(days=1), datetime.min.time(), tzinfo=now.tzinfo)
            else:
                ends = datetime.fromisoformat(boundary.replace("Z", "+00:00"))
                if ends.tzinfo is None:
                    ends = ends.replace(tzinfo=now.tzinfo)
        except ValueError:
            logger.debug(f"Skipping event with unreadable time: {boundary}")
            continue
        if seconds_between(ends, now) > 0:
            result.append(event)
    return result


def assemble_views(
    downtime: bool,
    settings: Dict[str, Any],
    announcements: Sequence[Dict[str, Any]],
    events: Sequence[Dict[str, Any]],
) -> List[SignView]:
    """
    Build the carousel. announcements must already be the eligible list in display
    order; events the upcoming list.
    """
    if downtime:
        return [SignView(ViewKind.PRAYER_TIMES)]
    views = [SignView(ViewKind.PRAYER_TIMES)]
    if events:
        views.append(SignView(ViewKind.UPCOMING_EVENTS))
    views.append(SignView(ViewKind.COMMUNITY_QR))
    try:
        limit = max(0, int(settings.get("max_announcements", 0) or 0))
    except (TypeError, ValueError):
        limit = 0
    views.extend(SignView(ViewKind.ANNOUNCEMENT, announcement=a) for a in announcements[:limit])
    return views


class RotationController:
    """Owns carousel order and the single rotation deadline."""

    def __init__(self, interval_seconds: int = DEFAULT_ROTATION_SECONDS):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.views: List[SignView] = [SignView(ViewKind.PRAYER_TIMES)]
        self.current_index = 0
        self.interval_seconds = rotation_seconds(interval_seconds)
        self._due_at: Optional[datetime] = None

    @property
    def current(self) -> SignView:
        return self.views[self.current_index]

    def set_views(self, views: List[SignView]) -> bool:
        """Replace the carousel; returns True (and restarts at index 0) if the set changed."""
        if not views:
            views = [SignView(ViewKind.PRAYER_TIMES)]
        if [v.key for v in views] == [v.key for v in self.views]:
            self.views = views
            return False
        self.logger.info(f"Rotation views changed: {len(self.views)} -> {len(views)}")
        self.views = views
        self.current_index = 0
        self._due_at = None
        return True

    def set_interval(self, value: Any) -> None:
        seconds = rotation_seconds(value)
        if seconds != self.interval_seconds:
            self.logger.info(f"Rotation interval changed: {self.interval_seconds}s -> {seconds}s")
            self.interval_seconds = seconds
            self._due_at = None

    def advance(self) -> SignView:
        self.current_index = (self.current_index + 1) % len(self.views)
        return self.current

    def tick(self, now: datetime, paused: bool = False) -> bool:
        """Advance when the deadline has passed. Paused clears the deadline; it restarts fresh."""
        if paused:
            self._due_at = None
            return False
        if self._due_at is None:
            self._due_at = shift(now, seconds=self.interval_seconds)
            return False
        if seconds_between(now, self._due_at) < 0:
            return False
        self.advance()
        self._due_at = shift(now, seconds=self.interval_seconds)
        return True
