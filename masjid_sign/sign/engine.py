"""
Sign engine: holds the latest data snapshots and recomputes the sign state each tick.
Single-threaded; background polls hand snapshots in through update().
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from masjid_sign.core.clock import get_zone, to_local
from masjid_sign.sign.downtime import DowntimeRule, is_downtime
from masjid_sign.sign.reminders import (
    ADHAN_FALLBACK_SECONDS,
    Channel,
    Overlay,
    Reminder,
    ReminderScheduler,
)
from masjid_sign.sign.resolver import Resolution, resolve
from masjid_sign.sign.rotation import (
    RotationController,
    SignView,
    assemble_views,
    eligible_announcements,
    upcoming_events,
)

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ("adhan_times", "iqamah_times", "settings", "rules", "announcements", "events")


@dataclass
class Snapshots:
    adhan_times: Dict[str, Optional[str]] = field(default_factory=dict)
    iqamah_times: Dict[str, Optional[str]] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    rules: List[DowntimeRule] = field(default_factory=list)
    announcements: List[Dict[str, Any]] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class SignState:
    now: datetime
    resolution: Resolution
    downtime: bool
    view: SignView
    view_index: int
    view_count: int
    overlay: Optional[Overlay]
    fired: Optional[Reminder]
    audio_started: bool = False


class SignEngine:
    """
    player: object with play_from_start() -> True when started; optional duration() -> seconds or None.
    The engine only starts playback; the caller reports completion via audio_finished().
    """

    def __init__(
        self,
        timezone_name: Optional[str] = None,
        player: Any = None,
        fallback_margin_seconds: float = 30,
        default_fallback_seconds: float = ADHAN_FALLBACK_SECONDS,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.timezone_name = timezone_name
        self.zone = get_zone(timezone_name)
        self.player = player
        self.snapshots = Snapshots()
        self.fallback_margin_seconds = fallback_margin_seconds
        self.default_fallback_seconds = default_fallback_seconds
        self.reminders = ReminderScheduler(self.adhan_fallback_seconds)
        self.rotation = RotationController()
        self._dirty = True
        self._last_downtime: Optional[bool] = None
        self._listeners: List[Callable[[SignState], None]] = []

    def adhan_fallback_seconds(self) -> float:
        """Recording length plus margin once the length is known, else the default. Read when the Adhan arms."""
        duration = None
        if self.player is not None and hasattr(self.player, "duration"):
            try:
                duration = self.player.duration()
            except Exception as e:
                self.logger.warning(f"Could not read adhan duration: {e}")
        if duration:
            return float(duration) + self.fallback_margin_seconds
        return self.default_fallback_seconds

    def subscribe(self, listener: Callable[[SignState], None]) -> None:
        self._listeners.append(listener)

    def update(self, **snapshots: Any) -> None:
        """Atomically replace one or more snapshots (see SNAPSHOT_FIELDS)."""
        for name, value in snapshots.items():
            if name not in SNAPSHOT_FIELDS:
                raise ValueError(f"Unknown snapshot: {name}")
            if value is None:
                continue
            if getattr(self.snapshots, name) != value:
                setattr(self.snapshots, name, value)
                self._dirty = True
        if "settings" in snapshots and snapshots["settings"] is not None:
            self.rotation.set_interval(self.snapshots.settings.get("rotation_interval_seconds"))

    def _recompute_views(self, now_local: datetime, downtime: bool) -> None:
        # Rebuilt every tick: expirations and finished events age out between polls.
        announcements = eligible_announcements(self.snapshots.announcements, now_local.date())
        events = upcoming_events(self.snapshots.events, now_local)
        views = assemble_views(downtime, self.snapshots.settings, announcements, events)
        if self.rotation.set_views(views) and self._dirty:
            self.logger.debug("Views rebuilt after snapshot change")
        self._dirty = False
        self._last_downtime = downtime

    def tick(self, now: datetime) -> SignState:
        now_local = to_local(now, self.zone)
        resolution = resolve(self.snapshots.adhan_times, now_local, self.timezone_name)
        downtime = is_downtime(self.snapshots.rules, self.snapshots.iqamah_times, now_local, self.timezone_name)
        if downtime != self._last_downtime and self._last_downtime is not None:
            self.logger.info(f"Downtime {'started' if downtime else 'ended'}")
        self._recompute_views(now_local, downtime)

        fired = self.reminders.tick(resolution, now_local)
        audio_started = False
        if fired is not None and fired.channel is Channel.ADHAN:
            audio_started = self._start_adhan(fired)

        overlay_showing = self.reminders.overlay_visible(now_local)
        self.rotation.tick(now_local, paused=overlay_showing)

        state = SignState(
            now=now_local,
            resolution=resolution,
            downtime=downtime,
            view=self.rotation.current,
            view_index=self.rotation.current_index,
            view_count=len(self.rotation.views),
            overlay=self.reminders.overlay if overlay_showing else None,
            fired=fired,
            audio_started=audio_started,
        )
        for listener in self._listeners:
            try:
                listener(state)
            except Exception as e:
                self.logger.error(f"Error in sign state listener: {e}", exc_info=True)
        return state

    def _start_adhan(self, reminder: Reminder) -> bool:
        """True only when the player reports that playback started."""
        if self.player is None:
            self.logger.info(f"No adhan player configured; skipping audio for {reminder.prayer_name}")
            return False
        try:
            return self.player.play_from_start() is True
        except Exception as e:
            self.logger.error(f"Error starting adhan for {reminder.prayer_name}: {e}", exc_info=True)
            return False

    def audio_finished(self, now: datetime) -> None:
        self.reminders.audio_finished(to_local(now, self.zone))
