"""
Reminder Scheduler: one-hour, ten-minute and exact-Adhan reminders.

Each channel is a small state machine (idle -> armed -> dismissed -> idle) with a
single deadline. A channel stays dismissed until its arming window for that
prayer has closed, so one occurrence is reminded at most once per channel.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Union

from masjid_sign.core.clock import seconds_between, shift
from masjid_sign.sign.resolver import WEEKLY_PRAYER, PrayerOccurrence, Resolution

logger = logging.getLogger(__name__)

OVERLAY_SECONDS = 30
ONE_HOUR_DISMISS_SECONDS = 30
TEN_MINUTE_DISMISS_SECONDS = 600
ADHAN_FALLBACK_SECONDS = 300
ADHAN_WINDOW_SECONDS = 5


class Channel(Enum):
    ONE_HOUR = "one_hour"
    TEN_MINUTE = "ten_minute"
    ADHAN = "adhan"


class ChannelState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    DISMISSED = "dismissed"


MESSAGES = {
    Channel.ONE_HOUR: "in 1 Hour!",
    Channel.TEN_MINUTE: "coming soon.",
    Channel.ADHAN: "Adhan is now!",
}


@dataclass(frozen=True)
class Reminder:
    """Fired once when a channel arms."""

    channel: Channel
    prayer_name: str
    message: str
    prayer_at: datetime


@dataclass(frozen=True)
class Overlay:
    channel: Channel
    prayer_name: str
    message: str
    shown_at: datetime
    hide_at: datetime

    @property
    def title(self) -> str:
        return f"Adhan for {self.prayer_name}"


class ChannelMachine:
    def __init__(self, channel: Channel, dismiss_after: float):
        self.channel = channel
        self.dismiss_after = dismiss_after
        self.state = ChannelState.IDLE
        self.last_prayer: Optional[str] = None
        self.deadline: Optional[datetime] = None

    def can_arm(self, prayer_name: str) -> bool:
        return self.state is ChannelState.IDLE or self.last_prayer != prayer_name

    def arm(self, prayer_name: str, now: datetime, dismiss_after: Optional[float] = None) -> None:
        self.state = ChannelState.ARMED
        self.last_prayer = prayer_name
        seconds = self.dismiss_after if dismiss_after is None else dismiss_after
        self.deadline = shift(now, seconds=seconds)

    def dismiss(self) -> None:
        if self.state is ChannelState.ARMED:
            self.state = ChannelState.DISMISSED
            self.deadline = None

    def expire(self, now: datetime) -> bool:
        if self.state is ChannelState.ARMED and self.deadline is not None and seconds_between(now, self.deadline) >= 0:
            self.dismiss()
            return True
        return False

    def release(self, window_open: bool) -> None:
        """Back to idle once the arming window for the remembered prayer has closed."""
        if self.state is ChannelState.DISMISSED and not window_open:
            self.state = ChannelState.IDLE
            self.last_prayer = None


class ReminderScheduler:
    """
    Evaluated once per second with the latest resolution.
    adhan_fallback_seconds: seconds, or a callable read each time the Adhan arms.
    """

    def __init__(self, adhan_fallback_seconds: Union[float, Callable[[], float]] = ADHAN_FALLBACK_SECONDS):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.adhan_fallback_seconds = adhan_fallback_seconds
        self.channels = {
            Channel.ONE_HOUR: ChannelMachine(Channel.ONE_HOUR, ONE_HOUR_DISMISS_SECONDS),
            Channel.TEN_MINUTE: ChannelMachine(Channel.TEN_MINUTE, TEN_MINUTE_DISMISS_SECONDS),
            Channel.ADHAN: ChannelMachine(Channel.ADHAN, ADHAN_FALLBACK_SECONDS),
        }
        self.overlay: Optional[Overlay] = None
        self._tracked: Optional[PrayerOccurrence] = None
        self._passed: Optional[PrayerOccurrence] = None

    def adhan_timeout(self) -> float:
        if callable(self.adhan_fallback_seconds):
            return self.adhan_fallback_seconds()
        return self.adhan_fallback_seconds

    def overlay_visible(self, now: datetime) -> bool:
        return self.overlay is not None and seconds_between(self.overlay.hide_at, now) > 0

    def _one_hour_window(self, upcoming: Optional[PrayerOccurrence], now: datetime) -> bool:
        if upcoming is None:
            return False
        remaining = seconds_between(upcoming.at, now)
        return 3540 < remaining <= 3600

    def _ten_minute_window(self, upcoming: Optional[PrayerOccurrence], now: datetime) -> bool:
        if upcoming is None:
            return False
        remaining = seconds_between(upcoming.at, now)
        return 0 < remaining <= 600

    def _adhan_due(self, now: datetime) -> Optional[PrayerOccurrence]:
        """Last occurrence whose instant was crossed less than ADHAN_WINDOW_SECONDS ago."""
        tracked = self._tracked
        if tracked is not None and seconds_between(now, tracked.at) >= 0:
            self._passed = tracked
        passed = self._passed
        if passed is None:
            return None
        if seconds_between(now, passed.at) < ADHAN_WINDOW_SECONDS:
            return passed
        self._passed = None
        return None

    def _arm(
        self,
        channel: Channel,
        occurrence: PrayerOccurrence,
        now: datetime,
        dismiss_after: Optional[float] = None,
    ) -> Reminder:
        self.channels[channel].arm(occurrence.name, now, dismiss_after)
        message = MESSAGES[channel]
        self.overlay = Overlay(
            channel=channel,
            prayer_name=occurrence.name,
            message=message,
            shown_at=now,
            hide_at=shift(now, seconds=OVERLAY_SECONDS),
        )
        self.logger.info(f"Reminder armed: {channel.value} for {occurrence.name} ({message})")
        return Reminder(channel=channel, prayer_name=occurrence.name, message=message, prayer_at=occurrence.at)

    def tick(self, resolution: Resolution, now: datetime) -> Optional[Reminder]:
        """Advance all channels; return the reminder that armed this tick, if any."""
        upcoming = resolution.next

        for machine in self.channels.values():
            if machine.expire(now):
                self.logger.debug(f"Channel {machine.channel.value} dismissed by timeout")
        if self.overlay is not None and not self.overlay_visible(now):
            self.overlay = None

        one_hour_open = self._one_hour_window(upcoming, now)
        ten_minute_open = self._ten_minute_window(upcoming, now)
        due = self._adhan_due(now)

        one_hour = self.channels[Channel.ONE_HOUR]
        ten_minute = self.channels[Channel.TEN_MINUTE]
        adhan = self.channels[Channel.ADHAN]
        upcoming_name = upcoming.name if upcoming is not None else None
        one_hour.release(one_hour_open and one_hour.last_prayer == upcoming_name)
        ten_minute.release(ten_minute_open and ten_minute.last_prayer == upcoming_name)
        adhan.release(due is not None and due.name == adhan.last_prayer)

        # One arm per tick, in channel order; a skipped adhan retries while its window is open.
        fired = None
        if one_hour_open and one_hour.can_arm(upcoming.name):
            fired = self._arm(Channel.ONE_HOUR, upcoming, now)
        elif ten_minute_open and ten_minute.can_arm(upcoming.name):
            fired = self._arm(Channel.TEN_MINUTE, upcoming, now)
        elif due is not None and due.name != WEEKLY_PRAYER and adhan.can_arm(due.name):
            fired = self._arm(Channel.ADHAN, due, now, self.adhan_timeout())

        self._tracked = upcoming
        return fired

    def audio_finished(self, now: datetime) -> None:
        """Adhan playback ended naturally: close its overlay and dismiss the channel."""
        machine = self.channels[Channel.ADHAN]
        if machine.state is ChannelState.ARMED:
            self.logger.info(f"Adhan audio finished for {machine.last_prayer}")
            machine.dismiss()
        if self.overlay is not None and self.overlay.channel is Channel.ADHAN:
            self.overlay = None
