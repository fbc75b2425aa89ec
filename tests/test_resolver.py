"""Tests for the next-prayer resolver (masjid_sign/sign/resolver.py)."""

from datetime import datetime, timezone

import pytest

from masjid_sign.sign.resolver import resolve

TZ = "America/Chicago"

SCHEDULE = {
    "Fajr": "05:00",
    "Dhuhr": "13:00",
    "Asr": "16:30",
    "Maghrib": "19:00",
    "Isha": "20:30",
}


# ----------------------------------------------------------------------------
# Next prayer
# ----------------------------------------------------------------------------


class TestNextPrayer:
    def test_picks_first_prayer_after_now(self, local):
        result = resolve(SCHEDULE, local(2025, 1, 15, 11, 0), TZ)
        assert result.next.name == "Dhuhr"
        assert result.next.at == local(2025, 1, 15, 13, 0)
        assert result.next.formatted_time == "01:00 PM"
        assert result.next.countdown == "02h 00m 00s"

    def test_prayer_at_exactly_now_is_not_next(self, local):
        result = resolve(SCHEDULE, local(2025, 1, 15, 13, 0), TZ)
        assert result.next.name == "Asr"

    def test_rolls_over_to_tomorrows_fajr(self, local):
        result = resolve(SCHEDULE, local(2025, 1, 15, 21, 0), TZ)
        assert result.next.name == "Fajr"
        assert result.next.at == local(2025, 1, 16, 5, 0)
        assert result.next.countdown == "08h 00m 00s"

    def test_utc_input_is_read_in_civil_time(self, local):
        # 17:00 UTC is 11:00 CST
        result = resolve(SCHEDULE, datetime(2025, 1, 15, 17, 0, tzinfo=timezone.utc), TZ)
        assert result.next.name == "Dhuhr"
        assert result.next.countdown == "02h 00m 00s"

    def test_naive_input_is_taken_as_local(self):
        result = resolve(SCHEDULE, datetime(2025, 1, 15, 11, 0), TZ)
        assert result.next.name == "Dhuhr"

    def test_countdown_across_spring_forward(self, local):
        # Clocks jump 02:00 -> 03:00 on 2025-03-09, so only five real hours pass.
        result = resolve(SCHEDULE, local(2025, 3, 8, 23, 0), TZ)
        assert result.next.name == "Fajr"
        assert result.next.countdown == "05h 00m 00s"


# ----------------------------------------------------------------------------
# One-hour marker
# ----------------------------------------------------------------------------


class TestOneHourMarker:
    def test_marker_one_hour_before_next(self, local):
        result = resolve(SCHEDULE, local(2025, 1, 15, 11, 0), TZ)
        assert result.one_hour_before.name == "Dhuhr"
        assert result.one_hour_before.at == local(2025, 1, 15, 12, 0)
        assert result.one_hour_before.countdown == "01h 00m 00s"

    def test_marker_absent_inside_final_hour(self, local):
        result = resolve(SCHEDULE, local(2025, 1, 15, 12, 30), TZ)
        assert result.next.name == "Dhuhr"
        assert result.one_hour_before is None

    def test_marker_absent_at_exact_marker_instant(self, local):
        result = resolve(SCHEDULE, local(2025, 1, 15, 12, 0), TZ)
        assert result.one_hour_before is None


# ----------------------------------------------------------------------------
# Inert values
# ----------------------------------------------------------------------------


class TestInertValues:
    def test_empty_schedule_resolves_nothing(self, local):
        result = resolve({}, local(2025, 1, 15, 11, 0), TZ)
        assert result.next is None
        assert result.one_hour_before is None

    @pytest.mark.parametrize("value", ["N/A", "", None, "5:00", "25:00", "13:60", "1pm"])
    def test_malformed_times_are_skipped(self, local, value):
        schedule = dict(SCHEDULE, Dhuhr=value)
        result = resolve(schedule, local(2025, 1, 15, 11, 0), TZ)
        assert result.next.name == "Asr"

    def test_all_malformed_resolves_nothing(self, local):
        schedule = {name: "N/A" for name in SCHEDULE}
        assert resolve(schedule, local(2025, 1, 15, 11, 0), TZ).next is None

    def test_weekly_prayer_is_not_a_daily_candidate(self, local):
        result = resolve({"Jumuah": "13:30"}, local(2025, 1, 17, 11, 0), TZ)
        assert result.next is None
