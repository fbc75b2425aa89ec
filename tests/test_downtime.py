"""Tests for downtime evaluation (masjid_sign/sign/downtime.py)."""

import pytest

from masjid_sign.sign.downtime import PRAYER_IQAMAH, TIME_RANGE, DowntimeRule, is_downtime

TZ = "America/Chicago"


def time_range(start, end, days=None, active=True, rule_id=1):
    kwargs = {"days_of_week": frozenset(days)} if days else {}
    return DowntimeRule(id=rule_id, type=TIME_RANGE, start_time=start, end_time=end, is_active=active, **kwargs)


def iqamah_rule(prayer, before, after, days=None, rule_id=2):
    kwargs = {"days_of_week": frozenset(days)} if days else {}
    return DowntimeRule(
        id=rule_id,
        type=PRAYER_IQAMAH,
        prayer_name=prayer,
        minutes_before_iqamah=before,
        minutes_after_iqamah=after,
        **kwargs,
    )


# ----------------------------------------------------------------------------
# Time range rules
# ----------------------------------------------------------------------------


class TestTimeRange:
    @pytest.mark.parametrize("hour,minute,expected", [
        (11, 59, False),
        (12, 0, True),
        (12, 30, True),
        (13, 0, True),
        (13, 1, False),
    ])
    def test_same_day_window_is_inclusive(self, local, hour, minute, expected):
        rule = time_range("12:00", "13:00")
        assert is_downtime([rule], {}, local(2025, 1, 15, hour, minute), TZ) is expected

    def test_day_filter(self, local):
        rule = time_range("12:00", "13:00", days=["Friday"])
        assert is_downtime([rule], {}, local(2025, 1, 17, 12, 30), TZ) is True  # Friday
        assert is_downtime([rule], {}, local(2025, 1, 16, 12, 30), TZ) is False  # Thursday

    def test_inactive_rule_never_matches(self, local):
        rule = time_range("00:00", "23:59", active=False)
        assert is_downtime([rule], {}, local(2025, 1, 15, 12, 0), TZ) is False

    def test_unusable_times_never_match(self, local):
        rule = time_range("25:00", "13:00")
        assert is_downtime([rule], {}, local(2025, 1, 15, 12, 0), TZ) is False


class TestOvernightRange:
    """22:00-06:00 on Fridays: the early-morning tail belongs to Friday night."""

    rule = time_range("22:00", "06:00", days=["Friday"])

    def test_evening_of_listed_day(self, local):
        assert is_downtime([self.rule], {}, local(2025, 1, 17, 23, 0), TZ) is True

    def test_morning_after_listed_day(self, local):
        assert is_downtime([self.rule], {}, local(2025, 1, 18, 3, 0), TZ) is True

    def test_morning_of_listed_day_is_previous_nights_tail(self, local):
        # Friday 03:00 belongs to Thursday night, which is not listed.
        assert is_downtime([self.rule], {}, local(2025, 1, 17, 3, 0), TZ) is False

    def test_evening_of_unlisted_day(self, local):
        assert is_downtime([self.rule], {}, local(2025, 1, 18, 23, 0), TZ) is False

    def test_end_boundary(self, local):
        assert is_downtime([self.rule], {}, local(2025, 1, 18, 6, 0), TZ) is True
        assert is_downtime([self.rule], {}, local(2025, 1, 18, 6, 1), TZ) is False


# ----------------------------------------------------------------------------
# Iqamah rules
# ----------------------------------------------------------------------------


class TestPrayerIqamah:
    IQAMAH = {"Dhuhr": "13:30", "Isha": "00:05"}

    @pytest.mark.parametrize("hour,minute,expected", [
        (13, 19, False),
        (13, 20, True),
        (13, 30, True),
        (13, 50, True),
        (13, 51, False),
    ])
    def test_window_around_iqamah(self, local, hour, minute, expected):
        rule = iqamah_rule("Dhuhr", 10, 20)
        assert is_downtime([rule], self.IQAMAH, local(2025, 1, 15, hour, minute), TZ) is expected

    def test_missing_iqamah_never_matches(self, local):
        rule = iqamah_rule("Asr", 10, 20)
        assert is_downtime([rule], self.IQAMAH, local(2025, 1, 15, 16, 0), TZ) is False

    def test_malformed_iqamah_never_matches(self, local):
        rule = iqamah_rule("Dhuhr", 10, 20)
        assert is_downtime([rule], {"Dhuhr": "N/A"}, local(2025, 1, 15, 13, 30), TZ) is False

    def test_window_reaching_back_across_midnight(self, local):
        rule = iqamah_rule("Isha", 10, 0)
        assert is_downtime([rule], self.IQAMAH, local(2025, 1, 15, 23, 58), TZ) is True
        assert is_downtime([rule], self.IQAMAH, local(2025, 1, 15, 23, 50), TZ) is False

    def test_jumuah_rule(self, local):
        rule = iqamah_rule("Jumuah", 15, 45, days=["Friday"])
        iqamah = {"Jumuah": "13:30"}
        assert is_downtime([rule], iqamah, local(2025, 1, 17, 14, 0), TZ) is True
        assert is_downtime([rule], iqamah, local(2025, 1, 16, 14, 0), TZ) is False


# ----------------------------------------------------------------------------
# Rule sets
# ----------------------------------------------------------------------------


class TestRuleSet:
    def test_any_matching_rule_wins(self, local):
        rules = [time_range("01:00", "02:00", rule_id=1), time_range("12:00", "13:00", rule_id=2)]
        assert is_downtime(rules, {}, local(2025, 1, 15, 12, 15), TZ) is True

    def test_no_rules_means_no_downtime(self, local):
        assert is_downtime([], {}, local(2025, 1, 15, 12, 15), TZ) is False

    def test_unknown_rule_type_is_ignored(self, local):
        rule = DowntimeRule(id=9, type="holiday", start_time="00:00", end_time="23:59")
        assert is_downtime([rule], {}, local(2025, 1, 15, 12, 15), TZ) is False
