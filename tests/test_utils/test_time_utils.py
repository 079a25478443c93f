"""Tests for DB timestamp handling, DOT date decoding and tire age."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tire_slingers.utils.time_utils import (
    dot_manufacture_date,
    ensure_utc,
    format_db_timestamp,
    is_usable_dot_stamp,
    is_valid_dot_year,
    parse_db_timestamp,
    tire_age_days,
    utcnow,
    window_start,
)

UTC = timezone.utc


class TestDbTimestamps:
    def test_format_is_canonical(self):
        dt = datetime(2025, 3, 4, 5, 6, 7, tzinfo=UTC)
        assert format_db_timestamp(dt) == "2025-03-04T05:06:07Z"

    def test_naive_treated_as_utc(self):
        assert format_db_timestamp(datetime(2025, 3, 4, 5, 6, 7)) == "2025-03-04T05:06:07Z"

    def test_aware_converted_to_utc(self):
        eastern = timezone(timedelta(hours=-5))
        dt = datetime(2025, 3, 4, 0, 0, 0, tzinfo=eastern)
        assert format_db_timestamp(dt) == "2025-03-04T05:00:00Z"

    def test_round_trip(self):
        dt = datetime(2025, 3, 4, 5, 6, 7, tzinfo=UTC)
        assert parse_db_timestamp(format_db_timestamp(dt)) == dt

    def test_parse_iso_offset(self):
        parsed = parse_db_timestamp("2025-03-04T05:06:07+00:00")
        assert parsed == datetime(2025, 3, 4, 5, 6, 7, tzinfo=UTC)

    def test_strings_sort_chronologically(self):
        early = format_db_timestamp(datetime(2025, 1, 9, tzinfo=UTC))
        late = format_db_timestamp(datetime(2025, 1, 10, tzinfo=UTC))
        assert early < late


class TestUtcHelpers:
    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo is not None

    def test_ensure_utc_naive(self):
        assert ensure_utc(datetime(2025, 1, 1)).tzinfo == UTC

    def test_window_start(self):
        now = datetime(2025, 6, 1, 12, tzinfo=UTC)
        assert window_start(now, 90) == now - timedelta(days=90)


class TestDotManufactureDate:
    def test_two_digit_recent_year(self):
        assert dot_manufacture_date(1, 21) == datetime(2021, 1, 1, tzinfo=UTC)

    def test_week_offset(self):
        assert dot_manufacture_date(10, 21) == datetime(2021, 1, 1, tzinfo=UTC) + timedelta(weeks=9)

    def test_pivot_year_is_1900s(self):
        assert dot_manufacture_date(1, 50).year == 1950

    def test_just_below_pivot_is_2000s(self):
        assert dot_manufacture_date(1, 49).year == 2049

    def test_four_digit_year_taken_as_is(self):
        assert dot_manufacture_date(1, 2019).year == 2019


class TestTireAgeDays:
    NOW = datetime(2025, 6, 1, 12, tzinfo=UTC)

    def test_falls_back_to_created_at(self):
        created = self.NOW - timedelta(days=30, hours=3)
        assert tire_age_days(self.NOW, created) == 30

    def test_uses_dot_when_both_present(self):
        created = self.NOW - timedelta(days=1)
        expected = (self.NOW - datetime(2020, 1, 1, tzinfo=UTC)).days
        assert tire_age_days(self.NOW, created, dot_week=1, dot_year=20) == expected

    @pytest.mark.parametrize("week, year", [(None, 20), (5, None)])
    def test_partial_dot_falls_back(self, week, year):
        created = self.NOW - timedelta(days=12)
        assert tire_age_days(self.NOW, created, dot_week=week, dot_year=year) == 12

    def test_naive_created_at(self):
        created = datetime(2025, 5, 22, 12)
        assert tire_age_days(self.NOW, created) == 10

    @pytest.mark.parametrize("week, year", [(1, 20250), (1, 9999), (0, 21), (60, 21)])
    def test_unusable_dot_falls_back(self, week, year):
        created = self.NOW - timedelta(days=12)
        assert tire_age_days(self.NOW, created, dot_week=week, dot_year=year) == 12


class TestDotStampValidity:
    @pytest.mark.parametrize("year, expected", [
        (0, True), (99, True), (100, False), (1900, True), (2025, True), (20250, False), (-3, False),
    ])
    def test_is_valid_dot_year(self, year, expected):
        assert is_valid_dot_year(year) is expected

    def test_partial_stamp_not_usable(self):
        assert is_usable_dot_stamp(10, None) is False
        assert is_usable_dot_stamp(10, 21) is True
