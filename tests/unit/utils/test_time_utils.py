#!/usr/bin/env python3
"""
Unit tests for time utilities and intake record keys.
"""

import uuid
from datetime import date, datetime, time, timedelta, timezone

import pytest

from careo.utils.intake_key_generator import IntakeKeyGenerator
from careo.utils.time_utils import (
    combine_local,
    ensure_utc,
    format_date_string,
    is_valid_dose_time,
    iter_dates,
    last_day_of_month,
    local_date_of,
    local_today,
    parse_date_string,
    parse_time_string,
    validate_timezone,
)


@pytest.mark.unit
class TestDoseTimes:
    @pytest.mark.parametrize("value", ["00:00", "08:00", "13:45", "23:59"])
    def test_valid(self, value):
        assert is_valid_dose_time(value)

    @pytest.mark.parametrize("value", ["8:00", "24:00", "23:60", "", "08:00 ", None, 800])
    def test_invalid(self, value):
        assert not is_valid_dose_time(value)

    def test_parse(self):
        assert parse_time_string("22:30") == time(22, 30)

    def test_parse_rejects_invalid(self):
        with pytest.raises(ValueError):
            parse_time_string("25:00")


@pytest.mark.unit
class TestFacilityLocalConversions:
    def test_ensure_utc_naive(self):
        assert ensure_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc

    def test_ensure_utc_keeps_aware(self):
        value = datetime(2024, 1, 1, tzinfo=timezone(timedelta(hours=2)))

        assert ensure_utc(value) is value

    def test_local_date_of(self):
        instant = datetime(2024, 6, 30, 23, 30, tzinfo=timezone.utc)

        assert local_date_of(instant, "Europe/London") == date(2024, 7, 1)
        assert local_date_of(instant, "UTC") == date(2024, 6, 30)

    def test_local_date_of_passes_dates_through(self):
        assert local_date_of(date(2024, 1, 1), "Europe/London") == date(2024, 1, 1)

    def test_combine_local(self):
        value = combine_local(date(2024, 7, 1), time(8, 0), "Europe/London")

        assert value.utcoffset() == timedelta(hours=1)
        assert value.astimezone(timezone.utc).hour == 7

    def test_local_today(self):
        now = datetime(2024, 12, 31, 23, 30, tzinfo=timezone.utc)

        assert local_today("Asia/Tokyo", now) == date(2025, 1, 1)

    def test_validate_timezone(self):
        assert validate_timezone("Europe/London")
        assert not validate_timezone("Not/A_Zone")


@pytest.mark.unit
class TestCalendarHelpers:
    @pytest.mark.parametrize(
        "year, month, expected", [(2024, 2, 29), (2023, 2, 28), (2024, 4, 30), (2024, 12, 31)]
    )
    def test_last_day_of_month(self, year, month, expected):
        assert last_day_of_month(year, month) == expected

    def test_iter_dates_inclusive(self):
        assert list(iter_dates(date(2024, 2, 28), date(2024, 3, 1))) == [
            date(2024, 2, 28),
            date(2024, 2, 29),
            date(2024, 3, 1),
        ]

    def test_iter_dates_empty_when_inverted(self):
        assert list(iter_dates(date(2024, 1, 2), date(2024, 1, 1))) == []

    def test_date_strings(self):
        assert format_date_string(date(2024, 1, 5)) == "2024-01-05"
        assert parse_date_string("2024-01-05") == date(2024, 1, 5)


@pytest.mark.unit
class TestIntakeKeyGenerator:
    def test_natural_key(self):
        assert IntakeKeyGenerator.natural_key("order-1", date(2024, 1, 15), "08:00") == (
            "order-1",
            "2024-01-15",
            "08:00",
        )

    def test_key_string(self):
        assert (
            IntakeKeyGenerator.key_string("order-1", date(2024, 1, 15), "08:00")
            == "order-1:2024-01-15:08:00"
        )

    def test_record_id_is_stable_uuid(self):
        first = IntakeKeyGenerator.record_id("order-1", date(2024, 1, 15), "08:00")
        second = IntakeKeyGenerator.record_id("order-1", date(2024, 1, 15), "08:00")

        assert first == second
        assert uuid.UUID(first).version == 5

    def test_record_id_differs_per_dose(self):
        ids = {
            IntakeKeyGenerator.record_id("order-1", date(2024, 1, 15), "08:00"),
            IntakeKeyGenerator.record_id("order-1", date(2024, 1, 15), "20:00"),
            IntakeKeyGenerator.record_id("order-1", date(2024, 1, 16), "08:00"),
            IntakeKeyGenerator.record_id("order-2", date(2024, 1, 15), "08:00"),
        }

        assert len(ids) == 4
