from datetime import date, datetime, timedelta, timezone

import pytest

from plenpilot_api.app.core.weeks import (
    current_iso_week,
    format_week_range,
    iso_week_date_range,
    iso_week_number,
    iso_year,
    to_local_naive,
    to_storage,
    weekday_name,
)


def test_week_one_2024_starts_on_new_years_day():
    start, end = iso_week_date_range(1, 2024)
    assert start == datetime(2024, 1, 1, 0, 0, 0)
    assert end == datetime(2024, 1, 7, 23, 59, 59)


def test_week_range_crossing_month_boundary():
    start, end = iso_week_date_range(5, 2024)
    assert start == datetime(2024, 1, 29)
    assert end == datetime(2024, 2, 4, 23, 59, 59)


def test_week_range_crossing_year_boundary():
    start, end = iso_week_date_range(1, 2025)
    assert start.date() == date(2024, 12, 30)
    assert end.date() == date(2025, 1, 5)


def test_iso_year_differs_from_calendar_year():
    day = date(2024, 12, 30)
    assert iso_week_number(day) == 1
    assert iso_year(day) == 2025


def test_week_53_only_in_long_years():
    start, _ = iso_week_date_range(53, 2020)
    assert start.date() == date(2020, 12, 28)
    with pytest.raises(ValueError):
        iso_week_date_range(53, 2021)


@pytest.mark.parametrize("week", [0, 54, -1])
def test_out_of_range_week_rejected(week):
    with pytest.raises(ValueError):
        iso_week_date_range(week, 2024)


def test_range_contains_every_day_of_several_years():
    day = date(2019, 12, 25)
    while day < date(2027, 1, 10):
        moment = datetime.combine(day, datetime.min.time()) + timedelta(hours=13, minutes=37)
        start, end = iso_week_date_range(iso_week_number(moment), iso_year(moment))
        assert start <= moment <= end
        day += timedelta(days=1)


def test_current_iso_week_uses_given_time():
    assert current_iso_week(datetime(2024, 5, 15, 12, 0)) == (2024, 20)


def test_format_week_range_uses_norwegian_short_dates():
    assert format_week_range(5, 2024) == ("29.01.2024", "04.02.2024")


def test_weekday_name():
    assert weekday_name(date(2024, 1, 1)) == "Mandag"
    assert weekday_name(date(2024, 1, 7)) == "Søndag"


def test_aware_timestamps_are_converted_to_oslo_time():
    # 22:30 UTC on a summer Sunday is 00:30 Monday in Oslo, i.e. the next ISO week.
    value = datetime(2024, 5, 19, 22, 30, 15, 123456, tzinfo=timezone.utc)
    local = to_local_naive(value)
    assert local == datetime(2024, 5, 20, 0, 30, 15)
    assert local.tzinfo is None
    assert iso_week_number(local) == 21


def test_storage_format_sorts_within_week_bounds():
    _, end = iso_week_date_range(20, 2024)
    late = datetime(2024, 5, 19, 23, 59, 59, 999999)
    assert to_storage(late) == "2024-05-19 23:59:59"
    assert to_storage(late) <= to_storage(end)
