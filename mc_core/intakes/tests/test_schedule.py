# mc_core/intakes/tests/test_schedule.py
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from mc_core.common.errors import ValidationError
from mc_core.intakes.schedule import (
    INVALID_INPUT,
    calculate_schedule,
    merge_dispatch,
    parse_duration_days,
    plan_schedule,
    resolve_dispensed_quantity,
)

LIMA = ZoneInfo("America/Lima")


def lima(*args):
    return datetime(*args, tzinfo=LIMA)


@pytest.mark.parametrize(
    "duration_days, quantity, doses_per_day, interval_hours",
    [
        (5, 10, 2, 12),
        (7, 7, 1, 24),
        (3, 10, 4, 6),
        (2, 1, 1, 24),
        (10, 3, 1, 24),
        (1, 3, 3, 8),
        (1, 24, 24, 1),
    ],
)
def test_plan_schedule_doses_and_interval(duration_days, quantity, doses_per_day, interval_hours):
    plan = plan_schedule(duration_days, quantity)
    assert plan.doses_per_day == doses_per_day
    assert plan.interval_hours == interval_hours
    assert plan.total_doses == duration_days * doses_per_day


@pytest.mark.parametrize(
    "duration_days, quantity",
    [
        (0, 10),
        (-2, 10),
        (5, 0),
        (float("inf"), 10),
        (5, float("nan")),
        (1.5, 3),
        ("5", 10),
    ],
)
def test_plan_schedule_rejects_invalid_input(duration_days, quantity):
    with pytest.raises(ValidationError) as exc:
        plan_schedule(duration_days, quantity)
    assert exc.value.kind == INVALID_INPUT


def test_more_than_24_doses_per_day_is_rejected():
    with pytest.raises(ValidationError) as exc:
        plan_schedule(1, 25)
    assert exc.value.kind == INVALID_INPUT
    assert exc.value.details["doses_per_day"] == 25


def test_reference_scenario_two_doses_a_day_for_five_days():
    out = calculate_schedule(lima(2024, 1, 10, 14, 30), 5, 10, tz=LIMA)

    assert len(out) == 10
    assert out[0] == lima(2024, 1, 11, 8, 0)
    assert out[1] == lima(2024, 1, 11, 20, 0)
    assert out[2] == lima(2024, 1, 12, 8, 0)
    assert out[-1] == lima(2024, 1, 15, 20, 0)
    assert all(ts.minute == 0 and ts.second == 0 for ts in out)


def test_schedule_starts_the_day_after_dispatch_even_late_at_night():
    out = calculate_schedule(lima(2024, 1, 10, 23, 59), 1, 1, tz=LIMA)
    assert out == [lima(2024, 1, 11, 8, 0)]


def test_hour_overflow_rolls_into_next_calendar_day():
    # 3 doses/day -> 08:00, 16:00, 24:00 (= next day 00:00)
    out = calculate_schedule(lima(2024, 1, 10, 9, 0), 1, 3, tz=LIMA)
    assert out == [
        lima(2024, 1, 11, 8, 0),
        lima(2024, 1, 11, 16, 0),
        lima(2024, 1, 12, 0, 0),
    ]


def test_month_and_year_boundaries_are_calendar_correct():
    out = calculate_schedule(lima(2023, 12, 30, 10, 0), 3, 3, tz=LIMA)
    assert [ts.date() for ts in out] == [date(2023, 12, 31), date(2024, 1, 1), date(2024, 1, 2)]

    leap = calculate_schedule(lima(2024, 2, 28, 10, 0), 2, 2, tz=LIMA)
    assert [ts.date() for ts in leap] == [date(2024, 2, 29), date(2024, 3, 1)]


def test_24_doses_per_day_are_hourly_and_strictly_increasing():
    out = calculate_schedule(lima(2024, 1, 10), 1, 24, tz=LIMA)
    assert len(out) == 24
    assert out[0] == lima(2024, 1, 11, 8, 0)
    assert out[-1] == lima(2024, 1, 12, 7, 0)
    assert all(a < b for a, b in zip(out, out[1:]))


def test_calculator_is_deterministic_and_sorted():
    first = calculate_schedule(lima(2024, 5, 3, 11, 0), 4, 13, tz=LIMA)
    second = calculate_schedule(lima(2024, 5, 3, 11, 0), 4, 13, tz=LIMA)
    assert first == second
    assert first == sorted(first)
    assert len(first) == 4 * 4


def test_aware_dispatch_in_other_zone_is_read_in_schedule_zone():
    # 2024-01-11 03:00 UTC is still 2024-01-10 22:00 in Lima
    dispatch = datetime(2024, 1, 11, 3, 0, tzinfo=ZoneInfo("UTC"))
    out = calculate_schedule(dispatch, 1, 1, tz=LIMA)
    assert out == [lima(2024, 1, 11, 8, 0)]


def test_first_dose_hour_is_configurable():
    out = calculate_schedule(lima(2024, 1, 10), 1, 2, first_dose_hour=6, tz=LIMA)
    assert out == [lima(2024, 1, 11, 6, 0), lima(2024, 1, 11, 18, 0)]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7", 7),
        ("30 DIAS", 30),
        (" 14 ", 14),
        (5, 5),
        ("", 1),
        (None, 1),
        ("abc", 1),
        ("0", 1),
        ("-3", 1),
    ],
)
def test_parse_duration_days(raw, expected):
    assert parse_duration_days(raw) == expected


@pytest.mark.parametrize(
    "dispensed, requested, expected",
    [
        (5, 10, 5),
        (0, 10, 10),
        (None, 8, 8),
        (0, 0, 1),
        (None, None, 1),
    ],
)
def test_resolve_dispensed_quantity(dispensed, requested, expected):
    assert resolve_dispensed_quantity(dispensed, requested) == expected


def test_zero_quantities_fall_back_to_a_single_dose():
    quantity = resolve_dispensed_quantity(0, 0)
    out = calculate_schedule(lima(2024, 1, 10), 5, quantity, tz=LIMA)
    # ceil(1/5) = 1 dose per day
    assert len(out) == 5


def test_merge_dispatch_accepts_time_or_hhmm_string():
    assert merge_dispatch(date(2024, 1, 10), time(14, 30), tz=LIMA) == lima(2024, 1, 10, 14, 30)
    assert merge_dispatch(date(2024, 1, 10), "14:30", tz=LIMA) == lima(2024, 1, 10, 14, 30)
    assert merge_dispatch(date(2024, 1, 10), None, tz=LIMA) == lima(2024, 1, 10, 0, 0)


def test_merge_dispatch_rejects_garbage_time():
    with pytest.raises(ValidationError):
        merge_dispatch(date(2024, 1, 10), "2pm", tz=LIMA)
