# mc_core/intakes/schedule.py
"""
Intake schedule calculator.

Pure functions: given what was dispensed and when, derive the doses per day,
the spacing between doses and every dose timestamp.

All wall-clock arithmetic happens in one timezone, the deployment's
settings.TIME_ZONE. There is no per-patient timezone.

Rules:
  doses_per_day  = ceil(dispensed_quantity / duration_days), at least 1
  interval_hours = 24 // doses_per_day
  first dose     = 08:00 on the calendar day after dispatch
  dose n of day d = (first day + d days) at 08:00 + n * interval_hours

More than 24 doses per day would give a zero interval (colliding
timestamps), so it is rejected instead of guessed at.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

from django.utils import timezone

from mc_core.common.errors import ValidationError

HOURS_PER_DAY = 24
DEFAULT_FIRST_DOSE_HOUR = 8

INVALID_INPUT = "InvalidCalculationInput"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class SchedulePlan:
    duration_days: int
    doses_per_day: int
    interval_hours: int

    @property
    def total_doses(self) -> int:
        return self.duration_days * self.doses_per_day


def _leading_int(raw) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    m = _LEADING_INT_RE.match(str(raw))
    return int(m.group(1)) if m else None


def parse_duration_days(raw) -> int:
    """
    Medication durations arrive as free text ("7", "30 DIAS", "").
    Missing, unparseable, zero or negative -> 1 day.
    """
    value = _leading_int(raw)
    return value if value and value > 0 else 1


def resolve_dispensed_quantity(dispensed, requested) -> int:
    """
    dispensed -> requested -> 1, skipping anything missing or zero.
    """
    return _leading_int(dispensed) or _leading_int(requested) or 1


def _parse_hhmm(raw: str) -> time | None:
    raw = raw.strip()
    if not raw:
        return None
    try:
        return datetime.strptime(raw[:5], "%H:%M").time()
    except ValueError:
        raise ValidationError("Dispatch time must be HH:MM.", kind=INVALID_INPUT, details={"dispatch_time": raw})


def merge_dispatch(dispatch_date: date, dispatch_time: time | str | None = None, *, tz: tzinfo | None = None) -> datetime:
    """
    Combine the dispatch date and optional wall-clock time into an aware
    datetime in the schedule timezone. Without a time, midnight is used.
    """
    tz = tz or timezone.get_default_timezone()

    if isinstance(dispatch_date, datetime):
        if timezone.is_aware(dispatch_date):
            dispatch_date = timezone.localtime(dispatch_date, tz)
        if dispatch_time is None:
            dispatch_time = dispatch_date.time().replace(tzinfo=None)
        dispatch_date = dispatch_date.date()

    if isinstance(dispatch_time, str):
        dispatch_time = _parse_hhmm(dispatch_time)

    wall = datetime.combine(dispatch_date, (dispatch_time or time.min).replace(second=0, microsecond=0, tzinfo=None))
    return timezone.make_aware(wall, tz)


def _require_positive_finite(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number.", kind=INVALID_INPUT, details={name: value})
    if not math.isfinite(value) or value <= 0:
        raise ValidationError(f"{name} must be positive and finite.", kind=INVALID_INPUT, details={name: value})


def plan_schedule(duration_days: int, dispensed_quantity: int) -> SchedulePlan:
    _require_positive_finite("duration_days", duration_days)
    if int(duration_days) != duration_days:
        raise ValidationError(
            "duration_days must be a whole number of days.",
            kind=INVALID_INPUT,
            details={"duration_days": duration_days},
        )
    _require_positive_finite("dispensed_quantity", dispensed_quantity)

    duration_days = int(duration_days)
    doses_per_day = max(1, math.ceil(dispensed_quantity / duration_days))
    _require_positive_finite("doses_per_day", doses_per_day)

    interval_hours = HOURS_PER_DAY // doses_per_day
    if interval_hours <= 0:
        raise ValidationError(
            f"{doses_per_day} doses per day leaves no interval between doses (max {HOURS_PER_DAY}).",
            kind=INVALID_INPUT,
            details={"doses_per_day": doses_per_day, "duration_days": duration_days},
        )

    return SchedulePlan(duration_days=duration_days, doses_per_day=doses_per_day, interval_hours=interval_hours)


def calculate_schedule(
    dispatch_at: datetime,
    duration_days: int,
    dispensed_quantity: int,
    *,
    first_dose_hour: int = DEFAULT_FIRST_DOSE_HOUR,
    tz: tzinfo | None = None,
) -> list[datetime]:
    """
    Every dose timestamp, ascending. Naive dispatch_at is read as wall-clock
    time in the schedule timezone.
    """
    tz = tz or timezone.get_default_timezone()
    plan = plan_schedule(duration_days, dispensed_quantity)

    if timezone.is_aware(dispatch_at):
        dispatch_at = timezone.localtime(dispatch_at, tz)
    first_day = dispatch_at.date() + timedelta(days=1)

    out: list[datetime] = []
    for day in range(plan.duration_days):
        midnight = datetime.combine(first_day + timedelta(days=day), time.min)
        for dose in range(plan.doses_per_day):
            # timedelta on the naive wall clock rolls hours past 23 into the next day
            wall = midnight + timedelta(hours=first_dose_hour + dose * plan.interval_hours)
            out.append(timezone.make_aware(wall, tz))
    return out
