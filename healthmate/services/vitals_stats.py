"""
Vitals aggregation: per-metric averages and trend series over a lookback window.

Each metric is averaged over only the records where it is present, so a record
missing one metric still counts for the others. A metric with no readings
averages to 0. Means are rounded half-up: temperature to one decimal, every
other metric to an integer.
"""
import math
from datetime import datetime, timedelta
from typing import Sequence

from sqlmodel import Session, select

from healthmate.models import Vitals
from healthmate.schemas.vitals import (
    BloodPressureAverage,
    BloodPressurePoint,
    TrendPoint,
    VitalsStats,
    VitalsTrends,
)

DEFAULT_WINDOW_DAYS = 30

# Single-value metrics; the trend series carries the same name. Blood pressure is paired.
_VALUE_METRICS = ("blood_sugar", "weight", "temperature", "heart_rate")


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _mean(values: list[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def _int_mean(values: list[float]) -> int:
    mean = _mean(values)
    return int(_round_half_up(mean)) if mean is not None else 0


def stats_window_start(days: int, now: datetime | None = None) -> datetime:
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise ValueError(f"Window must be a positive number of days, got {days!r}.")
    return (now or datetime.utcnow()) - timedelta(days=days)


def load_window(db: Session, user_id: int, days: int = DEFAULT_WINDOW_DAYS, now: datetime | None = None) -> list[Vitals]:
    """The user's records with vital_date inside the window, oldest first."""
    start = stats_window_start(days, now)
    stmt = (
        select(Vitals)
        .where(Vitals.user_id == user_id, Vitals.vital_date >= start)
        .order_by(Vitals.vital_date.asc(), Vitals.id.asc())
    )
    return list(db.exec(stmt).all())


def compute_vitals_stats(records: Sequence[Vitals]) -> VitalsStats:
    """Records must already be in ascending vital_date order; trends keep that order."""
    systolic: list[float] = []
    diastolic: list[float] = []
    values: dict[str, list[float]] = {name: [] for name in _VALUE_METRICS}
    trends = VitalsTrends()

    for rec in records:
        if rec.blood_pressure_systolic is not None:
            systolic.append(rec.blood_pressure_systolic)
            trends.blood_pressure.append(
                BloodPressurePoint(
                    date=rec.vital_date,
                    systolic=rec.blood_pressure_systolic,
                    diastolic=rec.blood_pressure_diastolic,
                )
            )
        if rec.blood_pressure_diastolic is not None:
            diastolic.append(rec.blood_pressure_diastolic)
        for attr in _VALUE_METRICS:
            value = getattr(rec, attr)
            if value is None:
                continue
            values[attr].append(value)
            getattr(trends, attr).append(TrendPoint(date=rec.vital_date, value=value))

    temperature = _mean(values["temperature"])
    return VitalsStats(
        total_records=len(records),
        average_blood_pressure=BloodPressureAverage(
            systolic=_int_mean(systolic),
            diastolic=_int_mean(diastolic),
        ),
        average_blood_sugar=_int_mean(values["blood_sugar"]),
        average_weight=_int_mean(values["weight"]),
        average_temperature=_round_half_up(temperature, 1) if temperature is not None else 0,
        average_heart_rate=_int_mean(values["heart_rate"]),
        trends=trends,
    )
