"""
Domain models for personal health measurements.

These models represent the raw facts the engine works from: blood-pressure
readings and the sessions they are grouped into, nightly sleep entries and
blood-test reports. They are immutable; an edit replaces the whole object.
"""

import datetime as dt
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

# Clinical validity bounds, inclusive
SYSTOLIC_MIN, SYSTOLIC_MAX = 60, 250
DIASTOLIC_MIN, DIASTOLIC_MAX = 40, 150
PULSE_MIN, PULSE_MAX = 30, 220

Arm = Literal["L", "R"]


class TimeOfDay(str, Enum):
    """Time-of-day bucket a reading falls into."""

    MORNING = "morning"  # 06:00-11:59
    AFTERNOON = "afternoon"  # 12:00-17:59
    EVENING = "evening"  # 18:00-05:59


def time_of_day_for(moment: dt.datetime | dt.time) -> TimeOfDay:
    """Bucket a datetime by its hour."""
    hour = moment.hour
    if 6 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 18:
        return TimeOfDay.AFTERNOON
    return TimeOfDay.EVENING


class RawReading(BaseModel):
    """One blood-pressure measurement as submitted, before validation."""

    model_config = ConfigDict(frozen=True)

    systolic: int
    diastolic: int
    pulse: int | None = None
    arm: Arm | None = None


class Reading(BaseModel):
    """A validated blood-pressure measurement belonging to a session."""

    model_config = ConfigDict(frozen=True)

    id: str
    recorded_at: dt.datetime
    systolic: int = Field(ge=SYSTOLIC_MIN, le=SYSTOLIC_MAX)
    diastolic: int = Field(ge=DIASTOLIC_MIN, le=DIASTOLIC_MAX)
    pulse: int | None = Field(default=None, ge=PULSE_MIN, le=PULSE_MAX)
    arm: Arm | None = None
    notes: str | None = None
    session_id: str


class BPReadingSummary(BaseModel):
    """Flattened view of a session used by scoring and insights."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    time_of_day: TimeOfDay
    systolic: int
    diastolic: int
    pulse: int | None = None
    session_id: str


class Session(BaseModel):
    """
    Readings taken in one sitting, reduced to a representative measurement.

    Sessions are never edited in place; the aggregator rebuilds them from the
    full reading set whenever it changes.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    recorded_at: dt.datetime
    systolic: int
    diastolic: int
    pulse: int | None = None
    notes: str | None = None
    readings: tuple[Reading, ...] = Field(min_length=1)
    reading_count: int = Field(ge=1)

    @model_validator(mode="after")
    def reading_count_matches(self) -> "Session":
        if self.reading_count != len(self.readings):
            raise ValueError("reading_count must equal the number of readings")
        if any(r.session_id != self.session_id for r in self.readings):
            raise ValueError("all readings must share the session id")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def time_of_day(self) -> TimeOfDay:
        return time_of_day_for(self.recorded_at)

    def summary(self) -> BPReadingSummary:
        return BPReadingSummary(
            date=self.recorded_at.date(),
            time_of_day=self.time_of_day,
            systolic=self.systolic,
            diastolic=self.diastolic,
            pulse=self.pulse,
            session_id=self.session_id,
        )


class SleepEntry(BaseModel):
    """One night of sleep, keyed by the date the night ended."""

    model_config = ConfigDict(frozen=True)

    id: str
    date: dt.date
    duration_minutes: int = Field(ge=0, description="Time in bed")
    total_sleep_minutes: int | None = Field(default=None, ge=0)
    hrv_low: float | None = None
    hrv_high: float | None = None
    resting_hr: float | None = None
    hr_drop_minutes: float | None = None
    deep_sleep_pct: float | None = Field(default=None, ge=0, le=100)
    rem_sleep_pct: float | None = Field(default=None, ge=0, le=100)
    light_sleep_pct: float | None = Field(default=None, ge=0, le=100)
    awake_pct: float | None = Field(default=None, ge=0, le=100)
    notes: str | None = None

    @property
    def restorative_pct(self) -> float | None:
        """Deep + REM percentage, or None when neither stage was recorded."""
        if self.deep_sleep_pct is None and self.rem_sleep_pct is None:
            return None
        return (self.deep_sleep_pct or 0) + (self.rem_sleep_pct or 0)


class MetricReference(BaseModel):
    """Laboratory reference range printed on a report."""

    model_config = ConfigDict(frozen=True)

    min: float | None = None
    max: float | None = None
    raw: str | None = None


class MetricValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float
    unit: str = ""
    reference: MetricReference | None = None


class BloodTestReport(BaseModel):
    """A laboratory report holding many metric values keyed by metric id."""

    model_config = ConfigDict(frozen=True)

    id: str
    date: dt.date
    order_number: str = ""
    ordered_by: str = ""
    metrics: dict[str, MetricValue] = Field(default_factory=dict)
