"""
Reading session aggregation.

Readings entered in one sitting are grouped into a ``Session`` whose
representative systolic/diastolic/pulse is the rounded mean of its readings.
Sessions are always rebuilt from the full reading set; there is no incremental
update path, so ``reading_count`` and the stored means cannot drift apart.
"""

import uuid
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from healthcore.domain.models import (
    DIASTOLIC_MAX,
    DIASTOLIC_MIN,
    PULSE_MAX,
    PULSE_MIN,
    SYSTOLIC_MAX,
    SYSTOLIC_MIN,
    BPReadingSummary,
    RawReading,
    Reading,
    Session,
    time_of_day_for,
)
from healthcore.errors import ValidationError
from healthcore.services.stats import avg, avg_rounded

logger = structlog.get_logger(__name__)

_BOUNDS: dict[str, tuple[int, int]] = {
    "systolic": (SYSTOLIC_MIN, SYSTOLIC_MAX),
    "diastolic": (DIASTOLIC_MIN, DIASTOLIC_MAX),
    "pulse": (PULSE_MIN, PULSE_MAX),
}


def validate_reading(reading: RawReading, index: int | None = None) -> None:
    """
    Check a raw reading against the clinical bounds.

    Raises:
        ValidationError: naming the first offending field and its value.
    """
    prefix = f"Reading {index + 1}: " if index is not None else ""

    for field, (low, high) in _BOUNDS.items():
        value = getattr(reading, field)
        if value is None:
            continue
        if not low <= value <= high:
            raise ValidationError(
                f"{prefix}{field.capitalize()} must be between {low} and {high}, got {value}",
                fields={field: value},
            )

    if reading.systolic <= reading.diastolic:
        raise ValidationError(
            f"{prefix}Systolic must be greater than diastolic",
            fields={"systolic": reading.systolic, "diastolic": reading.diastolic},
        )


def _coerce(reading: RawReading | dict[str, Any], index: int) -> RawReading:
    if isinstance(reading, RawReading):
        return reading
    try:
        return RawReading.model_validate(reading)
    except PydanticValidationError as e:
        fields = {".".join(str(p) for p in err["loc"]): err["msg"] for err in e.errors()}
        raise ValidationError(f"Reading {index + 1}: invalid reading", fields=fields) from e


def _join_notes(notes: Iterable[str | None]) -> str | None:
    joined = "\n".join(n for n in notes if n)
    return joined or None


def _reduce(
    session_id: str, recorded_at: datetime, readings: Sequence[Reading], notes: str | None
) -> Session:
    pulses = [r.pulse for r in readings if r.pulse is not None]
    return Session(
        session_id=session_id,
        recorded_at=recorded_at,
        systolic=avg_rounded([r.systolic for r in readings]),
        diastolic=avg_rounded([r.diastolic for r in readings]),
        pulse=avg_rounded(pulses),
        notes=notes,
        readings=tuple(readings),
        reading_count=len(readings),
    )


def build_session(
    session_id: str,
    recorded_at: datetime,
    readings: Sequence[RawReading | dict[str, Any]],
    notes: str | None = None,
) -> Session:
    """
    Build a session from readings taken together.

    Every reading is stamped with the session's datetime and id. The caller is
    responsible for persisting the result.

    Raises:
        ValidationError: if there are no readings or one is out of bounds.
    """
    if not readings:
        raise ValidationError("At least one reading is required", fields={"readings": 0})

    raw = [_coerce(r, i) for i, r in enumerate(readings)]
    for index, reading in enumerate(raw):
        validate_reading(reading, index)

    stamped = [
        Reading(
            id=str(uuid.uuid4()),
            recorded_at=recorded_at,
            systolic=r.systolic,
            diastolic=r.diastolic,
            pulse=r.pulse,
            arm=r.arm,
            # Notes are stored once, on the first reading
            notes=(notes or None) if i == 0 else None,
            session_id=session_id,
        )
        for i, r in enumerate(raw)
    ]

    session = _reduce(session_id, recorded_at, stamped, notes or None)
    logger.debug(
        "session_built",
        session_id=session_id,
        reading_count=session.reading_count,
        systolic=session.systolic,
        diastolic=session.diastolic,
    )
    return session


def new_session(
    recorded_at: datetime,
    readings: Sequence[RawReading | dict[str, Any]],
    notes: str | None = None,
) -> Session:
    """Build a session under a freshly generated id."""
    return build_session(str(uuid.uuid4()), recorded_at, readings, notes)


def replace_session(
    session: Session,
    new_readings: Sequence[RawReading | dict[str, Any]],
    recorded_at: datetime | None = None,
    notes: str | None = None,
) -> Session:
    """
    Recompute a session from a whole new reading set.

    The session id is kept; datetime and notes default to the old values.
    """
    return build_session(
        session.session_id,
        recorded_at or session.recorded_at,
        new_readings,
        notes if notes is not None else session.notes,
    )


def session_from_readings(readings: Sequence[Reading]) -> Session:
    """
    Rebuild one session from stored readings.

    Readings are ordered by datetime and the first one's datetime becomes the
    session datetime. Notes from all readings are joined.

    Raises:
        ValidationError: if the readings are empty, belong to different
            sessions, or span more than one date/time-of-day bucket.
    """
    if not readings:
        raise ValidationError("At least one reading is required", fields={"readings": 0})

    ordered = sorted(readings, key=lambda r: r.recorded_at)
    first = ordered[0]

    session_ids = {r.session_id for r in ordered}
    if len(session_ids) > 1:
        raise ValidationError(
            "Readings belong to different sessions", fields={"session_id": sorted(session_ids)}
        )

    buckets = {(r.recorded_at.date(), time_of_day_for(r.recorded_at)) for r in ordered}
    if len(buckets) > 1:
        raise ValidationError(
            "Readings of one session must share a date and time of day",
            fields={"session_id": first.session_id},
        )

    notes = _join_notes(r.notes for r in ordered)
    return _reduce(first.session_id, first.recorded_at, ordered, notes)


def group_readings(readings: Iterable[Reading]) -> list[Session]:
    """Group stored readings into sessions, newest session first."""
    by_session: defaultdict[str, list[Reading]] = defaultdict(list)
    for reading in readings:
        by_session[reading.session_id].append(reading)

    sessions = [session_from_readings(group) for group in by_session.values()]
    sessions.sort(key=lambda s: s.recorded_at, reverse=True)

    logger.debug("readings_grouped", session_count=len(sessions))
    return sessions


def summarize(sessions: Iterable[Session]) -> list[BPReadingSummary]:
    """Flatten sessions to the summaries consumed by scoring and insights."""
    return [session.summary() for session in sessions]


def _field_stats(values: Sequence[float]) -> dict[str, float | None]:
    if not values:
        return {"min": None, "max": None, "avg": None}
    return {"min": min(values), "max": max(values), "avg": avg(values)}


def calculate_bp_stats(readings: Sequence[BPReadingSummary]) -> dict[str, Any] | None:
    """
    Min/max/mean for systolic, diastolic, pulse, pulse pressure and MAP.

    Pulse pressure is systolic minus diastolic; mean arterial pressure is
    diastolic plus a third of the pulse pressure, kept at full precision.
    """
    if not readings:
        return None

    pulse_pressures = [r.systolic - r.diastolic for r in readings]
    arterial = [r.diastolic + (r.systolic - r.diastolic) / 3 for r in readings]

    return {
        "systolic": _field_stats([r.systolic for r in readings]),
        "diastolic": _field_stats([r.diastolic for r in readings]),
        "pulse": _field_stats([r.pulse for r in readings if r.pulse is not None]),
        "pp": _field_stats(pulse_pressures),
        "map": _field_stats(arterial),
        "count": len(readings),
    }
