"""
Blood-pressure and sleep subscores, and the composite health score.

Each subscore is 0-100 and keeps the components it was built from so the
insight composer can explain it. A domain with no data has no subscore; the
composite score works with whichever subscores are present.
"""

from collections.abc import Container, Sequence

import structlog

from healthcore.config import ScoringConfig, get_config
from healthcore.domain.models import BPReadingSummary, SleepEntry
from healthcore.domain.scores import BPScore, HealthScore, SleepScore
from healthcore.services.stats import avg, avg_rounded, round_half_up, std_dev

logger = structlog.get_logger(__name__)

# Keys under which a whole domain can be excluded through the ignored-metric registry
BLOOD_PRESSURE = "blood_pressure"
SLEEP = "sleep"


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


# ============================================================================
# BLOOD PRESSURE
# ============================================================================


def _systolic_score(systolic: float) -> float:
    if systolic < 110:
        return 100
    if systolic < 120:
        return 100 - ((systolic - 110) / 10) * 5
    if systolic < 130:
        return 95 - ((systolic - 120) / 10) * 15
    if systolic < 140:
        return 80 - ((systolic - 130) / 10) * 15
    if systolic < 160:
        return 65 - ((systolic - 140) / 20) * 20
    return max(20, 45 - ((systolic - 160) / 20) * 15)


def _diastolic_score(diastolic: float) -> float:
    if diastolic < 75:
        return 100
    if diastolic < 80:
        return 100 - ((diastolic - 75) / 5) * 5
    if diastolic < 85:
        return 95 - ((diastolic - 80) / 5) * 15
    if diastolic < 90:
        return 80 - ((diastolic - 85) / 5) * 15
    if diastolic < 100:
        return 65 - ((diastolic - 90) / 10) * 20
    return max(20, 45 - ((diastolic - 100) / 10) * 15)


def bp_base_score(systolic: float, diastolic: float) -> float:
    """Interpolated score of the worse of the two averages."""
    return min(_systolic_score(systolic), _diastolic_score(diastolic))


def bp_category(systolic: float, diastolic: float) -> str:
    if systolic < 120 and diastolic < 80:
        return "Optimal"
    if systolic < 130 and diastolic < 85:
        return "Normal"
    if systolic < 140 and diastolic < 90:
        return "Elevated"
    if systolic < 160 and diastolic < 100:
        return "Stage 1"
    return "Stage 2"


def variability_penalty(systolics: Sequence[float], diastolics: Sequence[float]) -> int:
    """Penalty from the mean coefficient of variation of systolic and diastolic."""
    if len(systolics) < 3:
        return 0

    sys_cv = std_dev(systolics) / avg(systolics) * 100
    dia_cv = std_dev(diastolics) / avg(diastolics) * 100
    mean_cv = (sys_cv + dia_cv) / 2

    if mean_cv > 12:
        return 15
    if mean_cv > 8:
        return 10
    if mean_cv > 5:
        return 5
    return 0


def bp_trend_modifier(readings: Sequence[BPReadingSummary]) -> int:
    """
    Compare the recent half of the readings with the older half.

    Positive means pressure is coming down. Needs at least four readings.
    """
    if len(readings) < 4:
        return 0

    ordered = sorted(readings, key=lambda r: r.date)
    half = len(ordered) // 2
    older, recent = ordered[:half], ordered[half:]

    sys_diff = avg([r.systolic for r in recent]) - avg([r.systolic for r in older])
    dia_diff = avg([r.diastolic for r in recent]) - avg([r.diastolic for r in older])
    mean_diff = (sys_diff + dia_diff) / 2

    if mean_diff < -5:
        return 10
    if mean_diff < -2:
        return 5
    if mean_diff > 5:
        return -10
    if mean_diff > 2:
        return -5
    return 0


def calculate_bp_score(readings: Sequence[BPReadingSummary]) -> BPScore | None:
    """Score blood pressure from session summaries; None without data."""
    if not readings:
        return None

    systolics = [r.systolic for r in readings]
    diastolics = [r.diastolic for r in readings]
    avg_systolic = avg(systolics)
    avg_diastolic = avg(diastolics)

    base = bp_base_score(avg_systolic, avg_diastolic)
    penalty = variability_penalty(systolics, diastolics)
    trend = bp_trend_modifier(readings)

    return BPScore(
        score=round_half_up(_clamp(base - penalty + trend)),
        base_score=round_half_up(base),
        variability_penalty=penalty,
        trend_modifier=trend,
        avg_systolic=avg_rounded(systolics),
        avg_diastolic=avg_rounded(diastolics),
        category=bp_category(avg_systolic, avg_diastolic),
    )


# ============================================================================
# SLEEP
# ============================================================================


def duration_score(avg_minutes: float) -> int:
    """Score average time in bed; 7-9 hours is optimal."""
    hours = avg_minutes / 60
    if 7 <= hours <= 9:
        return 100
    if 6.5 <= hours < 7 or 9 < hours <= 9.5:
        return 85
    if 6 <= hours < 6.5 or 9.5 < hours <= 10:
        return 70
    if 5.5 <= hours < 6 or 10 < hours <= 10.5:
        return 55
    if 5 <= hours < 5.5 or 10.5 < hours <= 11:
        return 40
    return 25


def restorative_score(entries: Sequence[SleepEntry]) -> int:
    values = [e.restorative_pct for e in entries if e.restorative_pct is not None]
    if not values:
        return 70

    restorative = avg(values)
    for floor, score in ((45, 100), (40, 90), (35, 80), (30, 70), (25, 55), (20, 40)):
        if restorative >= floor:
            return score
    return 25


def heart_score(entries: Sequence[SleepEntry]) -> float:
    """Mean of the resting heart rate and HRV scores that have data."""
    scores: list[float] = []

    resting = [e.resting_hr for e in entries if e.resting_hr is not None]
    if resting:
        rhr = avg(resting)
        for ceiling, score in ((50, 100), (55, 90), (60, 80), (65, 70), (70, 60)):
            if rhr < ceiling:
                scores.append(score)
                break
        else:
            scores.append(45)

    hrv = [e.hrv_high for e in entries if e.hrv_high is not None]
    if hrv:
        hrv_high = avg(hrv)
        for floor, score in ((80, 100), (65, 85), (50, 70), (40, 55)):
            if hrv_high >= floor:
                scores.append(score)
                break
        else:
            scores.append(40)

    if not scores:
        return 70
    return sum(scores) / len(scores)


def consistency_bonus(entries: Sequence[SleepEntry]) -> int:
    if len(entries) < 3:
        return 0
    spread = std_dev([e.duration_minutes for e in entries])
    if spread < 30:
        return 5
    if spread > 60:
        return -5
    return 0


def calculate_sleep_score(entries: Sequence[SleepEntry]) -> SleepScore | None:
    """Score sleep from nightly entries; None without data."""
    if not entries:
        return None

    durations = [e.duration_minutes for e in entries]
    duration = duration_score(avg(durations))
    restorative = restorative_score(entries)
    heart = heart_score(entries)
    bonus = consistency_bonus(entries)

    weighted = duration * 0.4 + restorative * 0.3 + heart * 0.3 + bonus

    return SleepScore(
        score=round_half_up(_clamp(weighted)),
        duration_score=duration,
        restorative_score=restorative,
        heart_score=round_half_up(heart),
        consistency_bonus=bonus,
        avg_duration_minutes=avg_rounded(durations),
        avg_restorative=avg_rounded(
            [e.restorative_pct for e in entries if e.restorative_pct is not None]
        ),
    )


# ============================================================================
# COMPOSITE
# ============================================================================


def score_label(score: float) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 65:
        return "Good"
    if score >= 50:
        return "Fair"
    if score >= 35:
        return "Needs Attention"
    return "Poor"


def _bp_action(bp: BPScore) -> str:
    if bp.variability_penalty > 10:
        return "Focus on BP consistency - take readings at the same time each day"
    if bp.base_score < 70:
        return "Consider lifestyle changes to lower BP: reduce sodium, increase activity"
    if bp.trend_modifier < 0:
        return "BP trending up - monitor closely and consider stress reduction"
    return "Maintain current habits to keep BP in healthy range"


def _sleep_action(sleep: SleepScore) -> str:
    if sleep.duration_score < 60:
        return "Prioritize more sleep - aim for 7-9 hours per night"
    if sleep.restorative_score < 60:
        return "Improve sleep quality: limit caffeine, maintain consistent bedtime"
    if sleep.consistency_bonus < 0:
        return "Work on sleep consistency - keep a regular sleep schedule"
    return "Maintain current sleep habits"


def _summarize(bp: BPScore | None, sleep: SleepScore | None) -> tuple[str, str, str]:
    """Strongest area, weakest area and one action for the weakest."""
    factors: list[tuple[str, int, str]] = []
    if bp is not None:
        factors.append(("Blood pressure", bp.score, BLOOD_PRESSURE))
    if sleep is not None:
        factors.append(("Sleep quality", sleep.score, SLEEP))

    if not factors:
        return (
            "No data available",
            "Add some readings to see insights",
            "Start by logging a BP reading or sleep entry",
        )

    # Stable sort keeps blood pressure first on ties
    ranked = sorted(factors, key=lambda f: f[1], reverse=True)
    best_label, best_score, _ = ranked[0]
    worst_label, worst_score, worst_domain = ranked[-1]

    if best_score >= 80:
        driver = f"{best_label} is excellent"
    elif best_score >= 65:
        driver = f"{best_label} is your strongest area"
    else:
        driver = f"{best_label} is relatively stable"

    if worst_score < 50:
        detractor = f"{worst_label} needs attention"
    elif worst_score < 70:
        detractor = f"{worst_label} could be improved"
    else:
        detractor = "All areas are performing well"

    if worst_domain == BLOOD_PRESSURE and bp is not None:
        action = _bp_action(bp)
    elif worst_domain == SLEEP and sleep is not None:
        action = _sleep_action(sleep)
    else:
        action = "Keep tracking to get personalized insights"

    return driver, detractor, action


def calculate_health_score(
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    ignored: Container[str] | None = None,
    config: ScoringConfig | None = None,
) -> HealthScore:
    """
    Combine the blood-pressure and sleep subscores.

    Both present: equal weights, capped when either is critically low. One
    present: that subscore. None: 0. Domains listed in ``ignored`` are left out.
    """
    config = config or get_config().scoring
    ignored = ignored or ()

    bp = None if BLOOD_PRESSURE in ignored else calculate_bp_score(bp_readings)
    sleep = None if SLEEP in ignored else calculate_sleep_score(sleep_entries)

    if bp is not None and sleep is not None:
        overall = bp.score * 0.5 + sleep.score * 0.5
        if bp.score < config.critical_subscore or sleep.score < config.critical_subscore:
            overall = min(overall, config.critical_overall_cap)
    elif bp is not None:
        overall = bp.score
    elif sleep is not None:
        overall = sleep.score
    else:
        overall = 0

    driver, detractor, action = _summarize(bp, sleep)

    result = HealthScore(
        overall=round_half_up(overall),
        bp_score=bp,
        sleep_score=sleep,
        primary_driver=driver,
        primary_detractor=detractor,
        action_item=action,
    )
    logger.debug(
        "health_score_calculated",
        overall=result.overall,
        bp_score=bp.score if bp else None,
        sleep_score=sleep.score if sleep else None,
    )
    return result
