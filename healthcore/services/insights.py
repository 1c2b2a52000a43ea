"""
Plain-language insights derived from a health score.

Rules run in a fixed order and every rule that fires contributes one string.
The first ``max_insights`` are kept; nothing is ranked by severity. When no
rule fires a single "keep tracking" message is returned instead.
"""

from collections.abc import Callable, Sequence
from datetime import timedelta

import structlog

from healthcore.config import ScoringConfig, get_config
from healthcore.domain.models import BPReadingSummary, SleepEntry
from healthcore.domain.scores import OPTIMAL_CATEGORY, HealthScore
from healthcore.services.stats import avg

logger = structlog.get_logger(__name__)

FALLBACK_INSIGHT = "Keep tracking to get personalized insights about your health patterns."

InsightRule = Callable[
    [HealthScore, Sequence[BPReadingSummary], Sequence[SleepEntry], ScoringConfig], str | None
]


def bp_variability(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    config: ScoringConfig,
) -> str | None:
    bp = score.bp_score
    if bp is not None and bp.variability_penalty > config.variability_penalty_threshold:
        return "Your BP readings show high variability. Try measuring at consistent times."
    return None


def bp_trend(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    config: ScoringConfig,
) -> str | None:
    bp = score.bp_score
    if bp is None or bp.trend_modifier == 0:
        return None
    if bp.trend_modifier > 0:
        return f"BP is trending down by {abs(bp.trend_modifier)} points - good progress!"
    return "BP has been trending up recently. Monitor and consider lifestyle adjustments."


def optimal_bp(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    config: ScoringConfig,
) -> str | None:
    bp = score.bp_score
    if bp is not None and bp.category == OPTIMAL_CATEGORY:
        return "Blood pressure is in the optimal range. Keep up the good work!"
    return None


def sleep_duration(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    config: ScoringConfig,
) -> str | None:
    sleep = score.sleep_score
    if sleep is not None and sleep.duration_score < config.duration_score_threshold:
        hours = sleep.avg_duration_minutes / 60
        return f"Averaging {hours:.1f}h of sleep. Aim for 7-9 hours for better recovery."
    return None


def sleep_restorative(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    config: ScoringConfig,
) -> str | None:
    sleep = score.sleep_score
    if sleep is None or sleep.avg_restorative is None:
        return None
    if sleep.avg_restorative < config.restorative_pct_threshold:
        return (
            f"Restorative sleep ({sleep.avg_restorative}%) is below optimal. "
            "Consider limiting caffeine and screens before bed."
        )
    return None


def sleep_consistency(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    config: ScoringConfig,
) -> str | None:
    sleep = score.sleep_score
    if sleep is not None and sleep.consistency_bonus < 0:
        return "Sleep duration varies significantly. A consistent schedule improves sleep quality."
    return None


def poor_sleep_next_day_bp(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary],
    sleep_entries: Sequence[SleepEntry],
    config: ScoringConfig,
) -> str | None:
    """One insight when BP the day after a short night averages high."""
    if not bp_readings or not sleep_entries:
        return None

    next_days = {
        entry.date + timedelta(days=1)
        for entry in sleep_entries
        if entry.duration_minutes < config.poor_sleep_minutes
    }
    if not next_days:
        return None

    following = [r.systolic for r in bp_readings if r.date in next_days]
    if following and avg(following) > config.next_day_systolic_threshold:
        hours = config.poor_sleep_minutes / 60
        return f"BP tends to be higher after nights with less than {hours:g} hours of sleep."
    return None


INSIGHT_RULES: tuple[InsightRule, ...] = (
    bp_variability,
    bp_trend,
    optimal_bp,
    sleep_duration,
    sleep_restorative,
    sleep_consistency,
    poor_sleep_next_day_bp,
)


def compose_insights(
    score: HealthScore,
    bp_readings: Sequence[BPReadingSummary] = (),
    sleep_entries: Sequence[SleepEntry] = (),
    config: ScoringConfig | None = None,
) -> list[str]:
    """Collect every firing insight in rule order and keep the first few."""
    config = config or get_config().scoring

    fired = [
        insight
        for rule in INSIGHT_RULES
        if (insight := rule(score, bp_readings, sleep_entries, config)) is not None
    ]

    if not fired:
        return [FALLBACK_INSIGHT]

    logger.debug("insights_composed", fired=len(fired), shown=min(len(fired), config.max_insights))
    return fired[: config.max_insights]
