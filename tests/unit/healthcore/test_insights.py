"""
Tests for the insight composer.

Insights are built from hand-made score objects so each rule can be fired in
isolation.
"""

from datetime import date, timedelta

import pytest

from healthcore.config import ScoringConfig
from healthcore.domain.models import BPReadingSummary, SleepEntry, TimeOfDay
from healthcore.domain.scores import BPScore, HealthScore, SleepScore
from healthcore.services.insights import FALLBACK_INSIGHT, compose_insights

VARIABILITY = "Your BP readings show high variability. Try measuring at consistent times."
OPTIMAL = "Blood pressure is in the optimal range. Keep up the good work!"
TRENDING_UP = "BP has been trending up recently. Monitor and consider lifestyle adjustments."
INCONSISTENT = "Sleep duration varies significantly. A consistent schedule improves sleep quality."
POOR_SLEEP_BP = "BP tends to be higher after nights with less than 6 hours of sleep."


def make_bp(**overrides) -> BPScore:
    values = dict(
        score=75,
        base_score=75,
        variability_penalty=0,
        trend_modifier=0,
        avg_systolic=125,
        avg_diastolic=82,
        category="Normal",
    )
    values.update(overrides)
    return BPScore(**values)


def make_sleep(**overrides) -> SleepScore:
    values = dict(
        score=80,
        duration_score=100,
        restorative_score=80,
        heart_score=80,
        consistency_bonus=0,
        avg_duration_minutes=450,
        avg_restorative=38,
    )
    values.update(overrides)
    return SleepScore(**values)


def summary(day: date, systolic: int) -> BPReadingSummary:
    return BPReadingSummary(
        date=day,
        time_of_day=TimeOfDay.MORNING,
        systolic=systolic,
        diastolic=85,
        session_id=f"{day}-{systolic}",
    )


def night(day: date, minutes: int) -> SleepEntry:
    return SleepEntry(id=str(day), date=day, duration_minutes=minutes)


@pytest.fixture
def config() -> ScoringConfig:
    return ScoringConfig()


class TestComposeInsights:
    def test_only_variability_fires(self, config: ScoringConfig) -> None:
        score = HealthScore(overall=60, bp_score=make_bp(variability_penalty=15))

        assert compose_insights(score, config=config) == [VARIABILITY]

    def test_penalty_at_threshold_does_not_fire(self, config: ScoringConfig) -> None:
        score = HealthScore(overall=60, bp_score=make_bp(variability_penalty=10))

        assert compose_insights(score, config=config) == [FALLBACK_INSIGHT]

    def test_nothing_fires_gives_fallback(self, config: ScoringConfig) -> None:
        score = HealthScore(overall=78, bp_score=make_bp(), sleep_score=make_sleep())

        assert compose_insights(score, config=config) == [FALLBACK_INSIGHT]

    def test_empty_score_gives_fallback(self, config: ScoringConfig) -> None:
        assert compose_insights(HealthScore(), config=config) == [FALLBACK_INSIGHT]

    def test_trend_messages(self, config: ScoringConfig) -> None:
        down = HealthScore(bp_score=make_bp(trend_modifier=10))
        up = HealthScore(bp_score=make_bp(trend_modifier=-5))

        assert compose_insights(down, config=config) == [
            "BP is trending down by 10 points - good progress!"
        ]
        assert compose_insights(up, config=config) == [TRENDING_UP]

    def test_sleep_messages(self, config: ScoringConfig) -> None:
        score = HealthScore(
            sleep_score=make_sleep(
                duration_score=40, avg_duration_minutes=300, avg_restorative=30
            )
        )

        assert compose_insights(score, config=config) == [
            "Averaging 5.0h of sleep. Aim for 7-9 hours for better recovery.",
            "Restorative sleep (30%) is below optimal. "
            "Consider limiting caffeine and screens before bed.",
        ]

    def test_missing_restorative_data_is_silent(self, config: ScoringConfig) -> None:
        score = HealthScore(sleep_score=make_sleep(avg_restorative=None))

        assert compose_insights(score, config=config) == [FALLBACK_INSIGHT]

    def test_keeps_first_three_in_rule_order(self, config: ScoringConfig) -> None:
        score = HealthScore(
            bp_score=make_bp(variability_penalty=15, trend_modifier=-5, category="Optimal"),
            sleep_score=make_sleep(consistency_bonus=-5),
        )

        assert compose_insights(score, config=config) == [VARIABILITY, TRENDING_UP, OPTIMAL]

    def test_max_insights_is_configurable(self) -> None:
        score = HealthScore(
            bp_score=make_bp(variability_penalty=15),
            sleep_score=make_sleep(consistency_bonus=-5),
        )

        assert compose_insights(score, config=ScoringConfig(max_insights=1)) == [VARIABILITY]
        assert compose_insights(score, config=ScoringConfig(max_insights=5)) == [
            VARIABILITY,
            INCONSISTENT,
        ]


class TestPoorSleepCorrelation:
    day = date(2025, 2, 10)

    def test_high_bp_after_short_night(self, config: ScoringConfig) -> None:
        sleep = [night(self.day, 300)]
        readings = [summary(self.day + timedelta(days=1), 140)]

        assert compose_insights(HealthScore(), readings, sleep, config=config) == [POOR_SLEEP_BP]

    def test_fires_once_for_many_short_nights(self, config: ScoringConfig) -> None:
        sleep = [night(self.day + timedelta(days=i), 300) for i in range(3)]
        readings = [summary(self.day + timedelta(days=i + 1), 142) for i in range(3)]

        insights = compose_insights(HealthScore(), readings, sleep, config=config)

        assert insights.count(POOR_SLEEP_BP) == 1

    def test_normal_next_day_bp_is_silent(self, config: ScoringConfig) -> None:
        sleep = [night(self.day, 300)]
        readings = [summary(self.day + timedelta(days=1), 128), summary(self.day, 150)]

        assert compose_insights(HealthScore(), readings, sleep, config=config) == [
            FALLBACK_INSIGHT
        ]

    def test_long_nights_are_ignored(self, config: ScoringConfig) -> None:
        sleep = [night(self.day, 420)]
        readings = [summary(self.day + timedelta(days=1), 150)]

        assert compose_insights(HealthScore(), readings, sleep, config=config) == [
            FALLBACK_INSIGHT
        ]

    def test_inputs_are_not_mutated(self, config: ScoringConfig) -> None:
        sleep = [night(self.day, 300)]
        readings = [summary(self.day + timedelta(days=1), 140)]
        before = (list(sleep), list(readings))

        compose_insights(HealthScore(), readings, sleep, config=config)

        assert (sleep, readings) == before
