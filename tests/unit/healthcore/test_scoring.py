"""
Tests for blood-pressure, sleep and composite health scoring.
"""

from datetime import date, timedelta

import pytest

from healthcore.config import ScoringConfig
from healthcore.domain.models import BPReadingSummary, SleepEntry, TimeOfDay
from healthcore.services.scoring import (
    BLOOD_PRESSURE,
    SLEEP,
    bp_trend_modifier,
    calculate_bp_score,
    calculate_health_score,
    calculate_sleep_score,
    consistency_bonus,
    duration_score,
    heart_score,
    restorative_score,
    score_label,
    variability_penalty,
)

START = date(2025, 1, 1)


def bp(systolic: int, diastolic: int, day: int = 0) -> BPReadingSummary:
    return BPReadingSummary(
        date=START + timedelta(days=day),
        time_of_day=TimeOfDay.MORNING,
        systolic=systolic,
        diastolic=diastolic,
        session_id=f"s{day}-{systolic}",
    )


def night(minutes: int, day: int = 0, **kwargs) -> SleepEntry:
    return SleepEntry(
        id=f"n{day}", date=START + timedelta(days=day), duration_minutes=minutes, **kwargs
    )


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


class TestBPScore:
    def test_no_readings(self) -> None:
        assert calculate_bp_score([]) is None

    def test_single_optimal_reading(self) -> None:
        score = calculate_bp_score([bp(118, 75)])

        assert score is not None
        assert score.base_score == 96  # systolic 118 is the worse of the two
        assert score.score == 96
        assert score.variability_penalty == 0
        assert score.trend_modifier == 0
        assert score.category == "Optimal"
        assert score.components == {
            "base_score": 96,
            "variability_penalty": 0,
            "trend_modifier": 0,
        }

    def test_severe_hypertension_floors_at_twenty(self) -> None:
        score = calculate_bp_score([bp(200, 120)])

        assert score.score == 20
        assert score.category == "Stage 2"

    @pytest.mark.parametrize(
        "systolic,diastolic,category",
        [
            (119, 79, "Optimal"),
            (120, 79, "Normal"),
            (135, 80, "Elevated"),
            (150, 95, "Stage 1"),
            (130, 100, "Stage 2"),
        ],
    )
    def test_category(self, systolic: int, diastolic: int, category: str) -> None:
        assert calculate_bp_score([bp(systolic, diastolic)]).category == category

    def test_variability_needs_three_readings(self) -> None:
        assert variability_penalty([100, 140], [60, 90]) == 0

    def test_high_variability_penalty(self) -> None:
        assert variability_penalty([100, 140, 120], [60, 90, 75]) == 15

    def test_steady_readings_have_no_penalty(self) -> None:
        assert variability_penalty([120, 121, 122], [80, 80, 81]) == 0

    def test_trend_down_is_rewarded(self) -> None:
        readings = [bp(130, 85, day=3), bp(150, 95, day=0), bp(130, 85, day=2), bp(150, 95, day=1)]

        assert bp_trend_modifier(readings) == 10

    def test_trend_up_is_penalised(self) -> None:
        readings = [bp(120, 80, day=0), bp(120, 80, day=1), bp(128, 86, day=2), bp(128, 86, day=3)]

        assert bp_trend_modifier(readings) == -10

    def test_trend_needs_four_readings(self) -> None:
        assert bp_trend_modifier([bp(150, 95, 0), bp(130, 85, 1), bp(120, 80, 2)]) == 0


class TestSleepScore:
    @pytest.mark.parametrize(
        "minutes,expected",
        [
            (420, 100),
            (540, 100),
            (400, 85),
            (375, 70),
            (340, 55),
            (300, 40),
            (290, 25),
            (600, 70),
            (700, 25),
        ],
    )
    def test_duration_score(self, minutes: int, expected: int) -> None:
        assert duration_score(minutes) == expected

    def test_missing_stage_data_scores_seventy(self) -> None:
        assert restorative_score([night(480)]) == 70
        assert heart_score([night(480)]) == 70

    def test_restorative_bands(self) -> None:
        assert restorative_score([night(480, deep_sleep_pct=20, rem_sleep_pct=22)]) == 90
        assert restorative_score([night(480, deep_sleep_pct=10, rem_sleep_pct=8)]) == 25

    def test_heart_score_averages_available_parts(self) -> None:
        assert heart_score([night(480, resting_hr=55)]) == 80
        assert heart_score([night(480, resting_hr=55, hrv_high=65)]) == 82.5

    def test_consistency(self) -> None:
        assert consistency_bonus([night(480, 0), night(480, 1)]) == 0
        assert consistency_bonus([night(480, 0), night(470, 1), night(490, 2)]) == 5
        assert consistency_bonus([night(300, 0), night(480, 1), night(600, 2)]) == -5

    def test_weighted_score(self) -> None:
        score = calculate_sleep_score(
            [night(480, deep_sleep_pct=20, rem_sleep_pct=22, resting_hr=55, hrv_high=65)]
        )

        assert score is not None
        # 100 * 0.4 + 90 * 0.3 + 82.5 * 0.3
        assert score.score == 92
        assert score.heart_score == 83
        assert score.avg_duration_minutes == 480
        assert score.avg_restorative == 42

    def test_no_entries(self) -> None:
        assert calculate_sleep_score([]) is None


class TestHealthScore:
    def test_no_data(self, scoring_config: ScoringConfig) -> None:
        score = calculate_health_score([], [], config=scoring_config)

        assert score.overall == 0
        assert score.bp_score is None
        assert score.sleep_score is None
        assert score.primary_driver == "No data available"

    def test_equal_weights(self, scoring_config: ScoringConfig) -> None:
        score = calculate_health_score(
            [bp(118, 75)],
            [night(480, deep_sleep_pct=20, rem_sleep_pct=22, resting_hr=55, hrv_high=65)],
            config=scoring_config,
        )

        assert score.overall == 94  # (96 + 92) / 2
        assert score.primary_driver == "Blood pressure is excellent"
        assert score.primary_detractor == "All areas are performing well"
        assert score.action_item == "Maintain current sleep habits"

    def test_critical_subscore_caps_overall(self, scoring_config: ScoringConfig) -> None:
        score = calculate_health_score(
            [bp(200, 120)],
            [night(480, deep_sleep_pct=20, rem_sleep_pct=22, resting_hr=55, hrv_high=65)],
            config=scoring_config,
        )

        assert score.bp_score.score == 20
        assert score.overall == 50
        assert score.primary_detractor == "Blood pressure needs attention"
        assert score.action_item.startswith("Consider lifestyle changes")

    def test_single_domain_passes_through(self, scoring_config: ScoringConfig) -> None:
        score = calculate_health_score([], [night(480)], config=scoring_config)

        assert score.bp_score is None
        assert score.overall == score.sleep_score.score

    def test_ignored_domain_is_left_out(self, scoring_config: ScoringConfig) -> None:
        readings = [bp(118, 75)]
        nights = [night(300)]

        score = calculate_health_score(readings, nights, ignored={SLEEP}, config=scoring_config)

        assert score.sleep_score is None
        assert score.overall == 96

        score = calculate_health_score(
            readings, nights, ignored={BLOOD_PRESSURE, SLEEP}, config=scoring_config
        )
        assert score.overall == 0


@pytest.mark.parametrize(
    "score,label",
    [
        (80, "Excellent"),
        (79, "Good"),
        (65, "Good"),
        (50, "Fair"),
        (35, "Needs Attention"),
        (34, "Poor"),
    ],
)
def test_score_label(score: int, label: str) -> None:
    assert score_label(score) == label
