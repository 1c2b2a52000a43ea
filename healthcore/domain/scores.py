"""
Score models produced by the subscore calculators and read by the composer.
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field

OPTIMAL_CATEGORY = "Optimal"


class BPScore(BaseModel):
    """Blood-pressure subscore and the components it was built from."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    base_score: int
    variability_penalty: int = Field(ge=0)
    trend_modifier: int
    avg_systolic: int
    avg_diastolic: int
    category: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def components(self) -> dict[str, float]:
        return {
            "base_score": self.base_score,
            "variability_penalty": self.variability_penalty,
            "trend_modifier": self.trend_modifier,
        }


class SleepScore(BaseModel):
    """Sleep subscore and the components it was built from."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    duration_score: int
    restorative_score: int
    heart_score: int
    consistency_bonus: int
    avg_duration_minutes: int
    avg_restorative: int | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def components(self) -> dict[str, float]:
        return {
            "duration_score": self.duration_score,
            "restorative_score": self.restorative_score,
            "heart_score": self.heart_score,
            "consistency_bonus": self.consistency_bonus,
        }


class HealthScore(BaseModel):
    """
    Composite health score.

    Either subscore may be missing when its domain has no data; consumers treat
    each one independently.
    """

    model_config = ConfigDict(frozen=True)

    overall: int = Field(default=0, ge=0, le=100)
    bp_score: BPScore | None = None
    sleep_score: SleepScore | None = None
    primary_driver: str = ""
    primary_detractor: str = ""
    action_item: str = ""
