"""
Change policies: how to judge whether a metric moved in a good direction.

A policy is a tagged union keyed by ``kind``. Each variant only carries the
fields relevant to it, and the classifier dispatches on the tag.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChangeType(str, Enum):
    IMPROVING = "improving"
    WORSENING = "worsening"
    NEUTRAL = "neutral"


class HigherIsBetter(BaseModel):
    """Larger values are better; sub-unit changes are noise."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["higher_is_better"] = "higher_is_better"


class LowerIsBetter(BaseModel):
    """Smaller values are better, down to an optional optimal ceiling."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["lower_is_better"] = "lower_is_better"
    optimal_max: float | None = Field(
        default=None, description="At or below this, both values are already optimal"
    )


class Midpoint(BaseModel):
    """Values closest to a target are best; a buffer around it counts as on-target."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["midpoint"] = "midpoint"
    # Optional so a misconfigured policy can be reported instead of rejected
    midpoint: float | None = None
    buffer_min: float | None = None
    buffer_max: float | None = None

    def in_buffer(self, value: float) -> bool:
        if self.buffer_min is None or self.buffer_max is None:
            return False
        return self.buffer_min <= value <= self.buffer_max


Policy = HigherIsBetter | LowerIsBetter | Midpoint
ChangeConfig = Annotated[Policy, Field(discriminator="kind")]


class ChangeResult(BaseModel):
    """Classification and raw deltas for a pair of observations."""

    model_config = ConfigDict(frozen=True)

    type: ChangeType
    delta: float | None = None
    pct_change: float | None = None


class ChangeDisplay(BaseModel):
    """Plain-text rendering of a change for the presentation layer."""

    model_config = ConfigDict(frozen=True)

    type: ChangeType
    delta_text: str
    pct_text: str | None = None
    show_icon: bool = False


# Policies used by the statistics tables
SYSTOLIC = LowerIsBetter(optimal_max=120)
DIASTOLIC = LowerIsBetter(optimal_max=80)
PULSE = Midpoint(midpoint=80, buffer_min=70, buffer_max=90)
PULSE_PRESSURE = Midpoint(midpoint=45, buffer_min=40, buffer_max=50)
MEAN_ARTERIAL_PRESSURE = Midpoint(midpoint=85, buffer_min=80, buffer_max=90)

METRIC_POLICIES: dict[str, Policy] = {
    "systolic": SYSTOLIC,
    "diastolic": DIASTOLIC,
    "pulse": PULSE,
    "pp": PULSE_PRESSURE,
    "map": MEAN_ARTERIAL_PRESSURE,
    "deep_sleep_pct": HigherIsBetter(),
    "rem_sleep_pct": HigherIsBetter(),
    "restorative_pct": HigherIsBetter(),
    "resting_hr": LowerIsBetter(),
    "hr_drop_minutes": LowerIsBetter(),
}


def policy_for(metric: str, optimal_max: float | None = None) -> Policy:
    """
    Look up the policy for a named metric.

    ``optimal_max`` overrides the ceiling of a lower-is-better policy, which is
    how guideline-specific normal thresholds for systolic/diastolic are applied.
    """
    policy = METRIC_POLICIES[metric]
    if optimal_max is not None and isinstance(policy, LowerIsBetter):
        return policy.model_copy(update={"optimal_max": optimal_max})
    return policy
