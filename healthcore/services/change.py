"""
Change classification between two observations of the same metric.

``classify`` answers "is this an improvement?" under a metric's policy;
``compare`` adds the raw delta and percentage change; ``format_change``
turns both into the plain strings shown next to a value ("+1.9", "-3%").

None of these raise for missing data or a misconfigured policy: the result
degrades to neutral so rendering is never interrupted.
"""

from collections.abc import Callable, Mapping
from typing import Any

import structlog
from pydantic import TypeAdapter

from healthcore.domain.policies import (
    ChangeConfig,
    ChangeDisplay,
    ChangeResult,
    ChangeType,
    HigherIsBetter,
    LowerIsBetter,
    Midpoint,
    Policy,
)
from healthcore.errors import ConfigError
from healthcore.services.stats import round_half_up, truncate_one_decimal

logger = structlog.get_logger(__name__)

DASH = "—"

# Differences smaller than this are noise for higher-is-better metrics
NOISE_FLOOR = 1

_policy_adapter: TypeAdapter[Policy] = TypeAdapter(ChangeConfig)


def parse_policy(data: Policy | Mapping[str, Any]) -> Policy:
    """Accept a policy model or its dict form (``{"kind": "midpoint", ...}``)."""
    if isinstance(data, HigherIsBetter | LowerIsBetter | Midpoint):
        return data
    return _policy_adapter.validate_python(data)


def _classify_lower(current: float, previous: float, config: LowerIsBetter) -> ChangeType:
    # Both already optimal: further lowering is not worth reporting
    ceiling = config.optimal_max
    if ceiling is not None and current <= ceiling and previous <= ceiling:
        return ChangeType.NEUTRAL
    if current < previous:
        return ChangeType.IMPROVING
    if current > previous:
        return ChangeType.WORSENING
    return ChangeType.NEUTRAL


def _classify_higher(current: float, previous: float) -> ChangeType:
    diff = current - previous
    if abs(diff) < NOISE_FLOOR:
        return ChangeType.NEUTRAL
    return ChangeType.IMPROVING if diff > 0 else ChangeType.WORSENING


def _classify_midpoint(current: float, previous: float, config: Midpoint) -> ChangeType:
    if config.midpoint is None:
        raise ConfigError("midpoint policy requires a midpoint value")

    if config.in_buffer(current) and config.in_buffer(previous):
        return ChangeType.NEUTRAL

    current_dist = abs(current - config.midpoint)
    previous_dist = abs(previous - config.midpoint)
    if current_dist < previous_dist:
        return ChangeType.IMPROVING
    if current_dist > previous_dist:
        return ChangeType.WORSENING
    return ChangeType.NEUTRAL


def classify(
    current: float | None, previous: float | None, config: Policy | Mapping[str, Any]
) -> ChangeType:
    """
    Classify the move from ``previous`` to ``current``.

    Missing values mean "not enough data", reported as neutral.
    """
    if current is None or previous is None:
        return ChangeType.NEUTRAL

    try:
        policy = parse_policy(config)
        if policy.kind == "lower_is_better":
            return _classify_lower(current, previous, policy)
        if policy.kind == "higher_is_better":
            return _classify_higher(current, previous)
        if policy.kind == "midpoint":
            return _classify_midpoint(current, previous, policy)
    except ConfigError as e:
        logger.warning("change_policy_misconfigured", error=e.message)
    except ValueError as e:
        # Pydantic rejected the dict form of the policy
        logger.warning("change_policy_invalid", error=str(e))

    return ChangeType.NEUTRAL


def _percent_change(diff: float, previous: float) -> float:
    if previous == 0:
        return 0
    return truncate_one_decimal((diff / previous) * 100)


def compare(
    current: float | None,
    previous: float | None,
    config: Policy | Mapping[str, Any],
    integer_rounding: bool = False,
) -> ChangeResult:
    """
    Classify and measure a change.

    ``delta`` is truncated toward zero to one decimal (or rounded to an integer
    with ``integer_rounding``); ``pct_change`` is truncated the same way and is
    0 when the previous value is 0.
    """
    change_type = classify(current, previous, config)
    if current is None or previous is None:
        return ChangeResult(type=change_type)

    diff = current - previous
    delta = float(round_half_up(diff)) if integer_rounding else truncate_one_decimal(diff)
    return ChangeResult(type=change_type, delta=delta, pct_change=_percent_change(diff, previous))


def _plain_number(value: float) -> str:
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}"


def format_change(
    current: float | None,
    previous: float | None,
    config: Policy | Mapping[str, Any],
    *,
    disabled: bool = False,
    show_zero_icon: bool = False,
    integer_rounding: bool = False,
    value_formatter: Callable[[float], str] | None = None,
) -> ChangeDisplay:
    """
    Render a change as plain text.

    A delta that truncates to zero renders as a dash, or as "0" with
    ``show_icon`` set when ``show_zero_icon`` is requested. ``value_formatter``
    formats the magnitude; the sign is always added here.
    """
    if disabled or current is None or previous is None:
        return ChangeDisplay(type=ChangeType.NEUTRAL, delta_text=DASH)

    result = compare(current, previous, config, integer_rounding=integer_rounding)
    delta = result.delta or 0

    if delta == 0:
        if show_zero_icon:
            return ChangeDisplay(type=ChangeType.NEUTRAL, delta_text="0", show_icon=True)
        return ChangeDisplay(type=ChangeType.NEUTRAL, delta_text=DASH)

    if value_formatter is not None:
        delta_text = f"{'-' if delta < 0 else '+'}{value_formatter(abs(delta))}"
    else:
        sign = "+" if delta > 0 else ""
        magnitude = str(int(delta)) if integer_rounding else f"{delta:.1f}"
        delta_text = f"{sign}{magnitude}"

    pct = result.pct_change or 0
    pct_text = f"{'+' if pct > 0 else ''}{_plain_number(pct)}%"

    return ChangeDisplay(type=result.type, delta_text=delta_text, pct_text=pct_text)
