"""Resolve the numeric CO₂ contribution of a single lifecycle stage."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import assert_never

from carbon_lifecycle.schemas import (
    ApproximationConfig,
    DynamicConfig,
    ImpactConfig,
    NoneConfig,
)
from carbon_lifecycle.stages import LifecycleStageKey

LOGGER = logging.getLogger(__name__)


def coerce_non_negative(value: object) -> float | None:
    """Return ``value`` as a finite, non-negative float.

    Args:
        value: Raw numeric candidate (numbers and numeric strings accepted).

    Returns:
        The parsed float, or ``None`` when the value cannot be used.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number) or number < 0.0:
        return None
    return number


def resolve_stage_value(
    stage_key: LifecycleStageKey,
    config: ImpactConfig,
    dynamic_values: Mapping[str, float] | None = None,
) -> float:
    """Return the CO₂ value in kilograms contributed by one stage.

    Args:
        stage_key: Stage the configuration belongs to.
        config: Impact configuration for the stage.
        dynamic_values: Current per-stage values for ``dynamic`` stages,
            typically :attr:`DynamicValueState.values`.

    Returns:
        A finite value ``>= 0``. Unusable approximation inputs resolve to
        ``0.0`` and are reported through a warning log record.
    """

    if isinstance(config, NoneConfig):
        return 0.0
    if isinstance(config, ApproximationConfig):
        value = coerce_non_negative(config.co2_eq_in_kg)
        if value is None:
            LOGGER.warning(
                "Unusable co2EqInKg for stage %s; counting it as 0",
                stage_key,
                extra={"stage": stage_key, "raw_value": repr(config.co2_eq_in_kg)},
            )
            return 0.0
        return value
    if isinstance(config, DynamicConfig):
        if dynamic_values is None:
            return 0.0
        current = coerce_non_negative(dynamic_values.get(stage_key, 0.0))
        return 0.0 if current is None else current
    assert_never(config)
