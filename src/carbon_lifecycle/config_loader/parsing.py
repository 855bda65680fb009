"""Parsing and transformation helpers for :mod:`carbon_lifecycle.config_loader`."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import replace

from carbon_lifecycle.config_loader.models import LifecycleConfig
from carbon_lifecycle.settings import LifecycleSettings


def apply_environment_overrides(
    config: LifecycleConfig, settings: LifecycleSettings
) -> LifecycleConfig:
    """Apply environment-derived overrides to the configuration.

    Args:
        config: Base configuration instance.
        settings: Environment-derived settings.

    Returns:
        Configuration with environment overrides applied.
    """

    updated = config

    request_count = settings.default_request_count
    if request_count is not None and request_count > 0:
        updated = replace(
            updated,
            comparison=replace(
                updated.comparison, default_request_count=request_count
            ),
        )

    simulation = updated.simulation
    if settings.tick_seconds is not None and _is_positive(settings.tick_seconds):
        simulation = replace(simulation, tick_seconds=settings.tick_seconds)
    if settings.simulation_seed is not None:
        simulation = replace(simulation, seed=settings.simulation_seed)
    return replace(updated, simulation=simulation)


def apply_structured_overrides(
    config: LifecycleConfig, data: Mapping[str, object]
) -> LifecycleConfig:
    """Apply overrides sourced from structured configuration data.

    Args:
        config: Base configuration instance.
        data: Mapping parsed from configuration file.

    Returns:
        Configuration updated according to the provided mapping.
    """

    updated = config

    comparison_section = _expect_mapping(data.get("comparison"))
    if comparison_section is not None:
        updated = _apply_comparison_section(updated, comparison_section)

    simulation_section = _expect_mapping(data.get("simulation"))
    if simulation_section is not None:
        updated = _apply_simulation_section(updated, simulation_section)

    export_section = _expect_mapping(data.get("export"))
    if export_section is not None:
        updated = _apply_export_section(updated, export_section)

    return updated


def _apply_comparison_section(
    config: LifecycleConfig, section: Mapping[str, object]
) -> LifecycleConfig:
    """Apply the ``comparison`` section (request count and palette)."""

    comparison = config.comparison

    request_count = _coerce_int(section.get("default_request_count"))
    if request_count is not None and request_count > 0:
        comparison = replace(comparison, default_request_count=request_count)

    palette = _coerce_str_sequence(section.get("palette"))
    if palette:
        comparison = replace(comparison, palette=palette)

    return replace(config, comparison=comparison)


def _apply_simulation_section(
    config: LifecycleConfig, section: Mapping[str, object]
) -> LifecycleConfig:
    """Apply dynamic value simulation overrides.

    Ranges are only accepted when the lower bound does not exceed the upper
    bound and both are non-negative.
    """

    simulation = config.simulation

    tick_seconds = _coerce_float(section.get("tick_seconds"))
    if tick_seconds is not None and _is_positive(tick_seconds):
        simulation = replace(simulation, tick_seconds=tick_seconds)

    seed = _coerce_int(section.get("seed"))
    if seed is not None:
        simulation = replace(simulation, seed=seed)

    initial = _coerce_range(section.get("initial_range"))
    if initial is not None:
        simulation = replace(simulation, initial_min=initial[0], initial_max=initial[1])

    increment = _coerce_range(section.get("increment_range"))
    if increment is not None:
        simulation = replace(
            simulation, increment_min=increment[0], increment_max=increment[1]
        )

    return replace(config, simulation=simulation)


def _apply_export_section(
    config: LifecycleConfig, section: Mapping[str, object]
) -> LifecycleConfig:
    """Apply export overrides from a structured section."""

    export = config.export

    placeholder = _coerce_str(section.get("dynamic_placeholder"))
    if placeholder is not None:
        export = replace(export, dynamic_placeholder=placeholder)

    fallback_filename = _coerce_str(section.get("fallback_filename"))
    if fallback_filename is not None:
        export = replace(export, fallback_filename=fallback_filename)

    schema_url = _coerce_str(section.get("schema_url"))
    if schema_url is not None:
        export = replace(export, schema_url=schema_url)

    return replace(config, export=export)


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _coerce_float(value: object) -> float | None:
    """Return ``value`` as a float, or ``None`` for non-numeric input."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _coerce_int(value: object) -> int | None:
    """Return ``value`` as an int; fractional floats and text are rejected."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_str(value: object) -> str | None:
    """Return the stripped text, treating blank strings as missing."""

    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _coerce_str_sequence(value: object) -> tuple[str, ...] | None:
    """Return a list of strings as a tuple; any non-string element rejects it."""

    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return None
    items: list[str] = []
    for element in value:
        if not isinstance(element, str):
            return None
        items.append(element)
    return tuple(items)


def _coerce_range(value: object) -> tuple[float, float] | None:
    """Parse a ``[low, high]`` pair of non-negative floats."""

    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return None
    if len(value) != 2:
        return None
    low = _coerce_float(value[0])
    high = _coerce_float(value[1])
    if low is None or high is None:
        return None
    if not (math.isfinite(low) and math.isfinite(high)) or low < 0 or low > high:
        return None
    return (low, high)


def _expect_mapping(value: object) -> Mapping[str, object] | None:
    """Return ``value`` if it is a section mapping keyed by strings."""

    if not isinstance(value, Mapping):
        return None
    if not all(isinstance(key, str) for key in value.keys()):
        return None
    return value
