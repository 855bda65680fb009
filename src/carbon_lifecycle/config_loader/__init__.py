"""Public entry points for the :mod:`carbon_lifecycle` configuration loader."""

from __future__ import annotations

from carbon_lifecycle.config_loader.models import (
    ComparisonSettings,
    ExportSettings,
    LifecycleConfig,
    SimulationSettings,
)
from carbon_lifecycle.config_loader.parsing import (
    apply_environment_overrides,
    apply_structured_overrides,
)
from carbon_lifecycle.config_loader.sources import load_structured_config
from carbon_lifecycle.settings import LifecycleSettings, get_settings

__all__ = [
    "ComparisonSettings",
    "ExportSettings",
    "LifecycleConfig",
    "SimulationSettings",
    "load_config",
]


def load_config(
    path: str | None = None, *, settings: LifecycleSettings | None = None
) -> LifecycleConfig:
    """Load configuration from defaults, the environment and an optional file.

    File values take precedence over environment values, which take
    precedence over the built-in defaults.

    Args:
        path: Optional explicit path to a JSON or YAML configuration file.
            When omitted the loader inspects ``CARBON_LIFECYCLE_CONFIG_PATH``
            and the default ``config/`` locations.
        settings: Optional pre-instantiated environment settings. When omitted
            :func:`carbon_lifecycle.settings.get_settings` is used.

    Returns:
        Fully populated :class:`LifecycleConfig` instance.
    """

    env_settings = settings or get_settings()
    base = apply_environment_overrides(LifecycleConfig(), env_settings)
    structured = load_structured_config(path, env_settings)
    if structured is None:
        return base
    return apply_structured_overrides(base, structured)
