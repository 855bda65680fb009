"""Environment-backed settings primitives for :mod:`carbon_lifecycle`."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["LifecycleSettings", "get_settings"]


class LifecycleSettings(BaseSettings):
    """Expose environment-derived configuration knobs.

    All environment lookups go through this class. Every attribute maps to a
    documented environment variable and defaults to ``None`` (or an inline
    default) when the variable is absent.

    Attributes:
        config_path: Explicit path to the structured configuration file.
        default_request_count: Request count assumed for services in a
            comparison that have no explicit value.
        tick_seconds: Interval between dynamic value simulation ticks.
        simulation_seed: Seed for the simulated dynamic value provider.
        log_level: Log level name used by the command line entry point.
    """

    config_path: str | None = Field(
        default=None, alias="CARBON_LIFECYCLE_CONFIG_PATH"
    )
    default_request_count: int | None = Field(
        default=None, alias="CARBON_LIFECYCLE_DEFAULT_REQUEST_COUNT"
    )
    tick_seconds: float | None = Field(
        default=None, alias="CARBON_LIFECYCLE_TICK_SECONDS"
    )
    simulation_seed: int | None = Field(
        default=None, alias="CARBON_LIFECYCLE_SIMULATION_SEED"
    )
    log_level: str = Field(default="WARNING", alias="CARBON_LIFECYCLE_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @field_validator("tick_seconds", mode="before")
    @classmethod
    def _parse_optional_float(cls, value: object) -> float | None:
        """Parse optional float fields while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed float when conversion succeeds, otherwise ``None``.
        """

        if value is None:
            return None
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                return None
        return None

    @field_validator("default_request_count", "simulation_seed", mode="before")
    @classmethod
    def _parse_optional_int(cls, value: object) -> int | None:
        """Parse optional integer fields while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed integer when conversion succeeds, otherwise ``None``.
        """

        if value is None:
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

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        """Upper-case the level name; fall back to ``WARNING`` when empty."""

        if isinstance(value, str) and value.strip():
            return value.strip().upper()
        return "WARNING"


def get_settings() -> LifecycleSettings:
    """Return a :class:`LifecycleSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return LifecycleSettings()
