"""Typed configuration dataclasses for :mod:`carbon_lifecycle.config_loader`."""

from __future__ import annotations

from dataclasses import dataclass, field

from carbon_lifecycle.schemas import RECORD_SCHEMA_URL

DEFAULT_PALETTE: tuple[str, ...] = (
    "hsl(var(--chart-1))",
    "hsl(var(--chart-2))",
    "hsl(var(--chart-3))",
    "hsl(var(--chart-4))",
    "hsl(var(--chart-5))",
)


@dataclass(slots=True)
class ComparisonSettings:
    """Settings for multi-service comparisons.

    Attributes:
        default_request_count: Request count applied to services that have
            no explicit value.
        palette: Ordered colors assigned to services by input position.
    """

    default_request_count: int = 1000
    palette: tuple[str, ...] = DEFAULT_PALETTE


@dataclass(slots=True)
class SimulationSettings:
    """Configuration of the simulated dynamic value provider."""

    tick_seconds: float = 5.0
    seed: int | None = None
    initial_min: float = 1.0
    initial_max: float = 6.0
    increment_min: float = 0.1
    increment_max: float = 0.6


@dataclass(slots=True)
class ExportSettings:
    """Controls for tabular and record exports."""

    dynamic_placeholder: str = "Dynamic (API)"
    fallback_filename: str = "ai_service_impact_export.csv"
    schema_url: str = RECORD_SCHEMA_URL


@dataclass(slots=True)
class LifecycleConfig:
    """Strongly typed configuration container for the lifecycle engine."""

    comparison: ComparisonSettings = field(default_factory=ComparisonSettings)
    simulation: SimulationSettings = field(default_factory=SimulationSettings)
    export: ExportSettings = field(default_factory=ExportSettings)
