"""Aggregation helpers for lifecycle impact records.

Totals are always derived fresh from a record and a snapshot of the dynamic
stage values; nothing here mutates its inputs or caches results, so callers
simply re-run the functions after a simulation tick or an edit.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Final, TypedDict

from carbon_lifecycle.resolver import resolve_stage_value
from carbon_lifecycle.schemas import AIServiceLifecycleImpact
from carbon_lifecycle.stages import (
    HARDWARE_STAGE_KEYS,
    LIFECYCLE_STAGE_KEYS,
    SOFTWARE_STAGE_KEYS,
    LifecycleStageKey,
    stage_label,
)

__all__ = [
    "AggregateResult",
    "CategorySlice",
    "StageSlice",
    "aggregate",
    "category_breakdown",
    "compute_embodied_share",
    "stage_breakdown",
]

STAGE_COLOR_SLOTS: Final[int] = 10
OPERATIONAL_SLICE_NAME: Final[str] = "Operational Emissions"
EMBODIED_SLICE_NAME: Final[str] = "Embodied Emissions"


@dataclass(frozen=True, slots=True)
class AggregateResult:
    """Category and grand totals for a single service, in kg CO₂e."""

    operational_total: float
    embodied_total: float
    grand_total: float

    @property
    def embodied_share(self) -> float:
        """Fraction of the grand total attributable to hardware stages."""

        return compute_embodied_share(self.operational_total, self.embodied_total)

    def to_dict(self) -> dict[str, float]:
        """Return the totals as a plain mapping."""

        return {
            "operationalTotal": self.operational_total,
            "embodiedTotal": self.embodied_total,
            "grandTotal": self.grand_total,
            "embodiedShare": self.embodied_share,
        }


class StageSlice(TypedDict):
    """One non-zero stage of the per-stage chart."""

    stage: LifecycleStageKey
    label: str
    co2: float
    color_slot: int


class CategorySlice(TypedDict):
    """One slice of the operational vs. embodied chart."""

    name: str
    value: float
    color_slot: int


def compute_embodied_share(operational: float, embodied: float) -> float:
    """Return ``embodied / (operational + embodied)``; ``0.0`` for a zero total."""

    total = operational + embodied
    return embodied / total if total > 0 else 0.0


def _sum_stages(
    record: AIServiceLifecycleImpact,
    keys: Iterable[LifecycleStageKey],
    dynamic_values: Mapping[str, float] | None,
) -> float:
    total = 0.0
    for key in keys:
        total += resolve_stage_value(key, record.cycle_stages.get(key), dynamic_values)
    return total


def aggregate(
    record: AIServiceLifecycleImpact,
    dynamic_values: Mapping[str, float] | None = None,
) -> AggregateResult:
    """Sum stage values into operational, embodied and grand totals.

    Args:
        record: Validated lifecycle record.
        dynamic_values: Snapshot of simulated values for ``dynamic`` stages.

    Returns:
        :class:`AggregateResult` where ``grand_total`` is exactly
        ``operational_total + embodied_total``.
    """

    operational = _sum_stages(record, SOFTWARE_STAGE_KEYS, dynamic_values)
    embodied = _sum_stages(record, HARDWARE_STAGE_KEYS, dynamic_values)
    return AggregateResult(
        operational_total=operational,
        embodied_total=embodied,
        grand_total=operational + embodied,
    )


def stage_breakdown(
    record: AIServiceLifecycleImpact,
    dynamic_values: Mapping[str, float] | None = None,
) -> list[StageSlice]:
    """Return the non-zero stages in canonical order for the per-stage chart.

    Color slots cycle through ``1..10`` across the emitted stages only, so
    zero-valued stages do not consume a color.
    """

    slices: list[StageSlice] = []
    slot = 1
    for key in LIFECYCLE_STAGE_KEYS:
        value = resolve_stage_value(key, record.cycle_stages.get(key), dynamic_values)
        if value <= 0:
            continue
        slices.append(
            StageSlice(stage=key, label=stage_label(key), co2=value, color_slot=slot)
        )
        slot = 1 if slot >= STAGE_COLOR_SLOTS else slot + 1
    return slices


def category_breakdown(result: AggregateResult) -> list[CategorySlice]:
    """Return the operational/embodied slices for the category chart.

    A slice is included when its value is positive or when the other category
    is zero, so an all-zero record still renders both (empty) slices.
    """

    operational = result.operational_total
    embodied = result.embodied_total
    slices: list[CategorySlice] = []
    if operational > 0 or embodied == 0:
        slices.append(
            CategorySlice(name=OPERATIONAL_SLICE_NAME, value=operational, color_slot=1)
        )
    if embodied > 0 or operational == 0:
        slices.append(
            CategorySlice(name=EMBODIED_SLICE_NAME, value=embodied, color_slot=2)
        )
    return slices
