"""Per-request metrics derived from aggregated lifecycle totals."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Final, Literal

from carbon_lifecycle.aggregation import AggregateResult, aggregate
from carbon_lifecycle.schemas import AIServiceLifecycleImpact

LOGGER = logging.getLogger(__name__)

DEFAULT_REQUEST_COUNT: Final[int] = 1000

DimensionKey = Literal[
    "requestCount",
    "avgEmbodiedPerUnit",
    "avgOperationalPerUnit",
    "avgTotalPerUnit",
    "totalEmbodied",
    "totalOperational",
    "totalImpact",
]


def clamp_request_count(value: object) -> int:
    """Return a usable request count (always ``>= 1``).

    Integers are taken as-is, floats and numeric strings are truncated toward
    zero. Anything non-numeric, non-finite or below one becomes ``1`` so the
    per-unit division is always defined.
    """

    count: int | None = None
    if isinstance(value, bool):
        count = None
    elif isinstance(value, int):
        count = value
    elif isinstance(value, float):
        count = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        text = value.strip()
        try:
            count = int(text)
        except ValueError:
            try:
                parsed = float(text)
            except ValueError:
                parsed = math.nan
            count = int(parsed) if math.isfinite(parsed) else None

    if count is None or count < 1:
        LOGGER.debug("Clamping request count %r to 1", value)
        return 1
    return count


@dataclass(frozen=True, slots=True)
class PerUnitMetrics:
    """Average emissions per request, in kg CO₂e."""

    request_count: int
    avg_embodied_per_unit: float
    avg_operational_per_unit: float
    avg_total_per_unit: float


def per_unit_metrics(
    result: AggregateResult, request_count: object = DEFAULT_REQUEST_COUNT
) -> PerUnitMetrics:
    """Divide each total of ``result`` by the (clamped) request count."""

    count = clamp_request_count(request_count)
    return PerUnitMetrics(
        request_count=count,
        avg_embodied_per_unit=result.embodied_total / count,
        avg_operational_per_unit=result.operational_total / count,
        avg_total_per_unit=result.grand_total / count,
    )


@dataclass(frozen=True, slots=True)
class ServiceMetrics:
    """All comparison dimensions for one service."""

    service_id: str
    name: str
    request_count: int
    avg_embodied_per_unit: float
    avg_operational_per_unit: float
    avg_total_per_unit: float
    total_embodied: float
    total_operational: float
    total_impact: float

    def dimension_value(self, key: DimensionKey) -> float:
        """Return the raw value of the comparison dimension ``key``."""

        return float(self.to_dict()[key])

    def to_dict(self) -> dict[str, object]:
        """Return the metrics keyed by their comparison dimension names."""

        return {
            "serviceId": self.service_id,
            "name": self.name,
            "requestCount": self.request_count,
            "avgEmbodiedPerUnit": self.avg_embodied_per_unit,
            "avgOperationalPerUnit": self.avg_operational_per_unit,
            "avgTotalPerUnit": self.avg_total_per_unit,
            "totalEmbodied": self.total_embodied,
            "totalOperational": self.total_operational,
            "totalImpact": self.total_impact,
        }


def build_service_metrics(
    record: AIServiceLifecycleImpact,
    request_count: object = DEFAULT_REQUEST_COUNT,
    dynamic_values: Mapping[str, float] | None = None,
) -> ServiceMetrics:
    """Aggregate ``record`` and derive its comparison metrics.

    Args:
        record: Validated lifecycle record.
        request_count: Requests the totals are spread over; clamped to ``>= 1``.
        dynamic_values: Optional snapshot of dynamic stage values. Comparisons
            normally pass ``None`` so only static estimates are compared.
    """

    totals = aggregate(record, dynamic_values)
    per_unit = per_unit_metrics(totals, request_count)
    return ServiceMetrics(
        service_id=record.service_id,
        name=record.name,
        request_count=per_unit.request_count,
        avg_embodied_per_unit=per_unit.avg_embodied_per_unit,
        avg_operational_per_unit=per_unit.avg_operational_per_unit,
        avg_total_per_unit=per_unit.avg_total_per_unit,
        total_embodied=totals.embodied_total,
        total_operational=totals.operational_total,
        total_impact=totals.grand_total,
    )
