"""Cross-service normalization onto a common 0-100 scale.

Every call re-derives the per-dimension maxima from the full service list, so
adding, removing or reordering services always produces a fresh table rather
than a patched one. Colors follow input order (``index mod len(palette)``)
and are therefore reassigned whenever the order changes.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Final

from carbon_lifecycle.config_loader.models import DEFAULT_PALETTE
from carbon_lifecycle.metrics import DimensionKey, ServiceMetrics

__all__ = [
    "RADAR_DIMENSIONS",
    "RadarDimension",
    "RadarRow",
    "RadarTable",
    "SeriesStyle",
    "assign_color",
    "normalize",
]


@dataclass(frozen=True, slots=True)
class RadarDimension:
    """One axis of the comparison chart."""

    key: DimensionKey
    label: str
    unit: str


RADAR_DIMENSIONS: Final[tuple[RadarDimension, ...]] = (
    RadarDimension("requestCount", "Request Count", "reqs"),
    RadarDimension("avgEmbodiedPerUnit", "Avg. Embodied / Req.", "kg/req"),
    RadarDimension("avgOperationalPerUnit", "Avg. Operational / Req.", "kg/req"),
    RadarDimension("avgTotalPerUnit", "Avg. Total / Req.", "kg/req"),
    RadarDimension("totalEmbodied", "Total Embodied", "kg"),
    RadarDimension("totalOperational", "Total Operational", "kg"),
    RadarDimension("totalImpact", "Total Impact", "kg"),
)


@dataclass(frozen=True, slots=True)
class SeriesStyle:
    """Legend entry for one service."""

    label: str
    color: str


@dataclass(frozen=True, slots=True)
class RadarRow:
    """Normalized and raw values of one dimension, keyed by service id."""

    dimension: RadarDimension
    max_value: float
    cells: dict[str, float]
    raw: dict[str, float]

    def to_dict(self) -> dict[str, object]:
        """Return the chart-ready row: dimension label plus one cell per service."""

        row: dict[str, object] = {
            "dimension": self.dimension.label,
            "key": self.dimension.key,
            "unit": self.dimension.unit,
        }
        row.update(self.cells)
        return row


@dataclass(frozen=True, slots=True)
class RadarTable:
    """One row per dimension, one column per service, cells in ``[0, 100]``."""

    rows: tuple[RadarRow, ...] = ()
    service_ids: tuple[str, ...] = ()
    series: dict[str, SeriesStyle] = field(default_factory=dict)

    def cell(self, dimension_key: DimensionKey, service_id: str) -> float:
        """Return the normalized value for ``service_id`` on ``dimension_key``."""

        for row in self.rows:
            if row.dimension.key == dimension_key:
                return row.cells[service_id]
        raise KeyError(dimension_key)

    def to_records(self) -> list[dict[str, object]]:
        """Return the rows as plain mappings for a charting layer."""

        return [row.to_dict() for row in self.rows]


def assign_color(index: int, palette: Sequence[str] = DEFAULT_PALETTE) -> str:
    """Return the palette color for the service at position ``index``."""

    if not palette:
        raise ValueError("palette must contain at least one color")
    return palette[index % len(palette)]


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) and value > 0 else 0.0


def normalize(
    services: Sequence[ServiceMetrics],
    dimensions: Sequence[RadarDimension] = RADAR_DIMENSIONS,
    *,
    palette: Sequence[str] = DEFAULT_PALETTE,
) -> RadarTable:
    """Rescale each dimension so its largest service value maps to 100.

    Args:
        services: Metrics per service, in upload order.
        dimensions: Dimensions to emit, in display order.
        palette: Colors cycled across ``services`` by position.

    Returns:
        :class:`RadarTable`. A dimension whose values are all zero uses ``1``
        as its denominator, so every cell of that row is ``0.0``. Non-finite
        values, including totals that overflowed to infinity, count as ``0``.

    Raises:
        ValueError: If two entries share a ``service_id``; cells are keyed by
            service id.
    """

    service_ids = tuple(metrics.service_id for metrics in services)
    duplicates = sorted(
        service_id for service_id, seen in Counter(service_ids).items() if seen > 1
    )
    if duplicates:
        raise ValueError(f"duplicate service ids: {', '.join(duplicates)}")
    series = {
        metrics.service_id: SeriesStyle(
            label=metrics.name, color=assign_color(index, palette)
        )
        for index, metrics in enumerate(services)
    }

    rows: list[RadarRow] = []
    for dimension in dimensions:
        raw = {
            metrics.service_id: _finite_or_zero(
                metrics.dimension_value(dimension.key)
            )
            for metrics in services
        }
        max_value = max(raw.values(), default=0.0)
        denominator = max_value if max_value > 0 else 1.0
        cells = {
            service_id: min(max(value / denominator * 100.0, 0.0), 100.0)
            for service_id, value in raw.items()
        }
        rows.append(
            RadarRow(dimension=dimension, max_value=max_value, cells=cells, raw=raw)
        )

    return RadarTable(rows=tuple(rows), service_ids=service_ids, series=series)
