"""Multi-service comparison session.

A :class:`ComparisonSession` holds the uploaded services, their request
counts and the last result the user chose to display. Every change returns a
new session and clears the displayed result, so a chart is never shown for
inputs it was not computed from.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from carbon_lifecycle.config_loader.models import DEFAULT_PALETTE, LifecycleConfig
from carbon_lifecycle.loader import load_batch
from carbon_lifecycle.metrics import (
    DEFAULT_REQUEST_COUNT,
    ServiceMetrics,
    build_service_metrics,
    clamp_request_count,
)
from carbon_lifecycle.normalization import RadarTable, normalize
from carbon_lifecycle.schemas import AIServiceLifecycleImpact

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Metrics and normalized table computed for one set of inputs."""

    metrics: tuple[ServiceMetrics, ...] = ()
    table: RadarTable = field(default_factory=RadarTable)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation for charting or the CLI."""

        return {
            "services": [
                {
                    **metrics.to_dict(),
                    "color": self.table.series[metrics.service_id].color,
                }
                for metrics in self.metrics
            ],
            "radar": self.table.to_records(),
        }


@dataclass(frozen=True, slots=True)
class ComparisonSession:
    """Immutable state of a comparison between several services."""

    services: tuple[AIServiceLifecycleImpact, ...] = ()
    request_counts: Mapping[str, int] = field(default_factory=dict)
    default_request_count: int = DEFAULT_REQUEST_COUNT
    palette: tuple[str, ...] = DEFAULT_PALETTE
    displayed: ComparisonResult | None = None
    error: str | None = None

    @classmethod
    def from_config(cls, config: LifecycleConfig) -> ComparisonSession:
        """Return an empty session using the configured defaults."""

        return cls(
            default_request_count=config.comparison.default_request_count,
            palette=config.comparison.palette,
        )

    @property
    def service_ids(self) -> tuple[str, ...]:
        return tuple(service.service_id for service in self.services)

    def request_count_for(self, service_id: str) -> int:
        """Return the request count used for ``service_id``."""

        return self.request_counts.get(service_id, self.default_request_count)

    def add_uploads(
        self, sources: Iterable[tuple[str, str | bytes]]
    ) -> ComparisonSession:
        """Admit the valid files among ``sources``.

        Invalid files are summarised in :attr:`error`; a re-uploaded service id
        replaces the earlier record and keeps its request count.
        """

        result = load_batch(sources, existing=self.services)
        return self._with_services(result.records, error=result.error_summary())

    def add_records(
        self, records: Iterable[AIServiceLifecycleImpact]
    ) -> ComparisonSession:
        """Admit already validated records (same replacement rules as uploads)."""

        merged = {service.service_id: service for service in self.services}
        for record in records:
            merged[record.service_id] = record
        return self._with_services(tuple(merged.values()), error=None)

    def remove_service(self, service_id: str) -> ComparisonSession:
        """Drop ``service_id`` and its request count."""

        counts = {
            key: value
            for key, value in self.request_counts.items()
            if key != service_id
        }
        return replace(
            self,
            services=tuple(
                service for service in self.services if service.service_id != service_id
            ),
            request_counts=counts,
            displayed=None,
        )

    def set_request_count(self, service_id: str, value: object) -> ComparisonSession:
        """Set the request count of ``service_id`` from raw user input.

        Raises:
            KeyError: If ``service_id`` is not part of the session.
        """

        if service_id not in self.service_ids:
            raise KeyError(service_id)
        counts = dict(self.request_counts)
        counts[service_id] = clamp_request_count(value)
        return replace(self, request_counts=counts, displayed=None)

    def calculate(self) -> ComparisonResult:
        """Derive metrics and the normalized table from the current inputs."""

        if not self.services:
            return ComparisonResult()
        metrics = tuple(
            build_service_metrics(service, self.request_count_for(service.service_id))
            for service in self.services
        )
        return ComparisonResult(
            metrics=metrics, table=normalize(metrics, palette=self.palette)
        )

    def generate(self) -> ComparisonSession:
        """Commit the current calculation as the displayed result."""

        return replace(self, displayed=self.calculate())

    def _with_services(
        self, services: tuple[AIServiceLifecycleImpact, ...], *, error: str | None
    ) -> ComparisonSession:
        counts = dict(self.request_counts)
        for service in services:
            counts.setdefault(service.service_id, self.default_request_count)
        if error:
            LOGGER.warning("Some comparison uploads were rejected:\n%s", error)
        return replace(
            self,
            services=services,
            request_counts=counts,
            displayed=None,
            error=error,
        )
