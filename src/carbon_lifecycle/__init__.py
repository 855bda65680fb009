"""Carbon Lifecycle - lifecycle emission accounting for AI services."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "AIServiceLifecycleImpact",
    "AggregateResult",
    "ComparisonSession",
    "LifecycleImpactError",
    "RecordValidationError",
    "aggregate",
    "load_config",
    "parse_record",
    "to_rows",
]

if TYPE_CHECKING:
    from .aggregation import AggregateResult, aggregate
    from .comparison import ComparisonSession
    from .config_loader import load_config
    from .errors import LifecycleImpactError, RecordValidationError
    from .export import to_rows
    from .loader import parse_record
    from .schemas import AIServiceLifecycleImpact


def __getattr__(name: str) -> Any:
    """Lazily import submodules so ``import carbon_lifecycle`` stays cheap."""

    module_map = {
        "AIServiceLifecycleImpact": "schemas",
        "AggregateResult": "aggregation",
        "ComparisonSession": "comparison",
        "LifecycleImpactError": "errors",
        "RecordValidationError": "errors",
        "aggregate": "aggregation",
        "load_config": "config_loader",
        "parse_record": "loader",
        "to_rows": "export",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
