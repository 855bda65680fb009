"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import inspect
import json
import os
import sys
from collections.abc import Callable
from typing import Any

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

STAGE_KEYS = (
    "businessUseCaseGeneration",
    "dataHandling",
    "modelArchitectureExploration",
    "modelTraining",
    "modelOperation",
    "modelEndOfLife",
    "materialExtraction",
    "hardwareManufacturing",
    "hardwareTransport",
    "AISystemInstallation",
)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring an event loop")


def pytest_pyfunc_call(pyfuncitem: Any) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    if inspect.iscoroutinefunction(pyfuncitem.obj):
        call_kwargs = {
            name: pyfuncitem.funcargs[name]
            for name in pyfuncitem._fixtureinfo.argnames  # type: ignore[attr-defined]
        }

        event_loop = asyncio.new_event_loop()
        try:
            event_loop.run_until_complete(pyfuncitem.obj(**call_kwargs))
        finally:
            event_loop.close()
        return True
    return None


def build_payload(
    service_id: str = "svc-a",
    *,
    name: str = "Service A",
    description: str = "Test service",
    stages: dict[str, dict[str, object]] | None = None,
) -> dict[str, object]:
    """Return a raw record mapping with every stage ``none`` unless overridden."""

    cycle_stages: dict[str, object] = {
        key: {"impactCalculationMode": "none"} for key in STAGE_KEYS
    }
    cycle_stages.update(stages or {})
    return {
        "serviceId": service_id,
        "name": name,
        "description": description,
        "cycleStages": cycle_stages,
    }


def approx(value: float | str | None) -> dict[str, object]:
    return {"impactCalculationMode": "approximation", "co2EqInKg": value}


def dynamic(
    url: str = "https://api.example.com/co2", token: str = "s3cret"
) -> dict[str, object]:
    return {"impactCalculationMode": "dynamic", "httpApiUrl": url, "token": token}


@pytest.fixture
def record_file(tmp_path: Any) -> Callable[..., str]:
    """Write a record mapping (or raw text) to a file and return its path."""

    def _write(filename: str, content: dict[str, object] | str) -> str:
        path = tmp_path / filename
        text = content if isinstance(content, str) else json.dumps(content)
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write
