"""Tests for layered configuration loading."""

from __future__ import annotations

import json

import pytest

from carbon_lifecycle.config_loader import LifecycleConfig, load_config
from carbon_lifecycle.config_loader.parsing import apply_structured_overrides
from carbon_lifecycle.config_loader.sources import candidate_paths
from carbon_lifecycle.settings import LifecycleSettings


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    """Run every test from an empty directory with a clean environment."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "CARBON_LIFECYCLE_CONFIG_PATH",
        "CARBON_LIFECYCLE_DEFAULT_REQUEST_COUNT",
        "CARBON_LIFECYCLE_TICK_SECONDS",
        "CARBON_LIFECYCLE_SIMULATION_SEED",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_sources():
    config = load_config()

    assert config == LifecycleConfig()
    assert config.comparison.default_request_count == 1000
    assert config.simulation.tick_seconds == 5.0
    assert config.export.dynamic_placeholder == "Dynamic (API)"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CARBON_LIFECYCLE_DEFAULT_REQUEST_COUNT", "250")
    monkeypatch.setenv("CARBON_LIFECYCLE_TICK_SECONDS", "0.5")
    monkeypatch.setenv("CARBON_LIFECYCLE_SIMULATION_SEED", "42")

    config = load_config()

    assert config.comparison.default_request_count == 250
    assert config.simulation.tick_seconds == 0.5
    assert config.simulation.seed == 42


def test_malformed_environment_values_are_ignored(monkeypatch):
    monkeypatch.setenv("CARBON_LIFECYCLE_DEFAULT_REQUEST_COUNT", "lots")
    monkeypatch.setenv("CARBON_LIFECYCLE_TICK_SECONDS", "-3")

    config = load_config()

    assert config.comparison.default_request_count == 1000
    assert config.simulation.tick_seconds == 5.0


def test_json_file_from_environment_path(monkeypatch, tmp_path):
    cfg_file = tmp_path / "custom.json"
    cfg_file.write_text(
        json.dumps(
            {
                "comparison": {"default_request_count": 50, "palette": ["red", "blue"]},
                "export": {"fallback_filename": "all.csv"},
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("CARBON_LIFECYCLE_CONFIG_PATH", str(cfg_file))
    monkeypatch.setenv("CARBON_LIFECYCLE_DEFAULT_REQUEST_COUNT", "250")

    config = load_config()

    assert config.comparison.default_request_count == 50
    assert config.comparison.palette == ("red", "blue")
    assert config.export.fallback_filename == "all.csv"


def test_yaml_file_in_default_location(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "carbon_lifecycle.yml").write_text(
        """
simulation:
  tick_seconds: 2
  seed: 7
  initial_range: [0.5, 1.5]
  increment_range: [0.2, 0.1]
""",
        encoding="utf-8",
    )

    config = load_config()

    assert config.simulation.tick_seconds == 2.0
    assert config.simulation.seed == 7
    assert (config.simulation.initial_min, config.simulation.initial_max) == (0.5, 1.5)
    # inverted ranges are ignored
    assert config.simulation.increment_min == 0.1
    assert config.simulation.increment_max == 0.6


def test_unreadable_file_falls_back_to_defaults(tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("simulation: [unclosed", encoding="utf-8")

    assert load_config(str(broken)) == LifecycleConfig()


def test_explicit_path_wins(monkeypatch, tmp_path):
    monkeypatch.setenv("CARBON_LIFECYCLE_CONFIG_PATH", "ignored.json")
    explicit = tmp_path / "explicit.json"

    paths = candidate_paths(str(explicit), LifecycleSettings())

    assert [str(path) for path in paths] == [str(explicit)]


def test_structured_overrides_ignore_bad_sections():
    config = apply_structured_overrides(
        LifecycleConfig(),
        {
            "comparison": ["not", "a", "mapping"],
            "simulation": {"tick_seconds": "fast", "seed": True},
            "export": {"dynamic_placeholder": "  ", "schema_url": "https://s"},
        },
    )

    assert config.comparison == LifecycleConfig().comparison
    assert config.simulation == LifecycleConfig().simulation
    assert config.export.dynamic_placeholder == "Dynamic (API)"
    assert config.export.schema_url == "https://s"
