"""Tests for the persisted record models."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from carbon_lifecycle.schemas import (
    AIServiceLifecycleImpact,
    ApproximationConfig,
    DynamicConfig,
    NoneConfig,
    default_cycle_stages,
    default_impact_config,
)
from conftest import approx, build_payload, dynamic


def test_record_validates_discriminated_stages():
    record = AIServiceLifecycleImpact.model_validate(
        build_payload(
            stages={"modelTraining": approx(10.0), "dataHandling": dynamic()}
        )
    )

    assert isinstance(record.cycle_stages.get("modelTraining"), ApproximationConfig)
    assert isinstance(record.cycle_stages.get("dataHandling"), DynamicConfig)
    assert isinstance(record.cycle_stages.get("modelEndOfLife"), NoneConfig)
    assert record.dynamic_stage_keys() == ("dataHandling",)
    assert record.has_dynamic_stages
    assert not record.includes_hardware


def test_record_is_frozen():
    record = AIServiceLifecycleImpact.model_validate(build_payload())
    with pytest.raises(ValidationError):
        record.name = "changed"  # type: ignore[misc]


@pytest.mark.parametrize(
    "mutate",
    [
        lambda data: data.pop("name"),
        lambda data: data.update(extra=True),
        lambda data: data["cycleStages"].pop("modelTraining"),
        lambda data: data["cycleStages"].update(
            unknownStage={"impactCalculationMode": "none"}
        ),
        lambda data: data["cycleStages"].update(
            modelTraining={"impactCalculationMode": "guess"}
        ),
        lambda data: data["cycleStages"].update(
            modelTraining={"impactCalculationMode": "none", "co2EqInKg": 1}
        ),
        lambda data: data["cycleStages"].update(
            modelTraining={"impactCalculationMode": "dynamic", "httpApiUrl": "x"}
        ),
        lambda data: data.update(serviceId=""),
        lambda data: data.update(serviceId="   "),
    ],
)
def test_structural_violations_are_rejected(mutate):
    data = build_payload()
    mutate(data)
    with pytest.raises(ValidationError):
        AIServiceLifecycleImpact.model_validate(data)


def test_negative_approximation_is_admitted():
    """Negative values pass validation and are neutralised during aggregation."""
    record = AIServiceLifecycleImpact.model_validate(
        build_payload(stages={"modelTraining": approx(-5)})
    )
    config = record.cycle_stages.get("modelTraining")
    assert isinstance(config, ApproximationConfig)
    assert config.co2_eq_in_kg == -5


def test_token_is_masked_unless_revealed():
    record = AIServiceLifecycleImpact.model_validate(
        build_payload(stages={"modelOperation": dynamic(token="top-secret")})
    )

    masked = record.to_json_payload()
    assert "top-secret" not in json.dumps(masked)
    assert "top-secret" not in repr(record)

    revealed = record.to_json_payload(reveal_secrets=True)
    assert revealed["cycleStages"]["modelOperation"]["token"] == "top-secret"


def test_payload_uses_persisted_key_names():
    data = build_payload(stages={"modelTraining": approx(1.5)})
    data["$schema"] = "https://example.com/schema.json"
    record = AIServiceLifecycleImpact.model_validate(data)

    payload = record.to_json_payload()
    assert payload["serviceId"] == "svc-a"
    assert payload["$schema"] == "https://example.com/schema.json"
    assert payload["cycleStages"]["modelTraining"] == {
        "impactCalculationMode": "approximation",
        "co2EqInKg": 1.5,
    }


def test_replace_stage_returns_new_instance():
    stages = default_cycle_stages()
    updated = stages.replace_stage(
        "hardwareTransport", default_impact_config("approximation")
    )

    assert isinstance(stages.get("hardwareTransport"), NoneConfig)
    assert isinstance(updated.get("hardwareTransport"), ApproximationConfig)
    with pytest.raises(KeyError):
        stages.replace_stage("notAStage", NoneConfig())  # type: ignore[arg-type]


def test_default_impact_config_modes():
    assert isinstance(default_impact_config(), NoneConfig)
    approximation = default_impact_config("approximation")
    assert isinstance(approximation, ApproximationConfig)
    assert approximation.co2_eq_in_kg == 0.0
    assert isinstance(default_impact_config("dynamic"), DynamicConfig)
