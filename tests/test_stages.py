"""Tests for the canonical lifecycle stage catalogue."""

import pytest

from carbon_lifecycle.stages import (
    HARDWARE_STAGE_KEYS,
    LIFECYCLE_STAGE_KEYS,
    SOFTWARE_STAGE_KEYS,
    get_stage_description,
    is_stage_key,
    stage_category,
    stage_label,
)


def test_stage_keys_partition_into_categories():
    """Software and hardware keys together are exactly the ten stage keys."""
    assert len(LIFECYCLE_STAGE_KEYS) == 10
    assert set(SOFTWARE_STAGE_KEYS) | set(HARDWARE_STAGE_KEYS) == set(
        LIFECYCLE_STAGE_KEYS
    )
    assert not set(SOFTWARE_STAGE_KEYS) & set(HARDWARE_STAGE_KEYS)
    assert LIFECYCLE_STAGE_KEYS == SOFTWARE_STAGE_KEYS + HARDWARE_STAGE_KEYS


def test_stage_category():
    assert stage_category("modelTraining") == "operational"
    assert stage_category("hardwareTransport") == "embodied"
    with pytest.raises(KeyError):
        stage_category("notAStage")  # type: ignore[arg-type]


def test_stage_label_and_fallback():
    assert stage_label("modelOperation") == "Model Operation (Inference)"
    assert stage_label("AISystemInstallation") == "AI System Installation"
    assert stage_label("somethingElse") == "somethingElse"


def test_every_stage_has_a_description():
    for key in LIFECYCLE_STAGE_KEYS:
        assert get_stage_description(key)


def test_is_stage_key():
    assert is_stage_key("dataHandling")
    assert not is_stage_key("DataHandling")
    assert not is_stage_key(3)
