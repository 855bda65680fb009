"""Tests for lifecycle aggregation and chart breakdowns."""

from __future__ import annotations

import pytest

from carbon_lifecycle.aggregation import (
    AggregateResult,
    aggregate,
    category_breakdown,
    compute_embodied_share,
    stage_breakdown,
)
from carbon_lifecycle.schemas import AIServiceLifecycleImpact
from conftest import STAGE_KEYS, approx, build_payload, dynamic


def _record(**stages: dict[str, object]) -> AIServiceLifecycleImpact:
    return AIServiceLifecycleImpact.model_validate(build_payload(stages=stages))


def test_aggregate_mixed_record():
    """Approximations sum per category; none and unresolved dynamic add zero."""
    record = _record(
        modelTraining=approx(10.0),
        modelOperation=approx(5.5),
        hardwareManufacturing={"impactCalculationMode": "none"},
        dataHandling=dynamic(),
    )

    result = aggregate(record)

    assert result.operational_total == pytest.approx(15.5)
    assert result.embodied_total == 0.0
    assert result.grand_total == pytest.approx(15.5)


def test_aggregate_uses_dynamic_values():
    record = _record(modelTraining=approx(1.0), hardwareTransport=dynamic())

    result = aggregate(record, {"hardwareTransport": 2.5})

    assert result.operational_total == 1.0
    assert result.embodied_total == 2.5
    assert result.grand_total == 3.5


def test_negative_values_never_reduce_totals():
    record = _record(modelTraining=approx(-5), materialExtraction=approx(2))

    result = aggregate(record)

    assert result.operational_total == 0.0
    assert result.embodied_total == 2.0


def test_all_none_record_totals_zero():
    result = aggregate(_record())
    assert result == AggregateResult(0.0, 0.0, 0.0)
    assert result.embodied_share == 0.0


def test_to_dict_reports_share():
    result = AggregateResult(operational_total=3.0, embodied_total=1.0, grand_total=4.0)
    assert result.to_dict() == {
        "operationalTotal": 3.0,
        "embodiedTotal": 1.0,
        "grandTotal": 4.0,
        "embodiedShare": 0.25,
    }
    assert compute_embodied_share(0.0, 0.0) == 0.0


def test_stage_breakdown_skips_zero_stages():
    record = _record(
        dataHandling=approx(1.0),
        modelTraining=approx(0.0),
        hardwareTransport=approx(3.0),
    )

    slices = stage_breakdown(record)

    assert [item["stage"] for item in slices] == ["dataHandling", "hardwareTransport"]
    assert [item["color_slot"] for item in slices] == [1, 2]
    assert slices[1]["label"] == "Hardware Transport"


def test_stage_breakdown_cycles_color_slots():
    record = _record(**{key: approx(1.0) for key in STAGE_KEYS})
    slots = [item["color_slot"] for item in stage_breakdown(record)]
    assert slots == list(range(1, 11))


@pytest.mark.parametrize(
    ("operational", "embodied", "names"),
    [
        (2.0, 1.0, ["Operational Emissions", "Embodied Emissions"]),
        (2.0, 0.0, ["Operational Emissions"]),
        (0.0, 1.0, ["Embodied Emissions"]),
        (0.0, 0.0, ["Operational Emissions", "Embodied Emissions"]),
    ],
)
def test_category_breakdown(operational, embodied, names):
    result = AggregateResult(operational, embodied, operational + embodied)
    assert [item["name"] for item in category_breakdown(result)] == names
