"""Property tests for aggregation, normalization and export using hypothesis."""

from hypothesis import given, settings, strategies as st

from carbon_lifecycle.aggregation import aggregate
from carbon_lifecycle.export import to_rows
from carbon_lifecycle.metrics import build_service_metrics
from carbon_lifecycle.normalization import normalize
from carbon_lifecycle.schemas import AIServiceLifecycleImpact
from conftest import STAGE_KEYS, approx, build_payload, dynamic

_TOKEN = "S3CRET-token"

_stage_config = st.one_of(
    st.just({"impactCalculationMode": "none"}),
    st.floats(allow_nan=True, allow_infinity=True).map(approx),
    st.one_of(st.text(max_size=8), st.none()).map(approx),
    st.just(dynamic(token=_TOKEN)),
)

_records = st.builds(
    lambda service_id, stages: AIServiceLifecycleImpact.model_validate(
        build_payload(service_id, stages=dict(zip(STAGE_KEYS, stages)))
    ),
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-", min_size=1, max_size=12),
    st.lists(_stage_config, min_size=10, max_size=10),
)


@settings(max_examples=75, deadline=None)
@given(record=_records)
def test_totals_are_non_negative_and_additive(record):
    result = aggregate(record)

    assert result.operational_total >= 0
    assert result.embodied_total >= 0
    assert result.grand_total == result.operational_total + result.embodied_total


@settings(max_examples=75, deadline=None)
@given(record=_records)
def test_export_always_has_ten_ordered_rows(record):
    rows = to_rows(record)

    assert [row["lifecycleStageKey"] for row in rows] == list(STAGE_KEYS)
    assert all("token" not in row for row in rows)
    assert not any(_TOKEN in str(value) for row in rows for value in row.values())


@settings(max_examples=50, deadline=None)
@given(
    records=st.lists(
        _records, min_size=1, max_size=6, unique_by=lambda record: record.service_id
    ),
    counts=st.lists(
        st.integers(min_value=-10, max_value=10**6), min_size=6, max_size=6
    ),
)
def test_normalized_cells_stay_within_bounds(records, counts):
    metrics = [
        build_service_metrics(record, count)
        for record, count in zip(records, counts)
    ]

    table = normalize(metrics)

    for row in table.rows:
        values = list(row.cells.values())
        assert all(0.0 <= value <= 100.0 for value in values)
        if row.max_value > 0:
            assert max(values) == 100.0
        else:
            assert all(value == 0.0 for value in values)
