"""Flatten lifecycle records into rows and write CSV or JSON exports.

Exported rows never carry the credential of a ``dynamic`` stage: the value
column holds a placeholder marker and only the API URL is written.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable, Sequence
from typing import Final, TextIO, TypedDict, assert_never

from carbon_lifecycle.schemas import (
    RECORD_SCHEMA_URL,
    AIServiceLifecycleImpact,
    ApproximationConfig,
    DynamicConfig,
    ImpactMode,
    NoneConfig,
)
from carbon_lifecycle.resolver import coerce_non_negative
from carbon_lifecycle.stages import LifecycleStageKey, stage_label

__all__ = [
    "CSV_COLUMNS",
    "DYNAMIC_VALUE_PLACEHOLDER",
    "ExportRow",
    "default_export_filename",
    "dump_record",
    "records_to_csv",
    "rows_to_csv",
    "to_rows",
    "write_csv",
]

DYNAMIC_VALUE_PLACEHOLDER: Final[str] = "Dynamic (API)"
FALLBACK_EXPORT_FILENAME: Final[str] = "ai_service_impact_export.csv"

CSV_COLUMNS: Final[tuple[str, ...]] = (
    "serviceId",
    "serviceName",
    "serviceDescription",
    "lifecycleStageKey",
    "lifecycleStageLabel",
    "impactCalculationMode",
    "co2EqInKg",
    "httpApiUrl",
)


class ExportRow(TypedDict):
    """A single lifecycle stage of a service, flattened for tabular export."""

    serviceId: str
    serviceName: str
    serviceDescription: str
    lifecycleStageKey: LifecycleStageKey
    lifecycleStageLabel: str
    impactCalculationMode: ImpactMode
    co2EqInKg: float | str
    httpApiUrl: str


def to_rows(
    record: AIServiceLifecycleImpact,
    *,
    dynamic_placeholder: str = DYNAMIC_VALUE_PLACEHOLDER,
) -> list[ExportRow]:
    """Return exactly one row per lifecycle stage, in canonical order.

    Args:
        record: Validated lifecycle record.
        dynamic_placeholder: Marker written in the value column of ``dynamic``
            stages instead of a number.

    Returns:
        Ten :class:`ExportRow` mappings; stages in ``none`` mode are included
        with a value of ``0`` so exports stay rectangular.
    """

    rows: list[ExportRow] = []
    for stage_key, config in record.cycle_stages.items():
        value: float | str
        api_url = ""
        if isinstance(config, NoneConfig):
            value = 0
        elif isinstance(config, ApproximationConfig):
            raw = config.co2_eq_in_kg
            if isinstance(raw, float):
                value = raw
            else:
                value = coerce_non_negative(raw) or 0.0
        elif isinstance(config, DynamicConfig):
            value = dynamic_placeholder
            api_url = config.http_api_url
        else:
            assert_never(config)
        rows.append(
            ExportRow(
                serviceId=record.service_id,
                serviceName=record.name,
                serviceDescription=record.description,
                lifecycleStageKey=stage_key,
                lifecycleStageLabel=stage_label(stage_key),
                impactCalculationMode=config.impact_calculation_mode,
                co2EqInKg=value,
                httpApiUrl=api_url,
            )
        )
    return rows


def write_csv(rows: Iterable[ExportRow], stream: TextIO) -> int:
    """Write ``rows`` with a header line to ``stream``.

    Free-text fields are quoted as needed (embedded commas, quotes, newlines)
    using the ``csv`` module's RFC 4180 dialect.

    Returns:
        Number of data rows written.
    """

    writer = csv.DictWriter(
        stream, fieldnames=CSV_COLUMNS, lineterminator="\r\n", extrasaction="ignore"
    )
    writer.writeheader()
    count = 0
    for row in rows:
        writer.writerow(row)
        count += 1
    return count


def rows_to_csv(rows: Iterable[ExportRow]) -> str:
    """Return ``rows`` serialized as a CSV document."""

    buffer = io.StringIO(newline="")
    write_csv(rows, buffer)
    return buffer.getvalue()


def records_to_csv(
    records: Sequence[AIServiceLifecycleImpact],
    *,
    dynamic_placeholder: str = DYNAMIC_VALUE_PLACEHOLDER,
) -> str:
    """Return one CSV document holding the rows of every record in order."""

    rows: list[ExportRow] = []
    for record in records:
        rows.extend(to_rows(record, dynamic_placeholder=dynamic_placeholder))
    return rows_to_csv(rows)


def default_export_filename(
    record: AIServiceLifecycleImpact | None,
    *,
    fallback: str = FALLBACK_EXPORT_FILENAME,
) -> str:
    """Return ``<serviceId>_impact_export.csv`` or ``fallback`` when unnamed."""

    if record is None or not record.service_id.strip():
        return fallback
    return f"{record.service_id.strip()}_impact_export.csv"


def dump_record(
    record: AIServiceLifecycleImpact, *, schema_url: str = RECORD_SCHEMA_URL
) -> str:
    """Serialize ``record`` as the pretty-printed interchange JSON file.

    This is the only writer that emits dynamic-stage tokens in plaintext,
    since the file is the record itself and must round-trip.
    """

    payload = record.to_json_payload(reveal_secrets=True)
    payload.pop("$schema", None)
    document: dict[str, object] = {"$schema": schema_url}
    document.update(payload)
    return json.dumps(document, indent=2, ensure_ascii=False)
