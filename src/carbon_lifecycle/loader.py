"""Parse and validate lifecycle records from JSON text or files.

Single-record helpers raise :class:`RecordValidationError`. Batch helpers
accumulate failures and keep going so that one bad file never blocks the
valid ones.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from carbon_lifecycle.errors import BatchLoadError, RecordValidationError
from carbon_lifecycle.schemas import AIServiceLifecycleImpact

LOGGER = logging.getLogger(__name__)

__all__ = [
    "BatchLoadResult",
    "format_validation_error",
    "load_batch",
    "load_files",
    "load_record_file",
    "parse_record",
]


def format_validation_error(exc: ValidationError) -> list[str]:
    """Turn a pydantic error into ``field.path: message`` lines."""

    problems: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return problems


def parse_record(
    payload: str | bytes | Mapping[str, object], source: str = "<memory>"
) -> AIServiceLifecycleImpact:
    """Validate ``payload`` against the strict record schema.

    Args:
        payload: Raw JSON text or an already decoded mapping.
        source: Name used in error messages, usually the file name.

    Returns:
        The validated, immutable record.

    Raises:
        RecordValidationError: If the JSON is malformed or the structure does
            not match the schema (missing, unknown or mistyped fields).
    """

    data: object
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise RecordValidationError(
                source,
                [f"invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"],
            ) from exc
        except UnicodeDecodeError as exc:
            raise RecordValidationError(source, [f"invalid encoding: {exc}"]) from exc
    else:
        data = payload

    if not isinstance(data, Mapping):
        raise RecordValidationError(
            source, ["top-level JSON value must be an object"]
        )

    try:
        return AIServiceLifecycleImpact.model_validate(dict(data))
    except ValidationError as exc:
        raise RecordValidationError(source, format_validation_error(exc)) from exc


def load_record_file(path: str | Path) -> AIServiceLifecycleImpact:
    """Read and validate the record stored at ``path``.

    Raises:
        RecordValidationError: If the file cannot be read or is invalid.
    """

    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise RecordValidationError(
            file_path.name, [f"unreadable file: {exc}"]
        ) from exc
    return parse_record(text, source=file_path.name)


@dataclass(frozen=True, slots=True)
class BatchLoadResult:
    """Outcome of loading several files at once.

    Attributes:
        records: Admitted records in upload order, unique by service id.
        errors: One entry per rejected file.
    """

    records: tuple[AIServiceLifecycleImpact, ...]
    errors: tuple[RecordValidationError, ...]

    @property
    def ok(self) -> bool:
        """``True`` when every file was admitted."""

        return not self.errors

    def error_summary(self) -> str | None:
        """Return one message covering every rejected file, or ``None``."""

        if not self.errors:
            return None
        return str(BatchLoadError(self.errors))

    def raise_for_errors(self) -> None:
        """Raise :class:`BatchLoadError` when any file was rejected."""

        if self.errors:
            raise BatchLoadError(self.errors)


def load_batch(
    sources: Iterable[tuple[str, str | bytes]],
    existing: Iterable[AIServiceLifecycleImpact] = (),
) -> BatchLoadResult:
    """Validate several ``(name, text)`` sources, admitting the valid ones.

    A record whose ``serviceId`` is already present (in ``existing`` or earlier
    in the batch) replaces the earlier record at its original position.

    Args:
        sources: Pairs of file name and raw JSON text, in upload order.
        existing: Records already admitted before this batch.

    Returns:
        :class:`BatchLoadResult` with the merged records and collected errors.
    """

    admitted: dict[str, AIServiceLifecycleImpact] = {
        record.service_id: record for record in existing
    }
    errors: list[RecordValidationError] = []
    for name, text in sources:
        try:
            record = parse_record(text, source=name)
        except RecordValidationError as exc:
            _reject(errors, exc)
            continue
        _admit(admitted, record, name)
    return BatchLoadResult(records=tuple(admitted.values()), errors=tuple(errors))


def load_files(
    paths: Iterable[str | Path],
    existing: Iterable[AIServiceLifecycleImpact] = (),
) -> BatchLoadResult:
    """Load several record files with accumulate-and-continue semantics.

    Unreadable files are reported alongside invalid ones, in path order.
    """

    admitted: dict[str, AIServiceLifecycleImpact] = {
        record.service_id: record for record in existing
    }
    errors: list[RecordValidationError] = []
    for path in paths:
        try:
            record = load_record_file(path)
        except RecordValidationError as exc:
            _reject(errors, exc)
            continue
        _admit(admitted, record, Path(path).name)
    return BatchLoadResult(records=tuple(admitted.values()), errors=tuple(errors))


def _admit(
    admitted: dict[str, AIServiceLifecycleImpact],
    record: AIServiceLifecycleImpact,
    source: str,
) -> None:
    if record.service_id in admitted:
        LOGGER.info(
            "Replacing service %s with upload from %s", record.service_id, source
        )
    admitted[record.service_id] = record


def _reject(errors: list[RecordValidationError], exc: RecordValidationError) -> None:
    LOGGER.warning(
        "Rejected record file %s", exc.source, extra={"problems": list(exc.problems)}
    )
    errors.append(exc)
