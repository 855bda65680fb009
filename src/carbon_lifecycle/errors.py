"""Exception hierarchy for :mod:`carbon_lifecycle`."""

from __future__ import annotations

from collections.abc import Sequence


class LifecycleImpactError(Exception):
    """Base class for all errors raised by the lifecycle impact engine."""


class RecordValidationError(LifecycleImpactError):
    """Raised when a record fails structural validation.

    Attributes:
        source: Name of the file (or other origin) the record was read from.
        problems: Field-level messages describing each violation.
    """

    def __init__(self, source: str, problems: Sequence[str]) -> None:
        self.source = source
        self.problems: tuple[str, ...] = tuple(problems)
        detail = "; ".join(self.problems) if self.problems else "invalid record"
        super().__init__(f"{source}: {detail}")


class BatchLoadError(LifecycleImpactError):
    """Raised when one or more files of a batch could not be admitted."""

    def __init__(self, failures: Sequence[RecordValidationError]) -> None:
        self.failures: tuple[RecordValidationError, ...] = tuple(failures)
        lines = [f"Error processing {failure}" for failure in self.failures]
        super().__init__("\n".join(lines))


class WizardStateError(LifecycleImpactError):
    """Raised when the editing wizard is asked for an impossible transition."""
