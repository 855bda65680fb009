"""State machine behind the create/edit workflow for lifecycle records.

The workflow is an explicit value: :class:`WizardState` is immutable and
:func:`reduce` returns a new state for every action. Steps run
Entry → Metadata → Hardware stages → Software stages → Export, and the
hardware step is skipped in both directions when hardware is excluded.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Union, assert_never

from pydantic import ValidationError

from carbon_lifecycle.errors import RecordValidationError, WizardStateError
from carbon_lifecycle.loader import format_validation_error
from carbon_lifecycle.schemas import (
    AIServiceLifecycleImpact,
    CycleStages,
    ImpactConfig,
    NoneConfig,
    default_cycle_stages,
)
from carbon_lifecycle.stages import HARDWARE_STAGE_KEYS, LifecycleStageKey


class WizardStep(IntEnum):
    """Screens of the editing workflow, in order."""

    ENTRY = 0
    METADATA = 1
    HARDWARE_STAGES = 2
    SOFTWARE_STAGES = 3
    EXPORT = 4


@dataclass(frozen=True, slots=True)
class WizardState:
    """Everything the editor knows about the record being built."""

    step: WizardStep = WizardStep.ENTRY
    service_id: str = ""
    name: str = ""
    description: str = ""
    include_hardware: bool | None = None
    cycle_stages: CycleStages = field(default_factory=default_cycle_stages)
    is_editing: bool = False
    default_filename: str = ""


@dataclass(frozen=True, slots=True)
class SetStep:
    step: int


@dataclass(frozen=True, slots=True)
class LoadRecord:
    """Start editing an existing record (jumps to the metadata step)."""

    record: AIServiceLifecycleImpact


@dataclass(frozen=True, slots=True)
class UpdateMetadata:
    """Overwrite the metadata fields that are not ``None``."""

    service_id: str | None = None
    name: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class SetIncludeHardware:
    include_hardware: bool


@dataclass(frozen=True, slots=True)
class UpdateCycleStage:
    stage_key: LifecycleStageKey
    config: ImpactConfig


@dataclass(frozen=True, slots=True)
class ResetForm:
    pass


@dataclass(frozen=True, slots=True)
class SetDefaultFilename:
    filename: str


@dataclass(frozen=True, slots=True)
class NextStep:
    pass


@dataclass(frozen=True, slots=True)
class PreviousStep:
    pass


WizardAction = Union[
    SetStep,
    LoadRecord,
    UpdateMetadata,
    SetIncludeHardware,
    UpdateCycleStage,
    ResetForm,
    SetDefaultFilename,
    NextStep,
    PreviousStep,
]


def next_step(state: WizardState) -> WizardStep:
    """Return the step that follows ``state.step``.

    Raises:
        WizardStateError: When already on the export step.
    """

    if state.step == WizardStep.METADATA and not state.include_hardware:
        return WizardStep.SOFTWARE_STAGES
    if state.step == WizardStep.EXPORT:
        raise WizardStateError("export is the last step")
    return WizardStep(state.step + 1)


def previous_step(state: WizardState) -> WizardStep:
    """Return the step that precedes the current one.

    Raises:
        WizardStateError: When already on the entry step.
    """

    if state.step == WizardStep.SOFTWARE_STAGES and not state.include_hardware:
        return WizardStep.METADATA
    if state.step == WizardStep.ENTRY:
        raise WizardStateError("entry is the first step")
    return WizardStep(state.step - 1)


def reduce(state: WizardState, action: WizardAction) -> WizardState:
    """Return the state that results from applying ``action`` to ``state``.

    Raises:
        WizardStateError: For transitions outside the step range.
    """

    if isinstance(action, SetStep):
        try:
            step = WizardStep(action.step)
        except ValueError as exc:
            raise WizardStateError(f"unknown wizard step: {action.step}") from exc
        return replace(state, step=step)
    if isinstance(action, LoadRecord):
        record = action.record
        return replace(
            state,
            step=WizardStep.METADATA,
            service_id=record.service_id,
            name=record.name,
            description=record.description,
            cycle_stages=record.cycle_stages,
            include_hardware=record.includes_hardware,
            is_editing=True,
        )
    if isinstance(action, UpdateMetadata):
        return replace(
            state,
            service_id=(
                state.service_id if action.service_id is None else action.service_id
            ),
            name=state.name if action.name is None else action.name,
            description=(
                state.description
                if action.description is None
                else action.description
            ),
        )
    if isinstance(action, SetIncludeHardware):
        return replace(state, include_hardware=action.include_hardware)
    if isinstance(action, UpdateCycleStage):
        return replace(
            state,
            cycle_stages=state.cycle_stages.replace_stage(
                action.stage_key, action.config
            ),
        )
    if isinstance(action, ResetForm):
        return WizardState()
    if isinstance(action, SetDefaultFilename):
        return replace(state, default_filename=action.filename)
    if isinstance(action, NextStep):
        return replace(state, step=next_step(state))
    if isinstance(action, PreviousStep):
        return replace(state, step=previous_step(state))
    assert_never(action)


def to_record(state: WizardState) -> AIServiceLifecycleImpact:
    """Build the validated record described by ``state``.

    Hardware stages are written as ``none`` when hardware was explicitly
    excluded.

    Raises:
        WizardStateError: If no service id has been entered yet.
        RecordValidationError: If the collected values fail validation.
    """

    if not state.service_id.strip():
        raise WizardStateError("a service id is required before exporting")
    stages = state.cycle_stages
    if state.include_hardware is False:
        for stage_key in HARDWARE_STAGE_KEYS:
            stages = stages.replace_stage(stage_key, NoneConfig())
    try:
        return AIServiceLifecycleImpact(
            service_id=state.service_id,
            name=state.name,
            description=state.description,
            cycle_stages=stages,
        )
    except ValidationError as exc:
        raise RecordValidationError("wizard", format_validation_error(exc)) from exc


def export_filename(state: WizardState) -> str:
    """Return the JSON file name offered on the export step."""

    stem = state.default_filename.strip() or "ai_service_config"
    return stem if stem.endswith(".json") else f"{stem}.json"
