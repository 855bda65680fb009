"""Canonical lifecycle stage identifiers, categories and display text."""

from __future__ import annotations

from typing import Final, Literal, get_args

LifecycleStageKey = Literal[
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
]
StageCategory = Literal["operational", "embodied"]

LIFECYCLE_STAGE_KEYS: Final[tuple[LifecycleStageKey, ...]] = get_args(
    LifecycleStageKey
)

SOFTWARE_STAGE_KEYS: Final[tuple[LifecycleStageKey, ...]] = (
    "businessUseCaseGeneration",
    "dataHandling",
    "modelArchitectureExploration",
    "modelTraining",
    "modelOperation",
    "modelEndOfLife",
)

HARDWARE_STAGE_KEYS: Final[tuple[LifecycleStageKey, ...]] = (
    "materialExtraction",
    "hardwareManufacturing",
    "hardwareTransport",
    "AISystemInstallation",
)

STAGE_LABELS: Final[dict[LifecycleStageKey, str]] = {
    "businessUseCaseGeneration": "Business Use Case Generation",
    "dataHandling": "Data Handling",
    "modelArchitectureExploration": "Model Architecture Exploration",
    "modelTraining": "Model Training",
    "modelOperation": "Model Operation (Inference)",
    "modelEndOfLife": "Model End-of-Life",
    "materialExtraction": "Material Extraction",
    "hardwareManufacturing": "Hardware Manufacturing",
    "hardwareTransport": "Hardware Transport",
    "AISystemInstallation": "AI System Installation",
}

SOFTWARE_STAGE_DESCRIPTIONS: Final[dict[LifecycleStageKey, str]] = {
    "businessUseCaseGeneration": (
        "CO₂ emissions from activities clarifying and detailing business "
        "requirements for promising AI services (for example video meetings)."
    ),
    "dataHandling": (
        "Emissions from data ingestion, cleaning, transformation, and storage "
        "operations."
    ),
    "modelArchitectureExploration": (
        "CO₂ impact from running multiple experiments (pre-training runs) to "
        "compare and validate model architectures."
    ),
    "modelTraining": (
        "Emissions due to GPU/CPU usage during full-scale training and "
        "periodic retraining."
    ),
    "modelOperation": (
        "Emitted CO₂ from idle and inference workloads during deployment, use "
        "and monitoring of an AI service."
    ),
    "modelEndOfLife": (
        "Emissions from archiving and decommissioning model infrastructure "
        "and resources."
    ),
}

HARDWARE_STAGE_DESCRIPTIONS: Final[dict[LifecycleStageKey, str]] = {
    "materialExtraction": (
        "CO₂ emissions from mining and refining ores into metals for AI "
        "hardware components."
    ),
    "hardwareManufacturing": (
        "Impact of fabricating servers, chips, racks, and cooling "
        "infrastructure from raw or pre-processed materials."
    ),
    "hardwareTransport": (
        "Emissions generated by shipping hardware and parts from factories to "
        "data centers or edge sites."
    ),
    "AISystemInstallation": (
        "Energy and CO₂ from rack assembly, cabling, and initial power-up "
        "during hardware installation."
    ),
}

_CATEGORY_BY_KEY: Final[dict[LifecycleStageKey, StageCategory]] = {
    **{key: "operational" for key in SOFTWARE_STAGE_KEYS},
    **{key: "embodied" for key in HARDWARE_STAGE_KEYS},
}


def stage_category(stage_key: LifecycleStageKey) -> StageCategory:
    """Return the impact category a stage contributes to.

    Raises:
        KeyError: If ``stage_key`` is not a canonical stage identifier.
    """

    return _CATEGORY_BY_KEY[stage_key]


def stage_label(stage_key: str) -> str:
    """Return the display label for ``stage_key``, falling back to the key."""

    return STAGE_LABELS.get(stage_key, stage_key)  # type: ignore[call-overload]


def get_stage_description(stage_key: LifecycleStageKey) -> str | None:
    """Return the guidance text shown for a stage in the editor."""

    return SOFTWARE_STAGE_DESCRIPTIONS.get(
        stage_key
    ) or HARDWARE_STAGE_DESCRIPTIONS.get(stage_key)


def is_stage_key(value: object) -> bool:
    """Return ``True`` when ``value`` is one of the canonical stage keys."""

    return isinstance(value, str) and value in _CATEGORY_BY_KEY
