"""Pydantic models describing the persisted AI service lifecycle record."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Final, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    SerializationInfo,
    field_serializer,
    field_validator,
)

from carbon_lifecycle.stages import (
    HARDWARE_STAGE_KEYS,
    LIFECYCLE_STAGE_KEYS,
    LifecycleStageKey,
)

ImpactMode = Literal["none", "approximation", "dynamic"]
IMPACT_MODES: Final[tuple[ImpactMode, ...]] = ("none", "approximation", "dynamic")

RECORD_SCHEMA_URL: Final[str] = "https://example.com/schemas/cgsaem.schema.json"

_STRICT_FROZEN = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class NoneConfig(BaseModel):
    """Stage without any impact estimate; contributes nothing to totals."""

    model_config = _STRICT_FROZEN

    impact_calculation_mode: Literal["none"] = Field(
        default="none", alias="impactCalculationMode"
    )


class ApproximationConfig(BaseModel):
    """Stage carrying a manually entered CO₂ estimate."""

    model_config = _STRICT_FROZEN

    impact_calculation_mode: Literal["approximation"] = Field(
        default="approximation", alias="impactCalculationMode"
    )
    co2_eq_in_kg: float | str | None = Field(
        ...,
        alias="co2EqInKg",
        description=(
            "Estimated emissions in kilograms of CO₂e. Negative, non-finite or "
            "non-numeric values are admitted but resolve to zero during "
            "aggregation."
        ),
    )

    @field_validator("co2_eq_in_kg", mode="before")
    @classmethod
    def _keep_raw_scalar(cls, value: object) -> object:
        """Keep booleans as text so they are not read as 0 or 1."""

        if isinstance(value, bool):
            return str(value).lower()
        return value


class DynamicConfig(BaseModel):
    """Stage whose value comes from an external source at evaluation time."""

    model_config = _STRICT_FROZEN

    impact_calculation_mode: Literal["dynamic"] = Field(
        default="dynamic", alias="impactCalculationMode"
    )
    http_api_url: str = Field(..., alias="httpApiUrl")
    token: SecretStr = Field(..., description="Credential for the data source.")

    @field_serializer("token", when_used="json")
    def _serialize_token(self, token: SecretStr, info: SerializationInfo) -> str:
        """Mask the token unless the caller explicitly asks for secrets."""

        context = info.context or {}
        if isinstance(context, dict) and context.get("reveal_secrets"):
            return token.get_secret_value()
        return str(token)


ImpactConfig = Annotated[
    Union[NoneConfig, ApproximationConfig, DynamicConfig],
    Field(discriminator="impact_calculation_mode"),
]


class CycleStages(BaseModel):
    """Total mapping from every lifecycle stage key to its impact config."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    businessUseCaseGeneration: ImpactConfig
    dataHandling: ImpactConfig
    modelArchitectureExploration: ImpactConfig
    modelTraining: ImpactConfig
    modelOperation: ImpactConfig
    modelEndOfLife: ImpactConfig
    materialExtraction: ImpactConfig
    hardwareManufacturing: ImpactConfig
    hardwareTransport: ImpactConfig
    AISystemInstallation: ImpactConfig

    def get(self, stage_key: LifecycleStageKey) -> ImpactConfig:
        """Return the configuration stored for ``stage_key``."""

        if stage_key not in LIFECYCLE_STAGE_KEYS:
            raise KeyError(stage_key)
        config: ImpactConfig = getattr(self, stage_key)
        return config

    def items(self) -> Iterator[tuple[LifecycleStageKey, ImpactConfig]]:
        """Yield ``(stage_key, config)`` pairs in canonical stage order."""

        for stage_key in LIFECYCLE_STAGE_KEYS:
            yield stage_key, self.get(stage_key)

    def replace_stage(
        self, stage_key: LifecycleStageKey, config: ImpactConfig
    ) -> CycleStages:
        """Return a copy with ``stage_key`` bound to ``config``."""

        if stage_key not in LIFECYCLE_STAGE_KEYS:
            raise KeyError(stage_key)
        return self.model_copy(update={stage_key: config})


class AIServiceLifecycleImpact(BaseModel):
    """Immutable lifecycle impact record for a single AI service."""

    model_config = _STRICT_FROZEN

    schema_url: str | None = Field(default=None, alias="$schema")
    service_id: str = Field(..., alias="serviceId", min_length=1)
    name: str
    description: str
    cycle_stages: CycleStages = Field(..., alias="cycleStages")

    @field_validator("service_id")
    @classmethod
    def _reject_blank_service_id(cls, value: str) -> str:
        """Reject identifiers made only of whitespace."""

        if not value.strip():
            raise ValueError("serviceId must not be blank")
        return value

    def dynamic_stage_keys(self) -> tuple[LifecycleStageKey, ...]:
        """Return the stage keys configured in ``dynamic`` mode."""

        return tuple(
            key
            for key, config in self.cycle_stages.items()
            if isinstance(config, DynamicConfig)
        )

    @property
    def has_dynamic_stages(self) -> bool:
        """``True`` when at least one stage is evaluated dynamically."""

        return bool(self.dynamic_stage_keys())

    @property
    def includes_hardware(self) -> bool:
        """``True`` when any hardware stage carries an impact configuration."""

        return any(
            not isinstance(self.cycle_stages.get(key), NoneConfig)
            for key in HARDWARE_STAGE_KEYS
        )

    def to_json_payload(self, *, reveal_secrets: bool = False) -> dict[str, object]:
        """Return the JSON-ready mapping using the persisted key names.

        Args:
            reveal_secrets: Write dynamic-stage tokens in plaintext. Only the
                record file itself should be written this way.
        """

        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            context={"reveal_secrets": reveal_secrets},
        )


def default_impact_config(mode: ImpactMode = "none") -> ImpactConfig:
    """Return an empty configuration for ``mode``."""

    if mode == "approximation":
        return ApproximationConfig(co2_eq_in_kg=0.0)
    if mode == "dynamic":
        return DynamicConfig(http_api_url="", token=SecretStr(""))
    return NoneConfig()


def default_cycle_stages() -> CycleStages:
    """Return cycle stages with every stage set to ``none``."""

    return CycleStages.model_validate(
        {key: {"impactCalculationMode": "none"} for key in LIFECYCLE_STAGE_KEYS}
    )
