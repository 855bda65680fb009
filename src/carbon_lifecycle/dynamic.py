"""Dynamic stage value state, value providers and the tick scheduler.

``dynamic`` stages do not store a number in the record. Their value lives in
a :class:`DynamicValueState` snapshot that is produced by the pure
:func:`initial_state` / :func:`tick` transitions. The default provider is a
seeded simulation that yields a monotonically increasing value per stage; a
provider for a live data source can be swapped in through
:class:`DynamicValueProvider`.

SECURITY NOTICE
---------------
The simulated provider uses Python's non-cryptographic ``random.Random``. It
only produces placeholder figures for charts.
"""

from __future__ import annotations

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from carbon_lifecycle.schemas import AIServiceLifecycleImpact, DynamicConfig
from carbon_lifecycle.stages import LifecycleStageKey

LOGGER = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class DynamicValueState(Mapping[str, float]):
    """Immutable snapshot of simulated values for one record.

    The snapshot is itself a read-only mapping of stage key to value, so it
    can be handed straight to the resolver and aggregation functions.

    Attributes:
        service_id: Record the values belong to, ``None`` when detached.
        generation: Attachment counter; bumped whenever the record changes.
        ticks: Number of ticks applied since the record was attached.
        values: Current value per ``dynamic`` stage key, in kg CO₂e.
    """

    service_id: str | None = None
    generation: int = 0
    ticks: int = 0
    values: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __getitem__(self, stage_key: str) -> float:
        return self.values[stage_key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def value_for(self, stage_key: LifecycleStageKey) -> float:
        """Return the current value for ``stage_key`` (``0.0`` when unset)."""

        return self.values.get(stage_key, 0.0)


EMPTY_STATE = DynamicValueState()


class DynamicValueProvider(ABC):
    """Source of values for stages in ``dynamic`` mode."""

    @abstractmethod
    def initial_value(
        self, stage_key: LifecycleStageKey, config: DynamicConfig
    ) -> float:
        """Return the first value for a stage when a record is attached."""

    @abstractmethod
    def next_value(
        self, stage_key: LifecycleStageKey, config: DynamicConfig, previous: float
    ) -> float:
        """Return the value following ``previous`` for the next tick."""


class SimulatedValueProvider(DynamicValueProvider):
    """Random-walk stand-in for a live data source.

    Values start uniformly in ``initial_range`` and grow by an amount drawn
    uniformly from ``increment_range`` on every tick. The configured API URL
    and token are never contacted.
    """

    def __init__(
        self,
        seed: int | None = None,
        *,
        initial_range: tuple[float, float] = (1.0, 6.0),
        increment_range: tuple[float, float] = (0.1, 0.6),
    ) -> None:
        for low, high in (initial_range, increment_range):
            if low < 0 or high < low:
                raise ValueError(f"invalid simulation range: ({low}, {high})")
        self._rng = random.Random(seed)  # nosec B311
        self._initial_range = initial_range
        self._increment_range = increment_range

    def initial_value(
        self, stage_key: LifecycleStageKey, config: DynamicConfig
    ) -> float:
        _ = (stage_key, config)
        low, high = self._initial_range
        return low + self._rng.random() * (high - low)  # nosec B311

    def next_value(
        self, stage_key: LifecycleStageKey, config: DynamicConfig, previous: float
    ) -> float:
        _ = (stage_key, config)
        low, high = self._increment_range
        return previous + low + self._rng.random() * (high - low)  # nosec B311


def initial_state(
    record: AIServiceLifecycleImpact,
    provider: DynamicValueProvider,
    *,
    generation: int = 0,
) -> DynamicValueState:
    """Return a fresh snapshot with an initial value per ``dynamic`` stage."""

    values: dict[str, float] = {}
    for stage_key, config in record.cycle_stages.items():
        if isinstance(config, DynamicConfig):
            values[stage_key] = provider.initial_value(stage_key, config)
    return DynamicValueState(
        service_id=record.service_id,
        generation=generation,
        ticks=0,
        values=MappingProxyType(values),
    )


def tick(
    state: DynamicValueState,
    record: AIServiceLifecycleImpact,
    provider: DynamicValueProvider,
) -> DynamicValueState:
    """Advance ``state`` by one tick for ``record``.

    The result always fully replaces ``state``: a snapshot belonging to a
    different service is discarded in favour of :func:`initial_state`, stages
    that left ``dynamic`` mode are dropped, and stages that entered it start
    from an initial value.
    """

    if state.service_id != record.service_id:
        return initial_state(record, provider, generation=state.generation + 1)

    values: dict[str, float] = {}
    for stage_key, config in record.cycle_stages.items():
        if not isinstance(config, DynamicConfig):
            continue
        if stage_key in state.values:
            values[stage_key] = provider.next_value(
                stage_key, config, state.values[stage_key]
            )
        else:
            values[stage_key] = provider.initial_value(stage_key, config)
    return DynamicValueState(
        service_id=state.service_id,
        generation=state.generation,
        ticks=state.ticks + 1,
        values=MappingProxyType(values),
    )


@dataclass(slots=True)
class DynamicSimulationRuntime:
    """Schedule :func:`tick` for the active record on an asyncio loop.

    Only one record is active at a time. :meth:`attach` cancels the pending
    tick task of the previous record before anything else happens, and every
    tick checks the generation it was scheduled for, so a late timer can never
    write into a newer record's state.
    """

    provider: DynamicValueProvider = field(default_factory=SimulatedValueProvider)
    tick_seconds: float = DEFAULT_TICK_SECONDS
    on_update: Callable[[DynamicValueState], None] | None = None
    logger: logging.Logger = field(default=LOGGER)
    _record: AIServiceLifecycleImpact | None = field(init=False, default=None)
    _state: DynamicValueState = field(init=False, default=EMPTY_STATE)
    _generation: int = field(init=False, default=0)
    _task: asyncio.Task[None] | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        if self.tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")

    @property
    def state(self) -> DynamicValueState:
        """Current snapshot; :data:`EMPTY_STATE` when no record is attached."""

        return self._state

    @property
    def generation(self) -> int:
        """Generation of the currently attached record."""

        return self._generation

    @property
    def running(self) -> bool:
        """``True`` while a tick task is scheduled."""

        return self._task is not None and not self._task.done()

    async def attach(self, record: AIServiceLifecycleImpact) -> DynamicValueState:
        """Make ``record`` the active record and start ticking if needed.

        Returns:
            The initial snapshot for ``record``.
        """

        await self._cancel_task()
        self._generation += 1
        self._record = record
        self._state = initial_state(
            record, self.provider, generation=self._generation
        )
        self._publish()
        if record.has_dynamic_stages:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(
                self._tick_loop(self._generation),
                name=f"dynamic-ticks-{record.service_id}",
            )
        return self._state

    async def detach(self) -> None:
        """Stop ticking and discard the state of the active record."""

        await self._cancel_task()
        self._generation += 1
        self._record = None
        self._state = EMPTY_STATE
        self._publish()

    def apply_tick(self, generation: int) -> bool:
        """Apply one tick scheduled for ``generation``.

        Returns:
            ``False`` when the tick is stale (its record was replaced or
            detached) and therefore ignored, ``True`` otherwise.
        """

        record = self._record
        if record is None or generation != self._generation:
            self.logger.debug(
                "Discarding stale dynamic tick",
                extra={"tick_generation": generation, "active": self._generation},
            )
            return False
        self._state = tick(self._state, record, self.provider)
        self._publish()
        return True

    async def _tick_loop(self, generation: int) -> None:
        """Internal coroutine applying a tick every ``tick_seconds``."""

        while True:
            await asyncio.sleep(self.tick_seconds)
            try:
                applied = self.apply_tick(generation)
            except Exception:
                # Skipped; the next tick retries.
                self.logger.exception(
                    "Dynamic tick failed",
                    extra={"tick_generation": generation},
                )
                continue
            if not applied:
                return

    async def _cancel_task(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:  # pragma: no cover - cancellation path
            pass
        except Exception:
            self.logger.exception("Dynamic tick task ended with an error")

    def _publish(self) -> None:
        if self.on_update is not None:
            self.on_update(self._state)
