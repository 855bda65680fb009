"""Watch dynamic stage values evolve for a record file.

Every stage in ``dynamic`` mode receives a simulated value that grows on each
tick. The totals are re-aggregated from every published snapshot:

    python examples/dynamic_simulation_demo.py path/to/record.json --ticks 5

The API URL and token stored in the record are never contacted.
"""

from __future__ import annotations

import argparse
import asyncio

from carbon_lifecycle.aggregation import aggregate
from carbon_lifecycle.config_loader import load_config
from carbon_lifecycle.dynamic import (
    DynamicSimulationRuntime,
    DynamicValueState,
    SimulatedValueProvider,
)
from carbon_lifecycle.loader import load_record_file


async def _run(path: str, ticks: int, interval: float | None) -> None:
    record = load_record_file(path)
    config = load_config()
    simulation = config.simulation

    def _report(state: DynamicValueState) -> None:
        if state.service_id is None:
            return
        totals = aggregate(record, state)
        print(
            f"tick {state.ticks:>3}: operational={totals.operational_total:.3f} kg "
            f"embodied={totals.embodied_total:.3f} kg total={totals.grand_total:.3f} kg"
        )

    runtime = DynamicSimulationRuntime(
        provider=SimulatedValueProvider(
            simulation.seed,
            initial_range=(simulation.initial_min, simulation.initial_max),
            increment_range=(simulation.increment_min, simulation.increment_max),
        ),
        tick_seconds=interval or simulation.tick_seconds,
        on_update=_report,
    )
    await runtime.attach(record)
    if not record.has_dynamic_stages:
        print("Record has no dynamic stages; totals stay constant.")
        await runtime.detach()
        return
    try:
        while runtime.state.ticks < ticks:
            await asyncio.sleep(runtime.tick_seconds / 2)
    finally:
        await runtime.detach()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("record", help="Path to a lifecycle record JSON file.")
    parser.add_argument("--ticks", type=int, default=3)
    parser.add_argument(
        "--interval", type=float, help="Seconds between ticks (default from config)."
    )
    args = parser.parse_args()
    asyncio.run(_run(args.record, args.ticks, args.interval))


if __name__ == "__main__":
    main()
