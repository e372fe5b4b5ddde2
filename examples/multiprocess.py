"""
Run independent CoolProp workloads in separate processes.

Every worker process loads its own copy of the shared library, so no
CoolProp state crosses a process boundary; only plain text results do.
"""

import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass

from coolprop_ffi import AbstractState, InputPair, Param

WORKERS = 4


@dataclass(frozen=True)
class Scenario:
    pressure: float  # Pa
    temperature: float  # K


def scenarios_for(worker_id):
    return [
        Scenario(90_000.0 + 2_500.0 * worker_id, 280.0 + 5.0 * worker_id),
        Scenario(101_325.0 + 5_000.0 * worker_id, 295.0 + 2.5 * worker_id),
        Scenario(120_000.0 + 3_000.0 * worker_id, 340.0 + 3.0 * worker_id),
    ]


def run_worker(worker_id):
    lines = []
    with AbstractState("HEOS", "Water") as state:
        for scenario in scenarios_for(worker_id):
            state.update(InputPair.PT, scenario.pressure, scenario.temperature)
            density = state.get(Param.DMASS)
            enthalpy = state.get(Param.HMASS)
            lines.append(
                f"worker {worker_id}: T = {scenario.temperature:.2f} K, "
                f"P = {scenario.pressure:.2f} Pa -> phase {state.phase()}, "
                f"density = {density:.4f} kg/m^3, enthalpy = {enthalpy:.2f} J/kg",
            )
    # Stagger completion so concurrent runs are visible
    time.sleep(0.15 * worker_id)
    return "\n".join(lines)


def main():
    print(f"Launching {WORKERS} worker processes...")
    with ProcessPoolExecutor(max_workers=WORKERS) as pool:
        for worker_id, output in enumerate(pool.map(run_worker, range(WORKERS))):
            print(f"--- worker {worker_id} output ---")
            print(output)
    print("All worker processes finished successfully.")


if __name__ == "__main__":
    main()
