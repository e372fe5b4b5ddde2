"""
Query CoolProp from several threads at once.

Each task owns its AbstractState; states are never shared between threads.
"""

from concurrent.futures import ThreadPoolExecutor

from coolprop_ffi import AbstractState, InputPair, Param, props_si

WORKERS = 4


def warm_up():
    # Load the library and the Water EOS once before the pool starts
    props_si("P", "T", 300.0, "Q", 0.0, "Water")
    with AbstractState("HEOS", "Water") as state:
        state.update(InputPair.PT, 101_325.0, 300.0)
        state.get(Param.HMASS)


def worker(idx):
    temperature = 280.0 + idx * 10.0
    density = 3_000.0 + idx * 250.0
    pressure = props_si("P", "T", temperature, "Dmolar", density, "Water")
    with AbstractState("HEOS", "Water") as state:
        state.update(InputPair.PT, pressure, temperature)
        enthalpy = state.get(Param.HMASS)
    return idx, temperature, pressure, enthalpy


def main():
    print("*** Multithreaded CoolProp demo ***")
    print("Spawning workers that independently query thermodynamic properties.")
    warm_up()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        for idx, temperature, pressure, enthalpy in pool.map(worker, range(WORKERS)):
            print(
                f"Thread #{idx}: T={temperature:.2f} K, p={pressure:.2f} Pa, h={enthalpy:.2f} J/kg",
            )


if __name__ == "__main__":
    main()
