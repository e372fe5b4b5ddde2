"""
Tour of the bindings: global strings, PropsSI, humid air, incompressibles,
REFPROP (when present), tabular backends and the low-level AbstractState API.

Sections that need optional parts of a CoolProp build print why they were
skipped instead of aborting the run.
"""

import time

from coolprop_ffi import (
    AbstractState,
    CoolPropFFIError,
    InputPair,
    Param,
    global_param_string,
    ha_props_si,
    props_si,
)

PRESSURE = 101_325.0


def section(title):
    print(f"*********** {title} *****************")


def humid_air_demo():
    w = ha_props_si("W", "T", 300.0, "P", PRESSURE, "R", 0.5)
    print(f"Humidity ratio of 50% rel. hum. air at 300 K, 101325 Pa: {w} kg_w/kg_da")
    rh = ha_props_si("R", "T", 300.0, "P", PRESSURE, "W", w)
    print(f"Relative humidity from last calculation: {rh} (fractional)")


def refprop_demo():
    print(f"REFPROP version: {global_param_string('REFPROP_version')}")
    with AbstractState("REFPROP", "WATER") as state:
        print(f"Critical temperature of water: {state.get(Param.T_CRITICAL)} K")
    boiling = props_si("T", "P", PRESSURE, "Q", 0.0, "REFPROP::WATER")
    print(f"Boiling temperature of water at 101325 Pa: {boiling} K")
    cp = props_si("C", "P", PRESSURE, "T", 300.0, "REFPROP::WATER")
    print(f"c_p of water at 101325 Pa and 300 K: {cp} J/kg/K")


def refprop_low_level_demo():
    with AbstractState("REFPROP", "METHANE&ETHANE") as state:
        state.set_fractions([0.2, 0.8])
        state.update(InputPair.QT, 1.0, 120.0)
        print(f"Vapor molar density: {state.get(Param.DMOLAR)} mol/m^3")


def main():
    start = time.perf_counter()

    section("INFORMATION")
    print(f"CoolProp version: {global_param_string('version')}")
    print(f"CoolProp gitrevision: {global_param_string('gitrevision')}")
    print(f"CoolProp Fluids: {global_param_string('FluidsList')}")

    section("HIGH LEVEL INTERFACE")
    with AbstractState("HEOS", "Water") as water:
        print(f"Critical temperature of water: {water.get(Param.T_CRITICAL)} K")
        boiling = props_si("T", "P", PRESSURE, "Q", 0.0, "Water")
        print(f"Boiling temperature of water at 101325 Pa: {boiling} K")
        water.update(InputPair.PT, PRESSURE, 300.0)
        print(f"Phase of water at 101325 Pa and 300 K: {water.phase()}")

    cp = props_si("C", "P", PRESSURE, "T", 300.0, "Water")
    print(f"c_p of water at 101325 Pa and 300 K: {cp} J/kg/K")
    cp_deriv = props_si("d(H)/d(T)|P", "P", PRESSURE, "T", 300.0, "Water")
    print(f"c_p of water (using derivatives) at 101325 Pa and 300 K: {cp_deriv} J/kg/K")

    section("HUMID AIR PROPERTIES")
    try:
        humid_air_demo()
    except CoolPropFFIError as exc:
        print(f"Humid air calculations unavailable: {exc}")

    section("INCOMPRESSIBLE FLUID AND BRINES")
    density = props_si("D", "T", 300.0, "P", PRESSURE, "INCOMP::MEG-50%")
    print(f"Density of 50% (mass) ethylene glycol/water at 300 K, 101325 Pa: {density} kg/m^3")
    viscosity = props_si("V", "T", 350.0, "P", PRESSURE, "INCOMP::TD12")
    print(f"Viscosity of Therminol D12 at 350 K, 101325 Pa: {viscosity} Pa-s")

    section("REFPROP")
    try:
        refprop_demo()
    except CoolPropFFIError as exc:
        print(f"REFPROP unavailable: {exc}")

    section("TABULAR BACKENDS")
    try:
        with AbstractState("BICUBIC&HEOS", "R245fa") as tabular:
            tabular.update(InputPair.PT, PRESSURE, 300.0)
            dmass = tabular.get(Param.DMASS)
        print(f"Mass density of refrigerant R245fa at 300 K, 101325 Pa: {dmass} kg/m^3")
    except CoolPropFFIError as exc:
        print(f"Tabular backend not available: {exc}")

    section("SATURATION DERIVATIVES (LOW-LEVEL INTERFACE)")
    with AbstractState("HEOS", "R245fa") as sat:
        sat.update(InputPair.PQ, PRESSURE, 0.0)
        print(f"First saturation derivative: {sat.first_saturation_deriv(Param.P, Param.T)} Pa/K")

    section("LOW-LEVEL INTERFACE")
    with AbstractState("HEOS", "Water&Ethanol") as mixture:
        mixture.set_fractions([0.5, 0.5])
        mixture.update(InputPair.PQ, PRESSURE, 1.0)
        print(f"Normal boiling point temperature of water and ethanol: {mixture.get(Param.T)} K")

    section("LOW-LEVEL INTERFACE (REFPROP)")
    try:
        refprop_low_level_demo()
    except CoolPropFFIError as exc:
        print(f"Skipping REFPROP low-level example: {exc}")

    print(f"Example completed in {time.perf_counter() - start:.3f} s")


if __name__ == "__main__":
    main()
