"""Psychrometric (humid air) properties through CoolProp's ``HAPropsSI``."""

from __future__ import annotations

from typing import Any

from coolprop_ffi.buffers import to_c_string
from coolprop_ffi.high_level import check_finite_and_report_error
from coolprop_ffi.native import resolve_library


def ha_props_si(
    output: str,
    name1: str,
    prop1: float,
    name2: str,
    prop2: float,
    name3: str,
    prop3: float,
    *,
    library: Any = None,
) -> float:
    """
    Compute a humid-air property from three state inputs.

    Example: humidity ratio of air at 300 K, 1 atm and 50 % relative humidity::

        ha_props_si("W", "T", 300.0, "P", 101325.0, "R", 0.5)

    Raises
    ------
    EmbeddedNulError
        If any name contains a NUL byte.
    ComputationError
        If CoolProp returns a non-finite value.
    """
    lib = resolve_library(library)
    context = f"HAPropsSI({output!r}, ...)"
    value = lib.HAPropsSI(
        to_c_string(output, "output"),
        to_c_string(name1, "name1"),
        float(prop1),
        to_c_string(name2, "name2"),
        float(prop2),
        to_c_string(name3, "name3"),
        float(prop3),
    )
    return check_finite_and_report_error(value, context, lib)


__all__ = ["ha_props_si"]
