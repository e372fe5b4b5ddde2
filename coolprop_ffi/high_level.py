"""
CoolProp's high-level, handle-free entry points.

``PropsSI``-style functions report failure with a non-finite return value and
leave the reason in the global ``errstring`` parameter. String-valued queries
return a status flag and are retried with a larger buffer until the value fits.
"""

from __future__ import annotations

import ctypes
import math
from typing import Any

from coolprop_ffi.buffers import (
    GLOBAL_STRING_CEILING,
    buffer_capacities,
    decode_c_buffer,
    to_c_string,
)
from coolprop_ffi.errors import (
    ComputationError,
    CoolPropFFIError,
    CoolPropGlobalError,
    GlobalParameterError,
)
from coolprop_ffi.logging import get_logger
from coolprop_ffi.native import has_symbol, resolve_library

log = get_logger(__name__)

_ERRSTRING = b"errstring"

_REFERENCE_STATES: dict[str, str] = {
    "default": "DEF",
    "def": "DEF",
    "iir": "IIR",
    "ashrae": "ASHRAE",
    "nbp": "NBP",
}


def _read_errstring(lib: Any) -> str:
    buffer = ctypes.create_string_buffer(1024)
    lib.get_global_param_string(_ERRSTRING, buffer, len(buffer))
    return decode_c_buffer(buffer)


def global_param_string(param: str, *, library: Any = None) -> str:
    """
    Retrieve a global parameter string from CoolProp.

    Common parameters are ``"version"``, ``"gitrevision"``, ``"FluidsList"``,
    ``"incompressible_list_pure"``, ``"incompressible_list_solution"``,
    ``"REFPROP_version"`` and ``"errstring"`` (the most recent error message).

    Raises
    ------
    EmbeddedNulError
        If ``param`` contains a NUL byte.
    GlobalParameterError
        If the parameter is unknown or does not fit in 1 MiB.
    """
    lib = resolve_library(library)
    key = to_c_string(param, "param")
    for capacity in buffer_capacities(256, GLOBAL_STRING_CEILING):
        buffer = ctypes.create_string_buffer(capacity)
        status = lib.get_global_param_string(key, buffer, capacity)
        if status == 1:
            return decode_c_buffer(buffer)
    raise GlobalParameterError(param, _read_errstring(lib))


def check_finite_and_report_error(value: float, context: str, library: Any = None) -> float:
    """Return ``value`` if finite, otherwise raise with CoolProp's ``errstring``."""
    if math.isfinite(value):
        return float(value)
    try:
        message = global_param_string("errstring", library=library)
    except CoolPropFFIError:
        message = "unknown error"
    raise ComputationError(context, message)


def coolprop_global_error(context: str, library: Any = None) -> CoolPropGlobalError:
    """Build an error for ``context`` carrying the current ``errstring``."""
    try:
        message = global_param_string("errstring", library=library)
    except CoolPropFFIError:
        message = "unknown error"
    return CoolPropGlobalError(f"{context}: {message}")


def props_si(
    output: str,
    name1: str,
    prop1: float,
    name2: str,
    prop2: float,
    fluid: str,
    *,
    library: Any = None,
) -> float:
    """
    Compute a property with CoolProp's ``PropsSI``.

    Example: ``props_si("Hmass", "P", 101325.0, "T", 300.0, "Water")``.
    Non-finite results are raised as :class:`ComputationError`.
    """
    lib = resolve_library(library)
    context = f"PropsSI({output}, {name1}={prop1}, {name2}={prop2}, {fluid})"
    value = lib.PropsSI(
        to_c_string(output, "output"),
        to_c_string(name1, "name1"),
        float(prop1),
        to_c_string(name2, "name2"),
        float(prop2),
        to_c_string(fluid, "fluid"),
    )
    return check_finite_and_report_error(value, context, lib)


def props1_si(output: str, fluid: str, *, library: Any = None) -> float:
    """Trivial (state-independent) property such as ``Tcrit`` via ``Props1SI``."""
    lib = resolve_library(library)
    context = f"Props1SI({fluid}, {output})"
    output_c = to_c_string(output, "output")
    fluid_c = to_c_string(fluid, "fluid")
    value = lib.Props1SI(fluid_c, output_c)
    return check_finite_and_report_error(value, context, lib)


def fluid_param_string(fluid: str, param: str, *, library: Any = None) -> str:
    """Fluid metadata such as ``aliases`` or ``CAS`` via ``get_fluid_param_string``."""
    lib = resolve_library(library)
    fluid_c = to_c_string(fluid, "fluid")
    param_c = to_c_string(param, "param")
    context = f"get_fluid_param_string({fluid}, {param})"

    initial = 256
    if has_symbol(lib, "get_fluid_param_string_len"):
        required = int(lib.get_fluid_param_string_len(fluid_c, param_c))
        if required < 0:
            raise coolprop_global_error(context, lib)
        initial = max(required + 1, 256)

    for capacity in buffer_capacities(initial, GLOBAL_STRING_CEILING):
        buffer = ctypes.create_string_buffer(capacity)
        status = lib.get_fluid_param_string(fluid_c, param_c, buffer, capacity)
        if status == 1:
            return decode_c_buffer(buffer)
    raise coolprop_global_error(context, lib)


def phase_si(
    name1: str,
    prop1: float,
    name2: str,
    prop2: float,
    fluid: str,
    *,
    library: Any = None,
) -> str:
    """Short phase label (e.g. ``"liquid"``, ``"twophase"``) from ``PhaseSI``."""
    lib = resolve_library(library)
    name1_c = to_c_string(name1, "name1")
    name2_c = to_c_string(name2, "name2")
    fluid_c = to_c_string(fluid, "fluid")
    context = f"PhaseSI({name1}={prop1}, {name2}={prop2}, {fluid})"
    for capacity in buffer_capacities(64, 4096):
        buffer = ctypes.create_string_buffer(capacity)
        status = lib.PhaseSI(
            name1_c, float(prop1), name2_c, float(prop2), fluid_c, buffer, capacity,
        )
        if status == 1:
            return decode_c_buffer(buffer)
    raise coolprop_global_error(context, lib)


def normalize_reference_state(reference_state: str) -> str:
    state = reference_state.strip()
    return _REFERENCE_STATES.get(state.lower(), state)


def set_reference_state(fluid: str, reference_state: str, *, library: Any = None) -> None:
    """
    Set the reference-state convention for a fluid.

    Accepts ``"IIR"``, ``"ASHRAE"``, ``"NBP"`` and ``"DEF"`` case-insensitively;
    ``"default"`` is a synonym for ``"DEF"``.
    """
    lib = resolve_library(library)
    state = normalize_reference_state(reference_state)
    fluid_c = to_c_string(fluid, "fluid")
    state_c = to_c_string(state, "reference_state")
    status = lib.set_reference_stateS(fluid_c, state_c)
    if status != 1:
        raise coolprop_global_error(f"set_reference_state({fluid}, {state})", lib)
    log.debug("Reference state of %s set to %s", fluid, state)


__all__ = [
    "check_finite_and_report_error",
    "coolprop_global_error",
    "fluid_param_string",
    "global_param_string",
    "normalize_reference_state",
    "phase_si",
    "props1_si",
    "props_si",
    "set_reference_state",
]
