"""coolprop_ffi: memory-safe ctypes bindings for CoolProp's C API."""
from __future__ import annotations

from coolprop_ffi.abstract_state import (
    AbstractState,
    BatchCommonOutputs,
    CriticalPoint,
    PhaseEnvelope,
    SpinodalCurve,
)
from coolprop_ffi.config import (
    get_config_bool,
    get_config_double,
    get_config_string,
    set_config_bool,
    set_config_double,
    set_config_string,
    set_refprop_path,
)
from coolprop_ffi.errors import (
    BufferLimitError,
    ComputationError,
    CoolPropError,
    CoolPropFFIError,
    CoolPropGlobalError,
    EmbeddedNulError,
    GlobalParameterError,
    InvalidInputError,
    LibraryNotFoundError,
    StateClosedError,
    UnknownPhaseCodeError,
    UnsupportedFeatureError,
)
from coolprop_ffi.high_level import (
    fluid_param_string,
    global_param_string,
    phase_si,
    props1_si,
    props_si,
    set_reference_state,
)
from coolprop_ffi.humid_air import ha_props_si
from coolprop_ffi.indices import InputPair, Param, Phase
from coolprop_ffi.logging import get_logger
from coolprop_ffi.native import get_library, load_library, set_library

__version__ = "0.1.0"

log = get_logger(__name__)

__all__ = [
    "AbstractState",
    "BatchCommonOutputs",
    "BufferLimitError",
    "ComputationError",
    "CoolPropError",
    "CoolPropFFIError",
    "CoolPropGlobalError",
    "CriticalPoint",
    "EmbeddedNulError",
    "GlobalParameterError",
    "InputPair",
    "InvalidInputError",
    "LibraryNotFoundError",
    "Param",
    "Phase",
    "PhaseEnvelope",
    "SpinodalCurve",
    "StateClosedError",
    "UnknownPhaseCodeError",
    "UnsupportedFeatureError",
    "fluid_param_string",
    "get_config_bool",
    "get_config_double",
    "get_config_string",
    "get_library",
    "global_param_string",
    "ha_props_si",
    "load_library",
    "phase_si",
    "props1_si",
    "props_si",
    "set_config_bool",
    "set_config_double",
    "set_config_string",
    "set_library",
    "set_reference_state",
    "set_refprop_path",
]
