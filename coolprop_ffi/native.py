"""
Loading of the CoolProp shared library and declaration of its C surface.

The process holds one library object at a time. It is loaded lazily on first use
and may be replaced with :func:`set_library`, either to point at a specific
build or to install a stand-in that exposes the same entry points.
"""

from __future__ import annotations

import ctypes
import threading
from ctypes import POINTER, c_bool, c_char, c_char_p, c_double, c_int, c_long
from os import PathLike
from typing import Any

from coolprop_ffi.environment.library_locator import (
    candidate_library_paths,
    find_coolprop_library,
)
from coolprop_ffi.errors import LibraryNotFoundError, UnsupportedFeatureError
from coolprop_ffi.logging import get_logger

log = get_logger(__name__)

_LONG_P = POINTER(c_long)
_DOUBLE_P = POINTER(c_double)
_CHAR_BUF = POINTER(c_char)

# Trailing (errcode, message buffer, buffer length) shared by the AbstractState API
_ERR = (_LONG_P, _CHAR_BUF, c_long)

SIGNATURES: dict[str, tuple[Any, tuple[Any, ...]]] = {
    # High-level interface
    "PropsSI": (c_double, (c_char_p, c_char_p, c_double, c_char_p, c_double, c_char_p)),
    "Props1SI": (c_double, (c_char_p, c_char_p)),
    "PhaseSI": (
        c_long,
        (c_char_p, c_double, c_char_p, c_double, c_char_p, _CHAR_BUF, c_int),
    ),
    "HAPropsSI": (
        c_double,
        (c_char_p, c_char_p, c_double, c_char_p, c_double, c_char_p, c_double),
    ),
    "get_global_param_string": (c_long, (c_char_p, _CHAR_BUF, c_int)),
    "get_fluid_param_string": (c_long, (c_char_p, c_char_p, _CHAR_BUF, c_int)),
    "get_fluid_param_string_len": (c_int, (c_char_p, c_char_p)),
    "set_reference_stateS": (c_int, (c_char_p, c_char_p)),
    "get_param_index": (c_long, (c_char_p,)),
    "get_input_pair_index": (c_long, (c_char_p,)),
    # Configuration
    "set_config_string": (None, (c_char_p, c_char_p)),
    "set_config_double": (None, (c_char_p, c_double)),
    "set_config_bool": (None, (c_char_p, c_bool)),
    "get_config_bool": (c_int, (c_char_p, POINTER(c_bool))),
    "get_config_double": (c_int, (c_char_p, _DOUBLE_P)),
    "get_config_string": (c_int, (c_char_p, _CHAR_BUF, c_int)),
    # Low-level interface
    "AbstractState_factory": (c_long, (c_char_p, c_char_p, *_ERR)),
    "AbstractState_free": (None, (c_long, *_ERR)),
    "AbstractState_fluid_names": (None, (c_long, _CHAR_BUF, *_ERR)),
    "AbstractState_backend_name": (None, (c_long, _CHAR_BUF, *_ERR)),
    "AbstractState_fluid_param_string": (
        None,
        (c_long, c_char_p, _CHAR_BUF, c_long, *_ERR),
    ),
    "AbstractState_update": (None, (c_long, c_long, c_double, c_double, *_ERR)),
    "AbstractState_keyed_output": (c_double, (c_long, c_long, *_ERR)),
    "AbstractState_specify_phase": (None, (c_long, c_char_p, *_ERR)),
    "AbstractState_unspecify_phase": (None, (c_long, *_ERR)),
    "AbstractState_phase": (c_long, (c_long, *_ERR)),
    "AbstractState_saturated_liquid_keyed_output": (c_double, (c_long, c_long, *_ERR)),
    "AbstractState_saturated_vapor_keyed_output": (c_double, (c_long, c_long, *_ERR)),
    "AbstractState_keyed_output_satState": (
        c_double,
        (c_long, c_char_p, c_long, *_ERR),
    ),
    "AbstractState_first_saturation_deriv": (c_double, (c_long, c_long, c_long, *_ERR)),
    "AbstractState_first_partial_deriv": (
        c_double,
        (c_long, c_long, c_long, c_long, *_ERR),
    ),
    "AbstractState_second_partial_deriv": (
        c_double,
        (c_long, c_long, c_long, c_long, c_long, c_long, *_ERR),
    ),
    "AbstractState_first_two_phase_deriv": (
        c_double,
        (c_long, c_long, c_long, c_long, *_ERR),
    ),
    "AbstractState_first_two_phase_deriv_splined": (
        c_double,
        (c_long, c_long, c_long, c_long, c_double, *_ERR),
    ),
    "AbstractState_second_two_phase_deriv": (
        c_double,
        (c_long, c_long, c_long, c_long, c_long, c_long, *_ERR),
    ),
    "AbstractState_set_fractions": (None, (c_long, _DOUBLE_P, c_long, *_ERR)),
    "AbstractState_set_mass_fractions": (None, (c_long, _DOUBLE_P, c_long, *_ERR)),
    "AbstractState_get_mole_fractions": (
        None,
        (c_long, _DOUBLE_P, c_long, _LONG_P, *_ERR),
    ),
    "AbstractState_get_mass_fractions": (
        None,
        (c_long, _DOUBLE_P, c_long, _LONG_P, *_ERR),
    ),
    "AbstractState_get_mole_fractions_satState": (
        None,
        (c_long, c_char_p, _DOUBLE_P, c_long, _LONG_P, *_ERR),
    ),
    "AbstractState_get_fugacity": (c_double, (c_long, c_long, *_ERR)),
    "AbstractState_get_fugacity_coefficient": (c_double, (c_long, c_long, *_ERR)),
    "AbstractState_update_and_common_out": (
        None,
        (
            c_long, c_long, _DOUBLE_P, _DOUBLE_P, c_long,
            _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P,
            *_ERR,
        ),
    ),
    "AbstractState_update_and_1_out": (
        None,
        (c_long, c_long, _DOUBLE_P, _DOUBLE_P, c_long, c_long, _DOUBLE_P, *_ERR),
    ),
    "AbstractState_update_and_5_out": (
        None,
        (
            c_long, c_long, _DOUBLE_P, _DOUBLE_P, c_long, _LONG_P,
            _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P,
            *_ERR,
        ),
    ),
    "AbstractState_set_binary_interaction_double": (
        None,
        (c_long, c_long, c_long, c_char_p, c_double, *_ERR),
    ),
    "AbstractState_set_cubic_alpha_C": (
        None,
        (c_long, c_long, c_char_p, c_double, c_double, c_double, *_ERR),
    ),
    "AbstractState_set_fluid_parameter_double": (
        None,
        (c_long, c_long, c_char_p, c_double, *_ERR),
    ),
    "AbstractState_build_phase_envelope": (None, (c_long, c_char_p, *_ERR)),
    "AbstractState_get_phase_envelope_data_checkedMemory": (
        None,
        (
            c_long, c_long, c_long,
            _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P,
            _LONG_P, _LONG_P,
            *_ERR,
        ),
    ),
    "AbstractState_build_spinodal": (None, (c_long, *_ERR)),
    "AbstractState_get_spinodal_data": (
        None,
        (c_long, c_long, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, *_ERR),
    ),
    "AbstractState_all_critical_points": (
        None,
        (c_long, c_long, _DOUBLE_P, _DOUBLE_P, _DOUBLE_P, _LONG_P, *_ERR),
    ),
}

# Entry points that older or trimmed builds may not export
OPTIONAL_SYMBOLS: frozenset[str] = frozenset(
    {
        "get_config_bool",
        "get_config_double",
        "get_config_string",
        "get_fluid_param_string_len",
        "AbstractState_set_mass_fractions",
        "AbstractState_get_mass_fractions",
    },
)

_library: Any = None
_library_lock = threading.Lock()


def has_symbol(lib: Any, name: str) -> bool:
    """Whether ``lib`` exports the entry point ``name``."""
    try:
        getattr(lib, name)
    except AttributeError:
        return False
    return True


def require_symbol(lib: Any, name: str) -> Any:
    """Return the entry point ``name`` or raise :class:`UnsupportedFeatureError`."""
    try:
        return getattr(lib, name)
    except AttributeError as exc:
        raise UnsupportedFeatureError(name) from exc


def missing_symbols(lib: Any) -> list[str]:
    """Names from the declared C surface that ``lib`` does not export."""
    return [name for name in SIGNATURES if not has_symbol(lib, name)]


def declare_signatures(lib: ctypes.CDLL) -> ctypes.CDLL:
    """Attach ``argtypes``/``restype`` to every declared entry point ``lib`` exports."""
    for name, (restype, argtypes) in SIGNATURES.items():
        try:
            func = getattr(lib, name)
        except AttributeError:
            if name in OPTIONAL_SYMBOLS:
                log.debug("Optional CoolProp symbol %s is not exported", name)
            else:
                log.warning("CoolProp symbol %s is not exported by this build", name)
            continue
        func.restype = restype
        func.argtypes = list(argtypes)
    return lib


def _open(path: str) -> ctypes.CDLL:
    return declare_signatures(ctypes.CDLL(path))


def load_library(path: str | PathLike[str] | None = None) -> ctypes.CDLL:
    """
    Open the CoolProp shared library and declare its C signatures.

    Parameters
    ----------
    path : str or PathLike, optional
        Explicit library path. When omitted the library is located through
        :func:`coolprop_ffi.environment.library_locator.find_coolprop_library`.

    Raises
    ------
    LibraryNotFoundError
        If no candidate could be loaded.
    """
    if path is not None:
        try:
            lib = _open(str(path))
        except OSError as exc:
            raise LibraryNotFoundError([str(path)]) from exc
        log.info("Loaded CoolProp library from %s", path)
        return lib

    searched: list[str] = []
    for candidate in candidate_library_paths():
        searched.append(str(candidate))
        if not candidate.is_file():
            continue
        try:
            lib = _open(str(candidate))
        except OSError as exc:
            log.debug("Failed to load CoolProp candidate %s: %s", candidate, exc)
            continue
        log.info("Loaded CoolProp library from %s", candidate)
        return lib

    located = find_coolprop_library()
    if located is not None and located not in searched:
        searched.append(located)
        try:
            lib = _open(located)
        except OSError as exc:
            raise LibraryNotFoundError(searched) from exc
        log.info("Loaded CoolProp library from %s", located)
        return lib

    raise LibraryNotFoundError(searched)


def get_library() -> Any:
    """Return the process-wide library, loading it on first use."""
    global _library

    lib = _library
    if lib is not None:
        return lib
    with _library_lock:
        if _library is None:
            _library = load_library()
        return _library


def set_library(lib: Any) -> Any:
    """
    Install ``lib`` as the process-wide library and return the previous one.

    ``lib`` may be a :class:`ctypes.CDLL` prepared with :func:`declare_signatures`
    or any object exposing the same entry points. Passing None restores lazy
    loading. States created earlier keep the library they were created with.
    """
    global _library

    with _library_lock:
        previous = _library
        _library = lib
    log.debug("Installed CoolProp library object %r", lib)
    return previous


def resolve_library(lib: Any = None) -> Any:
    """``lib`` itself when given, otherwise the process-wide library."""
    return lib if lib is not None else get_library()


__all__ = [
    "OPTIONAL_SYMBOLS",
    "SIGNATURES",
    "declare_signatures",
    "get_library",
    "has_symbol",
    "load_library",
    "missing_symbols",
    "require_symbol",
    "resolve_library",
    "set_library",
]
