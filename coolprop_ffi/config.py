"""
Global CoolProp configuration.

Configuration values change the behaviour of every subsequent CoolProp call in
the process. Changing them is **not thread-safe**: do it during initialisation,
or while no other thread is querying CoolProp.

The setters return nothing from the native side, so failures are detected by
clearing ``errstring`` before the call and reading it back afterwards.
"""

from __future__ import annotations

import contextlib
import ctypes
import os
from collections.abc import Callable
from typing import Any

from coolprop_ffi.buffers import (
    GLOBAL_STRING_CEILING,
    buffer_capacities,
    decode_c_buffer,
    to_c_string,
)
from coolprop_ffi.errors import CoolPropGlobalError, GlobalParameterError
from coolprop_ffi.high_level import coolprop_global_error, global_param_string
from coolprop_ffi.logging import get_logger
from coolprop_ffi.native import require_symbol, resolve_library

log = get_logger(__name__)

REFPROP_PATH_KEY = "ALTERNATIVE_REFPROP_PATH"


def _config_call(action: Callable[[], Any], context: str, lib: Any) -> None:
    # Reading errstring also clears it; a failure here is reported by the second read.
    with contextlib.suppress(GlobalParameterError):
        global_param_string("errstring", library=lib)
    action()
    after = global_param_string("errstring", library=lib)
    if after:
        raise CoolPropGlobalError(f"{context}: {after}")


def set_config_string(key: str, value: str, *, library: Any = None) -> None:
    """
    Set a string-valued configuration parameter.

    Common keys: ``ALTERNATIVE_REFPROP_PATH``, ``ALTERNATIVE_TABLES_DIRECTORY``,
    ``FLOAT_PUNCTUATION``.
    """
    lib = resolve_library(library)
    key_c = to_c_string(key, "config key")
    value_c = to_c_string(value, "config value")
    _config_call(
        lambda: lib.set_config_string(key_c, value_c),
        f"set_config_string({key})",
        lib,
    )
    log.debug("CoolProp config %s set", key)


def set_config_double(key: str, value: float, *, library: Any = None) -> None:
    """Set a floating-point configuration parameter, e.g. ``SPINODAL_MINIMUM_DELTA``."""
    lib = resolve_library(library)
    key_c = to_c_string(key, "config key")
    _config_call(
        lambda: lib.set_config_double(key_c, float(value)),
        f"set_config_double({key})",
        lib,
    )
    log.debug("CoolProp config %s set to %s", key, value)


def set_config_bool(key: str, value: bool, *, library: Any = None) -> None:
    """Set a boolean configuration parameter, e.g. ``NORMALIZE_GAS_CONSTANTS``."""
    lib = resolve_library(library)
    key_c = to_c_string(key, "config key")
    _config_call(
        lambda: lib.set_config_bool(key_c, bool(value)),
        f"set_config_bool({key})",
        lib,
    )
    log.debug("CoolProp config %s set to %s", key, value)


def get_config_bool(key: str, *, library: Any = None) -> bool:
    lib = resolve_library(library)
    key_c = to_c_string(key, "config key")
    func = require_symbol(lib, "get_config_bool")
    value = ctypes.c_bool(False)
    status = func(key_c, value)
    if status != 1:
        raise coolprop_global_error(f"get_config_bool({key})", lib)
    return bool(value.value)


def get_config_double(key: str, *, library: Any = None) -> float:
    lib = resolve_library(library)
    key_c = to_c_string(key, "config key")
    func = require_symbol(lib, "get_config_double")
    value = ctypes.c_double(0.0)
    status = func(key_c, value)
    if status != 1:
        raise coolprop_global_error(f"get_config_double({key})", lib)
    return float(value.value)


def get_config_string(key: str, *, library: Any = None) -> str:
    lib = resolve_library(library)
    key_c = to_c_string(key, "config key")
    func = require_symbol(lib, "get_config_string")
    for capacity in buffer_capacities(256, GLOBAL_STRING_CEILING):
        buffer = ctypes.create_string_buffer(capacity)
        status = func(key_c, buffer, capacity)
        if status == 1:
            return decode_c_buffer(buffer)
    raise coolprop_global_error(f"get_config_string({key})", lib)


def set_refprop_path(path: str | os.PathLike[str], *, library: Any = None) -> None:
    """Point CoolProp at a REFPROP installation (``ALTERNATIVE_REFPROP_PATH``)."""
    set_config_string(REFPROP_PATH_KEY, os.fspath(path), library=library)


__all__ = [
    "REFPROP_PATH_KEY",
    "get_config_bool",
    "get_config_double",
    "get_config_string",
    "set_config_bool",
    "set_config_double",
    "set_config_string",
    "set_refprop_path",
]
