"""
Marshalling helpers shared by every wrapped entry point.

Covers string encoding, decoding of native character buffers, the error-pair
calling convention of the low-level API, the buffer growth schedule and the
numpy views handed to the C side.
"""

from __future__ import annotations

import ctypes
import os
from collections.abc import Callable, Iterator, Sequence
from ctypes import POINTER, c_double, c_long
from typing import Any

import numpy as np

from coolprop_ffi.errors import CoolPropError, EmbeddedNulError, InvalidInputError
from coolprop_ffi.logging import get_logger

log = get_logger(__name__)

ERR_BUF_LEN = 1024
DEFAULT_STR_BUF_LEN = 1024
GLOBAL_STRING_CEILING = 1 << 20


def to_c_string(value: str | bytes | os.PathLike[str], label: str) -> bytes:
    """Encode ``value`` as UTF-8 for a ``const char*`` argument.

    Raises :class:`EmbeddedNulError` naming ``label`` if the text contains NUL,
    since C would silently truncate it.
    """
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if isinstance(value, bytes):
        data = value
    elif isinstance(value, str):
        data = value.encode("utf-8")
    else:
        raise InvalidInputError(f"{label} must be a string, got {type(value).__name__}")
    if b"\0" in data:
        raise EmbeddedNulError(label)
    return data


def decode_c_buffer(buf: Any) -> str:
    """Decode a NUL-terminated character buffer, replacing invalid UTF-8."""
    raw = bytearray(buf.raw)
    if raw:
        # The C side may write right up to the end without terminating.
        raw[-1] = 0
    end = raw.find(b"\0")
    if end >= 0:
        raw = raw[:end]
    return raw.decode("utf-8", errors="replace")


def buffer_saturated(buf: Any) -> bool:
    """True when the output may have been truncated (no NUL, or NUL in the last slot)."""
    raw = buf.raw
    end = raw.find(b"\0")
    return end == -1 or end + 1 >= len(raw)


def buffer_capacities(initial: int, ceiling: int) -> Iterator[int]:
    """Yield ``initial`` doubled on each step, ending with the first value >= ``ceiling``."""
    capacity = max(int(initial), 1)
    while True:
        yield capacity
        if capacity >= ceiling:
            return
        capacity *= 2
        log.debug("Growing native output buffer to %d", capacity)


def call_with_error(func: Callable[..., Any], *args: Any) -> Any:
    """
    Call a low-level entry point using the trailing error-pair convention.

    ``(errcode, message_buffer, buffer_length)`` are appended to ``args``. A
    non-zero error code is raised as :class:`CoolPropError`.
    """
    err = c_long(0)
    message = ctypes.create_string_buffer(ERR_BUF_LEN)
    result = func(*args, err, message, ERR_BUF_LEN)
    if err.value != 0:
        raise CoolPropError(int(err.value), decode_c_buffer(message))
    return result


def as_double_array(values: Any, label: str) -> np.ndarray:
    """Contiguous 1-D float64 copy of ``values`` suitable for a ``double*`` argument."""
    array = np.ascontiguousarray(values, dtype=np.float64)
    if array.ndim == 0:
        array = array.reshape(1)
    if array.ndim != 1:
        raise InvalidInputError(f"{label} must be one-dimensional, got shape {array.shape}")
    return array


def double_ptr(array: np.ndarray) -> Any:
    """``double*`` view of a float64 numpy array. The array must outlive the call."""
    return array.ctypes.data_as(POINTER(c_double))


def long_array(values: Sequence[int] | int) -> Any:
    """ctypes ``long[]`` from values, or zero-initialised of the given length."""
    if isinstance(values, int):
        return (c_long * values)()
    return (c_long * len(values))(*values)


def reshape_compositions(flat: np.ndarray, points: int, components: int) -> np.ndarray:
    """Turn point-major compositions into a ``(components, points)`` array."""
    if points == 0 or components == 0:
        return np.empty((0, 0))
    block = np.asarray(flat[: points * components], dtype=np.float64)
    return np.ascontiguousarray(block.reshape(points, components).T)


def filled_prefix(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> int:
    """One past the last index where any of the three arrays holds a finite value."""
    length = min(len(a), len(b), len(c))
    finite = np.isfinite(a[:length]) | np.isfinite(b[:length]) | np.isfinite(c[:length])
    indices = np.flatnonzero(finite)
    return int(indices[-1]) + 1 if indices.size else 0


__all__ = [
    "DEFAULT_STR_BUF_LEN",
    "ERR_BUF_LEN",
    "GLOBAL_STRING_CEILING",
    "as_double_array",
    "buffer_capacities",
    "buffer_saturated",
    "call_with_error",
    "decode_c_buffer",
    "double_ptr",
    "filled_prefix",
    "long_array",
    "reshape_compositions",
    "to_c_string",
]
