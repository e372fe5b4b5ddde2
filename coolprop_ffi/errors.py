"""
Exception hierarchy for the CoolProp bindings.

Every failure surfaced by the native library, or detected before a native call is
made, is raised as a subclass of :class:`CoolPropFFIError`. The string form of
each exception is stable so callers can match on it in logs.
"""

from __future__ import annotations

from collections.abc import Sequence


class CoolPropFFIError(Exception):
    """Base class for all errors raised by coolprop_ffi."""


class CoolPropError(CoolPropFFIError):
    """Non-zero error code reported through a native error pair."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"CoolProp error {code}: {message}")


class CoolPropGlobalError(CoolPropFFIError):
    """Failure reported through CoolProp's global ``errstring``."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"CoolProp global error: {message}")


class BufferLimitError(CoolPropGlobalError):
    """An output kept growing past the hard buffer ceiling."""

    def __init__(self, context: str, capacity: int, detail: str = "") -> None:
        self.context = context
        self.capacity = capacity
        message = f"{context}: output exceeded a buffer of {capacity}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UnknownPhaseCodeError(CoolPropFFIError):
    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"phase code {code} is not recognized by CoolProp")


class InvalidInputError(CoolPropFFIError, ValueError):
    """Arguments rejected before reaching the native library."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"invalid input: {message}")


class UnsupportedFeatureError(InvalidInputError):
    """The loaded CoolProp build lacks an optional entry point."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"this CoolProp build does not expose {symbol}")


class ComputationError(CoolPropFFIError):
    """A numeric entry point returned a non-finite value."""

    def __init__(self, context: str, message: str) -> None:
        self.context = context
        self.message = message
        super().__init__(f"{context} failed: {message}")


class GlobalParameterError(CoolPropFFIError):
    def __init__(self, param: str, message: str) -> None:
        self.param = param
        self.message = message
        super().__init__(f"global parameter `{param}` query failed: {message}")


class EmbeddedNulError(CoolPropFFIError, ValueError):
    """A string argument contains a NUL byte and cannot cross the C boundary."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"embedded NUL byte in {label}")


class StateClosedError(CoolPropFFIError):
    """An AbstractState was used after its handle was released."""

    def __init__(self) -> None:
        super().__init__("AbstractState handle has already been released")


class LibraryNotFoundError(CoolPropFFIError, OSError):
    """No loadable CoolProp shared library was found."""

    def __init__(self, searched: Sequence[str] = ()) -> None:
        self.searched = list(searched)
        message = (
            "Unable to locate the CoolProp shared library. "
            "Set COOLPROP_LIB_PATH to the full path of the library, "
            "or COOLPROP_LIB_DIR to the directory containing it."
        )
        if self.searched:
            message += " Searched: " + ", ".join(self.searched)
        super().__init__(message)


__all__ = [
    "BufferLimitError",
    "ComputationError",
    "CoolPropError",
    "CoolPropFFIError",
    "CoolPropGlobalError",
    "EmbeddedNulError",
    "GlobalParameterError",
    "InvalidInputError",
    "LibraryNotFoundError",
    "StateClosedError",
    "UnknownPhaseCodeError",
    "UnsupportedFeatureError",
]
