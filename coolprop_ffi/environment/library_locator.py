"""
CoolProp shared-library discovery.

The library is located from, in order:

1. ``COOLPROP_LIB_PATH``: full path to the library file.
2. ``COOLPROP_LIB_DIR``: a build or install directory, including the usual CMake
   output subfolders (``lib``, ``build``, ``Release``, ``RelWithDebInfo``, ``Debug``).
3. A ``lib`` folder shipped next to the installed package.
4. The system loader search path via :func:`ctypes.util.find_library`.

``COOLPROP_LIB_NAME`` overrides the base name (default ``CoolProp``).
"""

from __future__ import annotations

import ctypes.util
import os
import re
from pathlib import Path

from coolprop_ffi.environment.platform_detector import IS_LINUX, library_file_names
from coolprop_ffi.logging import get_logger

log = get_logger(__name__)

DEFAULT_LIBRARY_NAME = "CoolProp"

# CMake drops artifacts in per-configuration folders on multi-config generators.
_SUBDIRECTORIES: tuple[str, ...] = (
    "",
    "lib",
    "build",
    "Release",
    "RelWithDebInfo",
    "Debug",
    "build/Release",
    "build/RelWithDebInfo",
    "build/Debug",
)

# Cache for the located library to avoid repeated filesystem scans
_LIBRARY_LOCATION_CACHE: str | None = None


def library_base_name() -> str:
    """Base name of the library, honouring ``COOLPROP_LIB_NAME``."""
    name = os.getenv("COOLPROP_LIB_NAME", "").strip()
    return name or DEFAULT_LIBRARY_NAME


def _bundled_library_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "lib"


def _extract_version_from_filename(filename: str) -> tuple[int, ...]:
    """
    Extract a version tuple from a versioned shared object name for sorting.

    Example: "libCoolProp.so.6.4.1" -> (6, 4, 1)
    """
    match = re.search(r"\.so\.(\d+(?:\.\d+)*)$", filename)
    if match:
        return tuple(int(part) for part in match.group(1).split("."))
    return (0,)


def _library_files_in(directory: Path, base_name: str) -> list[Path]:
    """List plausible library files under ``directory`` and its build subfolders."""
    paths: list[Path] = []
    for sub in _SUBDIRECTORIES:
        folder = directory / sub if sub else directory
        for file_name in library_file_names(base_name):
            paths.append(folder / file_name)
        if IS_LINUX and folder.is_dir():
            # Versioned sonames, most recent first
            versioned = sorted(
                folder.glob(f"lib{base_name}.so.*"),
                key=lambda p: _extract_version_from_filename(p.name),
                reverse=True,
            )
            paths.extend(versioned)
    return paths


def candidate_library_paths() -> list[Path]:
    """
    Every file path consulted while locating the library, in search order.

    Paths are returned whether or not they exist so that error messages can list
    the full search.
    """
    base_name = library_base_name()
    candidates: list[Path] = []

    env_path = os.getenv("COOLPROP_LIB_PATH", "").strip()
    if env_path:
        candidates.append(Path(env_path).expanduser())

    env_dir = os.getenv("COOLPROP_LIB_DIR", "").strip()
    if env_dir:
        candidates.extend(_library_files_in(Path(env_dir).expanduser(), base_name))

    candidates.extend(_library_files_in(_bundled_library_dir(), base_name))
    return candidates


def find_coolprop_library() -> str | None:
    """
    Locate the CoolProp shared library.

    Returns
    -------
    str | None
        A filesystem path, or a loader name from :func:`ctypes.util.find_library`
        when only the system search path knows the library. None if nothing was found.
    """
    global _LIBRARY_LOCATION_CACHE

    if _LIBRARY_LOCATION_CACHE is not None:
        return _LIBRARY_LOCATION_CACHE

    for candidate in candidate_library_paths():
        log.debug("Checking CoolProp library candidate: %s", candidate)
        if candidate.is_file():
            log.info("Found CoolProp library at: %s", candidate)
            _LIBRARY_LOCATION_CACHE = str(candidate)
            return _LIBRARY_LOCATION_CACHE

    system_name = ctypes.util.find_library(library_base_name())
    if system_name:
        log.info("Found CoolProp library on the system search path: %s", system_name)
        _LIBRARY_LOCATION_CACHE = system_name
        return system_name

    log.warning(
        "CoolProp library not found; set COOLPROP_LIB_PATH or COOLPROP_LIB_DIR",
    )
    return None


def clear_cache() -> None:
    """Clear cached detection results (useful for testing or re-detection)."""
    global _LIBRARY_LOCATION_CACHE
    _LIBRARY_LOCATION_CACHE = None
    log.debug("Cleared CoolProp library locator cache")


__all__ = [
    "DEFAULT_LIBRARY_NAME",
    "candidate_library_paths",
    "clear_cache",
    "find_coolprop_library",
    "library_base_name",
]
