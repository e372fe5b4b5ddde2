"""
Platform detection utilities.

Provides the operating-system flags and naming conventions used when searching
for the CoolProp shared library.
"""

from __future__ import annotations

import platform
import struct
from dataclasses import dataclass

from coolprop_ffi.logging import get_logger

log = get_logger(__name__)

# OS detection constants for cross-platform compatibility
IS_WINDOWS = platform.system().lower() == "windows"
IS_MACOS = platform.system().lower() == "darwin"
IS_LINUX = platform.system().lower() == "linux"


@dataclass
class PlatformInfo:
    os_name: str
    arch: str
    pointer_bits: int
    library_suffix: str


def _library_suffix(system: str) -> str:
    if system == "windows":
        return ".dll"
    if system == "darwin":
        return ".dylib"
    return ".so"


def get_platform_info() -> PlatformInfo:
    """Detect the platform and the shared-library conventions that go with it."""
    system = platform.system().lower()  # 'darwin', 'linux', 'windows'
    arch = platform.machine().lower()

    # Normalize architecture
    if arch in {"x86_64", "amd64"}:
        arch = "x86_64"
    elif arch in {"arm64", "aarch64"}:
        arch = "arm64"

    info = PlatformInfo(
        os_name=system,
        arch=arch,
        pointer_bits=struct.calcsize("P") * 8,
        library_suffix=_library_suffix(system),
    )

    log.debug(
        "Platform detected: os=%s arch=%s bits=%s suffix=%s",
        info.os_name,
        info.arch,
        info.pointer_bits,
        info.library_suffix,
    )

    return info


def library_file_names(base_name: str = "CoolProp") -> list[str]:
    """
    File names a CoolProp build produces on the current platform.

    Windows builds drop the ``lib`` prefix; macOS and Linux keep it.
    """
    if IS_WINDOWS:
        return [f"{base_name}.dll", f"lib{base_name}.dll"]
    if IS_MACOS:
        return [f"lib{base_name}.dylib"]
    return [f"lib{base_name}.so"]


__all__ = [
    "IS_LINUX",
    "IS_MACOS",
    "IS_WINDOWS",
    "PlatformInfo",
    "get_platform_info",
    "library_file_names",
]
