"""
Environment detection and validation utilities.

Locates the CoolProp shared library and checks that the installation is usable:

    from coolprop_ffi.environment import find_coolprop_library, validate_environment

    path = find_coolprop_library()
    summary = validate_environment()["summary"]
"""

from .library_locator import (
    candidate_library_paths,
    clear_cache,
    find_coolprop_library,
)
from .platform_detector import PlatformInfo, get_platform_info
from .validator import (
    ValidationResult,
    ValidationStatus,
    get_installation_instructions,
    validate_coolprop_library,
    validate_environment,
    validate_python_version,
    validate_required_packages,
)

__all__ = [
    # Library discovery
    "candidate_library_paths",
    "clear_cache",
    "find_coolprop_library",
    # Platform
    "PlatformInfo",
    "get_platform_info",
    # Validation
    "ValidationResult",
    "ValidationStatus",
    "get_installation_instructions",
    "validate_coolprop_library",
    "validate_environment",
    "validate_python_version",
    "validate_required_packages",
]
