"""
Environment validation utilities.

Checks the Python version, the required packages and whether a usable CoolProp
shared library can be found and loaded.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any

from coolprop_ffi.logging import get_logger

log = get_logger(__name__)

_SKIP_VALUES = {"1", "true", "yes"}


class ValidationStatus(Enum):
    """Status of a validation check."""

    PASS = "pass"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass
class ValidationResult:
    """Result of a validation check."""

    status: ValidationStatus
    message: str
    details: str | None = None
    suggestion: str | None = None
    version: str | None = None


def validation_skipped() -> bool:
    return os.getenv("COOLPROP_FFI_SKIP_VALIDATION", "").strip().lower() in _SKIP_VALUES


def validate_python_version(min_version: tuple[int, int] = (3, 9)) -> ValidationResult:
    """Validate Python version against a minimum required version."""
    current_version = sys.version_info[:2]

    if current_version >= min_version:
        return ValidationResult(
            status=ValidationStatus.PASS,
            message=f"Python {current_version[0]}.{current_version[1]} is supported",
            version=f"{current_version[0]}.{current_version[1]}",
        )
    return ValidationResult(
        status=ValidationStatus.ERROR,
        message=f"Python {current_version[0]}.{current_version[1]} is not supported",
        details=f"Minimum required version is {min_version[0]}.{min_version[1]}",
        suggestion="Please upgrade Python to a supported version",
        version=f"{current_version[0]}.{current_version[1]}",
    )


def validate_required_packages() -> list[ValidationResult]:
    """Validate required packages are importable (reports versions if available)."""
    required_packages: dict[str, str] = {
        "numpy": "1.24.0",
    }

    results: list[ValidationResult] = []
    for package, min_version in required_packages.items():
        try:
            module = __import__(package)
            version = getattr(module, "__version__", None)
            if version:
                results.append(
                    ValidationResult(
                        status=ValidationStatus.PASS,
                        message=f"{package} is available",
                        version=version,
                    ),
                )
            else:
                results.append(
                    ValidationResult(
                        status=ValidationStatus.WARNING,
                        message=f"{package} is available but version unknown",
                        suggestion=(
                            f"Consider upgrading {package} to version {min_version} or later"
                        ),
                    ),
                )
        except ImportError as exc:
            results.append(
                ValidationResult(
                    status=ValidationStatus.ERROR,
                    message=f"{package} is not installed",
                    details=str(exc),
                    suggestion=f"Install {package} using pip: pip install '{package}>={min_version}'",
                ),
            )

    return results


def validate_coolprop_library() -> ValidationResult:
    """Validate that the CoolProp shared library can be located, loaded and queried."""
    from coolprop_ffi.errors import CoolPropFFIError
    from coolprop_ffi.high_level import global_param_string
    from coolprop_ffi.native import OPTIONAL_SYMBOLS, load_library, missing_symbols

    try:
        lib = load_library()
    except CoolPropFFIError as exc:
        return ValidationResult(
            status=ValidationStatus.ERROR,
            message="CoolProp shared library could not be loaded",
            details=str(exc),
            suggestion=(
                "Build CoolProp as a shared library (cmake -DCOOLPROP_SHARED_LIBRARY=ON) "
                "and set COOLPROP_LIB_PATH or COOLPROP_LIB_DIR"
            ),
        )

    try:
        version = global_param_string("version", library=lib)
    except CoolPropFFIError as exc:
        log.error("CoolProp library loaded but version query failed: %s", exc)
        return ValidationResult(
            status=ValidationStatus.ERROR,
            message="CoolProp library loaded but does not answer queries",
            details=str(exc),
        )

    missing = missing_symbols(lib)
    required_missing = [name for name in missing if name not in OPTIONAL_SYMBOLS]
    if required_missing:
        return ValidationResult(
            status=ValidationStatus.ERROR,
            message=f"CoolProp {version} is missing required entry points",
            details=", ".join(required_missing),
            suggestion="Rebuild CoolProp from a release that exports the full C API",
            version=version,
        )
    if missing:
        return ValidationResult(
            status=ValidationStatus.WARNING,
            message=f"CoolProp {version} lacks optional entry points",
            details=", ".join(missing),
            suggestion="Features relying on these entry points raise UnsupportedFeatureError",
            version=version,
        )
    return ValidationResult(
        status=ValidationStatus.PASS,
        message=f"CoolProp {version} is available",
        version=version,
    )


def _skipped_result() -> ValidationResult:
    return ValidationResult(
        status=ValidationStatus.SKIPPED,
        message="Validation skipped",
        details="COOLPROP_FFI_SKIP_VALIDATION is set",
    )


def validate_environment() -> dict[str, Any]:
    """Perform comprehensive environment validation and return structured results."""
    if validation_skipped():
        log.info("Environment validation skipped (COOLPROP_FFI_SKIP_VALIDATION)")
        return {
            "python_version": _skipped_result(),
            "coolprop_library": _skipped_result(),
            "required_packages": [],
            "summary": {"overall_status": ValidationStatus.SKIPPED},
        }

    log.info("Starting environment validation")

    results: dict[str, Any] = {
        "python_version": validate_python_version(),
        "required_packages": validate_required_packages(),
        "coolprop_library": validate_coolprop_library(),
    }

    all_results: list[ValidationResult] = [
        results["python_version"],
        *results["required_packages"],
        results["coolprop_library"],
    ]

    status_counts: dict[ValidationStatus, int] = {status: 0 for status in ValidationStatus}
    for res in all_results:
        status_counts[res.status] += 1

    if status_counts[ValidationStatus.ERROR] > 0:
        overall_status = ValidationStatus.ERROR
    elif status_counts[ValidationStatus.WARNING] > 0:
        overall_status = ValidationStatus.WARNING
    else:
        overall_status = ValidationStatus.PASS

    results["summary"] = {
        "overall_status": overall_status,
        "status_counts": status_counts,
        "total_checks": len(all_results),
    }

    log.info(
        "Environment validation complete. Overall status: %s", overall_status.value,
    )
    return results


def get_installation_instructions() -> str:
    """Get installation instructions for setting up the environment."""
    return (
        "\nInstallation Instructions:\n\n"
        "1. Build CoolProp as a shared library:\n"
        "   git clone --recursive https://github.com/CoolProp/CoolProp\n"
        "   cmake -S CoolProp -B CoolProp/build -DCOOLPROP_SHARED_LIBRARY=ON\n"
        "   cmake --build CoolProp/build --config Release\n\n"
        "2. Point the bindings at the build:\n"
        "   export COOLPROP_LIB_DIR=/path/to/CoolProp/build\n"
        "   (or COOLPROP_LIB_PATH=/path/to/libCoolProp.so)\n\n"
        "3. Install the package:\n"
        "   pip install -e .[test]\n\n"
        "4. Verify installation:\n"
        "   python scripts/check_environment.py\n"
    )


__all__ = [
    "ValidationResult",
    "ValidationStatus",
    "get_installation_instructions",
    "validate_coolprop_library",
    "validate_environment",
    "validate_python_version",
    "validate_required_packages",
    "validation_skipped",
]
