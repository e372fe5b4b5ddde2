#!/usr/bin/env python3
"""
Check that coolprop_ffi can run here: Python version, numpy, and a CoolProp
shared library that loads and exports the C API the bindings declare.

Exit codes: 0 on success, 1 on errors, 2 on warnings with ``--strict``.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from coolprop_ffi.environment import (  # noqa: E402
    ValidationResult,
    ValidationStatus,
    get_installation_instructions,
    get_platform_info,
    validate_environment,
)
from coolprop_ffi.logging import get_logger  # noqa: E402

log = get_logger(__name__)

STATUS_COLORS = {
    ValidationStatus.PASS: "green",
    ValidationStatus.WARNING: "yellow",
    ValidationStatus.ERROR: "red",
    ValidationStatus.SKIPPED: "blue",
}


def colorize(text: str, color: str) -> str:
    """Wrap ``text`` in an ANSI color when stdout is a capable terminal."""
    colors = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "reset": "\033[0m",
    }
    if sys.stdout.isatty() and os.getenv("TERM") != "dumb":
        return f"{colors.get(color, '')}{text}{colors['reset']}"
    return text


def status_icon(status: ValidationStatus) -> str:
    icons = {
        ValidationStatus.PASS: "✓",
        ValidationStatus.WARNING: "⚠",
        ValidationStatus.ERROR: "✗",
        ValidationStatus.SKIPPED: "-",
    }
    return colorize(icons.get(status, "?"), STATUS_COLORS.get(status, "white"))


def print_validation_result(result: ValidationResult, indent: str = "") -> None:
    color = STATUS_COLORS.get(result.status, "white")
    print(f"{indent}{status_icon(result.status)} {colorize(result.message, color)}")
    if result.version:
        print(f"{indent}  Version: {result.version}")
    if result.details:
        print(f"{indent}  Details: {result.details}")
    if result.suggestion:
        print(f"{indent}  Suggestion: {colorize(result.suggestion, 'blue')}")


def _result_as_dict(result: ValidationResult) -> dict[str, Any]:
    return {
        "status": result.status.value,
        "message": result.message,
        "details": result.details,
        "suggestion": result.suggestion,
        "version": result.version,
    }


def results_as_json(results: dict[str, Any]) -> dict[str, Any]:
    """Convert validation results into a JSON-serializable structure."""
    converted: dict[str, Any] = {}
    for key, value in results.items():
        if key == "summary":
            summary = {"overall_status": value["overall_status"].value}
            if "status_counts" in value:
                summary["status_counts"] = {
                    status.value: count for status, count in value["status_counts"].items()
                }
                summary["total_checks"] = value["total_checks"]
            converted[key] = summary
        elif isinstance(value, list):
            converted[key] = [_result_as_dict(item) for item in value]
        else:
            converted[key] = _result_as_dict(value)
    return converted


def print_environment_report(results: dict[str, Any], json_output: bool = False) -> None:
    if json_output:
        print(json.dumps(results_as_json(results), indent=2))
        return

    print("coolprop_ffi Environment Validation Report")
    print("=" * 50)

    info = get_platform_info()
    print(f"Platform: {info.os_name} ({info.arch}, {info.pointer_bits}-bit)")

    summary = results["summary"]
    overall_status = summary["overall_status"]
    color = STATUS_COLORS.get(overall_status, "white")
    print(f"\nOverall Status: {colorize(overall_status.value.upper(), color)}")

    counts = summary.get("status_counts")
    if counts is not None:
        print(
            f"Checks: {counts[ValidationStatus.PASS]} passed, "
            f"{counts[ValidationStatus.WARNING]} warnings, "
            f"{counts[ValidationStatus.ERROR]} errors",
        )

    print("\nDetailed Results:")
    print("-" * 30)

    print("\nPython Version:")
    print_validation_result(results["python_version"], "  ")

    print("\nCoolProp Library:")
    print_validation_result(results["coolprop_library"], "  ")

    print("\nRequired Packages:")
    for result in results["required_packages"]:
        print_validation_result(result, "  ")

    if overall_status == ValidationStatus.ERROR:
        print(f"\n{colorize('Installation Instructions:', 'yellow')}")
        print(get_installation_instructions())


def exit_code_for(status: ValidationStatus, strict: bool) -> int:
    if status == ValidationStatus.ERROR:
        return 1
    if status == ValidationStatus.WARNING and strict:
        return 2
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate the coolprop_ffi environment")
    parser.add_argument("--json", action="store_true", help="Output results in JSON format")
    parser.add_argument("--strict", action="store_true", help="Treat warnings as errors")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        results = validate_environment()
    except Exception as exc:  # noqa: BLE001
        log.error("Error during validation: %s", exc)
        if not args.json:
            print(f"\n{colorize('Error during validation:', 'red')} {exc}")
        sys.exit(1)

    print_environment_report(results, json_output=args.json)
    exit_code = exit_code_for(results["summary"]["overall_status"], args.strict)

    if not args.json:
        if exit_code == 0:
            print(f"\n{colorize('Environment validation passed!', 'green')}")
        elif exit_code == 1:
            print(f"\n{colorize('Environment validation failed!', 'red')}")
            print("Please fix the errors above and run this script again.")
        else:
            print(f"\n{colorize('Environment validation passed with warnings.', 'yellow')}")
            print("Run without --strict to treat warnings as non-fatal.")

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
