"""
Pytest configuration for the coolprop_ffi test suite.

Unit tests run against ``FakeCoolProp``, an in-process stand-in for the shared
library. Tests marked ``native`` need a real CoolProp build and are skipped when
none can be loaded.
"""

import os
import sys
from pathlib import Path

import pytest

# Skip environment validation during collection; it would try to load the library.
os.environ.setdefault("COOLPROP_FFI_SKIP_VALIDATION", "1")

# Make the project root and this directory importable for direct execution
tests_dir = Path(__file__).parent
for path in (tests_dir.parent, tests_dir):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from coolprop_ffi import native  # noqa: E402
from coolprop_ffi.errors import LibraryNotFoundError  # noqa: E402
from fake_coolprop import FakeCoolProp  # noqa: E402


@pytest.fixture
def fake_lib():
    """Install a fresh FakeCoolProp as the process-wide library for one test."""
    lib = FakeCoolProp()
    previous = native.set_library(lib)
    yield lib
    native.set_library(previous)


@pytest.fixture(scope="session")
def coolprop_lib():
    """The real CoolProp library, or skip when it is not installed."""
    try:
        return native.load_library()
    except LibraryNotFoundError as exc:
        pytest.skip(f"CoolProp shared library not available: {exc}")

