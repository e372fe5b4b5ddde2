"""
Shared fixtures for tests against a real CoolProp build.

CoolProp keeps process-global state (configuration, reference states, the error
string), so every test here runs under one lock and gets the loaded library
through the ``coolprop_lib`` fixture.
"""

import threading

import pytest

_COOLPROP_LOCK = threading.Lock()


@pytest.fixture(autouse=True)
def serialized_coolprop(coolprop_lib):
    with _COOLPROP_LOCK:
        yield coolprop_lib
