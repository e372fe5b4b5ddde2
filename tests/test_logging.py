from __future__ import annotations

import sys
from pathlib import Path

# Add project root to Python path for direct execution
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import logging

from coolprop_ffi.logging import get_logger


def test_get_logger_returns_logger() -> None:
    """get_logger returns a logging.Logger instance with correct name."""
    logger = get_logger("coolprop_ffi.test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "coolprop_ffi.test_module"


def test_get_logger_sets_package_level() -> None:
    """Logger level follows COOLPROP_FFI_LOG_LEVEL (INFO when unset)."""
    import os

    expected = getattr(
        logging, os.getenv("COOLPROP_FFI_LOG_LEVEL", "INFO").upper(), logging.INFO,
    )
    logger = get_logger("coolprop_ffi.level_check")
    assert logger.level == expected


def test_get_logger_does_not_add_handlers() -> None:
    """Module-level get_logger must not add handlers; the embedding application owns them."""
    logger = logging.getLogger("coolprop_ffi.policy_test")
    before = len(logger.handlers)
    _ = get_logger("coolprop_ffi.policy_test")
    after = len(logger.handlers)
    assert after == before


def test_logger_reuse() -> None:
    logger1 = get_logger("coolprop_ffi.reuse")
    logger2 = get_logger("coolprop_ffi.reuse")
    assert logger1 is logger2


def test_package_modules_log_under_package_namespace() -> None:
    from coolprop_ffi import abstract_state, native

    assert native.log.name == "coolprop_ffi.native"
    assert abstract_state.log.name == "coolprop_ffi.abstract_state"


if __name__ == "__main__":
    import pytest
    pytest.main([__file__, "-v"])
