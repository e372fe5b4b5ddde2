from __future__ import annotations

import ctypes.util
import logging

import pytest

from coolprop_ffi.environment import platform_detector
from coolprop_ffi.environment.library_locator import (
    _extract_version_from_filename,
    candidate_library_paths,
    clear_cache,
    find_coolprop_library,
    library_base_name,
)
from coolprop_ffi.environment.platform_detector import get_platform_info, library_file_names


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("COOLPROP_LIB_PATH", "COOLPROP_LIB_DIR", "COOLPROP_LIB_NAME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(ctypes.util, "find_library", lambda name: None)
    clear_cache()
    yield
    clear_cache()


def test_explicit_path_is_searched_first(monkeypatch, tmp_path):
    target = tmp_path / "custom" / "libCoolProp-custom.so"
    monkeypatch.setenv("COOLPROP_LIB_PATH", str(target))
    monkeypatch.setenv("COOLPROP_LIB_DIR", str(tmp_path))
    candidates = candidate_library_paths()
    assert candidates[0] == target
    assert tmp_path / library_file_names()[0] in candidates


def test_build_subdirectories_are_searched(monkeypatch, tmp_path):
    release = tmp_path / "build" / "Release"
    release.mkdir(parents=True)
    library = release / library_file_names()[0]
    library.write_bytes(b"")
    monkeypatch.setenv("COOLPROP_LIB_DIR", str(tmp_path))
    assert find_coolprop_library() == str(library)


def test_result_is_cached_until_cleared(monkeypatch, tmp_path):
    first = tmp_path / "first.so"
    first.write_bytes(b"")
    monkeypatch.setenv("COOLPROP_LIB_PATH", str(first))
    assert find_coolprop_library() == str(first)

    monkeypatch.setenv("COOLPROP_LIB_PATH", str(tmp_path / "second.so"))
    assert find_coolprop_library() == str(first)

    clear_cache()
    assert find_coolprop_library() is None


def test_system_search_path_fallback(monkeypatch):
    monkeypatch.setattr(ctypes.util, "find_library", lambda name: f"lib{name}.so.6")
    assert find_coolprop_library() == "libCoolProp.so.6"


def test_not_found_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="coolprop_ffi.environment.library_locator"):
        assert find_coolprop_library() is None
    assert "COOLPROP_LIB_PATH" in caplog.text


def test_library_name_override(monkeypatch):
    assert library_base_name() == "CoolProp"
    monkeypatch.setenv("COOLPROP_LIB_NAME", "CoolPropDebug")
    assert library_base_name() == "CoolPropDebug"
    assert any("CoolPropDebug" in path.name for path in candidate_library_paths())


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("libCoolProp.so.6.4.1", (6, 4, 1)),
        ("libCoolProp.so.7", (7,)),
        ("libCoolProp.so", (0,)),
    ],
)
def test_version_extraction(filename, expected):
    assert _extract_version_from_filename(filename) == expected


@pytest.mark.skipif(not platform_detector.IS_LINUX, reason="versioned sonames are Linux only")
def test_versioned_sonames_newest_first(monkeypatch, tmp_path):
    for version in ("6.4.1", "6.10.0", "6.6.0"):
        (tmp_path / f"libCoolProp.so.{version}").write_bytes(b"")
    monkeypatch.setenv("COOLPROP_LIB_DIR", str(tmp_path))
    assert find_coolprop_library() == str(tmp_path / "libCoolProp.so.6.10.0")


def test_library_file_names_per_platform(monkeypatch):
    monkeypatch.setattr(platform_detector, "IS_WINDOWS", True)
    assert library_file_names() == ["CoolProp.dll", "libCoolProp.dll"]
    monkeypatch.setattr(platform_detector, "IS_WINDOWS", False)
    monkeypatch.setattr(platform_detector, "IS_MACOS", True)
    assert library_file_names("X") == ["libX.dylib"]
    monkeypatch.setattr(platform_detector, "IS_MACOS", False)
    assert library_file_names() == ["libCoolProp.so"]


def test_platform_info():
    info = get_platform_info()
    assert info.pointer_bits in (32, 64)
    assert info.library_suffix in (".dll", ".dylib", ".so")
    assert info.os_name

