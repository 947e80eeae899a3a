"""Unit tests for package version resolution."""

from __future__ import annotations

import importlib.metadata
import importlib.util
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import pytest

import erudita


def test_version_matches_package_metadata_or_fallback() -> None:
    try:
        expected = version("erudita")
    except PackageNotFoundError:
        expected = "0.0.0+unknown"

    assert erudita.__version__ == expected


def test_missing_metadata_warns_and_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    def _missing(_name: str) -> str:
        raise PackageNotFoundError

    monkeypatch.setattr(importlib.metadata, "version", _missing)

    init_path = Path(__file__).resolve().parents[2] / "src" / "erudita" / "__init__.py"
    spec = importlib.util.spec_from_file_location("erudita_version_probe", init_path)
    assert spec is not None
    assert spec.loader is not None

    module = importlib.util.module_from_spec(spec)
    with pytest.warns(RuntimeWarning, match="Package metadata for 'erudita' not found"):
        spec.loader.exec_module(module)

    assert module.__version__ == "0.0.0+unknown"
