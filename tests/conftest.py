"""
Pytest configuration and shared fixtures for redistkit tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

import pytest
import yaml

from redistkit.exceptions import NetworkError
from redistkit.logging import SilentLogger, set_global_logger


class FakeTransport:
    """Transport double that serves canned bytes per URI.

    URIs missing from the mapping, or mapped to an exception, fail with
    NetworkError. Every call is recorded in ``calls``.
    """

    def __init__(self, payloads: dict[str, bytes | Exception]) -> None:
        self.payloads = payloads
        self.calls: list[str] = []

    def fetch(self, uri: str, destination: Path) -> None:
        self.calls.append(uri)
        outcome = self.payloads.get(uri)
        if outcome is None:
            raise NetworkError(f"download failed for {uri}: unreachable")
        if isinstance(outcome, Exception):
            raise NetworkError(f"download failed for {uri}: {outcome}") from outcome
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(outcome)


def sha256_hex(data: bytes) -> str:
    """Helper to compute SHA-256 hash."""
    return hashlib.sha256(data).hexdigest()


@pytest.fixture(autouse=True)
def silent_global_logger():
    """Reset the global logger so CLI tests don't leak verbosity."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def fake_transport():
    """
    Factory fixture for FakeTransport.

    Usage:
        transport = fake_transport({"https://a/x.exe": b"bytes"})
    """

    def _create(payloads: dict[str, bytes | Exception]) -> FakeTransport:
        return FakeTransport(payloads)

    return _create


@pytest.fixture
def sample_manifest_data() -> dict[str, Any]:
    """
    Provide sample manifest data.

    Returns a complete two-entry manifest structure for testing.
    """
    good = b"vcredist x64 payload"
    return {
        "apiVersion": "redistkit/v1",
        "defaults": {"timeout": 30},
        "redistributables": [
            {
                "id": "vcredist-x64",
                "name": "Microsoft Visual C++ Redistributable (x64)",
                "sources": [
                    "https://cdn.example.com/vc_redist.x64.exe",
                    "https://mirror.example.com/vc_redist.x64.exe",
                ],
                "sha256": sha256_hex(good),
            },
            {
                "id": "dotnet-runtime",
                "name": ".NET Desktop Runtime",
                "sources": ["https://cdn.example.com/windowsdesktop-runtime.exe?v=8"],
                "filename": "dotnet-desktop.exe",
            },
        ],
    }


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("manifest.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create
