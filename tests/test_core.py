"""
Tests for redistkit.core module.

Tests manifest orchestration including:
- Fetching all / one redistributable
- Output directory resolution
- Per-entry failure reporting
- Ad-hoc fetches
"""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
import requests_mock

from redistkit.core import fetch_manifest, fetch_uris, resolve_output_dir
from redistkit.exceptions import ConfigError
from redistkit.io.fetch import DEFAULT_DOWNLOAD_DIR

VC_CDN = "https://cdn.example.com/vc_redist.x64.exe"
VC_MIRROR = "https://mirror.example.com/vc_redist.x64.exe"
DOTNET = "https://cdn.example.com/windowsdesktop-runtime.exe?v=8"


def _sha256(data: bytes) -> str:
    """Helper to compute SHA-256 hash."""
    return hashlib.sha256(data).hexdigest()


class TestFetchManifest:
    """Tests for fetch_manifest orchestration."""

    def test_fetch_all_with_fallback(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data
    ):
        """Test that every entry is fetched, falling back on a bad digest."""
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)
        out = tmp_test_dir / "out"

        with requests_mock.Mocker() as m:
            m.get(VC_CDN, content=b"stale cdn copy")
            m.get(VC_MIRROR, content=b"vcredist x64 payload")
            m.get(DOTNET, content=b"dotnet payload")
            results = fetch_manifest(manifest_path, output_dir=out)

        assert [r.redist_id for r in results] == ["vcredist-x64", "dotnet-runtime"]
        assert all(r.status == "success" for r in results)

        vc, dotnet = results
        assert vc.file_path == out.resolve() / "vc_redist.x64.exe"
        assert vc.verified is True
        assert vc.sha256 == _sha256(b"vcredist x64 payload")
        assert dotnet.file_path == out.resolve() / "dotnet-desktop.exe"
        assert dotnet.verified is False
        assert dotnet.file_path.read_bytes() == b"dotnet payload"

    def test_failed_entry_does_not_stop_others(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that a failed entry is reported and the rest still run."""
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)
        transport = fake_transport({DOTNET: b"dotnet payload"})

        results = fetch_manifest(
            manifest_path, output_dir=tmp_test_dir / "out", transport=transport
        )

        assert [r.status for r in results] == ["failed", "success"]
        assert results[0].file_path is None
        assert results[0].sha256 is None
        assert transport.calls == [VC_CDN, VC_MIRROR, DOTNET]

    def test_fetch_single_id(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that redist_id limits the fetch to one entry."""
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)
        transport = fake_transport({DOTNET: b"dotnet payload"})

        results = fetch_manifest(
            manifest_path,
            redist_id="dotnet-runtime",
            output_dir=tmp_test_dir,
            transport=transport,
        )

        assert len(results) == 1
        assert results[0].redist_id == "dotnet-runtime"
        assert transport.calls == [DOTNET]

    def test_unknown_id_raises(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that an unknown id raises ConfigError."""
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)

        with pytest.raises(ConfigError, match="unknown redistributable id"):
            fetch_manifest(
                manifest_path, redist_id="nope", transport=fake_transport({})
            )

    def test_download_dir_from_manifest(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that defaults.download_dir is used when no output_dir is given."""
        sample_manifest_data["defaults"]["download_dir"] = "cache"
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)
        transport = fake_transport({DOTNET: b"dotnet payload"})

        results = fetch_manifest(
            manifest_path, redist_id="dotnet-runtime", transport=transport
        )

        expected = (tmp_test_dir / "cache").resolve() / "dotnet-desktop.exe"
        assert results[0].file_path == expected
        assert expected.exists()

    def test_entry_without_sources_fails_before_any_download(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that a source-less entry is rejected before anything is fetched."""
        entries = sample_manifest_data["redistributables"]
        entries.insert(1, {"id": "no-sources", "sources": []})
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)
        transport = fake_transport(
            {VC_MIRROR: b"vcredist x64 payload", DOTNET: b"dotnet payload"}
        )

        with pytest.raises(ConfigError, match="without sources: no-sources"):
            fetch_manifest(
                manifest_path, output_dir=tmp_test_dir / "out", transport=transport
            )

        assert transport.calls == []
        assert not (tmp_test_dir / "out").exists()

    def test_non_mapping_entry_raises(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that a bare string entry raises ConfigError."""
        sample_manifest_data["redistributables"].append("just-a-string")
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)
        transport = fake_transport({})

        with pytest.raises(ConfigError, match=r"redistributables\[2\] must be"):
            fetch_manifest(manifest_path, output_dir=tmp_test_dir, transport=transport)

        assert transport.calls == []

    def test_null_defaults(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that 'defaults: null' behaves like no defaults section."""
        sample_manifest_data["defaults"] = None
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)
        transport = fake_transport({DOTNET: b"dotnet payload"})

        results = fetch_manifest(
            manifest_path,
            redist_id="dotnet-runtime",
            output_dir=tmp_test_dir,
            transport=transport,
        )

        assert results[0].status == "success"

    def test_non_mapping_defaults_raises(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, fake_transport
    ):
        """Test that a scalar defaults section raises ConfigError."""
        sample_manifest_data["defaults"] = "fast"
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)

        with pytest.raises(ConfigError, match="'defaults' must be a mapping"):
            fetch_manifest(manifest_path, transport=fake_transport({}))


class TestResolveOutputDir:
    """Tests for resolve_output_dir priority."""

    def test_explicit_wins(self, tmp_test_dir):
        """Test that an explicit output_dir beats config."""
        config = {"defaults": {"download_dir": "/ignored"}}

        assert resolve_output_dir(config, tmp_test_dir) == tmp_test_dir.resolve()

    def test_falls_back_to_default(self):
        """Test that the system default is used without config."""
        assert resolve_output_dir({}) == DEFAULT_DOWNLOAD_DIR.resolve()

    def test_result_is_absolute(self):
        """Test that a relative output_dir is made absolute."""
        assert resolve_output_dir({}, Path("relative/dir")).is_absolute()

    def test_null_defaults_falls_back_to_default(self):
        """Test that a null defaults section is treated as empty."""
        assert resolve_output_dir({"defaults": None}) == DEFAULT_DOWNLOAD_DIR.resolve()


class TestFetchUris:
    """Tests for ad-hoc fetch_uris."""

    def test_success_derives_name(self, tmp_test_dir, fake_transport):
        """Test that the destination is derived from the first URI."""
        transport = fake_transport({VC_MIRROR: b"payload"})

        result = fetch_uris(
            [VC_CDN, VC_MIRROR],
            expected_sha256=_sha256(b"payload"),
            output_dir=tmp_test_dir,
            transport=transport,
        )

        assert result.status == "success"
        assert result.redist_id == "vc_redist.x64.exe"
        assert result.verified is True

    def test_failure_result(self, tmp_test_dir, fake_transport):
        """Test that exhausting sources yields a failed result."""
        result = fetch_uris(
            [VC_CDN],
            destination=tmp_test_dir / "x.exe",
            transport=fake_transport({}),
        )

        assert result.status == "failed"
        assert not (tmp_test_dir / "x.exe").exists()

    def test_relative_destination_raises(self, fake_transport):
        """Test that a relative destination raises ConfigError."""
        with pytest.raises(ConfigError):
            fetch_uris(
                [VC_CDN], destination=Path("x.exe"), transport=fake_transport({})
            )
