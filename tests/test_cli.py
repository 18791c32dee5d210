"""
Tests for redistkit.cli module.

Tests command handlers and exit codes.
"""

from __future__ import annotations

import hashlib

import pytest
import requests_mock

from redistkit.cli import build_parser, main


def _sha256(data: bytes) -> str:
    """Helper to compute SHA-256 hash."""
    return hashlib.sha256(data).hexdigest()


class TestCli:
    """Tests for CLI commands."""

    def test_validate_valid_manifest(self, create_yaml_file, sample_manifest_data, capsys):
        """Test that 'validate' exits 0 for a valid manifest."""
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)

        with pytest.raises(SystemExit) as exc:
            main(["validate", str(manifest_path)])

        assert exc.value.code == 0
        assert "[SUCCESS] Manifest is valid!" in capsys.readouterr().out

    def test_validate_invalid_manifest(self, tmp_test_dir, capsys):
        """Test that 'validate' exits 1 for an invalid manifest."""
        manifest_path = tmp_test_dir / "bad.yaml"
        manifest_path.write_text("apiVersion: redistkit/v1\nredistributables: []\n")

        with pytest.raises(SystemExit) as exc:
            main(["validate", str(manifest_path)])

        assert exc.value.code == 1
        assert "[FAILED]" in capsys.readouterr().out

    def test_get_success(self, tmp_test_dir, capsys):
        """Test that 'get' falls back and exits 0."""
        bad = "https://bad.example/x.exe"
        good = "https://good.example/x.exe"
        data = b"good bytes"
        dest = tmp_test_dir / "x.exe"

        with requests_mock.Mocker() as m:
            m.get(bad, status_code=500)
            m.get(good, content=data)
            with pytest.raises(SystemExit) as exc:
                main(
                    [
                        "get",
                        bad,
                        good,
                        "--destination",
                        str(dest),
                        "--sha256",
                        _sha256(data),
                    ]
                )

        assert exc.value.code == 0
        assert dest.read_bytes() == data
        assert "[SUCCESS] File fetched." in capsys.readouterr().out

    def test_get_relative_destination(self, capsys):
        """Test that a relative destination is an error with exit code 1."""
        with pytest.raises(SystemExit) as exc:
            main(["get", "https://example.com/x.exe", "--destination", "x.exe"])

        assert exc.value.code == 1
        assert "absolute" in capsys.readouterr().out

    def test_fetch_reports_failures(
        self, tmp_test_dir, create_yaml_file, sample_manifest_data, capsys
    ):
        """Test that 'fetch' exits 1 when an entry fails."""
        manifest_path = create_yaml_file("manifest.yaml", sample_manifest_data)

        with requests_mock.Mocker() as m:
            m.get(requests_mock.ANY, status_code=404)
            with pytest.raises(SystemExit) as exc:
                main(
                    [
                        "fetch",
                        str(manifest_path),
                        "--output-dir",
                        str(tmp_test_dir / "out"),
                    ]
                )

        assert exc.value.code == 1
        assert "2 of 2 redistributable(s) failed" in capsys.readouterr().out

    def test_fetch_missing_manifest(self, tmp_test_dir):
        """Test that 'fetch' exits 1 for a missing manifest."""
        with pytest.raises(SystemExit) as exc:
            main(["fetch", str(tmp_test_dir / "missing.yaml")])

        assert exc.value.code == 1

    def test_fetch_non_mapping_entry(self, tmp_test_dir, capsys):
        """Test that 'fetch' reports a malformed entry and exits 1."""
        manifest_path = tmp_test_dir / "manifest.yaml"
        manifest_path.write_text(
            "apiVersion: redistkit/v1\nredistributables:\n  - just-a-string\n"
        )

        with pytest.raises(SystemExit) as exc:
            main(["fetch", str(manifest_path)])

        assert exc.value.code == 1
        assert "Error: redistributables[0] must be a mapping" in capsys.readouterr().out

    def test_parser_requires_command(self):
        """Test that a subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
