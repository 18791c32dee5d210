# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Core orchestration for redistkit.

This module ties manifests, defaults and the verified fetcher together. It
decides where each redistributable lands and which transport settings to use,
then hands each one to redistkit.io.fetch_file.

Design Principles:

- A failed redistributable never aborts the others; it is reported with
  status "failed" and the caller decides whether that is fatal
- Functions return frozen dataclasses for easy testing
- Configuration errors raise ConfigError; the CLI formats them for display

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from redistkit.core import fetch_manifest

        results = fetch_manifest(
            Path("manifests/Microsoft/vcredist.yaml"),
            output_dir=Path("C:/Deploy/Redist"),
        )
        failed = [r for r in results if r.status != "success"]
        ```

"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from redistkit.config.loader import load_effective_config
from redistkit.exceptions import ConfigError
from redistkit.io.fetch import (
    DEFAULT_DOWNLOAD_DIR,
    FetchRequest,
    derive_destination,
    fetch_file,
    sha256_file,
)
from redistkit.io.transport import SchemeTransport, Transport
from redistkit.logging import get_global_logger
from redistkit.results import FetchResult

DEFAULT_TIMEOUT = 60


def _manifest_defaults(config: dict[str, Any]) -> dict[str, Any]:
    """Return the merged defaults mapping ({} when absent or null)."""
    defaults = config.get("defaults")
    if defaults is None:
        return {}
    if not isinstance(defaults, dict):
        raise ConfigError("field 'defaults' must be a mapping")
    return defaults


def resolve_output_dir(config: dict[str, Any], output_dir: Path | None = None) -> Path:
    """Pick the absolute download directory for a manifest.

    Priority: explicit output_dir > defaults.download_dir > DEFAULT_DOWNLOAD_DIR.

    Raises:
        ConfigError: If defaults is not a mapping.
    """
    if output_dir is not None:
        return Path(output_dir).resolve()
    configured = _manifest_defaults(config).get("download_dir")
    if configured:
        return Path(configured).resolve()
    return DEFAULT_DOWNLOAD_DIR.resolve()


def _first_source(entry: dict[str, Any]) -> str | None:
    sources = entry.get("sources")
    if not isinstance(sources, list):
        return None
    return next((s for s in sources if isinstance(s, str) and s), None)


def _select_entries(
    config: dict[str, Any], redist_id: str | None
) -> list[dict[str, Any]]:
    """Pick the entries to fetch and check them before anything is downloaded.

    Raises:
        ConfigError: If the list is missing or empty, an entry is not a
            mapping, a selected entry has no usable source, or redist_id
            is unknown.
    """
    entries = config.get("redistributables")
    if not isinstance(entries, list) or not entries:
        raise ConfigError("manifest has no redistributables")

    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"redistributables[{idx}] must be a mapping")

    if redist_id is None:
        selected = entries
    else:
        selected = [e for e in entries if e.get("id") == redist_id]
        if not selected:
            known = ", ".join(str(e.get("id")) for e in entries)
            raise ConfigError(
                f"unknown redistributable id '{redist_id}' (known: {known})"
            )

    missing = [
        str(e.get("id", f"entry-{idx}"))
        for idx, e in enumerate(selected, start=1)
        if _first_source(e) is None
    ]
    if missing:
        raise ConfigError(
            f"redistributable(s) without sources: {', '.join(missing)}"
        )
    return selected


def _run_fetch(
    redist_id: str,
    name: str,
    request: FetchRequest,
    transport: Transport,
) -> FetchResult:
    if fetch_file(request, transport=transport):
        return FetchResult(
            redist_id=redist_id,
            name=name,
            file_path=request.destination,
            sha256=sha256_file(request.destination),
            verified=bool(request.expected_sha256),
            status="success",
        )
    return FetchResult(
        redist_id=redist_id,
        name=name,
        file_path=None,
        sha256=None,
        verified=False,
        status="failed",
    )


def fetch_manifest(
    manifest_path: Path,
    *,
    redist_id: str | None = None,
    output_dir: Path | None = None,
    transport: Transport | None = None,
) -> list[FetchResult]:
    """Fetch every redistributable in a manifest (or just one of them).

    1. Load effective configuration (org + publisher + manifest merged)
    2. Select entries (all, or the one matching redist_id)
    3. Resolve the output directory
    4. Fetch each entry from its ordered sources, verifying sha256 if given

    Args:
        manifest_path: Path to the manifest YAML file.
        redist_id: Only fetch the entry with this id.
        output_dir: Override for defaults.download_dir.
        transport: Transport provider. Defaults to a SchemeTransport using
            defaults.timeout.

    Returns:
        One FetchResult per selected entry, in manifest order.

    Raises:
        ConfigError: If the manifest cannot be loaded, has no entries, an
            entry is malformed or has no sources, or redist_id is unknown.
            These checks all run before the first download starts.
    """
    logger = get_global_logger()

    config = load_effective_config(manifest_path)
    defaults = _manifest_defaults(config)
    entries = _select_entries(config, redist_id)
    target_dir = resolve_output_dir(config, output_dir)
    logger.verbose("FETCH", f"Output directory: {target_dir}")

    if transport is None:
        timeout = defaults.get("timeout", DEFAULT_TIMEOUT)
        transport = SchemeTransport(timeout=timeout)

    results: list[FetchResult] = []
    for step, entry in enumerate(entries, start=1):
        entry_id = str(entry.get("id", f"entry-{step}"))
        name = entry.get("name") or entry_id
        first = _first_source(entry)

        filename = entry.get("filename")
        destination = (
            target_dir / filename if filename else derive_destination(first, target_dir)
        )

        logger.step(step, len(entries), f"Fetching {name}...")
        request = FetchRequest(
            sources=tuple(
                s for s in entry["sources"] if s is None or isinstance(s, str)
            ),
            destination=destination,
            expected_sha256=entry.get("sha256"),
        )
        results.append(_run_fetch(entry_id, name, request, transport))

    return results


def fetch_uris(
    sources: Sequence[str],
    *,
    destination: Path | None = None,
    expected_sha256: str | None = None,
    output_dir: Path | None = None,
    transport: Transport | None = None,
) -> FetchResult:
    """Fetch one ad-hoc artifact from candidate URIs.

    Args:
        sources: Candidate URIs in priority order.
        destination: Absolute target path. Derived from the first source
            and output_dir when omitted.
        expected_sha256: Optional hex SHA-256 to verify against.
        output_dir: Directory used when destination is omitted. Defaults to
            DEFAULT_DOWNLOAD_DIR.
        transport: Transport provider. Defaults to SchemeTransport().

    Returns:
        FetchResult whose redist_id and name are the destination file name.

    Raises:
        ConfigError: If destination is not absolute or no source is given.
    """
    first = next((s for s in sources if s), None)
    if destination is None:
        if first is None:
            raise ConfigError("at least one source URI is required")
        base = Path(output_dir) if output_dir is not None else DEFAULT_DOWNLOAD_DIR
        destination = derive_destination(first, base.resolve())

    request = FetchRequest(
        sources=tuple(sources),
        destination=Path(destination),
        expected_sha256=expected_sha256,
    )
    return _run_fetch(
        request.destination.name,
        request.destination.name,
        request,
        transport or SchemeTransport(),
    )
