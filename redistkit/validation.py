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

"""Manifest validation module.

Checks manifest syntax and structure without making network calls or
downloading files, for quick feedback while editing manifests and in CI.

Validation Checks:

- YAML syntax is valid and the document is a mapping
- apiVersion is present (and supported)
- redistributables is a non-empty list
- Each entry has a unique id and a non-empty list of sources
- Source URIs use a supported scheme (http, https, ftp, file)
- sha256, when given, is 64 hex characters
- filename, when given, is a bare file name
- defaults.download_dir and defaults.timeout have sensible types

Example:
    Validate a manifest and handle results:
        ```python
        from pathlib import Path
        from redistkit.validation import validate_manifest

        result = validate_manifest(Path("manifests/Microsoft/vcredist.yaml"))
        if result.status == "valid":
            print(f"Manifest is valid with {result.redist_count} entries")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from pathlib import Path
import re
from typing import Any
from urllib.parse import urlparse

import yaml

from redistkit.logging import get_global_logger
from redistkit.results import ValidationResult

__all__ = ["validate_manifest", "SUPPORTED_API_VERSION", "SUPPORTED_SCHEMES"]

SUPPORTED_API_VERSION = "redistkit/v1"

SUPPORTED_SCHEMES = ("http", "https", "ftp", "file")

_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def _validate_defaults(defaults: Any, errors: list[str]) -> None:
    if not isinstance(defaults, dict):
        errors.append("Field 'defaults' must be a dictionary")
        return

    if "download_dir" in defaults and not isinstance(defaults["download_dir"], str):
        errors.append("defaults.download_dir: Must be a string")

    if "timeout" in defaults:
        timeout = defaults["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            errors.append("defaults.timeout: Must be a number")
        elif timeout <= 0:
            errors.append("defaults.timeout: Must be greater than zero")


def _validate_sources(sources: Any, prefix: str, errors: list[str]) -> None:
    if not isinstance(sources, list):
        errors.append(f"{prefix}.sources: Must be a list")
        return
    if not sources:
        errors.append(f"{prefix}.sources: Must contain at least one URI")
        return

    for idx, uri in enumerate(sources):
        if not isinstance(uri, str) or not uri.strip():
            errors.append(f"{prefix}.sources[{idx}]: Must be a non-empty string")
            continue
        scheme = urlparse(uri).scheme.lower()
        if scheme not in SUPPORTED_SCHEMES:
            errors.append(
                f"{prefix}.sources[{idx}]: Unsupported scheme {scheme!r} "
                f"(expected one of: {', '.join(SUPPORTED_SCHEMES)})"
            )


def validate_manifest(manifest_path: Path) -> ValidationResult:
    """Validate a manifest file without downloading anything.

    Args:
        manifest_path: Path to the manifest YAML file to validate.

    Returns:
        ValidationResult with status "valid" or "invalid", the collected
            errors and warnings, and the number of redistributables.

    Note:
        Only the manifest itself is checked. Values inherited from
        defaults/org.yaml are not merged in.
    """
    logger = get_global_logger()
    errors: list[str] = []
    warnings: list[str] = []

    def _result(count: int = 0) -> ValidationResult:
        return ValidationResult(
            status="valid" if not errors else "invalid",
            errors=errors,
            warnings=warnings,
            redist_count=count,
            manifest_path=str(manifest_path),
        )

    logger.verbose("VALIDATE", f"Validating manifest: {manifest_path}")

    if not manifest_path.exists():
        errors.append(f"Manifest file not found: {manifest_path}")
        return _result()

    try:
        with open(manifest_path, encoding="utf-8") as f:
            manifest = yaml.safe_load(f)
    except yaml.YAMLError as err:
        errors.append(f"Invalid YAML syntax: {err}")
        return _result()
    except OSError as err:
        errors.append(f"Failed to read manifest file: {err}")
        return _result()

    logger.verbose("VALIDATE", "[OK] YAML syntax is valid")

    if not isinstance(manifest, dict):
        errors.append("Manifest must be a YAML dictionary/mapping")
        return _result()

    if "apiVersion" not in manifest:
        errors.append("Missing required field: apiVersion")
    else:
        api_version = manifest["apiVersion"]
        if not isinstance(api_version, str):
            errors.append("apiVersion must be a string")
        elif api_version != SUPPORTED_API_VERSION:
            warnings.append(
                f"apiVersion '{api_version}' may not be supported "
                f"(expected: {SUPPORTED_API_VERSION})"
            )

    if "defaults" in manifest:
        _validate_defaults(manifest["defaults"], errors)

    if "redistributables" not in manifest:
        errors.append("Missing required field: redistributables")
        return _result()

    entries = manifest["redistributables"]
    if not isinstance(entries, list):
        errors.append("Field 'redistributables' must be a list")
        return _result()
    if not entries:
        errors.append("Field 'redistributables' must contain at least one entry")
        return _result()

    logger.verbose("VALIDATE", f"[OK] Found {len(entries)} redistributable(s)")

    seen_ids: set[str] = set()
    for idx, entry in enumerate(entries):
        prefix = f"redistributables[{idx}]"

        if not isinstance(entry, dict):
            errors.append(f"{prefix}: Entry must be a dictionary")
            continue

        redist_id = entry.get("id")
        if redist_id is None:
            errors.append(f"{prefix}: Missing required field: id")
        elif not isinstance(redist_id, str) or not redist_id.strip():
            errors.append(f"{prefix}: Field 'id' must be a non-empty string")
        elif redist_id in seen_ids:
            errors.append(f"{prefix}: Duplicate id '{redist_id}'")
        else:
            seen_ids.add(redist_id)

        if "name" in entry and not isinstance(entry["name"], str):
            errors.append(f"{prefix}: Field 'name' must be a string")

        if "sources" not in entry:
            errors.append(f"{prefix}: Missing required field: sources")
        else:
            _validate_sources(entry["sources"], prefix, errors)

        sha256 = entry.get("sha256")
        if sha256 is not None and (
            not isinstance(sha256, str) or not _SHA256_RE.match(sha256)
        ):
            errors.append(f"{prefix}.sha256: Must be 64 hexadecimal characters")

        filename = entry.get("filename")
        if filename is not None:
            if not isinstance(filename, str) or not filename.strip():
                errors.append(f"{prefix}.filename: Must be a non-empty string")
            elif "/" in filename or "\\" in filename:
                errors.append(f"{prefix}.filename: Must not contain path separators")

        if sha256 is None:
            warnings.append(
                f"{prefix}: No sha256 given; downloads will not be verified"
            )

    status = "valid" if not errors else "invalid"
    if status == "valid":
        logger.verbose("VALIDATE", "[OK] Manifest is valid!")
    else:
        logger.verbose("VALIDATE", f"[ERROR] Manifest has {len(errors)} error(s)")

    return _result(len(entries))
