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

"""Public API return types for redistkit.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from pathlib import Path
        from redistkit.core import fetch_manifest

        for result in fetch_manifest(Path("manifests/Microsoft/vcredist.yaml")):
            print(result.redist_id, result.status, result.file_path)
        ```

Note:
    FetchRequest is a domain type and lives with the fetcher in
    redistkit.io.fetch.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FetchResult:
    """Result from fetching one redistributable.

    Attributes:
        redist_id: Redistributable identifier (or the file name for ad-hoc
            fetches).
        name: Display name.
        file_path: Path to the downloaded file, None if the fetch failed.
        sha256: SHA-256 of the downloaded file, None if the fetch failed.
        verified: True if the file was checked against an expected digest.
        status: "success" or "failed".
    """

    redist_id: str
    name: str
    file_path: Path | None
    sha256: str | None
    verified: bool
    status: str


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a manifest.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        redist_count: Number of redistributables in the manifest.
        manifest_path: String path to the validated manifest.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    redist_count: int
    manifest_path: str
