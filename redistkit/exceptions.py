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

"""Exception hierarchy for redistkit.

This module defines the exceptions raised by redistkit so callers can tell
apart the kinds of failure they may want to handle:

- ConfigError: Manifest or input problems (YAML parse errors, missing fields,
  relative destination paths)
- NetworkError: Transport failures (HTTP errors, unreachable shares, FTP errors)

Both inherit from RedistKitError, so a single except clause catches every
redistkit error.

Note:
    The verified fetcher never lets a NetworkError escape. A failed candidate
    source is logged and the next one is tried; only exhausting every source
    is reported, and that is reported as a False return value.

Example:
    Catching specific error types:
        ```python
        from pathlib import Path
        from redistkit.core import fetch_manifest
        from redistkit.exceptions import ConfigError

        try:
            results = fetch_manifest(Path("manifests/Microsoft/vcredist.yaml"))
        except ConfigError as e:
            print(f"Manifest error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "RedistKitError",
    "ConfigError",
    "NetworkError",
]


class RedistKitError(Exception):
    """Base exception for all redistkit errors."""

    pass


class ConfigError(RedistKitError):
    """Raised for configuration and input validation errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, empty files, non-mapping documents)
    - Missing manifest files
    - Unknown redistributable ids
    - Destination paths that are not absolute

    Example:
        Catching a relative destination:
            ```python
            from redistkit.exceptions import ConfigError
            from redistkit.io import get_file_from_uri

            try:
                get_file_from_uri(["https://example.com/a.exe"], "a.exe")
            except ConfigError as e:
                print(f"Invalid input: {e}")
            ```
    """

    pass


class NetworkError(RedistKitError):
    """Raised by transports when a single source cannot be fetched.

    This covers HTTP error statuses, connection failures and timeouts,
    unreadable file shares, FTP failures and unsupported URI schemes.
    """

    pass
