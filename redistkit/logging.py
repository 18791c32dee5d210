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

"""Progress and diagnostic output for redistkit.

The fetcher, transports and manifest loader report what they are doing
(which candidate is being tried, how long it took, which digests were
compared) through a small Logger protocol instead of printing directly.
The CLI decides how chatty that output is; library callers get silence
unless they ask for more.

Levels, from loudest to quietest:

- warning: a candidate failed or a digest did not match. Always shown.
- step: "[2/5] Fetching ..." progress over a manifest. Always shown.
- verbose: per-candidate detail such as URIs, timings and digests.
- debug: transport internals such as redirects and byte counts. Turning
  debug on also turns verbose on.

Example:
    Show per-candidate detail for everything that follows:
        ```python
        from redistkit.logging import get_logger, set_global_logger

        set_global_logger(get_logger(verbose=True))
        ```

    Or hand a logger to a single call:
        ```python
        from redistkit.io import get_file_from_uri
        from redistkit.logging import DefaultLogger

        get_file_from_uri(uris, dest, logger=DefaultLogger(debug=True))
        ```
"""

from __future__ import annotations

from typing import Protocol


class Logger(Protocol):
    """What redistkit needs from a logger."""

    def step(self, step: int, total: int, message: str) -> None:
        """Report progress through a sequence of items.

        Args:
            step: Position of the current item, counting from 1.
            total: Number of items in the sequence.
            message: What is happening to the current item.
        """
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Report detail that is useful when following a single fetch.

        Args:
            prefix: Short upper-case tag for the subsystem, e.g. "FETCH".
            message: Text to report.
        """
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Report low-level detail from transports and config merging.

        Args:
            prefix: Short upper-case tag for the subsystem, e.g. "HTTP".
            message: Text to report.
        """
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Report a recoverable problem, such as a candidate that failed.

        Args:
            prefix: Short upper-case tag for the subsystem.
            message: Text to report.
        """
        ...


class DefaultLogger:
    """Writes "[PREFIX] message" lines to stdout.

    Args:
        verbose: Show verbose lines.
        debug: Show debug lines as well as verbose ones.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug

    def step(self, step: int, total: int, message: str) -> None:
        print(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            print(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            print(f"[{prefix}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        print(f"[{prefix}] WARNING: {message}")


class SilentLogger:
    """Discards everything. Installed globally until something replaces it."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Build a stdout logger for the given CLI flags."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Return the logger used when a function is not given one."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Replace the process-wide fallback logger.

    The CLI calls this once per command after parsing -v/-d. Tests reset it
    to a SilentLogger between cases.
    """
    global _global_logger
    _global_logger = logger
