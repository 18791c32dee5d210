"""
Verified download from an ordered list of candidate sources.

This is the download primitive every redistkit workflow goes through. A caller
names one logical artifact by several alternative locations (a vendor CDN, an
internal mirror, a file share) and optionally its SHA-256 digest. The fetcher
tries the locations strictly in order and stops at the first one that
produces a file with the right content.

Algorithm:

0. A file already at the destination is removed before the first attempt, so
   a fetch that fails leaves nothing behind.
1. Walk the sources in order, skipping empty entries.
2. Hand each source to the transport. A NetworkError moves straight on to the
   next source, with no delay or backoff.
3. Without an expected digest, the first completed transfer wins.
4. With an expected digest, the file is hashed and compared case-insensitively.
   A mismatch deletes the file and moves on to the next source, exactly like
   a transport failure.
5. When the list is exhausted, the fetch reports False.

Failures are reported as a False return value, never as an exception. The one
exception is a destination that is not an absolute path, which raises
ConfigError before any transfer is attempted.

Constants:

- DEFAULT_DOWNLOAD_DIR (Path): Where files land when no destination is given.
- DEFAULT_FILENAME (str): Name used when a URI has no final path segment.

Example:
    Fall back from the vendor CDN to an internal share:

        >>> from redistkit.io import get_file_from_uri
        >>> ok = get_file_from_uri(
        ...     [
        ...         "https://aka.ms/vs/17/release/vc_redist.x64.exe",
        ...         "file://fileserver/redist/vc_redist.x64.exe",
        ...     ],
        ...     expected_sha256="abc123...",
        ... )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import hashlib
from pathlib import Path
import tempfile
import time
from urllib.parse import unquote, urlparse

from redistkit.exceptions import ConfigError, NetworkError
from redistkit.io.transport import DEFAULT_CHUNK, SchemeTransport, Transport
from redistkit.logging import Logger, get_global_logger

DEFAULT_DOWNLOAD_DIR = Path(tempfile.gettempdir()) / "redistkit"

DEFAULT_FILENAME = "download.bin"


def _require_absolute(destination: Path) -> Path:
    if not destination.is_absolute():
        raise ConfigError(f"destination must be an absolute path: {destination}")
    return destination


@dataclass(frozen=True)
class FetchRequest:
    """One verified fetch: candidate sources, target path and optional digest.

    Attributes:
        sources: Ordered candidate URIs. Empty or None entries are skipped.
        destination: Absolute path of the file to produce.
        expected_sha256: Optional hex SHA-256 of the expected file content.

    Raises:
        ConfigError: If destination is not an absolute path.
    """

    sources: tuple[str | None, ...]
    destination: Path
    expected_sha256: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(self, "destination", Path(self.destination))
        _require_absolute(self.destination)


def derive_destination(uri: str, default_dir: Path) -> Path:
    """Derive a download path from a source URI.

    The query string and fragment are dropped, then the last path segment is
    joined onto default_dir. A URI whose path is empty or ends in "/" has
    no last segment and falls back to DEFAULT_FILENAME.

    Example:
        >>> derive_destination("https://x.test/dl/app.exe?sig=abc", Path("/tmp/r"))
        PosixPath('/tmp/r/app.exe')
    """
    name = unquote(urlparse(uri).path).rsplit("/", 1)[-1]
    return Path(default_dir) / (name or DEFAULT_FILENAME)


def sha256_file(path: Path) -> str:
    """Compute the lowercase hex SHA-256 of a file, streaming in chunks."""
    h = hashlib.sha256()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(DEFAULT_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def fetch_file(
    request: FetchRequest,
    *,
    transport: Transport | None = None,
    logger: Logger | None = None,
) -> bool:
    """Fetch request.destination from the first source that yields a valid file.

    Args:
        request: Sources, destination and optional digest.
        transport: Transport provider. Defaults to SchemeTransport().
        logger: Logger for progress and diagnostics. Defaults to the global
            logger.

    Returns:
        True if the destination now holds the downloaded (and, when a digest
            was supplied, verified) file. False if every source failed.
    """
    logger = logger or get_global_logger()
    transport = transport or SchemeTransport(logger=logger)
    destination = request.destination
    expected = request.expected_sha256
    total = len(request.sources)

    # A file left by an earlier run must not survive a failed fetch.
    if any(request.sources) and destination.is_file():
        logger.verbose("FETCH", f"Removing existing file: {destination}")
        destination.unlink()

    for index, source in enumerate(request.sources):
        if not source:
            logger.debug("FETCH", f"Skipping empty source at index {index}")
            continue

        logger.verbose("FETCH", f"Source {index + 1}/{total}: {source}")
        started_at = time.time()
        try:
            transport.fetch(source, destination)
        except NetworkError as err:
            elapsed = time.time() - started_at
            logger.warning("FETCH", f"{err} (after {elapsed:.1f}s)")
            continue

        elapsed = time.time() - started_at
        logger.verbose("FETCH", f"Downloaded {destination} in {elapsed:.1f}s")

        if not expected:
            return True

        digest = sha256_file(destination)
        logger.verbose("FETCH", f"Expected SHA-256: {expected}")
        logger.verbose("FETCH", f"Actual SHA-256:   {digest}")
        if digest.lower() == expected.strip().lower():
            logger.verbose("FETCH", "SHA-256 verified")
            return True

        logger.warning(
            "FETCH",
            f"sha256 mismatch for {source}: got {digest}, expected {expected}; "
            f"removing {destination}",
        )
        destination.unlink(missing_ok=True)

    logger.warning("FETCH", f"All {total} source(s) failed for {destination}")
    return False


def get_file_from_uri(
    sources: Sequence[str | None] | str,
    destination: Path | str | None = None,
    expected_sha256: str | None = None,
    *,
    default_dir: Path | None = None,
    transport: Transport | None = None,
    logger: Logger | None = None,
) -> bool:
    """Download one artifact from ordered candidate URIs with optional verification.

    Args:
        sources: Candidate URIs in priority order. A single string is treated
            as a one-element list.
        destination: Absolute target path. If omitted, the file name is taken
            from the first non-empty source and placed in default_dir.
        expected_sha256: Optional hex SHA-256, compared case-insensitively.
        default_dir: Directory used when destination is omitted. Defaults to
            DEFAULT_DOWNLOAD_DIR.
        transport: Transport provider. Defaults to SchemeTransport().
        logger: Logger for progress and diagnostics.

    Returns:
        True on success, False when no source produced a valid file
            (including an empty source list).

    Raises:
        ConfigError: If destination is given and is not absolute.
    """
    logger = logger or get_global_logger()

    if destination is not None:
        destination = _require_absolute(Path(destination))

    if isinstance(sources, str):
        sources = [sources]
    candidates = tuple(sources)

    first = next((s for s in candidates if s), None)
    if first is None:
        logger.warning("FETCH", "No sources given; nothing to download")
        return False

    if destination is None:
        base = Path(default_dir) if default_dir is not None else DEFAULT_DOWNLOAD_DIR
        destination = derive_destination(first, base.resolve())
        logger.verbose("FETCH", f"Destination derived from source: {destination}")

    request = FetchRequest(
        sources=candidates,
        destination=destination,
        expected_sha256=expected_sha256,
    )
    return fetch_file(request, transport=transport, logger=logger)
