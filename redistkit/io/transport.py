"""
Transport providers for the verified fetcher.

A transport moves the bytes of one candidate source to one destination path.
It knows nothing about candidate lists or digests: it either leaves a complete
file at the destination or raises NetworkError, and the fetcher decides what
to do next.

Providers:

- **HttpTransport** - http:// and https:// via a requests.Session. Streams the
  body in 1 MiB chunks and rejects non-2xx responses.
- **FileTransport** - file:// URIs, including UNC shares written as
  file://server/share/path.
- **FtpTransport** - ftp:// URIs via urllib.request.
- **SchemeTransport** - Dispatches to one of the above by URI scheme. This is
  the default transport used by the fetcher.

Every provider writes to <name>.part and renames it onto the destination on
success, so a failed transfer never leaves a partial file behind.

Constants:

- DEFAULT_CHUNK (int): Stream chunk size (1 MiB).
- USER_AGENT (str): User-Agent header sent on HTTP requests.

Example:
    Fetch one source directly:

        >>> from pathlib import Path
        >>> from redistkit.io.transport import SchemeTransport
        >>> SchemeTransport().fetch(
        ...     "https://aka.ms/vs/17/release/vc_redist.x64.exe",
        ...     Path("C:/Temp/redist/vc_redist.x64.exe"),
        ... )

Notes:
- Fallback between sources is the fetcher's job, so the HTTP session is built
  with Retry(total=0): no per-request retries and no backoff.
- Accept-Encoding is pinned to identity so installers arrive as raw bytes.
- Timeouts are per-request, not total transfer time.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO, Protocol
from urllib.error import URLError
from urllib.parse import urlparse
from urllib.request import url2pathname, urlopen

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from redistkit.exceptions import NetworkError
from redistkit.logging import Logger, get_global_logger

# Stream size per chunk (1 MiB).
DEFAULT_CHUNK = 1024 * 1024

USER_AGENT = "redistkit/0.1"


class Transport(Protocol):
    """Protocol for transport providers."""

    def fetch(self, uri: str, destination: Path) -> None:
        """Transfer uri to destination.

        Args:
            uri: Source locator.
            destination: Absolute path the file is written to.

        Raises:
            NetworkError: If the transfer fails for any reason.
        """
        ...


def _iter_stream(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK) -> Iterator[bytes]:
    """Yield fixed-size chunks from a binary file-like object."""
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _write_atomic(chunks: Iterable[bytes], destination: Path) -> int:
    """Write chunks to destination via a .part file and rename on success.

    Returns:
        Number of bytes written.

    Note:
        Any error while reading chunks or writing removes the .part file and
        is re-raised unchanged for the caller to wrap.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    tmp = destination.with_name(destination.name + ".part")
    written = 0
    try:
        with tmp.open("wb") as f:
            for chunk in chunks:
                if not chunk:
                    continue
                f.write(chunk)
                written += len(chunk)
        tmp.replace(destination)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    return written


def make_session() -> requests.Session:
    """
    Create a requests.Session for installer downloads.

    - No automatic retries: the candidate list is the retry mechanism.
    - Sets a User-Agent to avoid being blocked by CDNs.
    - Forces 'Accept-Encoding: identity' to receive the raw installer bytes.
    """
    s = requests.Session()
    retries = Retry(total=0, raise_on_status=False)
    s.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept-Encoding": "identity",
        }
    )
    s.mount("http://", HTTPAdapter(max_retries=retries))
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


class HttpTransport:
    """Blocking HTTP(S) transport backed by requests.

    Args:
        session: Session to use. A new one from make_session() is created
            for each fetch if omitted.
        timeout: Per-request timeout (seconds).
        validate_content_type: If True, reject text/html responses, which
            usually mean a login or error page rather than an installer.
        logger: Logger for diagnostics. Defaults to the global logger.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        timeout: int = 60,
        validate_content_type: bool = False,
        logger: Logger | None = None,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.validate_content_type = validate_content_type
        self.logger = logger

    def fetch(self, uri: str, destination: Path) -> None:
        logger = self.logger or get_global_logger()
        session = self.session or make_session()

        logger.debug("HTTP", f"GET {uri}")
        try:
            with session.get(
                uri, stream=True, allow_redirects=True, timeout=self.timeout
            ) as resp:
                for hist in resp.history:
                    logger.debug(
                        "HTTP",
                        f"Redirect {hist.status_code} -> "
                        f"{hist.headers.get('Location', 'unknown')}",
                    )

                try:
                    resp.raise_for_status()
                except requests.HTTPError as err:
                    raise NetworkError(f"download failed for {uri}: {err}") from err

                logger.debug("HTTP", f"Response: {resp.status_code} {resp.reason}")

                if self.validate_content_type:
                    ctype = resp.headers.get("Content-Type", "")
                    if "text/html" in ctype.lower():
                        raise NetworkError(
                            f"expected binary from {uri}, got content-type={ctype}"
                        )

                size = _write_atomic(
                    resp.iter_content(chunk_size=DEFAULT_CHUNK), destination
                )
        except requests.RequestException as err:
            raise NetworkError(f"download failed for {uri}: {err}") from err
        except OSError as err:
            raise NetworkError(f"could not write {destination}: {err}") from err
        finally:
            if self.session is None:
                session.close()

        logger.debug("FILE", f"Wrote {size} bytes to {destination}")


class FileTransport:
    """Copy transport for file:// URIs (local paths and UNC shares)."""

    def __init__(self, *, logger: Logger | None = None) -> None:
        self.logger = logger

    @staticmethod
    def source_path(uri: str) -> Path:
        """Convert a file:// URI to a filesystem path.

        file://server/share/x.exe becomes //server/share/x.exe so UNC shares
        keep their host component.
        """
        parsed = urlparse(uri)
        path = url2pathname(parsed.path)
        if parsed.netloc and parsed.netloc.lower() != "localhost":
            return Path(f"//{parsed.netloc}{path}")
        return Path(path)

    def fetch(self, uri: str, destination: Path) -> None:
        logger = self.logger or get_global_logger()
        source = self.source_path(uri)
        logger.debug("FILE", f"Copying {source} -> {destination}")

        try:
            with source.open("rb") as f:
                size = _write_atomic(_iter_stream(f), destination)
        except OSError as err:
            raise NetworkError(f"copy failed for {uri}: {err}") from err

        logger.debug("FILE", f"Wrote {size} bytes to {destination}")


class FtpTransport:
    """FTP transport using urllib.request.

    Args:
        timeout: Socket timeout (seconds).
    """

    def __init__(self, *, timeout: int = 60, logger: Logger | None = None) -> None:
        self.timeout = timeout
        self.logger = logger

    def fetch(self, uri: str, destination: Path) -> None:
        logger = self.logger or get_global_logger()
        logger.debug("FTP", f"RETR {uri}")

        try:
            with urlopen(uri, timeout=self.timeout) as resp:
                size = _write_atomic(_iter_stream(resp), destination)
        except (URLError, OSError) as err:
            raise NetworkError(f"download failed for {uri}: {err}") from err

        logger.debug("FILE", f"Wrote {size} bytes to {destination}")


class SchemeTransport:
    """Dispatch a fetch to the transport registered for the URI scheme.

    Args:
        timeout: Per-request timeout passed to the HTTP and FTP transports.
        transports: Optional mapping of scheme -> transport overriding or
            extending the defaults.
    """

    def __init__(
        self,
        *,
        timeout: int = 60,
        transports: dict[str, Transport] | None = None,
        logger: Logger | None = None,
    ) -> None:
        http = HttpTransport(timeout=timeout, logger=logger)
        self.transports: dict[str, Transport] = {
            "http": http,
            "https": http,
            "ftp": FtpTransport(timeout=timeout, logger=logger),
            "file": FileTransport(logger=logger),
        }
        if transports:
            self.transports.update(transports)

    def fetch(self, uri: str, destination: Path) -> None:
        scheme = urlparse(uri).scheme.lower()
        transport = self.transports.get(scheme)
        if transport is None:
            raise NetworkError(f"unsupported URI scheme {scheme!r}: {uri}")
        transport.fetch(uri, destination)
