"""Download operations for redistkit.

This package provides the verified fetcher and the transport providers it
drives.

Modules:

fetch : module
    Ordered-candidate download with optional SHA-256 verification.
transport : module
    HTTP(S), file:// and ftp:// transports with atomic writes.

Public API:

get_file_from_uri : function
    Download one artifact from candidate URIs, returning True/False.
fetch_file : function
    Run a prepared FetchRequest.
FetchRequest : class
    Sources, absolute destination and optional digest for one fetch.
SchemeTransport : class
    Default transport dispatching on the URI scheme.

Example:
    from pathlib import Path
    from redistkit.io import get_file_from_uri

    ok = get_file_from_uri(
        ["https://example.com/vc_redist.x64.exe"],
        Path("C:/Temp/redist/vc_redist.x64.exe"),
    )

"""

from .fetch import (
    DEFAULT_DOWNLOAD_DIR,
    FetchRequest,
    derive_destination,
    fetch_file,
    get_file_from_uri,
    sha256_file,
)
from .transport import (
    FileTransport,
    FtpTransport,
    HttpTransport,
    SchemeTransport,
    Transport,
    make_session,
)

__all__ = [
    "DEFAULT_DOWNLOAD_DIR",
    "FetchRequest",
    "derive_destination",
    "fetch_file",
    "get_file_from_uri",
    "sha256_file",
    "FileTransport",
    "FtpTransport",
    "HttpTransport",
    "SchemeTransport",
    "Transport",
    "make_session",
]
