"""
redistkit - verified redistributable downloads for Windows deployment

A Python library and CLI that fetches redistributable runtime installers
(Visual C++, .NET and friends) ahead of packaging them for ConfigMgr, MDT or
Intune deployments.

redistkit provides:
  - Ordered candidate sources with immediate fallback (CDN, mirror, share)
  - Optional SHA-256 verification; mismatched files are deleted
  - http(s), ftp and file:// (UNC) transports with atomic writes
  - Declarative YAML manifests with layered org/publisher defaults

Quick Start
-----------
Validate a manifest:

    $ redistkit validate manifests/Microsoft/vcredist.yaml

Fetch everything it lists:

    $ redistkit fetch manifests/Microsoft/vcredist.yaml

Fetch one file with a fallback:

    $ redistkit get https://cdn.example.com/app.exe file://server/share/app.exe

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
core : module
    Manifest orchestration.
config : package
    YAML manifest loading and merging.
io : package
    Verified fetcher and transport providers.
validation : module
    Offline manifest checks.

Public API
----------
    from redistkit.io import get_file_from_uri, fetch_file, FetchRequest
    from redistkit.core import fetch_manifest
    from redistkit.validation import validate_manifest
    from redistkit.config import load_effective_config
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "Verified redistributable downloads for Windows deployment"

from redistkit.config import load_effective_config
from redistkit.core import fetch_manifest
from redistkit.io import FetchRequest, fetch_file, get_file_from_uri
from redistkit.validation import validate_manifest

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "FetchRequest",
    "fetch_file",
    "fetch_manifest",
    "get_file_from_uri",
    "load_effective_config",
    "validate_manifest",
]
