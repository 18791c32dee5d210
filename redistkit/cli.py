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

"""Command-line interface for redistkit.

Commands:

    validate: Validate manifest syntax and structure (no downloads)
    fetch: Fetch the redistributables listed in a manifest
    get: Fetch one file from ad-hoc candidate URIs

Example:
    Validate a manifest:
        ```bash
        $ redistkit validate manifests/Microsoft/vcredist.yaml
        ```

    Fetch one redistributable from a manifest:
        ```bash
        $ redistkit fetch manifests/Microsoft/vcredist.yaml --id vcredist-x64
        ```

    Fetch with a fallback mirror and digest check:
        ```bash
        $ redistkit get https://cdn.example.com/app.exe \\
              file://fileserver/redist/app.exe --sha256 <hex>
        ```

Exit Codes:

- 0: Success
- 1: Error (invalid manifest, failed fetch, or configuration error)

Note:
    Verbose mode shows full tracebacks on errors. Debug mode implies verbose
    and adds per-request HTTP/FILE detail and merged configuration dumps.

"""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys
import traceback

from redistkit.core import fetch_manifest, fetch_uris
from redistkit.exceptions import RedistKitError
from redistkit.logging import get_logger, set_global_logger
from redistkit.results import FetchResult
from redistkit.validation import validate_manifest


def _package_version() -> str:
    try:
        return version("redistkit")
    except PackageNotFoundError:
        return "unknown"


def _print_results(results: list[FetchResult]) -> None:
    print("=" * 70)
    print("FETCH RESULTS")
    print("=" * 70)
    for result in results:
        print(f"ID:         {result.redist_id}")
        print(f"Name:       {result.name}")
        print(f"Status:     {result.status}")
        if result.status == "success":
            print(f"File Path:  {result.file_path}")
            print(f"SHA-256:    {result.sha256}")
            print(f"Verified:   {'yes' if result.verified else 'no (no sha256 given)'}")
        print("-" * 70)


def _report_error(err: Exception, args: argparse.Namespace) -> int:
    print(f"Error: {err}")
    if getattr(args, "verbose", False) or getattr(args, "debug", False):
        traceback.print_exc()
    return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'redistkit validate'.

    Returns:
        Exit code (0 for a valid manifest, 1 for an invalid one).
    """
    set_global_logger(get_logger(verbose=args.verbose))

    manifest_path = Path(args.manifest).resolve()
    print(f"Validating manifest: {manifest_path}")
    print()

    result = validate_manifest(manifest_path)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Manifest:         {result.manifest_path}")
    print(f"Status:           {result.status.upper()}")
    print(f"Redistributables: {result.redist_count}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Manifest is valid!")
        return 0
    print()
    print(f"[FAILED] Manifest validation failed with {len(result.errors)} error(s).")
    return 1


def cmd_fetch(args: argparse.Namespace) -> int:
    """Handler for 'redistkit fetch'.

    Returns:
        Exit code (0 if every selected redistributable was fetched, else 1).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    manifest_path = Path(args.manifest).resolve()
    output_dir = Path(args.output_dir) if args.output_dir else None

    if not manifest_path.exists():
        print(f"Error: Manifest file not found: {manifest_path}")
        return 1

    print(f"Fetching redistributables from: {manifest_path}")
    print()

    try:
        results = fetch_manifest(
            manifest_path, redist_id=args.id, output_dir=output_dir
        )
    except RedistKitError as err:
        return _report_error(err, args)

    _print_results(results)

    failed = [r for r in results if r.status != "success"]
    print()
    if failed:
        print(f"[FAILED] {len(failed)} of {len(results)} redistributable(s) failed.")
        return 1
    print(f"[SUCCESS] {len(results)} redistributable(s) fetched.")
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    """Handler for 'redistkit get'.

    Returns:
        Exit code (0 on success, 1 if every source failed).
    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    destination = Path(args.destination) if args.destination else None
    output_dir = Path(args.output_dir) if args.output_dir else None

    try:
        result = fetch_uris(
            args.uris,
            destination=destination,
            expected_sha256=args.sha256,
            output_dir=output_dir,
        )
    except RedistKitError as err:
        return _report_error(err, args)

    _print_results([result])

    print()
    if result.status != "success":
        print(f"[FAILED] All {len(args.uris)} source(s) failed.")
        return 1
    print("[SUCCESS] File fetched.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the redistkit CLI."""
    parser = argparse.ArgumentParser(
        prog="redistkit",
        description="redistkit - verified redistributable downloads for Windows deployment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"redistkit {_package_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate manifest syntax and structure (no downloads)",
    )
    parser_validate.add_argument("manifest", help="Path to the manifest YAML file")
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress and details",
    )
    parser_validate.set_defaults(func=cmd_validate)

    # 'fetch' command
    parser_fetch = subparsers.add_parser(
        "fetch",
        help="Fetch the redistributables listed in a manifest",
    )
    parser_fetch.add_argument("manifest", help="Path to the manifest YAML file")
    parser_fetch.add_argument(
        "--id",
        default=None,
        help="Only fetch the redistributable with this id",
    )
    parser_fetch.add_argument(
        "--output-dir",
        default=None,
        help="Download directory (default: defaults.download_dir or system temp)",
    )
    _add_verbosity(parser_fetch)
    parser_fetch.set_defaults(func=cmd_fetch)

    # 'get' command
    parser_get = subparsers.add_parser(
        "get",
        help="Fetch one file from ordered candidate URIs",
    )
    parser_get.add_argument(
        "uris",
        nargs="+",
        help="Candidate URIs, tried in order",
    )
    parser_get.add_argument(
        "--destination",
        default=None,
        help="Absolute target path (default: derived from the first URI)",
    )
    parser_get.add_argument(
        "--sha256",
        default=None,
        help="Expected SHA-256 (hex) of the file",
    )
    parser_get.add_argument(
        "--output-dir",
        default=None,
        help="Directory used when --destination is omitted (default: system temp)",
    )
    _add_verbosity(parser_get)
    parser_get.set_defaults(func=cmd_get)

    return parser


def _add_verbosity(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point, registered as the 'redistkit' console script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
