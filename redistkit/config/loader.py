"""
Turn a manifest file into the configuration redistkit actually fetches with.

Most settings a manifest needs (where downloads go, how long to wait on a
slow CDN, a publisher's internal mirror) are the same across many manifests.
Those live in a defaults tree next to the manifests and are layered
underneath each one:

    defaults/org.yaml                         applies to every manifest
    defaults/publishers/<Publisher>.yaml      applies to one publisher
    manifests/<Publisher>/<name>.yaml         the manifest itself

The defaults tree is found by looking for defaults/org.yaml in the
manifest's directory and then in each parent. Without one, the manifest
is used on its own.

Later layers win. Nested mappings are combined key by key, while a list in
a later layer replaces the earlier list outright, so a manifest that names
its own sources never inherits a publisher's.

After merging, a relative defaults.download_dir is made absolute against
the defaults/ directory when one was found, else against the manifest's
directory.

Every problem reading a layer (missing file, bad YAML, empty document,
non-mapping manifest) surfaces as ConfigError with the cause chained.

Example
-------
    >>> from pathlib import Path
    >>> from redistkit.config import load_effective_config
    >>> cfg = load_effective_config(Path("manifests/Microsoft/vcredist.yaml"))
    >>> cfg["defaults"]["download_dir"]
    '/srv/deploy/redist'
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from redistkit.exceptions import ConfigError
from redistkit.logging import get_global_logger


def _load_yaml_file(p: Path) -> Any:
    """Parse one layer with yaml.safe_load. An empty document is an error."""
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Layer overlay on top of base and return the combined mapping.

    Only mappings present on both sides are combined recursively. Any other
    value from overlay, lists included, takes the place of base's value.
    Neither argument is modified.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


def _find_defaults_root(start_dir: Path) -> Path | None:
    """Return the nearest defaults/ directory holding org.yaml, or None."""
    for parent in [start_dir] + list(start_dir.parents):
        candidate = parent / "defaults" / "org.yaml"
        if candidate.exists():
            return parent / "defaults"
    return None


def _detect_publisher(manifest_path: Path, manifest_obj: dict[str, Any]) -> str | None:
    """Name the publisher whose defaults apply to this manifest.

    The folder a manifest sits in wins (manifests/Microsoft/x.yaml gives
    "Microsoft"). A top-level "publisher" key is only consulted when the
    manifest has no parent folder name.
    """
    parent_name = manifest_path.parent.name or None

    publisher_from_manifest: str | None = None
    value = manifest_obj.get("publisher")
    if isinstance(value, str) and value.strip():
        publisher_from_manifest = value.strip()

    return parent_name or publisher_from_manifest


def _resolve_known_paths(
    cfg: dict[str, Any], manifest_dir: Path, defaults_root: Path | None = None
) -> None:
    """Make defaults.download_dir absolute, editing cfg in place."""
    defaults = cfg.get("defaults")
    if not isinstance(defaults, dict):
        return
    raw_path = defaults.get("download_dir")
    if isinstance(raw_path, str) and raw_path:
        p = Path(raw_path)
        if not p.is_absolute():
            base = defaults_root if defaults_root else manifest_dir
            defaults["download_dir"] = str((base / p).resolve())


def _print_yaml_content(data: dict[str, Any], indent: int = 0) -> None:
    """Dump a layer line by line to the debug log."""
    logger = get_global_logger()

    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    for line in yaml_str.split("\n"):
        if line.strip():
            logger.debug("CONFIG", " " * indent + line)


def load_effective_config(
    manifest_path: Path,
    *,
    publisher: str | None = None,
) -> dict[str, Any]:
    """Build the configuration a manifest is fetched with.

    Args:
        manifest_path: Manifest YAML file. Relative paths are resolved
            against the current directory.
        publisher: Use this publisher's defaults instead of the one
            detected from the manifest's folder or "publisher" key.

    Returns:
        Org defaults, then publisher defaults, then the manifest, merged in
            that order with defaults.download_dir made absolute. A manifest
            outside any defaults tree comes back unchanged apart from that
            path.

    Raises:
        ConfigError: If any layer is missing, unparsable or empty, or the
            manifest is not a mapping at the top level.
    """
    logger = get_global_logger()
    manifest_path = Path(manifest_path).resolve()
    manifest_dir = manifest_path.parent

    logger.verbose("CONFIG", f"Loading manifest: {manifest_path}")

    manifest_obj = _load_yaml_file(manifest_path)
    if not isinstance(manifest_obj, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {manifest_path}")

    defaults_root = _find_defaults_root(manifest_dir)
    if defaults_root:
        logger.verbose("CONFIG", f"Found defaults root: {defaults_root}")

    merged: dict[str, Any] = {}
    layers_merged = 0
    publisher_name = publisher

    if defaults_root:
        org_defaults_path = defaults_root / "org.yaml"
        logger.verbose(
            "CONFIG", f"Loading: {org_defaults_path.relative_to(defaults_root.parent)}"
        )
        org_defaults = _load_yaml_file(org_defaults_path)
        if isinstance(org_defaults, dict):
            logger.debug("CONFIG", "--- Content from org.yaml ---")
            _print_yaml_content(org_defaults)
            merged = _deep_merge_dicts(merged, org_defaults)
            layers_merged += 1

        if publisher_name is None:
            publisher_name = _detect_publisher(manifest_path, manifest_obj)

        if publisher_name:
            logger.verbose("CONFIG", f"Detected publisher: {publisher_name}")
            candidate = defaults_root / "publishers" / f"{publisher_name}.yaml"
            if candidate.exists():
                logger.verbose(
                    "CONFIG", f"Loading: {candidate.relative_to(defaults_root.parent)}"
                )
                publisher_defaults = _load_yaml_file(candidate)
                if isinstance(publisher_defaults, dict):
                    logger.debug("CONFIG", f"--- Content from {candidate.name} ---")
                    _print_yaml_content(publisher_defaults)
                    merged = _deep_merge_dicts(merged, publisher_defaults)
                    layers_merged += 1

    logger.debug("CONFIG", f"--- Content from {manifest_path.name} ---")
    _print_yaml_content(manifest_obj)

    merged = _deep_merge_dicts(merged, manifest_obj)
    layers_merged += 1

    logger.verbose("CONFIG", f"Deep merging {layers_merged} layer(s)")
    logger.debug("CONFIG", "--- Final Merged Configuration ---")
    _print_yaml_content(merged)

    _resolve_known_paths(merged, manifest_dir, defaults_root)

    return merged
