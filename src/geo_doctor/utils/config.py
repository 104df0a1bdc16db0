"""Configuration management for geo-doctor runs.

Configuration is layered, later layers winning:

1. `DEFAULT_CONFIG` (built in, so the CLI runs without any config file)
2. an optional YAML file (`config/geo_doctor.yaml` at the project root by default)
3. environment variable overrides, either nested with a double underscore
   (`THRESHOLDS__MIN_CLUSTERS=3`) or the flat `GEO_*` names used by CI jobs
   (`GEO_MAX_COMPONENTS=inf`).

Each call to `load_config()` builds a fresh dictionary; nothing is cached at
module level, so two runs in the same process never share state.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_RELATIVE_PATH = Path("config") / "geo_doctor.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "paths": {
        "areas": "data/areas.json",
        "clusters": "data/areas.clusters.json",
        "adjacency": "data/areas.adj.json",
        "report": "__reports/geo-doctor.json",
        "symmetric_adjacency": "__reports/geo-adjacency.symmetric.json",
        "proximity": "data/proximity.json",
    },
    "thresholds": {
        "min_clusters": 1,
        "require_symmetry": True,
        "min_coords_pct": 80.0,
        "max_cross_cluster_edges": "Infinity",
        "max_components": "Infinity",
    },
    "components": {
        "small_component_max_size": 20,
        "smallest_limit": 5,
    },
    "proximity": {
        "k": 6,
        "max_workers": 1,
    },
    "pipeline": {
        "max_workers": 4,
        "autofix_symmetry": False,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}

REQUIRED_SECTIONS = ["paths", "thresholds", "components", "proximity", "pipeline"]

# Flat environment names accepted for CI compatibility -> nested config path
LEGACY_ENV_KEYS: Dict[str, List[str]] = {
    "GEO_MIN_CLUSTERS": ["thresholds", "min_clusters"],
    "GEO_REQUIRE_SYMMETRY": ["thresholds", "require_symmetry"],
    "GEO_MIN_COORDS_PCT": ["thresholds", "min_coords_pct"],
    "GEO_MAX_CROSS_CLUSTER_EDGES": ["thresholds", "max_cross_cluster_edges"],
    "GEO_MAX_COMPONENTS": ["thresholds", "max_components"],
    "GEO_AUTOFIX_SYMMETRY": ["pipeline", "autofix_symmetry"],
}


def default_config_path() -> Path:
    """Return the default YAML location relative to the project root."""
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    return project_root / DEFAULT_CONFIG_RELATIVE_PATH


def load_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Load the layered geo-doctor configuration.

    Args:
        config_path: Path to a YAML configuration file. If None, the default
            project file is used when it exists, otherwise only built-in
            defaults and environment overrides apply.
        environ: Environment mapping to read overrides from. Defaults to
            `os.environ`.

    Returns:
        Dictionary containing configuration values with file and environment
        overrides applied.

    Raises:
        FileNotFoundError: If an explicitly given configuration file does not exist.
        yaml.YAMLError: If the YAML file is malformed.
        ValueError: If a configuration section is missing or is not a mapping.

    Example:
        >>> config = load_config("config/geo_doctor.yaml")
        >>> config["thresholds"]["min_clusters"]
        1
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is None:
        candidate = default_config_path()
        config_file: Optional[Path] = candidate if candidate.exists() else None
    else:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

    if config_file is not None:
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML configuration file: {e}") from e

        if file_config is None:
            file_config = {}
        if not isinstance(file_config, dict):
            raise ValueError(
                f"Configuration file {config_file} must contain a mapping at top level"
            )
        _deep_merge(config, file_config)
        logger.debug(f"Loaded configuration file {config_file}")

    config = _merge_env_overrides(config, os.environ if environ is None else environ)

    _validate_config(config)

    return config


def _deep_merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> None:
    """Recursively merge `overrides` into `base` in place."""
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)


def _merge_env_overrides(
    config: Dict[str, Any], environ: Mapping[str, str]
) -> Dict[str, Any]:
    """Merge environment variable overrides into configuration dictionary.

    Nested overrides use the double underscore convention and must start with a
    known section name, so `PATHS__REPORT=out.json` maps to
    `config["paths"]["report"]` while unrelated variables are ignored. The flat
    `GEO_*` names in `LEGACY_ENV_KEYS` are applied afterwards.

    Args:
        config: Configuration dictionary to merge overrides into.
        environ: Environment mapping.

    Returns:
        Configuration dictionary with environment variable overrides applied.
    """
    merged = copy.deepcopy(config)
    sections = set(DEFAULT_CONFIG)

    for key in sorted(environ):
        if "__" not in key:
            continue
        parts = key.split("__")
        if parts[0].lower() not in sections or not all(parts):
            continue
        _set_nested_value(merged, parts, environ[key])

    for env_key, path in LEGACY_ENV_KEYS.items():
        if env_key in environ:
            _set_nested_value(merged, path, environ[env_key])

    return merged


def _set_nested_value(config: Dict[str, Any], path: List[str], value: Any) -> None:
    """Set a nested value in configuration dictionary.

    Args:
        config: Configuration dictionary to modify.
        path: List of keys representing the nested path (e.g., ["thresholds", "min_clusters"]).
        value: Raw string value to convert and set at the nested path.
    """
    current = config

    for i, key in enumerate(path[:-1]):
        key_lower = key.lower()
        if key_lower not in current or current[key_lower] is None:
            current[key_lower] = {}
        elif not isinstance(current[key_lower], dict):
            conflict_path = ".".join(path[: i + 1])
            logger.warning(
                f"Cannot set environment variable override: '{'__'.join(path)}' "
                f"conflicts with existing non-dict value at path '{conflict_path}'"
            )
            return
        current = current[key_lower]

    current[path[-1].lower()] = _convert_env_value(value)


def _convert_env_value(value: str) -> Any:
    """Convert environment variable string to appropriate Python type.

    Args:
        value: String value from environment variable.

    Returns:
        Converted value (bool, int, float, or str). Sentinel spellings such as
        "inf" stay strings; threshold parsing owns their meaning.
    """
    stripped = value.strip()

    if stripped.lower() in ("true", "false"):
        return stripped.lower() == "true"

    try:
        return int(stripped)
    except ValueError:
        pass

    try:
        converted = float(stripped)
    except ValueError:
        return stripped

    # float("inf") / float("nan") would silently swallow the sentinel spelling
    if converted != converted or converted in (float("inf"), float("-inf")):
        return stripped
    return converted


def _validate_config(config: Dict[str, Any]) -> None:
    """Validate that required configuration sections exist and are mappings.

    Args:
        config: Configuration dictionary to validate.

    Raises:
        ValueError: If required sections are missing or malformed.
    """
    for section in REQUIRED_SECTIONS:
        if section not in config:
            raise ValueError(
                f"Required configuration section '{section}' is missing. "
                f"Please check your configuration file."
            )
        if not isinstance(config[section], dict):
            raise ValueError(
                f"Configuration section '{section}' must be a mapping, "
                f"got {type(config[section]).__name__}"
            )
