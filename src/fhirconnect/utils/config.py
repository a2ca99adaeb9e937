"""
Navigation Configuration Loader.

Loads configuration from .fhirconnect/config.yaml and validates it against the
packaged JSON schema.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from jsonschema import Draft7Validator

from fhirconnect.errors import ConfigError
from fhirconnect.utils.repo import MARKER_DIR

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "config.schema.json"

# Never traversed, whatever the config says
ALWAYS_EXCLUDED_DIRS = ("target", "build", "_build")

DEFAULT_EXTENSIONS = (".yaml", ".yml")


def config_path(workspace_root: Path) -> Path:
    return workspace_root / MARKER_DIR / "config.yaml"


def load_config(workspace_root: Path, strict: bool = False) -> Dict[str, Any]:
    """
    Load .fhirconnect/config.yaml configuration file.

    The config file controls:
    - Extra directories skipped by the workspace scanner
    - File extensions treated as YAML mapping documents
    - Log level used by the CLI

    Args:
        workspace_root: Workspace root path
        strict: Raise ConfigError instead of falling back to an empty config

    Returns:
        Parsed configuration dict, or empty dict if file doesn't exist

    Example config:
        scan:
          exclude_dirs:
            - node_modules
            - .git
          extensions:
            - .yaml
            - .yml
            - .fc
        logging:
          level: INFO
    """
    path = config_path(workspace_root)

    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        _validate(config)
    except (OSError, yaml.YAMLError, ConfigError) as e:
        if strict:
            raise ConfigError(f"Invalid config {path}: {e}") from e
        logger.warning("Ignoring invalid config %s: %s", path, e)
        return {}

    return config


def _validate(config: Any) -> None:
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        schema = json.load(f)

    errors = sorted(Draft7Validator(schema).iter_errors(config), key=lambda e: list(e.path))
    if errors:
        details = "; ".join(
            f"{'.'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
            for error in errors
        )
        raise ConfigError(details)


def get_scan_config(workspace_root: Path, config: Dict[str, Any] = None) -> Dict[str, Any]:
    """
    Get scanner configuration.

    Args:
        workspace_root: Workspace root path
        config: Already loaded config (loaded from disk when omitted)

    Returns:
        Scan configuration dict with defaults applied
    """
    if config is None:
        config = load_config(workspace_root)
    scan_config = dict(config.get("scan", {}))

    exclude_dirs: List[str] = list(ALWAYS_EXCLUDED_DIRS)
    for name in scan_config.get("exclude_dirs", []):
        if name not in exclude_dirs:
            exclude_dirs.append(name)
    scan_config["exclude_dirs"] = exclude_dirs

    extensions = [ext.lower() for ext in scan_config.get("extensions", [])]
    scan_config["extensions"] = extensions or list(DEFAULT_EXTENSIONS)

    return scan_config


def get_log_level(workspace_root: Path, config: Dict[str, Any] = None) -> str:
    """Configured log level name, WARNING when unset."""
    if config is None:
        config = load_config(workspace_root)
    return config.get("logging", {}).get("level", "WARNING")
