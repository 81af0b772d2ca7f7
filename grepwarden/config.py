"""
Configuration system for grepwarden.

Supports YAML and JSON configuration files for locating the scanner,
its rules, and the reporting threshold.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, fields

import yaml

from grepwarden.core.findings import Severity
from grepwarden.errors import ConfigError, UnknownSeverity


# Default configuration file names to search for
CONFIG_FILE_NAMES = [
    ".grepwarden.yaml",
    ".grepwarden.yml",
    ".grepwarden.json",
    "grepwarden.yaml",
    "grepwarden.yml",
    "grepwarden.json",
]

# Environment variables that override file settings
ENV_OVERRIDES = {
    "GREPWARDEN_BINARY": "binary_path",
    "GREPWARDEN_RULES": "rules_path",
}


@dataclass
class GrepwardenConfig:
    """
    Main configuration for grepwarden.

    Example YAML config:

    ```yaml
    binary_path: ""              # empty: use PATH, then the per-user install
    rules_path: .opengrep/rules
    severity: WARNING            # INFO, WARNING, ERROR
    scan_on_save: true
    default_rules_repo: https://github.com/opengrep/opengrep-rules
    exclusion_config: .semgrep.yml
    log_level: INFO
    log_file: null
    ```
    """
    binary_path: str = ""
    rules_path: str = ".opengrep/rules"
    severity: str = "INFO"
    scan_on_save: bool = True
    default_rules_repo: str = "https://github.com/opengrep/opengrep-rules"
    exclusion_config: str = ".semgrep.yml"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        try:
            self.severity = Severity.parse(self.severity).value
        except UnknownSeverity as e:
            raise ConfigError(f"Invalid severity in configuration: {e.value!r}") from e

    @property
    def min_severity(self) -> Severity:
        return Severity(self.severity)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GrepwardenConfig":
        """Create config from a dictionary."""
        data = dict(data)

        # Map some common alternative names
        if "rules" in data and "rules_path" not in data and isinstance(data["rules"], str):
            data["rules_path"] = data.pop("rules")
        if "binary" in data and "binary_path" not in data:
            data["binary_path"] = data.pop("binary")

        # Filter to only known fields
        known_fields = {f.name for f in fields(cls)}
        filtered_data = {k: v for k, v in data.items() if k in known_fields}

        return cls(**filtered_data)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML and JSON formats.
    """
    path = Path(path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read configuration {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a mapping")
    return data


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.exists():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


def load_grepwarden_config(
    path: Optional[str] = None,
    start_dir: str = ".",
    environ: Optional[Dict[str, str]] = None,
) -> GrepwardenConfig:
    """
    Load a GrepwardenConfig from a file or create a default one.

    If path is None, searches for a config file starting from start_dir.
    Environment variables in ENV_OVERRIDES take precedence over the file.
    """
    environ = os.environ if environ is None else environ

    if path is None:
        path = find_config(start_dir)

    data = load_config(path) if path else {}

    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            data[key] = environ[env_name]

    return GrepwardenConfig.from_dict(data)


def create_default_config() -> str:
    """
    Create a default configuration file content.
    """
    config = GrepwardenConfig().to_dict()
    config.pop("log_file")
    return yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
