"""
Configuration loading and saving utilities.

Settings come from an optional YAML or JSON file; ``CONSOLE_UPLOADER_*``
environment variables override individual values on top of it.
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from .models import ApplicationConfig

ENV_PREFIX = "CONSOLE_UPLOADER_"

YAML_SUFFIXES = (".yaml", ".yml")

TRUE_VALUES = ("true", "1", "yes", "on", "enabled")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


# Environment suffix -> (section, key, converter); section None is top level
ENV_OVERRIDES: Dict[str, Tuple[Optional[str], str, Callable[[str], Any]]] = {
    "DEBUG": (None, "debug", _parse_bool),
    "SERVER_URL": ("server", "url", str),
    "API_KEY": ("server", "api_key", str),
    "USERNAME": ("server", "username", str),
    "TIMEOUT": ("server", "timeout", float),
    "VERIFY_SSL": ("server", "verify_ssl", _parse_bool),
    "CHUNK_SIZE": ("upload", "chunk_size", int),
    "EXTRACT": ("upload", "extract", _parse_bool),
    "POLL_INTERVAL": ("upload", "extract_poll_interval", float),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_DIR": ("logging", "log_directory", str),
}


class ConfigLoader:
    """Loads ApplicationConfig from a file and the environment, and writes it back."""

    def __init__(self, env_prefix: str = ENV_PREFIX) -> None:
        self._env_prefix = env_prefix

    def load_config(self, config_file: Optional[str] = None) -> ApplicationConfig:
        """
        Load configuration from file and environment variables.

        Raises:
            FileNotFoundError: If ``config_file`` does not exist
            ValueError: If the file or an environment value cannot be parsed
        """
        data = self._read_file(Path(config_file)) if config_file else {}
        data = self._merge_configs(data, self._environment_overrides())

        config = ApplicationConfig.from_dict(data)
        config.config_file_path = config_file
        return config

    def save_config(self, config: ApplicationConfig, file_path: str, format: str = "yaml") -> None:
        """Write ``config`` as YAML or JSON, without its source file path."""
        data = config.to_dict()
        data.pop("config_file_path", None)

        fmt = format.lower()
        if fmt not in ("yaml", "json"):
            raise ValueError(f"Unsupported format: {format}")

        with open(file_path, "w", encoding="utf-8") as f:
            if fmt == "yaml":
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(data, f, indent=2)

    def _read_file(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        suffix = path.suffix.lower()
        with open(path, "r", encoding="utf-8") as f:
            if suffix in YAML_SUFFIXES:
                try:
                    return yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in {path}: {e}") from e
            if suffix == ".json":
                try:
                    return json.load(f)  # type: ignore[no-any-return]
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON in {path}: {e}") from e

        raise ValueError(f"Unsupported configuration file format: {path.suffix}")

    def _environment_overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        for suffix, (section, key, convert) in ENV_OVERRIDES.items():
            name = self._env_prefix + suffix
            raw = os.getenv(name)
            if raw is None:
                continue
            try:
                value = convert(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {name}: {raw} ({e})") from e

            target = overrides if section is None else overrides.setdefault(section, {})
            target[key] = value
        return overrides

    def _parse_bool(self, value: str) -> bool:
        return _parse_bool(value)

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``override`` into a copy of ``base``, one section level deep."""
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        return merged
