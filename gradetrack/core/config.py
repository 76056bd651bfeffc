"""
Typed configuration for gradetrack sessions.

The config file is optional; every field has a default so a bare checkout
runs with ``grades.json`` and ``config/rules.yaml`` in the working directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_CONFIG_PATH = Path("config/gradetrack.yaml")
DEFAULT_DATA_PATH = Path("grades.json")
DEFAULT_RULES_PATH = Path("config/rules.yaml")


class StorageConfig(BaseModel):
    """Where the gradebook document lives."""

    model_config = ConfigDict(extra="forbid")

    data_path: Path = Field(default=DEFAULT_DATA_PATH)

    @field_validator("data_path", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser()


class RulesConfig(BaseModel):
    """Location of the rule document; ``None`` means no rules (accept-all)."""

    model_config = ConfigDict(extra="forbid")

    rules_path: Optional[Path] = Field(default=DEFAULT_RULES_PATH)

    @field_validator("rules_path", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Optional[Path]:
        if value is None or value == "":
            return None
        return Path(value).expanduser()


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


class AppConfig(BaseModel):
    """Top-level configuration for a gradebook session."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    rules: RulesConfig = Field(default_factory=RulesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def resolved(self, base_dir: Path) -> "AppConfig":
        """Return a copy whose relative paths are anchored at ``base_dir``."""
        data_path = _resolve_config_path(self.storage.data_path, base_dir)
        rules_path = self.rules.rules_path
        if rules_path is not None:
            rules_path = _resolve_config_path(rules_path, base_dir)
        return self.model_copy(
            update={
                "storage": self.storage.model_copy(update={"data_path": data_path}),
                "rules": self.rules.model_copy(update={"rules_path": rules_path}),
            }
        )


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def _resolve_config_path(value: Path, base_dir: Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        return (base_dir / path).resolve()
    return path.resolve()


def load_app_config(path: Path, *, base_dir: Path | None = None) -> AppConfig:
    """Load the config YAML; relative paths resolve against ``base_dir`` (default: the file's directory)."""
    path = path.expanduser().resolve()
    try:
        data = read_yaml_file(path)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config {path}") from exc
    except UnicodeDecodeError as exc:
        raise ValueError(f"Config {path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read config {path}: {exc}") from exc
    try:
        config = AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid gradetrack config in {path}") from exc
    return config.resolved((base_dir or path.parent).resolve())


__all__ = [
    "AppConfig",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_DATA_PATH",
    "DEFAULT_RULES_PATH",
    "LoggingConfig",
    "RulesConfig",
    "StorageConfig",
    "load_app_config",
    "read_yaml_file",
]
