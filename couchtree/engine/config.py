"""
couchtree Configuration — Load and validate couchtree.yaml.

Command-line flags override file values; a missing file means defaults.

Usage:
    from couchtree.engine.config import load_config, apply_overrides
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from couchtree.engine.errors import CouchTreeConfigError

CONFIG_FILENAME = "couchtree.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR", "FATAL")


# ---------------------------------------------------------------------------
# Pydantic models for couchtree.yaml
# ---------------------------------------------------------------------------

class ServerConfig(BaseModel):
    url: str = "http://localhost:5984"
    user: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 30.0


class TreeConfig(BaseModel):
    path: str = "."
    suffix: str = ".js"
    filter: Optional[str] = None

    @field_validator("suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"suffix must look like '.js', got '{v}'")
        if "/" in v or os.sep in v:
            raise ValueError(f"suffix must not contain a path separator, got '{v}'")
        return v

    @model_validator(mode="after")
    def default_filter(self) -> "TreeConfig":
        if self.filter is None:
            self.filter = "*" + self.suffix
        return self


class LoggingConfig(BaseModel):
    level: str = "INFO"
    journal: bool = False
    directory: str = ".couchtree/logs"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"level must be one of {'/'.join(LOG_LEVELS)}, got '{v}'")
        return v


class CouchTreeConfig(BaseModel):
    """Root model for couchtree.yaml."""
    database: str = ""
    server: ServerConfig = ServerConfig()
    tree: TreeConfig = TreeConfig()
    logging: LoggingConfig = LoggingConfig()


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Walk up from *start* (default CWD) looking for couchtree.yaml."""
    current = start or Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> CouchTreeConfig:
    """
    Load and validate couchtree.yaml.

    Args:
        config_path: Explicit path. If None, auto-discovers from the CWD.
            An explicit path that does not exist is an error; a file that
            cannot be discovered just yields defaults.

    Raises:
        CouchTreeConfigError: unreadable/invalid YAML or failed validation.
    """
    if config_path is None:
        found = find_config_file()
        if found is None:
            return CouchTreeConfig()
        path = found
    else:
        path = Path(config_path)
        if not path.exists():
            raise CouchTreeConfigError(f"Config file not found: {path}", path=str(path))

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CouchTreeConfigError(f"Failed to read {path}: {e}", path=str(path)) from e

    if not isinstance(raw, dict):
        raise CouchTreeConfigError(f"{path} must contain a mapping", path=str(path))

    try:
        return CouchTreeConfig(**raw)
    except ValidationError as e:
        raise CouchTreeConfigError(f"Invalid config in {path}: {e}", path=str(path)) from e


def apply_overrides(config: CouchTreeConfig, overrides: Dict[str, Any]) -> CouchTreeConfig:
    """
    Return a copy of *config* with dotted-key overrides applied, e.g.
    ``{"server.url": "http://db:5984", "tree.path": "/srv/couch"}``.
    ``None`` values are skipped so unset CLI flags keep file values.
    """
    data = config.model_dump()
    for dotted, value in overrides.items():
        if value is None:
            continue
        section = data
        *parents, leaf = dotted.split(".")
        for name in parents:
            section = section.setdefault(name, {})
        section[leaf] = value

    # Re-derive the filter when only the suffix changed
    if "tree.suffix" in overrides and overrides.get("tree.filter") is None \
            and overrides["tree.suffix"] is not None:
        data["tree"]["filter"] = None

    try:
        return CouchTreeConfig(**data)
    except ValidationError as e:
        raise CouchTreeConfigError(f"Invalid option: {e}") from e
