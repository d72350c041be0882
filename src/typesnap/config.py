"""Configuration management for typesnap.

Loads and validates typesnap.yaml configuration files.
"""

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from typesnap.files import DECLARATION_SUFFIX


class ProviderConfig(BaseModel):
    """Where the file provider finds stub files."""

    search_paths: list[str] = Field(default_factory=lambda: ["stubs"])
    """Directories scanned (non-recursively) for declaration files. Later entries win."""

    files: dict[str, str] = Field(default_factory=dict)
    """Synthetic files: logical name -> path of the file to read the contents from."""

    suffix: str = DECLARATION_SUFFIX
    """Suffix that marks a declaration file."""

    @field_validator("search_paths", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [v]
        return v


class CheckerConfig(BaseModel):
    """Configuration for the mypy frontend."""

    python_version: str | None = None
    """Target Python version, e.g. "3.11". Defaults to the running interpreter."""

    entry_name: str = "main"
    """File name reported for the compiled snippet."""

    include_notes: bool = True
    """Keep mypy notes in the collected diagnostics."""

    options: dict[str, Any] = Field(default_factory=dict)
    """Extra attributes set on mypy's Options (e.g. strict_optional, disallow_untyped_defs)."""

    @field_validator("python_version", mode="before")
    @classmethod
    def check_version(cls, v: Any) -> str | None:
        if v is None:
            return None
        v = str(v)
        if not re.fullmatch(r"3\.\d+", v):
            raise ValueError(f"python_version must look like '3.N', got {v!r}")
        return v


class TypesnapConfig(BaseModel):
    """Root configuration for typesnap."""

    version: str = "0.1"
    """Config file version."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)

    checker: CheckerConfig = Field(default_factory=CheckerConfig)

    case_paths: list[str] = Field(default_factory=lambda: ["typecases"])
    """Directories to search for case files."""

    snapshot_path: str = "typecases/__snapshots__/snapshots.yaml"
    """YAML file holding diagnostics snapshots for cases without an [out] section."""

    @field_validator("case_paths", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [v]
        return v


def load_config(config_path: Path | None = None, project_root: Path | None = None) -> TypesnapConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Explicit path to config file. If None, searches for typesnap.yaml.
        project_root: Project root directory. Defaults to cwd.

    Returns:
        Parsed configuration. Returns default config if no file found.
    """
    project_root = project_root or Path.cwd()

    if config_path is None:
        candidates = [
            project_root / "typesnap.yaml",
            project_root / "typesnap.yml",
            project_root / ".typesnap.yaml",
            project_root / ".typesnap.yml",
        ]
        for candidate in candidates:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None or not config_path.exists():
        return TypesnapConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return TypesnapConfig.model_validate(data)


def _absolute(path: str, project_root: Path) -> str:
    if Path(path).is_absolute():
        return path
    return str((project_root / path).resolve())


def resolve_paths(config: TypesnapConfig, project_root: Path) -> TypesnapConfig:
    """Resolve relative paths in config to absolute paths.

    Args:
        config: The configuration to update.
        project_root: Base directory for relative paths.

    Returns:
        Config with resolved paths (new instance).
    """
    provider = config.provider.model_copy(
        update={
            "search_paths": [_absolute(p, project_root) for p in config.provider.search_paths],
            "files": {name: _absolute(p, project_root) for name, p in config.provider.files.items()},
        }
    )

    return config.model_copy(
        update={
            "provider": provider,
            "case_paths": [_absolute(p, project_root) for p in config.case_paths],
            "snapshot_path": _absolute(config.snapshot_path, project_root),
        }
    )
