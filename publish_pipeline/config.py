"""Per-environment build configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError, ConfigNotFound

logger = logging.getLogger(__name__)

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")
DEFAULT_BUILD_COMMAND = "npx webpack --json"


class OutputConfig(BaseModel):
    path: Path = Field(..., description="Directory the bundler writes build artifacts to.")
    public_path: str = Field(..., alias="publicPath", description="URL the published assets are served from.")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class EngineConfig(BaseModel):
    command: str = DEFAULT_BUILD_COMMAND
    cwd: Optional[str] = None
    timeout: Optional[float] = Field(default=None, description="Seconds before the bundler is aborted.")
    env: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class PublishConfig(BaseModel):
    adapter: str = "noop"
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class BuildConfig(BaseModel):
    """Build settings for one environment; unknown keys belong to the bundler."""

    output: OutputConfig
    engine: EngineConfig = Field(default_factory=EngineConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    model_config = ConfigDict(extra="allow")

    @property
    def output_path(self) -> Path:
        return self.output.path

    @property
    def public_path(self) -> str:
        return self.output.public_path


def config_path_for(config_dir: Path, env: str) -> Optional[Path]:
    """Return the first existing ``build.<env>.*`` file in ``config_dir``."""

    for suffix in CONFIG_SUFFIXES:
        candidate = config_dir / f"build.{env}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def load_build_config(config_dir: Path, env: str, *, root: Optional[Path] = None) -> BuildConfig:
    path = config_path_for(config_dir, env)
    if path is None:
        raise ConfigNotFound(f"No build configuration for environment '{env}' in {config_dir}")

    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read build configuration {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Build configuration {path} must be a mapping.")

    try:
        config = BuildConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid build configuration {path}: {exc}") from exc

    if root is not None and not config.output.path.is_absolute():
        config.output.path = (root / config.output.path).resolve()

    logger.debug("Loaded build configuration %s", path)
    return config
