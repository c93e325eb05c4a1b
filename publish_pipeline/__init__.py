"""Compile, relocate and publish assets for a server-rendered web application."""

__version__ = "0.1.0"

from .config import BuildConfig, load_build_config
from .environment import PipelineSettings, resolve_environment
from .errors import (
    BuildEngineError,
    BuildError,
    ConfigError,
    ConfigNotFound,
    FilesystemError,
    PipelineError,
    PublishError,
)
from .pipeline import CompilePipeline, PipelineLayout, PipelineResult, PipelineState, run_pipeline

__all__ = [
    "__version__",
    "BuildConfig",
    "BuildEngineError",
    "BuildError",
    "CompilePipeline",
    "ConfigError",
    "ConfigNotFound",
    "FilesystemError",
    "PipelineError",
    "PipelineLayout",
    "PipelineResult",
    "PipelineSettings",
    "PipelineState",
    "PublishError",
    "load_build_config",
    "resolve_environment",
    "run_pipeline",
]
