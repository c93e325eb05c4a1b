"""Exceptions raised by the compile-and-publish pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .publish.models import DeployResult


class PipelineError(RuntimeError):
    """Raised when a pipeline stage fails; always terminal for the run."""

    state: Optional[str] = None


class ConfigError(PipelineError):
    """Raised when configuration is present but unusable."""


class ConfigNotFound(ConfigError):
    """Raised when no build configuration exists for the resolved environment."""


class FilesystemError(PipelineError):
    """Raised when cleanup, descriptor I/O or a template move fails."""


class BuildError(PipelineError):
    """Raised when the bundling engine fails or reports errors."""

    def __init__(self, message: str, *, report: Optional[str] = None) -> None:
        super().__init__(message)
        self.report = report


class PublishError(PipelineError):
    """Raised when the deployer returns a non-zero status code."""

    def __init__(self, message: str, *, result: Optional["DeployResult"] = None) -> None:
        super().__init__(message)
        self.result = result


class BuildEngineError(RuntimeError):
    """Raised by build engines for transport-level failures (spawn, timeout, crash)."""
