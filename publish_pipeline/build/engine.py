"""Bundling engine adapters."""

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from ..config import BuildConfig
from ..errors import BuildEngineError
from .stats import BuildMessage, BuildStats

logger = logging.getLogger(__name__)


class BuildEngine(ABC):
    name: str

    @abstractmethod
    def run(self, config: BuildConfig) -> BuildStats:
        """Compile to completion and return the engine's stats.

        Transport-level failures raise ``BuildEngineError``; compilation
        errors are reported through ``BuildStats.has_errors()``.
        """


class CommandBuildEngine(BuildEngine):
    """Run a bundler command line and read webpack-style JSON stats from stdout."""

    name = "command"

    def __init__(
        self,
        command: str,
        *,
        environment: str,
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> None:
        self.command = command
        self.environment = environment
        self.cwd = cwd
        self.timeout = timeout
        self.env = env or {}

    @classmethod
    def from_config(cls, config: BuildConfig, *, environment: str, root: Path) -> "CommandBuildEngine":
        cwd = Path(config.engine.cwd) if config.engine.cwd else root
        if not cwd.is_absolute():
            cwd = root / cwd
        return cls(
            config.engine.command,
            environment=environment,
            cwd=cwd,
            timeout=config.engine.timeout,
            env=dict(config.engine.env),
        )

    def run(self, config: BuildConfig) -> BuildStats:
        cmd = self._render_command(config)
        logger.debug("Executing build command: %s", cmd)
        start_time = time.time()
        try:
            proc = subprocess.run(
                cmd,
                shell=True,
                cwd=str(self.cwd) if self.cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
                env={**os.environ, **self.env, **self._build_env(config)},
            )
        except subprocess.TimeoutExpired as exc:
            raise BuildEngineError(f"Build command timed out after {exc.timeout} s: {cmd}") from exc
        except (OSError, subprocess.SubprocessError) as exc:
            raise BuildEngineError(f"Build command failed to start: {exc}") from exc
        end_time = time.time()
        return _stats_from_process(proc, start_time=start_time, end_time=end_time)

    def _render_command(self, config: BuildConfig) -> str:
        replacements = {
            "{env}": shlex.quote(self.environment),
            "{output_path}": shlex.quote(str(config.output_path)),
            "{public_path}": shlex.quote(config.public_path),
        }
        command = self.command
        for placeholder, value in replacements.items():
            command = command.replace(placeholder, value)
        return command

    def _build_env(self, config: BuildConfig) -> Dict[str, str]:
        return {
            "NODE_ENV": self.environment,
            "BUILD_ENV": self.environment,
            "BUILD_OUTPUT_PATH": str(config.output_path),
            "BUILD_PUBLIC_PATH": config.public_path,
        }


def _stats_from_process(proc: subprocess.CompletedProcess, *, start_time: float, end_time: float) -> BuildStats:
    stdout = (proc.stdout or "").strip()
    stats: Optional[BuildStats] = None
    if stdout.startswith("{"):
        try:
            payload = json.loads(stdout)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            stats = BuildStats.from_json(payload, start_time=start_time, end_time=end_time)

    if stats is None:
        stats = BuildStats(start_time=start_time, end_time=end_time)

    if proc.returncode != 0 and not stats.has_errors():
        detail = (proc.stderr or "").strip() or stdout or None
        stats.errors.append(
            BuildMessage(
                message=f"Build command exited with status {proc.returncode}",
                details=detail,
            )
        )
    return stats
