"""Compile-and-publish pipeline orchestration."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from .build import BuildEngine, CommandBuildEngine, run_build
from .config import BuildConfig, load_build_config
from .environment import PipelineSettings, should_publish
from .errors import ConfigError, PipelineError
from .manifest import rewrite_process_manifest
from .publish import DeployResult, Deployer, build_deployer, publish_assets
from .templates import DEFAULT_MOVE_CONCURRENCY, TEMPLATE_EXTENSION, relocate_templates
from .utils import format_seconds
from .workspace import clean_workspace

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    RESOLVING = "resolving"
    CLEANING = "cleaning"
    REWRITING_MANIFEST = "rewriting_manifest"
    BUILDING = "building"
    RELOCATING_TEMPLATES = "relocating_templates"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.DONE, PipelineState.FAILED})


@dataclass(frozen=True)
class PipelineLayout:
    """Filesystem locations the pipeline reads and writes."""

    root: Path
    config_dir: Path
    views_dir: Path
    process_path: Path
    template_extension: str = TEMPLATE_EXTENSION
    move_concurrency: int = DEFAULT_MOVE_CONCURRENCY

    @classmethod
    def for_root(
        cls,
        root: str | Path,
        *,
        config_dir: Optional[str | Path] = None,
        views_dir: Optional[str | Path] = None,
        process_path: Optional[str | Path] = None,
        template_extension: str = TEMPLATE_EXTENSION,
        move_concurrency: int = DEFAULT_MOVE_CONCURRENCY,
    ) -> "PipelineLayout":
        base = Path(root).resolve()

        def _resolve(value: Optional[str | Path], default: str) -> Path:
            candidate = Path(value) if value is not None else Path(default)
            return candidate if candidate.is_absolute() else base / candidate

        return cls(
            root=base,
            config_dir=_resolve(config_dir, "config"),
            views_dir=_resolve(views_dir, "server/views"),
            process_path=_resolve(process_path, "process.json"),
            template_extension=template_extension,
            move_concurrency=move_concurrency,
        )


@dataclass
class PipelineResult:
    state: PipelineState
    environment: str
    states: List[PipelineState] = field(default_factory=list)
    renamed_processes: List[str] = field(default_factory=list)
    templates: List[str] = field(default_factory=list)
    publish: Optional[DeployResult] = None
    build_time: Optional[float] = None
    elapsed: Optional[float] = None
    logs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "state": self.state.value,
            "environment": self.environment,
            "states": [state.value for state in self.states],
            "renamed_processes": self.renamed_processes,
            "templates": self.templates,
            "publish": self.publish.to_dict() if self.publish else None,
            "build_time": round(self.build_time, 2) if self.build_time is not None else None,
            "elapsed": round(self.elapsed, 2) if self.elapsed is not None else None,
            "logs": self.logs,
        }


Stage = Tuple[PipelineState, Callable[[], Awaitable[None]]]


class CompilePipeline:
    """Run the clean, rewrite, build, relocate and publish stages in order.

    Every stage is awaited before the next one starts. The first failure
    moves the pipeline to ``FAILED`` and is re-raised to the caller.
    """

    def __init__(
        self,
        layout: PipelineLayout,
        settings: PipelineSettings,
        *,
        engine: Optional[BuildEngine] = None,
        deployer: Optional[Deployer] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.layout = layout
        self.settings = settings
        self.engine = engine
        self.deployer = deployer
        self._clock = clock
        self._state: Optional[PipelineState] = None
        self._config: Optional[BuildConfig] = None
        self._package_name: Optional[str] = None
        self.error: Optional[BaseException] = None
        self.result = PipelineResult(state=PipelineState.RESOLVING, environment=settings.environment)

    @property
    def state(self) -> Optional[PipelineState]:
        return self._state

    @property
    def environment(self) -> str:
        return self.settings.environment

    @property
    def config(self) -> BuildConfig:
        if self._config is None:
            raise RuntimeError("Build configuration is not loaded yet.")
        return self._config

    async def run(self) -> PipelineResult:
        if self._state is not None:
            raise RuntimeError("A pipeline instance can only run once.")

        started = self._clock()
        self._announce("start compiling...")
        try:
            for state, stage in self._stages():
                self._transition(state)
                await stage()
        except Exception as exc:
            failed_in = self._state
            self.error = exc
            if isinstance(exc, PipelineError) and failed_in is not None:
                exc.state = failed_in.value
            self._transition(PipelineState.FAILED)
            self.result.elapsed = self._clock() - started
            raise

        self.result.elapsed = self._clock() - started
        self._transition(PipelineState.DONE)
        self._announce(f"compile success in {format_seconds(self.result.elapsed)}")
        return self.result

    def _stages(self) -> List[Stage]:
        return [
            (PipelineState.RESOLVING, self._resolve),
            (PipelineState.CLEANING, self._clean),
            (PipelineState.REWRITING_MANIFEST, self._rewrite_manifest),
            (PipelineState.BUILDING, self._build),
            (PipelineState.RELOCATING_TEMPLATES, self._relocate_templates),
            (PipelineState.PUBLISHING, self._publish),
        ]

    def _transition(self, state: PipelineState) -> None:
        if self._state in TERMINAL_STATES:
            raise RuntimeError(f"Pipeline already finished in state '{self._state.value}'.")
        logger.debug("pipeline state: %s -> %s", self._state.value if self._state else None, state.value)
        self._state = state
        self.result.state = state
        self.result.states.append(state)

    def _announce(self, message: str) -> None:
        self.result.logs.append(message)
        logger.info("%s", message)

    async def _resolve(self) -> None:
        self._announce(f"using {self.environment} config")
        self._config = load_build_config(self.layout.config_dir, self.environment, root=self.layout.root)
        self._package_name = self.settings.require_package_name()
        if self.engine is None:
            self.engine = CommandBuildEngine.from_config(
                self._config,
                environment=self.environment,
                root=self.layout.root,
            )

    async def _clean(self) -> None:
        self._announce("clean views and build path")
        await clean_workspace(self.layout.views_dir, self.config.output_path)

    async def _rewrite_manifest(self) -> None:
        self._announce(f"update {self.layout.process_path.name}")
        assert self._package_name is not None
        self.result.renamed_processes = await rewrite_process_manifest(
            self.layout.process_path,
            self._package_name,
        )

    async def _build(self) -> None:
        self._announce("building...")
        assert self.engine is not None
        stats = await run_build(self.engine, self.config)
        self.result.build_time = stats.elapsed
        self._announce(f"build success in {format_seconds(stats.elapsed)}")

    async def _relocate_templates(self) -> None:
        self._announce("move views template")
        moved = await relocate_templates(
            self.config.output_path,
            self.layout.views_dir,
            extension=self.layout.template_extension,
            concurrency=self.layout.move_concurrency,
        )
        self.result.templates = [path.as_posix() for path in moved]

    async def _publish(self) -> None:
        if not should_publish(self.environment):
            return
        self._announce("publishing static assets...")
        deployer = self.deployer or self._build_deployer()
        self.result.publish = await publish_assets(self.environment, self.config, deployer)

    def _build_deployer(self) -> Deployer:
        try:
            return build_deployer(self.config.publish.adapter, self.config.publish.options)
        except ValueError as exc:
            raise ConfigError(f"Invalid publish configuration: {exc}") from exc


def run_pipeline(
    root: str | Path = ".",
    *,
    environ: Optional[Mapping[str, str]] = None,
    env_override: Optional[str] = None,
    engine: Optional[BuildEngine] = None,
    deployer: Optional[Deployer] = None,
    **layout_options: object,
) -> PipelineResult:
    """Resolve settings for ``root`` and run the pipeline to completion."""

    layout = PipelineLayout.for_root(root, **layout_options)  # type: ignore[arg-type]
    settings = PipelineSettings.from_env(environ, root=layout.root, env_override=env_override)
    pipeline = CompilePipeline(layout, settings, engine=engine, deployer=deployer)
    return asyncio.run(pipeline.run())
