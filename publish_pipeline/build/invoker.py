"""Drive a build engine to completion inside the pipeline."""

from __future__ import annotations

import asyncio
import logging

from ..config import BuildConfig
from ..errors import BuildEngineError, BuildError
from ..utils import format_seconds
from .engine import BuildEngine
from .stats import FAILURE_REPORT_OPTIONS, WARNING_REPORT_OPTIONS, BuildStats

logger = logging.getLogger(__name__)


async def run_build(engine: BuildEngine, config: BuildConfig) -> BuildStats:
    """Run ``engine`` and return its stats; raise ``BuildError`` on any failure."""

    try:
        stats = await asyncio.to_thread(engine.run, config)
    except BuildEngineError as exc:
        raise BuildError(f"Build engine '{engine.name}' failed: {exc}") from exc

    if stats.has_errors():
        report = stats.to_string(FAILURE_REPORT_OPTIONS)
        logger.error("%s", report)
        first = stats.first_error()
        summary = first.message.splitlines()[0] if first and first.message else "build reported errors"
        raise BuildError(f"Build failed: {summary}", report=report)

    if stats.has_warnings():
        logger.warning("%s", stats.to_string(WARNING_REPORT_OPTIONS))
    logger.debug("build finished in %s", format_seconds(stats.elapsed))
    return stats
