"""Bundling engine adapters and the build stage."""

from .engine import BuildEngine, CommandBuildEngine
from .invoker import run_build
from .stats import FAILURE_REPORT_OPTIONS, WARNING_REPORT_OPTIONS, BuildMessage, BuildStats, ReportOptions

__all__ = [
    "BuildEngine",
    "BuildMessage",
    "BuildStats",
    "CommandBuildEngine",
    "FAILURE_REPORT_OPTIONS",
    "ReportOptions",
    "WARNING_REPORT_OPTIONS",
    "run_build",
]
