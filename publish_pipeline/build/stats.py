"""Build statistics reported by a bundling engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

_RED = "\x1b[31m"
_YELLOW = "\x1b[33m"
_BOLD = "\x1b[1m"
_RESET = "\x1b[0m"


@dataclass(frozen=True)
class ReportOptions:
    """Which sections ``BuildStats.to_string`` renders."""

    colors: bool = False
    timings: bool = True
    hash: bool = True
    version: bool = True
    error_details: bool = True
    assets: bool = True
    chunks: bool = True
    children: bool = True
    modules: bool = True


# Failure reports keep error details and run metadata but drop the
# asset/chunk/module listings.
FAILURE_REPORT_OPTIONS = ReportOptions(
    colors=True,
    timings=True,
    hash=True,
    version=True,
    error_details=True,
    assets=False,
    chunks=False,
    children=False,
    modules=False,
)

WARNING_REPORT_OPTIONS = ReportOptions(assets=False, chunks=False, modules=False)


@dataclass(slots=True)
class BuildMessage:
    message: str
    module: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "BuildMessage":
        if isinstance(payload, Mapping):
            return cls(
                message=str(payload.get("message", "")),
                module=payload.get("moduleName") or payload.get("moduleIdentifier"),
                details=payload.get("details"),
            )
        return cls(message=str(payload))


@dataclass(slots=True)
class BuildStats:
    start_time: float
    end_time: float
    errors: List[BuildMessage] = field(default_factory=list)
    warnings: List[BuildMessage] = field(default_factory=list)
    hash: Optional[str] = None
    version: Optional[str] = None
    assets: List[Dict[str, Any]] = field(default_factory=list)
    chunks: List[Dict[str, Any]] = field(default_factory=list)
    modules: List[Dict[str, Any]] = field(default_factory=list)
    children: List["BuildStats"] = field(default_factory=list)
    name: Optional[str] = None

    def has_errors(self) -> bool:
        return bool(self.errors) or any(child.has_errors() for child in self.children)

    def has_warnings(self) -> bool:
        return bool(self.warnings) or any(child.has_warnings() for child in self.children)

    @property
    def elapsed(self) -> float:
        return self.end_time - self.start_time

    def first_error(self) -> Optional[BuildMessage]:
        if self.errors:
            return self.errors[0]
        for child in self.children:
            found = child.first_error()
            if found is not None:
                return found
        return None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any], *, start_time: float, end_time: float) -> "BuildStats":
        """Build stats from a webpack-style ``--json`` payload."""

        built_at = payload.get("builtAt")
        duration = payload.get("time")
        if isinstance(built_at, (int, float)) and isinstance(duration, (int, float)):
            end_time = built_at / 1000
            start_time = end_time - duration / 1000

        children = [
            cls.from_json(child, start_time=start_time, end_time=end_time)
            for child in payload.get("children") or []
            if isinstance(child, Mapping)
        ]
        return cls(
            start_time=start_time,
            end_time=end_time,
            errors=[BuildMessage.from_payload(item) for item in payload.get("errors") or []],
            warnings=[BuildMessage.from_payload(item) for item in payload.get("warnings") or []],
            hash=payload.get("hash"),
            version=payload.get("version"),
            assets=[dict(item) for item in payload.get("assets") or [] if isinstance(item, Mapping)],
            chunks=[dict(item) for item in payload.get("chunks") or [] if isinstance(item, Mapping)],
            modules=[dict(item) for item in payload.get("modules") or [] if isinstance(item, Mapping)],
            children=children,
            name=payload.get("name"),
        )

    def to_string(self, options: Optional[ReportOptions] = None) -> str:
        return "\n".join(self._render(options or ReportOptions()))

    def _render(self, options: ReportOptions, indent: str = "") -> List[str]:
        def paint(text: str, color: str) -> str:
            return f"{color}{text}{_RESET}" if options.colors else text

        lines: List[str] = []
        if self.name:
            lines.append(f"{indent}Child {paint(self.name, _BOLD)}:")
            indent += "    "
        if options.hash and self.hash:
            lines.append(f"{indent}Hash: {self.hash}")
        if options.version and self.version:
            lines.append(f"{indent}Version: {self.version}")
        if options.timings:
            lines.append(f"{indent}Time: {round(self.elapsed * 1000)}ms")
        if options.assets:
            for asset in self.assets:
                lines.append(f"{indent}  {asset.get('name', '?')}  {asset.get('size', '?')} bytes")
        if options.chunks:
            for chunk in self.chunks:
                names = ", ".join(str(name) for name in chunk.get("names") or [])
                lines.append(f"{indent}chunk {{{chunk.get('id', '?')}}} {names}".rstrip())
        if options.modules:
            for module in self.modules:
                lines.append(f"{indent}  [{module.get('id', '?')}] {module.get('name', '?')}")

        for warning in self.warnings:
            lines.extend(self._render_message(warning, paint("WARNING", _YELLOW), indent, options))
        for error in self.errors:
            lines.extend(self._render_message(error, paint("ERROR", _RED), indent, options))

        if options.children:
            for child in self.children:
                lines.extend(child._render(options, indent))
        else:
            # Child compilations still surface their errors.
            for child in self.children:
                for error in _collect_errors(child):
                    lines.extend(self._render_message(error, paint("ERROR", _RED), indent, options))
        return lines

    @staticmethod
    def _render_message(message: BuildMessage, label: str, indent: str, options: ReportOptions) -> List[str]:
        header = f"{indent}{label} in {message.module}" if message.module else f"{indent}{label}"
        lines = [header, f"{indent}{message.message}"]
        if options.error_details and message.details:
            lines.append(f"{indent}{message.details}")
        return lines


def _collect_errors(stats: BuildStats) -> List[BuildMessage]:
    collected = list(stats.errors)
    for child in stats.children:
        collected.extend(_collect_errors(child))
    return collected
