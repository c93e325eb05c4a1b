"""Shared helpers used by pipeline stages."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def read_json(path: Path) -> Any:
    """Load a JSON document from disk."""

    return json.loads(path.read_text(encoding="utf-8"))


def write_json(payload: Any, path: Path) -> None:
    """Write JSON payload to disk with canonical formatting."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def format_seconds(seconds: float) -> str:
    return f"{seconds:.2f} s"
