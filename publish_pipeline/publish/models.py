"""Data models used during asset publishing."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional


@dataclass(slots=True)
class DeployRequest:
    env: str
    cwd: Path
    path: str
    imagemin: bool = True

    def to_dict(self) -> Dict[str, object]:
        return {
            "env": self.env,
            "cwd": str(self.cwd),
            "path": self.path,
            "imagemin": self.imagemin,
        }


@dataclass(slots=True)
class DeployResult:
    adapter: str
    code: int
    error: Optional[str] = None
    details: Dict[str, object] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.code == 0

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "adapter": self.adapter,
            "code": self.code,
            "details": self.details,
            "logs": self.logs,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload
