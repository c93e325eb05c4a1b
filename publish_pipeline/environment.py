"""Environment resolution and process-level settings."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError

DEVELOPMENT = "development"
TEST = "test"
PRODUCTION = "production"

DEFAULT_ENVIRONMENT = DEVELOPMENT
ENVIRONMENT_ALIASES = {"staging": TEST}
PUBLISH_ENVIRONMENTS = frozenset({TEST, PRODUCTION})

ENV_VAR = "NODE_ENV"
PACKAGE_NAME_VAR = "npm_package_name"


def resolve_environment(raw: Optional[str]) -> str:
    """Return the canonical environment name for ``raw``.

    Unset or empty values fall back to ``development``; ``staging`` maps to
    ``test``. Any other value is returned verbatim.
    """

    if not raw:
        return DEFAULT_ENVIRONMENT
    return ENVIRONMENT_ALIASES.get(raw, raw)


def should_publish(env: str) -> bool:
    return env in PUBLISH_ENVIRONMENTS


def read_package_name(root: Path) -> Optional[str]:
    package_json = root / "package.json"
    if not package_json.is_file():
        return None
    try:
        payload = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Unable to read package name from {package_json}: {exc}") from exc
    name = payload.get("name") if isinstance(payload, dict) else None
    return str(name) if name else None


@dataclass(frozen=True)
class PipelineSettings:
    environment: str
    raw_environment: Optional[str]
    package_name: Optional[str]

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        root: Optional[Path] = None,
        env_override: Optional[str] = None,
        env_var: str = ENV_VAR,
        package_name_var: str = PACKAGE_NAME_VAR,
    ) -> "PipelineSettings":
        source = os.environ if environ is None else environ
        raw = env_override if env_override is not None else source.get(env_var)
        package_name = source.get(package_name_var) or None
        if package_name is None and root is not None:
            package_name = read_package_name(root)
        return cls(
            environment=resolve_environment(raw),
            raw_environment=raw,
            package_name=package_name,
        )

    def require_package_name(self) -> str:
        if not self.package_name:
            raise ConfigError(
                f"Package name is not set; export {PACKAGE_NAME_VAR} or add a 'name' to package.json."
            )
        return self.package_name
