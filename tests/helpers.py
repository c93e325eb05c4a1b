from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from publish_pipeline.build import BuildEngine, BuildMessage, BuildStats
from publish_pipeline.config import BuildConfig
from publish_pipeline.errors import BuildEngineError
from publish_pipeline.publish import DeployRequest, DeployResult, Deployer

DEFAULT_OUTPUT = {
    "index.html": "<html>index</html>",
    "pages/about.html": "<html>about</html>",
    "js/app.js": "console.log('app');",
    "css/app.css": "body {}",
}


class FakeEngine(BuildEngine):
    """Writes ``files`` into the configured output path, like a bundler would."""

    name = "fake"

    def __init__(
        self,
        files: Optional[Dict[str, str]] = None,
        *,
        errors: Optional[List[str]] = None,
        warnings: Optional[List[str]] = None,
        raise_error: Optional[str] = None,
        start_time: float = 100.0,
        end_time: float = 101.5,
    ) -> None:
        self.files = DEFAULT_OUTPUT if files is None else files
        self.errors = errors or []
        self.warnings = warnings or []
        self.raise_error = raise_error
        self.start_time = start_time
        self.end_time = end_time
        self.calls: List[BuildConfig] = []

    def run(self, config: BuildConfig) -> BuildStats:
        self.calls.append(config)
        if self.raise_error:
            raise BuildEngineError(self.raise_error)
        for relative, content in self.files.items():
            target = config.output_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return BuildStats(
            start_time=self.start_time,
            end_time=self.end_time,
            errors=[BuildMessage(message=message, module="./src/index.js") for message in self.errors],
            warnings=[BuildMessage(message=message) for message in self.warnings],
            hash="abc123",
            version="5.90.0",
            assets=[{"name": "js/app.js", "size": 20}],
        )


class RecordingDeployer(Deployer):
    name = "recording"

    def __init__(self, code: int = 0, error: Optional[str] = None) -> None:
        self.code = code
        self.error = error
        self.requests: List[DeployRequest] = []

    def deploy(self, request: DeployRequest) -> DeployResult:
        self.requests.append(request)
        return DeployResult(adapter=self.name, code=self.code, error=self.error, details={"path": request.path})


def write_config(
    config_dir: Path,
    env: str,
    *,
    output_path: Path,
    public_path: str = "https://cdn.example.com/assets",
    extra: Optional[Dict[str, object]] = None,
) -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    payload: Dict[str, object] = {"output": {"path": str(output_path), "publicPath": public_path}}
    payload.update(extra or {})
    path = config_dir / f"build.{env}.yaml"
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return path


def write_project(
    root: Path,
    *,
    envs: tuple[str, ...] = ("development", "test", "production"),
    apps: Optional[List[Dict[str, object]]] = None,
    public_path: str = "https://cdn.example.com/assets",
) -> Path:
    """Create a project tree with configs, process.json and package.json; return the build dir."""

    build_dir = root / "build"
    for env in envs:
        write_config(root / "config", env, output_path=build_dir, public_path=public_path)
    (root / "process.json").write_text(
        json.dumps({"apps": apps if apps is not None else [{"name": "web", "script": "server/index.js"}]}),
        encoding="utf-8",
    )
    (root / "package.json").write_text(json.dumps({"name": "myapp", "version": "1.0.0"}), encoding="utf-8")
    return build_dir
