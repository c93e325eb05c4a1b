"""Deployment adapters used to upload static assets."""

from __future__ import annotations

import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import quote

import requests
from requests import Session
from requests.exceptions import RequestException

from .models import DeployRequest, DeployResult


class Deployer(ABC):
    name: str

    @abstractmethod
    def deploy(self, request: DeployRequest) -> DeployResult:
        ...


class NoOpDeployer(Deployer):
    name = "noop"

    def deploy(self, request: DeployRequest) -> DeployResult:
        return DeployResult(
            adapter=self.name,
            code=0,
            logs=[
                "NoOp adapter selected; skipping upload.",
                f"Assets ready at {request.cwd} for {request.path}",
            ],
            details=request.to_dict(),
        )


class CommandDeployer(Deployer):
    name = "command"

    def __init__(self, command: str, env: Optional[Dict[str, str]] = None) -> None:
        self.command = command
        self.env = env or {}

    def deploy(self, request: DeployRequest) -> DeployResult:
        cmd = self._render_command(request)
        logs = [f"Executing upload command: {cmd}"]
        proc = subprocess.run(
            cmd,
            shell=True,
            check=False,
            capture_output=True,
            text=True,
            env={**os.environ, **self.env, **_build_env(request)},
        )
        if proc.stdout:
            logs.append(proc.stdout.strip())
        if proc.stderr:
            logs.append(proc.stderr.strip())
        error = None
        if proc.returncode != 0:
            error = proc.stderr.strip() or f"Upload command exited with status {proc.returncode}"
        return DeployResult(
            adapter=self.name,
            code=proc.returncode,
            error=error,
            logs=logs,
            details={"returncode": proc.returncode},
        )

    def _render_command(self, request: DeployRequest) -> str:
        replacements = {
            "{env}": shlex.quote(request.env),
            "{cwd}": shlex.quote(str(request.cwd)),
            "{path}": shlex.quote(request.path),
            "{imagemin}": "true" if request.imagemin else "false",
        }
        command = self.command
        for placeholder, value in replacements.items():
            command = command.replace(placeholder, value)
        return command


def _build_env(request: DeployRequest) -> Dict[str, str]:
    return {
        "DEPLOY_ENV": request.env,
        "DEPLOY_CWD": str(request.cwd),
        "DEPLOY_PATH": request.path,
        "DEPLOY_IMAGEMIN": "1" if request.imagemin else "0",
    }


class S3Deployer(Deployer):
    name = "s3"

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        delete: bool = False,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.profile = profile
        self.delete = delete

    def deploy(self, request: DeployRequest) -> DeployResult:
        key_prefix = request.path.strip("/")
        target = f"s3://{self.bucket}/{key_prefix}" if key_prefix else f"s3://{self.bucket}"
        cmd = ["aws", "s3", "sync", str(request.cwd), target]
        if self.region:
            cmd.extend(["--region", self.region])
        if self.profile:
            cmd.extend(["--profile", self.profile])
        if self.delete:
            cmd.append("--delete")

        logs = ["Executing S3 sync", " ".join(cmd)]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as exc:
            return DeployResult(adapter=self.name, code=1, error=f"aws CLI unavailable: {exc}", logs=logs)
        if proc.stdout:
            logs.append(proc.stdout.strip())
        if proc.stderr:
            logs.append(proc.stderr.strip())
        error = None
        if proc.returncode != 0:
            error = proc.stderr.strip() or f"aws s3 sync exited with status {proc.returncode}"
        return DeployResult(
            adapter=self.name,
            code=proc.returncode,
            error=error,
            logs=logs,
            details={"returncode": proc.returncode, "target": target},
        )


class HttpDeployer(Deployer):
    """PUT every file under ``request.cwd`` to ``<endpoint><path>/<relative path>``.

    Relative paths are percent-encoded, so names containing ``#`` or ``?``
    land under their own URL.
    """

    name = "http"

    def __init__(
        self,
        endpoint: str,
        token_env: str = "STATIC_DEPLOY_TOKEN",
        timeout: float = 30,
        session: Optional[Session] = None,
    ) -> None:
        self.endpoint = endpoint
        self.token_env = token_env
        self.timeout = timeout
        self.session = session

    def deploy(self, request: DeployRequest) -> DeployResult:
        token = os.getenv(self.token_env)
        if not token:
            message = f"Deploy token environment variable '{self.token_env}' is not set."
            return DeployResult(adapter=self.name, code=1, error=message, logs=[message])

        if self.session is not None:
            return self._upload(self.session, request, token)
        with requests.Session() as session:
            return self._upload(session, request, token)

    def _upload(self, session: Session, request: DeployRequest, token: str) -> DeployResult:
        base = f"{self.endpoint.rstrip('/')}/{request.path.strip('/')}".rstrip("/")
        headers = {
            "Authorization": f"Bearer {token}",
            "X-Deploy-Env": request.env,
            "X-Imagemin": "true" if request.imagemin else "false",
        }
        uploaded: List[str] = []
        logs = [f"Uploading {request.cwd} to {base}"]
        for relative in _iter_files(request.cwd):
            url = f"{base}/{quote(relative)}"
            try:
                with (request.cwd / relative).open("rb") as handle:
                    response = session.put(url, data=handle, headers=headers, timeout=self.timeout)
            except (OSError, RequestException) as exc:
                return DeployResult(
                    adapter=self.name,
                    code=1,
                    error=f"Upload of {relative} failed: {exc}",
                    logs=logs,
                    details={"uploaded": uploaded},
                )
            if response.status_code not in (200, 201, 204):
                return DeployResult(
                    adapter=self.name,
                    code=response.status_code,
                    error=f"Upload of {relative} returned {response.status_code}: {response.text or response.reason}",
                    logs=logs,
                    details={"uploaded": uploaded},
                )
            uploaded.append(relative)
        logs.append(f"Uploaded {len(uploaded)} file(s).")
        return DeployResult(
            adapter=self.name,
            code=0,
            logs=logs,
            details={"uploaded": uploaded, "url": base},
        )


def _iter_files(root: Path) -> Iterable[str]:
    return sorted(path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file())


def build_deployer(name: str, options: Optional[Mapping[str, object]] = None) -> Deployer:
    opts = dict(options or {})
    lowered = (name or "noop").lower()
    if lowered in ("noop", "none"):
        return NoOpDeployer()
    if lowered in ("cmd", "command"):
        command = opts.get("command")
        if not command:
            raise ValueError("Command adapter requires option command=...")
        env = {str(key): str(value) for key, value in dict(opts.get("env") or {}).items()}
        return CommandDeployer(command=str(command), env=env)
    if lowered == "s3":
        bucket = opts.get("bucket")
        if not bucket:
            raise ValueError("S3 adapter requires option bucket=...")
        return S3Deployer(
            bucket=str(bucket),
            region=str(opts["region"]) if opts.get("region") else None,
            profile=str(opts["profile"]) if opts.get("profile") else None,
            delete=str(opts.get("delete", "false")).lower() == "true",
        )
    if lowered == "http":
        endpoint = opts.get("endpoint")
        if not endpoint:
            raise ValueError("HTTP adapter requires option endpoint=...")
        return HttpDeployer(
            endpoint=str(endpoint),
            token_env=str(opts.get("token-env", "STATIC_DEPLOY_TOKEN")),
            timeout=float(opts.get("timeout", 30)),
        )
    raise ValueError(f"Unknown publish adapter '{name}'")
