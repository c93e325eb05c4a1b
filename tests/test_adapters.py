from __future__ import annotations

from pathlib import Path
from unittest import mock

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError

from publish_pipeline.publish import (
    CommandDeployer,
    DeployRequest,
    HttpDeployer,
    NoOpDeployer,
    S3Deployer,
    build_deployer,
)


@pytest.fixture()
def deploy_request(tmp_path: Path) -> DeployRequest:
    build = tmp_path / "build"
    (build / "js").mkdir(parents=True)
    (build / "js" / "app.js").write_text("console.log(1);", encoding="utf-8")
    (build / "logo.png").write_bytes(b"\x89PNG")
    return DeployRequest(env="production", cwd=build, path="/assets", imagemin=True)


def test_noop_deployer_succeeds(deploy_request: DeployRequest) -> None:
    result = NoOpDeployer().deploy(deploy_request)
    assert result.code == 0
    assert "skipping upload" in result.logs[0]
    assert result.details["path"] == "/assets"


def test_command_deployer_runs_subprocess(deploy_request: DeployRequest) -> None:
    deployer = CommandDeployer("static-deploy --env {env} --cwd {cwd} --path {path} --imagemin {imagemin}")
    with mock.patch("subprocess.run") as run_mock:
        run_mock.return_value = mock.Mock(returncode=0, stdout="done", stderr="")
        result = deployer.deploy(deploy_request)

    command = run_mock.call_args.args[0]
    assert f"--cwd {deploy_request.cwd}" in command
    assert "--path /assets --imagemin true" in command
    assert run_mock.call_args.kwargs["env"]["DEPLOY_ENV"] == "production"
    assert result.code == 0
    assert result.error is None


def test_command_deployer_reports_failure(deploy_request: DeployRequest) -> None:
    result = CommandDeployer("echo upload denied >&2; exit 4").deploy(deploy_request)
    assert result.code == 4
    assert result.error == "upload denied"


def test_s3_deployer_builds_sync_command(deploy_request: DeployRequest) -> None:
    deployer = S3Deployer(bucket="static", region="eu-west-1", delete=True)
    with mock.patch("subprocess.run") as run_mock:
        run_mock.return_value = mock.Mock(returncode=0, stdout="", stderr="")
        result = deployer.deploy(deploy_request)

    assert run_mock.call_args.args[0] == [
        "aws",
        "s3",
        "sync",
        str(deploy_request.cwd),
        "s3://static/assets",
        "--region",
        "eu-west-1",
        "--delete",
    ]
    assert result.code == 0
    assert result.details["target"] == "s3://static/assets"


def test_s3_deployer_missing_cli(deploy_request: DeployRequest) -> None:
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("aws")):
        result = S3Deployer(bucket="static").deploy(deploy_request)
    assert result.code == 1
    assert "aws CLI unavailable" in (result.error or "")


def test_http_deployer_requires_token(deploy_request: DeployRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_DEPLOY_TOKEN", raising=False)
    result = HttpDeployer("https://deploy.example.com", token_env="MISSING_DEPLOY_TOKEN").deploy(deploy_request)
    assert result.code == 1
    assert "MISSING_DEPLOY_TOKEN" in (result.error or "")


def test_http_deployer_uploads_every_file(deploy_request: DeployRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATIC_DEPLOY_TOKEN", "secret")
    session = mock.Mock()
    session.put.return_value = mock.Mock(status_code=201, text="", reason="Created")

    result = HttpDeployer("https://deploy.example.com/", session=session).deploy(deploy_request)

    urls = [call.args[0] for call in session.put.call_args_list]
    assert urls == [
        "https://deploy.example.com/assets/js/app.js",
        "https://deploy.example.com/assets/logo.png",
    ]
    headers = session.put.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer secret"
    assert headers["X-Imagemin"] == "true"
    assert result.code == 0
    assert result.details["uploaded"] == ["js/app.js", "logo.png"]


def test_http_deployer_encodes_reserved_characters(deploy_request: DeployRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATIC_DEPLOY_TOKEN", "secret")
    (deploy_request.cwd / "img").mkdir()
    (deploy_request.cwd / "img" / "logo#2x.png").write_bytes(b"\x89PNG")
    (deploy_request.cwd / "a?b.js").write_text("1;", encoding="utf-8")
    session = mock.Mock()
    session.put.return_value = mock.Mock(status_code=200, text="", reason="OK")

    result = HttpDeployer("https://deploy.example.com", session=session).deploy(deploy_request)

    urls = [call.args[0] for call in session.put.call_args_list]
    assert "https://deploy.example.com/assets/a%3Fb.js" in urls
    assert "https://deploy.example.com/assets/img/logo%232x.png" in urls
    assert result.details["uploaded"] == ["a?b.js", "img/logo#2x.png", "js/app.js", "logo.png"]


def test_http_deployer_closes_its_own_session(deploy_request: DeployRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATIC_DEPLOY_TOKEN", "secret")
    with mock.patch("publish_pipeline.publish.adapters.requests.Session") as session_cls:
        session = session_cls.return_value.__enter__.return_value
        session.put.return_value = mock.Mock(status_code=204, text="", reason="No Content")
        result = HttpDeployer("https://deploy.example.com").deploy(deploy_request)

    assert result.code == 0
    assert session.put.call_count == 2
    session_cls.return_value.__exit__.assert_called_once()


def test_http_deployer_reports_http_errors(deploy_request: DeployRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATIC_DEPLOY_TOKEN", "secret")
    session = mock.Mock()
    session.put.return_value = mock.Mock(status_code=403, text="forbidden", reason="Forbidden")

    result = HttpDeployer("https://deploy.example.com", session=session).deploy(deploy_request)

    assert result.code == 403
    assert "forbidden" in (result.error or "")


def test_http_deployer_reports_connection_errors(deploy_request: DeployRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STATIC_DEPLOY_TOKEN", "secret")
    session = mock.Mock()
    session.put.side_effect = RequestsConnectionError("connection refused")

    result = HttpDeployer("https://deploy.example.com", session=session).deploy(deploy_request)

    assert result.code == 1
    assert "connection refused" in (result.error or "")


def test_build_deployer_variants() -> None:
    assert isinstance(build_deployer("noop"), NoOpDeployer)
    assert isinstance(build_deployer("command", {"command": "echo {path}"}), CommandDeployer)
    assert isinstance(build_deployer("s3", {"bucket": "static"}), S3Deployer)
    assert isinstance(build_deployer("http", {"endpoint": "https://deploy.example.com"}), HttpDeployer)


@pytest.mark.parametrize(
    ("name", "options"),
    [
        ("command", {}),
        ("s3", {"region": "us-east-1"}),
        ("http", {}),
        ("ftp", {}),
    ],
)
def test_build_deployer_rejects_invalid_options(name: str, options: dict) -> None:
    with pytest.raises(ValueError):
        build_deployer(name, options)
