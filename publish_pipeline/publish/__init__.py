"""Static asset publishing helpers."""

from .adapters import CommandDeployer, Deployer, HttpDeployer, NoOpDeployer, S3Deployer, build_deployer
from .models import DeployRequest, DeployResult
from .publish import asset_path_from_url, publish_assets

__all__ = [
    "CommandDeployer",
    "DeployRequest",
    "DeployResult",
    "Deployer",
    "HttpDeployer",
    "NoOpDeployer",
    "S3Deployer",
    "asset_path_from_url",
    "build_deployer",
    "publish_assets",
]
