"""Static asset publishing stage."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional
from urllib.parse import urlsplit

from ..config import BuildConfig
from ..environment import should_publish
from ..errors import PublishError
from .adapters import Deployer
from .models import DeployRequest, DeployResult

logger = logging.getLogger(__name__)


def asset_path_from_url(public_path: str) -> str:
    """Return the path component of ``public_path``, ignoring scheme and host."""

    path = urlsplit(public_path).path
    return path or "/"


async def publish_assets(env: str, config: BuildConfig, deployer: Deployer) -> Optional[DeployResult]:
    """Upload the build output for publishing environments.

    Returns ``None`` without touching ``deployer`` for any other environment.
    """

    if not should_publish(env):
        logger.debug("Skipping publish for environment '%s'", env)
        return None

    request = DeployRequest(
        env=env,
        cwd=config.output_path,
        path=asset_path_from_url(config.public_path),
        imagemin=True,
    )
    result = await asyncio.to_thread(deployer.deploy, request)
    if not result.ok:
        raise PublishError(
            f"Publish via '{result.adapter}' failed ({result.code}): {result.error or 'unknown error'}",
            result=result,
        )

    logger.info("publish success")
    logger.info("%s", json.dumps(result.to_dict(), indent=4))
    return result
