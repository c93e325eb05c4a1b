"""Process-manager descriptor (``process.json``) helpers."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import FilesystemError
from .utils import read_json, write_json

logger = logging.getLogger(__name__)


class ProcessEntry(BaseModel):
    name: str

    model_config = ConfigDict(extra="allow")


class ProcessDescriptor(BaseModel):
    apps: List[ProcessEntry]

    model_config = ConfigDict(extra="allow")


def _read_payload(path: Path) -> Dict[str, Any]:
    try:
        return read_json(path)
    except (OSError, json.JSONDecodeError) as exc:
        raise FilesystemError(f"Failed to read process descriptor {path}: {exc}") from exc


def _validate(payload: Dict[str, Any], path: Path) -> ProcessDescriptor:
    try:
        return ProcessDescriptor.model_validate(payload)
    except ValidationError as exc:
        raise FilesystemError(f"Invalid process descriptor {path}: {exc}") from exc


def prefix_process_names(descriptor: ProcessDescriptor, package_name: str) -> List[str]:
    """Prefix every entry name with ``package_name``; return the renamed names.

    Names that already start with ``package_name`` are left untouched.
    """

    renamed: List[str] = []
    for app in descriptor.apps:
        if not app.name.startswith(package_name):
            app.name = f"{package_name}-{app.name}"
            renamed.append(app.name)
    return renamed


def rewrite_process_manifest_sync(path: Path, package_name: str) -> List[str]:
    """Rename entries in place; keys keep the order they had on disk."""

    payload = _read_payload(path)
    descriptor = _validate(payload, path)
    renamed = prefix_process_names(descriptor, package_name)
    for entry, app in zip(payload["apps"], descriptor.apps):
        entry["name"] = app.name
    try:
        write_json(payload, path)
    except OSError as exc:
        raise FilesystemError(f"Failed to write process descriptor {path}: {exc}") from exc
    return renamed


async def rewrite_process_manifest(path: Path, package_name: str) -> List[str]:
    renamed = await asyncio.to_thread(rewrite_process_manifest_sync, path, package_name)
    logger.debug("Rewrote %s (%d renamed)", path, len(renamed))
    return renamed
