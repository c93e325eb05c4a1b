"""Workspace cleanup before a build."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from .errors import FilesystemError

logger = logging.getLogger(__name__)


def remove_path(path: Path) -> bool:
    """Remove ``path`` recursively; return False when there was nothing to remove."""

    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


async def _remove(path: Path) -> bool:
    try:
        removed = await asyncio.to_thread(remove_path, path)
    except OSError as exc:
        raise FilesystemError(f"Failed to remove {path}: {exc}") from exc
    if removed:
        logger.debug("Removed %s", path)
    return removed


async def clean_workspace(*paths: Path) -> list[Path]:
    """Remove every path concurrently and return the ones that existed."""

    results = await asyncio.gather(*(_remove(Path(path)) for path in paths))
    return [Path(path) for path, removed in zip(paths, results) if removed]
