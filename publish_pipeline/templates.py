"""Move generated templates from the build output into the view directory."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import List

from .errors import FilesystemError

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSION = ".html"
DEFAULT_MOVE_CONCURRENCY = 16


def find_templates(build_root: Path, extension: str = TEMPLATE_EXTENSION) -> List[Path]:
    """Return template paths relative to ``build_root``, sorted.

    Dotfiles and anything inside a hidden directory are skipped.
    """

    if not build_root.is_dir():
        return []
    templates = []
    for path in build_root.rglob(f"*{extension}"):
        relative = path.relative_to(build_root)
        if path.is_file() and not any(part.startswith(".") for part in relative.parts):
            templates.append(relative)
    return sorted(templates)


def move_file(src: Path, dst: Path) -> None:
    """Move ``src`` to ``dst``, replacing an existing destination file."""

    dst.parent.mkdir(parents=True, exist_ok=True)
    if dst.is_file() or dst.is_symlink():
        dst.unlink()
    shutil.move(str(src), str(dst))


async def relocate_templates(
    build_root: Path,
    views_dir: Path,
    *,
    extension: str = TEMPLATE_EXTENSION,
    concurrency: int = DEFAULT_MOVE_CONCURRENCY,
) -> List[Path]:
    """Move every template under ``build_root`` to the same relative path in ``views_dir``.

    Moves run concurrently up to ``concurrency`` at a time. The first failure
    is raised as ``FilesystemError``; moves already started are left to finish.
    """

    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    templates = find_templates(build_root, extension)
    semaphore = asyncio.Semaphore(concurrency)

    async def _move(relative: Path) -> Path:
        src = build_root / relative
        dst = views_dir / relative
        async with semaphore:
            try:
                await asyncio.to_thread(move_file, src, dst)
            except OSError as exc:
                raise FilesystemError(f"Failed to move template {src} -> {dst}: {exc}") from exc
        logger.debug("Moved %s", relative)
        return relative

    return list(await asyncio.gather(*(_move(relative) for relative in templates)))
