"""Local temporary files used between translation and upload."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def write_temp_file(directory: str | Path, name: str, content: str) -> Path:
    """
    Write `content` to `directory/name` as UTF-8.

    Returns:
        Path of the written file
    """
    path = Path(directory) / Path(name).name
    await asyncio.to_thread(_write, path, content)
    logger.debug(f"Wrote {len(content)} chars to {path}")
    return path


async def delete_file(path: Path) -> None:
    """Delete a local file. Missing files raise FileNotFoundError."""
    await asyncio.to_thread(path.unlink)
