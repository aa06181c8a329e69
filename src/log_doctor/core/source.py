"""Async line source over a log file.

Drain mode yields every line and stops at EOF. Follow mode keeps polling for
new lines and reopens the file when it is truncated or rotated.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)


async def _rotated(path: Path, *, inode: int, offset: int) -> bool:
    """Return True when `path` now points at a different or shorter file."""
    try:
        st = await aiofiles.os.stat(path)
    except FileNotFoundError:
        # keep draining the old handle until the new file shows up
        return False
    if st.st_ino != inode:
        logger.info("Log file %s was rotated; reopening", path)
        return True
    if st.st_size < offset:
        logger.info("Log file %s was truncated; reopening", path)
        return True
    return False


async def _wait_for_file(path: Path, poll_interval: float) -> None:
    while not await aiofiles.os.path.isfile(path):
        await asyncio.sleep(poll_interval)


async def tail_lines(
    log_path: str | Path,
    *,
    follow: bool = False,
    poll_interval: float = 0.1,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> AsyncIterator[str]:
    """Yield decoded lines (without line terminators) from a log file."""
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")

    while True:
        inode = (await aiofiles.os.stat(path)).st_ino
        offset = 0
        pending = b""
        async with aiofiles.open(path, "rb") as f:
            while True:
                raw = await f.readline()
                if raw:
                    offset += len(raw)
                    if follow and not raw.endswith(b"\n"):
                        # writer has not finished this line yet
                        pending += raw
                        continue
                    raw, pending = pending + raw, b""
                    yield raw.decode(encoding, errors=decode_errors).rstrip("\r\n")
                    continue

                if not follow:
                    return
                if await _rotated(path, inode=inode, offset=offset):
                    break
                await asyncio.sleep(poll_interval)

        await _wait_for_file(path, poll_interval)
