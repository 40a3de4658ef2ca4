"""
LocalBlobStore - uploaded files on a local or mounted filesystem.

Files are written under `root` with a generated unique name
(<epoch-ms>-<random>-<original name>) and addressed by the public url
/uploads/<name>, which the API serves as static files.
"""

import asyncio
import os
import random
import re
import time
from pathlib import Path

from app.common.logging import get_logger
from app.core.monitoring import blob_io_seconds, track_duration

logger = get_logger(__name__)

URL_PREFIX = "/uploads"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Basename of `filename` with unsafe characters replaced by '_'."""
    name = os.path.basename(filename.replace("\\", "/"))
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "upload"


class LocalBlobStore:
    """Opaque blob store keyed by generated file name."""

    def __init__(self, root: str = "uploads"):
        self.root = Path(root)

    def ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def generate_name(self, filename: str) -> str:
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{unique_suffix}-{safe_filename(filename)}"

    @track_duration(blob_io_seconds, {"operation": "save"})
    async def save(self, filename: str, content: bytes) -> str:
        """
        Write content to a new file.

        Returns:
            Public url of the stored blob
        """
        name = self.generate_name(filename)
        path = self.ensure_root() / name
        await asyncio.to_thread(path.write_bytes, content)
        logger.info("Stored blob", data={"name": name, "bytes": len(content)})
        return f"{URL_PREFIX}/{name}"

    @track_duration(blob_io_seconds, {"operation": "remove"})
    async def remove(self, url: str) -> None:
        """Delete the blob behind a url returned by save(). Missing files are ignored."""
        path = self.root / url.rsplit("/", 1)[-1]
        await asyncio.to_thread(path.unlink, True)
