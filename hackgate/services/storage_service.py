"""
Blob storage for uploaded proof documents.

The core only ever persists the URL and the opaque handle returned by
`put`; raw bytes never reach the database. `LocalBlobStore` writes files
under STORAGE_DIR and is what the bot uses out of the box; anything with the
same two coroutines can replace it.
"""
from __future__ import annotations

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from hackgate.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_KEY_RE = re.compile(r"[^A-Za-z0-9_\-]")


@dataclass(frozen=True)
class StoredBlob:
    url:    str
    handle: str


class BlobStore(Protocol):
    async def put(self, data: bytes, key: str) -> StoredBlob: ...

    async def delete(self, handle: str) -> None: ...


class LocalBlobStore:
    """
    Stores blobs as files: <root>/<key>-<random>.bin.

    Every put gets a new handle, so replacing a document and then deleting
    the previous handle never touches the new file.
    """

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None) -> None:
        self._root     = Path(root or settings.STORAGE_DIR)
        self._base_url = (base_url or settings.STORAGE_BASE_URL).rstrip("/")

    async def put(self, data: bytes, key: str) -> StoredBlob:
        handle = f"{_UNSAFE_KEY_RE.sub('_', key)}-{uuid.uuid4().hex[:12]}.bin"
        path   = self._root / handle
        await asyncio.to_thread(self._write, path, data)
        logger.info("Stored blob %s (%d bytes)", handle, len(data))
        return StoredBlob(url=f"{self._base_url}/{handle}", handle=handle)

    async def delete(self, handle: str) -> None:
        path = self._root / Path(handle).name
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.info("Deleted blob %s", handle)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
