"""
Blob storage: opaque key/value persistence for accounts and envelopes.

The vault treats storage as an async key → bytes map. Values are already
sealed (entry envelopes) or non-sensitive (account hashes, the remembered
user marker); the store never sees plaintext credentials.
"""
import os
import base64
import asyncio
import logging
import tempfile
from typing import Optional, Protocol, runtime_checkable

import orjson

from .exceptions import StorageError

logger = logging.getLogger("securevault.storage")

USERS_KEY = "users"
CURRENT_USER_KEY = "currentUser"
_ENTRIES_PREFIX = "entries_"


def entries_key(email: str) -> str:
    """Blob key holding the sealed entry list of ``email``."""
    return f"{_ENTRIES_PREFIX}{email}"


@runtime_checkable
class BlobStore(Protocol):
    """Async key/value contract used by the vault."""

    async def get(self, key: str) -> Optional[bytes]:
        ...

    async def set(self, key: str, value: bytes) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryBlobStore:
    """Process-local store. Survives a VaultStore restart, not a process one."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._data: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data.keys())


class FileBlobStore:
    """Single JSON file holding base64 values.

    Every write rewrites the file through a temp file and ``os.replace``, so
    readers observe either the previous or the next state, never a partial
    one.
    """

    def __init__(self, path: str):
        self._path = os.path.abspath(os.path.expanduser(path))
        self._lock = asyncio.Lock()

    @property
    def path(self) -> str:
        return self._path

    def _read(self) -> dict[str, str]:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "rb") as fp:
                raw = fp.read()
            return orjson.loads(raw) if raw else {}
        except (OSError, orjson.JSONDecodeError) as err:
            logger.error("Failed to read blob store %s: %s", self._path, err)
            raise StorageError(f"Cannot read blob store: {err}") from err

    def _write(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(self._path)
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=directory, prefix=".securevault-")
        try:
            with os.fdopen(fd, "wb") as fp:
                fp.write(orjson.dumps(data))
                fp.flush()
                os.fsync(fp.fileno())
            os.replace(tmp, self._path)
        except OSError as err:
            logger.error("Failed to write blob store %s: %s", self._path, err)
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise StorageError(f"Cannot write blob store: {err}") from err

    async def get(self, key: str) -> Optional[bytes]:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        value = data.get(key)
        if value is None:
            return None
        return base64.b64decode(value)

    async def set(self, key: str, value: bytes) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = base64.b64encode(value).decode("ascii")
            await asyncio.to_thread(self._write, data)
        logger.debug("Blob store set: key=%s", key)

    async def delete(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if data.pop(key, None) is not None:
                await asyncio.to_thread(self._write, data)
        logger.debug("Blob store delete: key=%s", key)
