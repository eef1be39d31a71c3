# trustfeed/storage/memory.py
from typing import Optional

from trustfeed.core.errors import StorageNotFound
from . import StorageBackend, StorageStat


class MemoryStorage(StorageBackend):
    """Process-local region. Absent until the first write."""

    def __init__(self, data: Optional[bytes] = None):
        self._data: Optional[bytearray] = bytearray(data) if data is not None else None

    def stat(self) -> StorageStat:
        if self._data is None:
            raise StorageNotFound("memory region not written yet")
        return StorageStat(size=len(self._data))

    def read(self, offset: int, length: int) -> bytes:
        if self._data is None:
            raise StorageNotFound("memory region not written yet")
        return bytes(self._data[offset:offset + length])

    def write(self, offset: int, data: bytes) -> None:
        if self._data is None:
            self._data = bytearray()
        end = offset + len(data)
        if len(self._data) < offset:
            self._data.extend(b"\x00" * (offset - len(self._data)))
        self._data[offset:end] = data

    def close(self) -> None:
        pass

    def getvalue(self) -> bytes:
        return bytes(self._data or b"")
