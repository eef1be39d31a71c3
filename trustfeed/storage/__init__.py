# trustfeed/storage/__init__.py
"""
Byte-addressable storage backends for the persisted signature region.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from trustfeed.core.errors import ConfigurationError

DEFAULT_REGION_NAME = "signatures.json"


@dataclass(frozen=True)
class StorageStat:
    size: int


class StorageBackend(ABC):
    """
    Abstract base for one random-access byte region.

    `stat` raises StorageNotFound when the region was never written, so
    "does not exist" and "zero length" stay distinguishable.
    """

    @abstractmethod
    def stat(self) -> StorageStat:
        pass

    @abstractmethod
    def read(self, offset: int, length: int) -> bytes:
        """Read up to `length` bytes; fewer are returned past the end of the region."""
        pass

    @abstractmethod
    def write(self, offset: int, data: bytes) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_storage(uri: str, name: str = DEFAULT_REGION_NAME) -> StorageBackend:
    """
    Resolve a storage URI:
      memory:              process-local region
      sqlite://<path>      region `name` inside a SQLite database
      file://<path>        plain file
      <path>               plain file; a directory gets `name` appended
    """
    uri = uri.strip()
    if not uri:
        raise ConfigurationError("Storage URI is empty")

    if uri == "memory:" or uri.startswith("memory:"):
        from .memory import MemoryStorage
        return MemoryStorage()

    if uri.startswith("sqlite://"):
        from .sqlite import SQLiteStorage
        raw_path = uri[len("sqlite://"):]
        if not raw_path:
            raise ConfigurationError(f"Missing database path in storage URI: {uri}")
        return SQLiteStorage(Path(raw_path).expanduser().resolve(), name=name)

    if uri.startswith("file://"):
        uri = uri[len("file://"):]
    elif "://" in uri:
        raise ConfigurationError(f"Unsupported storage URI: {uri}")

    from .file import FileStorage
    path = Path(uri).expanduser()
    if path.is_dir():
        path = path / name
    return FileStorage(path.resolve())


from .file import FileStorage
from .memory import MemoryStorage
from .sqlite import SQLiteStorage

__all__ = [
    "StorageBackend",
    "StorageStat",
    "create_storage",
    "FileStorage",
    "MemoryStorage",
    "SQLiteStorage",
    "DEFAULT_REGION_NAME",
]
