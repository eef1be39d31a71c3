# trustfeed/storage/file.py
import os
from pathlib import Path

from trustfeed.core.errors import StorageNotFound, StorageReadError, StorageWriteError
from . import StorageBackend, StorageStat


class FileStorage(StorageBackend):
    """A single file on disk, written in place and fsync'd on every write."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def stat(self) -> StorageStat:
        try:
            return StorageStat(size=self.path.stat().st_size)
        except FileNotFoundError as e:
            raise StorageNotFound(str(self.path)) from e
        except OSError as e:
            raise StorageReadError(f"Cannot stat {self.path}: {e}") from e

    def read(self, offset: int, length: int) -> bytes:
        try:
            with open(self.path, "rb") as f:
                f.seek(offset)
                return f.read(length)
        except FileNotFoundError as e:
            raise StorageNotFound(str(self.path)) from e
        except OSError as e:
            raise StorageReadError(f"Cannot read {self.path}: {e}") from e

    def write(self, offset: int, data: bytes) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            mode = "r+b" if self.path.exists() else "w+b"
            with open(self.path, mode) as f:
                f.seek(offset)
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageWriteError(f"Cannot write {self.path}: {e}") from e

    def close(self) -> None:
        # files are opened per call
        pass

    def __repr__(self):
        return f"FileStorage({str(self.path)!r})"
