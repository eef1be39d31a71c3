# trustfeed/store/signatures.py
"""
Persisted map of feed key → signature.

Region layout: bytes [0,4) hold a little-endian uint32 L, bytes [4,4+L) hold a
UTF-8 JSON object of feed-key hex → signature hex. The header is always
written before the payload.
"""
import logging
import struct
import threading
from typing import Dict, Iterable, Optional, Tuple, Union

from trustfeed.core.canon import canonical_json, parse_json_object
from trustfeed.core.encoding import KeyLike, to_hex
from trustfeed.core.errors import (
    StorageError,
    StorageNotFound,
    StorageReadError,
    StorageWriteError,
)
from trustfeed.core.types import Empty, Failed, LoadResult, Loaded, SignatureRecord
from trustfeed.storage import StorageBackend, create_storage

logger = logging.getLogger(__name__)

HEADER_SIZE = 4
_HEADER = struct.Struct("<I")


def encode_record(record: SignatureRecord) -> Tuple[bytes, bytes]:
    """Return (header, payload) for a record."""
    payload = canonical_json(record)
    return _HEADER.pack(len(payload)), payload


def decode_record(payload: bytes) -> SignatureRecord:
    obj = parse_json_object(payload)
    for k, v in obj.items():
        if not isinstance(v, str):
            raise ValueError(f"Signature for {k} is not a string")
    return obj


class SignatureStore:
    """
    In-memory signature map mirrored to one storage region.

    Every mutation is written through before the call returns. `lock`
    serializes readers and writers; the replication gate holds it across a
    whole have/want cycle.
    """

    def __init__(self, storage: Union[StorageBackend, str]):
        if isinstance(storage, str):
            storage = create_storage(storage)
        self.storage = storage
        self.lock = threading.RLock()
        self._signatures: Dict[str, str] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def read_region(self) -> LoadResult:
        """Stat → read header → read payload, as a tagged result."""
        try:
            stat = self.storage.stat()
        except StorageNotFound:
            return Empty("absent")
        except (StorageError, OSError) as e:
            return Failed(e)
        if stat.size == 0:
            return Empty("zero-length")

        try:
            header = self.storage.read(0, HEADER_SIZE)
        except (StorageError, OSError) as e:
            return Failed(e)
        if len(header) < HEADER_SIZE:
            logger.debug("Loading signatures failed, short header (%d bytes); this is normal for fresh stores", len(header))
            return Empty("short header")

        (size,) = _HEADER.unpack(header)
        try:
            payload = self.storage.read(HEADER_SIZE, size)
        except (StorageError, OSError) as e:
            return Failed(e)
        if len(payload) < size:
            logger.debug("Signature payload truncated (%d of %d bytes), treating as empty", len(payload), size)
            return Empty("short payload")

        try:
            return Loaded(decode_record(payload))
        except (ValueError, UnicodeDecodeError) as e:
            return Failed(e)

    def load(self) -> SignatureRecord:
        """
        Replace the in-memory map with the persisted one.
        Absent, empty or partially written regions load as {}.
        """
        with self.lock:
            result = self.read_region()
            if isinstance(result, Failed):
                raise StorageReadError(f"Failed to load signatures: {result.error}") from result.error
            if isinstance(result, Empty):
                logger.debug("No signatures persisted yet (%s)", result.reason)
                self._signatures = {}
            else:
                self._signatures = dict(result.record)
                logger.debug("Signatures reloaded (%d entries)", len(self._signatures))
            self._loaded = True
            return dict(self._signatures)

    def ensure_loaded(self) -> None:
        with self.lock:
            if not self._loaded:
                self.load()

    def get(self, feed_key: KeyLike) -> Optional[str]:
        with self.lock:
            return self._signatures.get(to_hex(feed_key, what="feed key"))

    def __contains__(self, feed_key) -> bool:
        return self.get(feed_key) is not None

    def __len__(self) -> int:
        return len(self._signatures)

    def snapshot(self) -> SignatureRecord:
        with self.lock:
            return dict(self._signatures)

    def set(self, feed_key: KeyLike, signature: KeyLike) -> None:
        with self.lock:
            self._signatures[to_hex(feed_key, what="feed key")] = to_hex(signature, what="signature")
            self.save()

    def update(self, pairs: Iterable[Tuple[KeyLike, KeyLike]]) -> None:
        """Upsert many pairs with a single durable write."""
        with self.lock:
            changed = False
            for feed_key, signature in pairs:
                key_hex = to_hex(feed_key, what="feed key")
                sig_hex = to_hex(signature, what="signature")
                if self._signatures.get(key_hex) != sig_hex:
                    self._signatures[key_hex] = sig_hex
                    changed = True
            if changed:
                self.save()

    def save(self) -> None:
        with self.lock:
            header, payload = encode_record(self._signatures)
            try:
                self.storage.write(0, header)
                self.storage.write(HEADER_SIZE, payload)
            except StorageWriteError:
                raise
            except (StorageError, OSError) as e:
                raise StorageWriteError(f"Failed to persist signatures: {e}") from e

    def close(self) -> None:
        self.storage.close()
