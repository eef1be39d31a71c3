# trustfeed/core/errors.py
"""
Error taxonomy for trustfeed.

Absent or empty storage is never an error: it loads as an empty record.
Verification never raises; it is a total predicate.
"""


class TrustFeedError(Exception):
    """Base class for all trustfeed errors."""


class ConfigurationError(TrustFeedError, ValueError):
    """Required trust key, storage or secret missing or unusable."""


class EncodingError(TrustFeedError, ValueError):
    """Key or signature material that is not valid hex / has the wrong length."""


class KeyMismatchError(TrustFeedError):
    """A freshly produced signature failed verification against the trust key."""


class InvalidSignatureError(TrustFeedError):
    """An externally supplied signature does not verify under the trust key."""


class StorageError(TrustFeedError):
    """Base for storage faults."""


class StorageNotFound(StorageError):
    """The storage region does not exist yet."""


class StorageReadError(StorageError):
    """Reading the persisted signature region failed."""


class StorageWriteError(StorageError):
    """Persisting the signature region failed; the in-memory map may be ahead of disk."""


class ReplicationError(TrustFeedError):
    """Two hosts refused to synchronize."""
