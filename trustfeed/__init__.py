# trustfeed/__init__.py
"""
Trustfeed: signature-gated replication for multi-feed peer-to-peer logs.
Only feeds whose public key carries a valid Ed25519 signature under one shared
trust key are advertised to or accepted from peers.
"""

__version__ = "0.1.0-dev"

from trustfeed.core.errors import (
    TrustFeedError,
    ConfigurationError,
    EncodingError,
    KeyMismatchError,
    InvalidSignatureError,
    StorageError,
    StorageNotFound,
    StorageReadError,
    StorageWriteError,
    ReplicationError,
)
from trustfeed.crypto.keys import TrustKeyPair
from trustfeed.verify.verifier import verify, StoreVerifier
from trustfeed.store.signatures import SignatureStore
from trustfeed.gate.replication import ReplicationGate

__all__ = [
    "TrustFeedError",
    "ConfigurationError",
    "EncodingError",
    "KeyMismatchError",
    "InvalidSignatureError",
    "StorageError",
    "StorageNotFound",
    "StorageReadError",
    "StorageWriteError",
    "ReplicationError",
    "TrustKeyPair",
    "verify",
    "StoreVerifier",
    "SignatureStore",
    "ReplicationGate",
]
