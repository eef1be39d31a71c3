# trustfeed/verify/verifier.py
from typing import List, Optional
from dataclasses import dataclass

from trustfeed.core.encoding import (
    KeyLike,
    PUBLIC_KEY_LENGTH,
    SIGNATURE_LENGTH,
    ensure_bytes,
)
from trustfeed.core.errors import EncodingError
from trustfeed.core.types import SignatureRecord
from trustfeed.crypto.keys import TrustKeyPair
from trustfeed.storage import StorageBackend


def verify(message: Optional[KeyLike], signature: Optional[KeyLike], public_key: Optional[KeyLike]) -> bool:
    """
    True iff `signature` is a valid Ed25519 signature of `message` under `public_key`.

    Total predicate: missing, malformed or wrong-length input yields False,
    so it can be used directly as a filter.
    """
    if not message or not signature or not public_key:
        return False
    try:
        msg = ensure_bytes(message)
        sig = ensure_bytes(signature, SIGNATURE_LENGTH)
        pair = TrustKeyPair.from_public(public_key)
    except EncodingError:
        return False
    return pair.verify_bytes(sig, msg)


@dataclass
class VerificationFailure:
    index: int
    message: str
    category: str = "general"  # e.g. "signature", "encoding", "storage"
    feed_key: str = ""


@dataclass
class VerificationResult:
    is_valid: bool
    message: str = ""
    failures: List[VerificationFailure] = None
    checked: int = 0

    def __post_init__(self):
        if self.failures is None:
            self.failures = []

    @property
    def first_failure(self) -> Optional[VerificationFailure]:
        return self.failures[0] if self.failures else None

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return "Signature store is valid ✓"
        lines = [f"Verification FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.index}] {f.category}: {f.message}")
        return "\n".join(lines)


class StoreVerifier:
    """
    Offline audit of a signature record against the trust key.
    Reports every entry the replication gate would refuse to advertise.
    """

    def __init__(self, trust_key: KeyLike):
        if not trust_key:
            raise ValueError("trust_key is required")
        self.trust_key = ensure_bytes(trust_key, PUBLIC_KEY_LENGTH, what="trust key")

    def verify(self, record: SignatureRecord) -> VerificationResult:
        if not record:
            return VerificationResult(True, "Empty signature store is valid")

        result = VerificationResult(True, checked=len(record))
        for i, feed_key in enumerate(sorted(record)):
            signature = record[feed_key]
            try:
                ensure_bytes(feed_key, PUBLIC_KEY_LENGTH, what="feed key")
            except EncodingError as e:
                result.failures.append(VerificationFailure(i, str(e), "encoding", feed_key))
                result.is_valid = False
                continue

            if not verify(feed_key, signature, self.trust_key):
                result.failures.append(VerificationFailure(i, "Invalid signature", "signature", feed_key))
                result.is_valid = False

        result.message = (
            f"{result.checked} signatures valid" if result.is_valid
            else f"Failed with {len(result.failures)} issues"
        )
        return result

    def verify_from_storage(self, storage: StorageBackend) -> VerificationResult:
        """
        Load the persisted record and verify it.
        Returns a failed result with a storage failure if load fails.
        """
        from trustfeed.store.signatures import SignatureStore

        try:
            record = SignatureStore(storage).load()
        except Exception as e:
            return VerificationResult(
                False,
                f"Failed to load signatures from storage: {str(e)}",
                [VerificationFailure(-1, str(e), "storage")]
            )

        return self.verify(record)
