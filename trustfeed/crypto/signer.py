# trustfeed/crypto/signer.py
import logging
from typing import Optional, TYPE_CHECKING

from trustfeed.core.encoding import KeyLike, PUBLIC_KEY_LENGTH, ensure_bytes
from trustfeed.core.errors import KeyMismatchError
from trustfeed.crypto.keys import TrustKeyPair
from trustfeed.verify.verifier import verify

if TYPE_CHECKING:
    from trustfeed.store.signatures import SignatureStore

logger = logging.getLogger(__name__)


class FeedSigner:
    """
    Signs feed keys with the local secret and checks every signature against
    the trust key before it is stored or handed out.
    """

    def __init__(self, secret: KeyLike, trust_key: bytes, store: Optional["SignatureStore"] = None):
        self._pair = TrustKeyPair.from_secret(secret)
        self.trust_key = trust_key
        self.store = store

    def sign(self, feed_key: KeyLike) -> bytes:
        """
        Sign → self-verify → persist (if a store is attached).
        Raises KeyMismatchError when the secret does not belong to the trust key;
        nothing is stored in that case.
        """
        key = ensure_bytes(feed_key, PUBLIC_KEY_LENGTH, what="feed key")
        signature = self._pair.sign(key)
        logger.debug("Signing new writer %s %s", key.hex(), signature.hex())

        if not verify(key, signature, self.trust_key):
            raise KeyMismatchError(
                "Invalid signature produced, have you provided a correct key pair?"
            )

        if self.store is not None:
            self.store.set(key, signature)
        return signature
