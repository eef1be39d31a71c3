# trustfeed/gate/replication.py
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from trustfeed.config import GateConfig
from trustfeed.core.encoding import (
    KeyLike,
    PUBLIC_KEY_LENGTH,
    ensure_bytes,
    feed_key_hex,
    signature_hex,
)
from trustfeed.core.errors import ConfigurationError, EncodingError, InvalidSignatureError
from trustfeed.core.types import Advertisement
from trustfeed.crypto.signer import FeedSigner
from trustfeed.storage import StorageBackend
from trustfeed.store.signatures import SignatureStore
from trustfeed.verify.verifier import verify

logger = logging.getLogger(__name__)


class ReplicationGate:
    """
    Signature-based replication rules for a multi-feed host.

    Only feeds whose key is signed under `trust_key` are advertised (`have`)
    or accepted (`want`). With a `secret`, feeds this node can write to are
    signed as soon as the host creates them; without one, local feeds still
    work but never leave the node.
    """

    def __init__(
        self,
        trust_key: KeyLike,
        storage: Union[StorageBackend, str],
        secret: Optional[KeyLike] = None,
    ):
        if not trust_key:
            raise ConfigurationError("Signature checking key is required")
        if storage is None or storage == "":
            raise ConfigurationError("Storage is required")
        try:
            self.trust_key = ensure_bytes(trust_key, PUBLIC_KEY_LENGTH, what="trust key")
        except EncodingError as e:
            raise ConfigurationError(f"Invalid trust key: {e}") from e

        self.store = SignatureStore(storage)
        self.signer: Optional[FeedSigner] = None
        if secret:
            try:
                self.signer = FeedSigner(secret, self.trust_key, self.store)
            except EncodingError as e:
                raise ConfigurationError(f"Invalid secret key: {e}") from e
        self._host: Any = None

    @classmethod
    def from_config(cls, config: GateConfig) -> "ReplicationGate":
        return cls(config.trust_key, config.storage, config.secret)

    @property
    def network_key(self) -> bytes:
        """Key the host must use as its transport identity, so peering and trust share one root."""
        return self.trust_key

    @property
    def can_sign(self) -> bool:
        return self.signer is not None

    def initialize(self, host: Any) -> None:
        """
        Bind the host's network key, load persisted signatures, then start
        signing feeds the host creates from now on.
        """
        if self._host is host:
            return
        host.bind_network_key(self.network_key)
        self.store.load()
        host.on_feed(self.on_feed_created, prepend=True)
        self._host = host

    def on_feed_created(self, feed: Any, name: Optional[str] = None) -> None:
        if not feed.writable:
            return
        if self.signer is None:
            logger.debug("No secret configured, local feed %s stays unsigned", feed.key)
            return
        self.sign_feed(feed.key)

    def sign_feed(self, feed_key: KeyLike) -> bytes:
        if self.signer is None:
            raise ConfigurationError("Cannot sign feeds without a secret key")
        with self.store.lock:
            self.store.ensure_loaded()
            return self.signer.sign(feed_key)

    def set_signature(self, feed_key: KeyLike, signature: KeyLike) -> None:
        """Record a signature obtained out of band. It must verify under the trust key."""
        key_hex = feed_key_hex(feed_key)
        if not verify(key_hex, signature, self.trust_key):
            raise InvalidSignatureError(f"Signature for feed {key_hex} does not verify under the trust key")
        with self.store.lock:
            self.store.ensure_loaded()
            self.store.set(key_hex, signature_hex(signature))

    def is_trusted(self, feed_key: KeyLike) -> bool:
        try:
            key_hex = feed_key_hex(feed_key)
        except EncodingError:
            return False
        with self.store.lock:
            self.store.ensure_loaded()
            return verify(key_hex, self.store.get(key_hex), self.trust_key)

    def have(self, local_keys: Iterable[KeyLike]) -> Advertisement:
        """Only share verified feed keys, together with their signatures."""
        keys: List[str] = []
        signatures: List[str] = []
        seen: Set[str] = set()
        with self.store.lock:
            self.store.ensure_loaded()
            for key in local_keys:
                try:
                    key_hex = feed_key_hex(key)
                except EncodingError as e:
                    logger.warning("Skipping malformed local feed key: %s", e)
                    continue
                if key_hex in seen:
                    continue
                seen.add(key_hex)
                signature = self.store.get(key_hex)
                if verify(key_hex, signature, self.trust_key):
                    keys.append(key_hex)
                    signatures.append(signature)
        return Advertisement(keys=keys, signatures=signatures)

    def want(
        self,
        remote_keys: Sequence[KeyLike],
        remote_signatures: Optional[Sequence[Optional[KeyLike]]] = None,
    ) -> List[str]:
        """
        Accept each offered key whose signature verifies, preferring a locally
        stored signature over the peer's. Newly learned signatures are persisted
        in one write before returning.
        """
        remote_signatures = remote_signatures or []
        accepted: List[str] = []
        accepted_set: Set[str] = set()
        discovered: Dict[str, str] = {}

        with self.store.lock:
            self.store.ensure_loaded()
            for i, key in enumerate(remote_keys):
                try:
                    key_hex = feed_key_hex(key)
                except EncodingError as e:
                    logger.warning("Rejecting malformed feed key offered by peer: %s", e)
                    continue
                if key_hex in accepted_set:
                    continue

                offered = remote_signatures[i] if i < len(remote_signatures) else None
                known = self.store.get(key_hex) or discovered.get(key_hex)
                if verify(key_hex, known or offered, self.trust_key):
                    accepted.append(key_hex)
                    accepted_set.add(key_hex)
                    if not known:
                        discovered[key_hex] = signature_hex(offered)
                else:
                    logger.debug("Rejecting feed %s: no valid signature", key_hex)

            if discovered:
                logger.info("Discovered %d new feed signature(s) from peer", len(discovered))
                self.store.update(discovered.items())

        return accepted

    def close(self) -> None:
        self.store.close()
