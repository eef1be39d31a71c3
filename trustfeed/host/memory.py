# trustfeed/host/memory.py
"""
Reference in-memory multi-feed host.

Implements just enough of a replication host for the gate to plug into:
a network key, feed-creation events, and a two-sided have/want exchange.
"""
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from trustfeed.core.encoding import KeyLike, feed_key_hex
from trustfeed.core.errors import ReplicationError
from trustfeed.crypto.keys import TrustKeyPair

logger = logging.getLogger(__name__)

FeedListener = Callable[["MemoryFeed", Optional[str]], None]


class MemoryFeed:
    """Append-only list of entries identified by an Ed25519 public key."""

    def __init__(self, key: bytes, secret_key: Optional[bytes] = None, entries: Optional[List[bytes]] = None):
        self.key = bytes(key)
        self.secret_key = secret_key
        self.entries: List[bytes] = list(entries or [])

    @classmethod
    def create(cls) -> "MemoryFeed":
        pair = TrustKeyPair.generate()
        return cls(pair.public_key, pair.secret_key)

    @property
    def writable(self) -> bool:
        return self.secret_key is not None

    @property
    def key_hex(self) -> str:
        return self.key.hex()

    def append(self, data: bytes | str) -> int:
        if not self.writable:
            raise PermissionError(f"Feed {self.key_hex} is not writable")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.entries.append(data)
        return len(self.entries) - 1

    def get(self, index: int) -> bytes:
        return self.entries[index]

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self):
        return f"MemoryFeed({self.key_hex[:12]}…, entries={len(self.entries)}, writable={self.writable})"


class MemoryFeedHost:
    """A node holding many feeds, optionally filtered by a replication gate."""

    def __init__(self):
        self.key: bytes = os.urandom(32)
        self.gate: Any = None
        self._feeds: Dict[str, MemoryFeed] = {}
        self._writers: Dict[str, MemoryFeed] = {}
        self._listeners: List[FeedListener] = []

    def use(self, gate: Any) -> None:
        self.gate = gate
        gate.initialize(self)

    def bind_network_key(self, key: bytes) -> None:
        self.key = bytes(key)

    def on_feed(self, listener: FeedListener, prepend: bool = False) -> None:
        if prepend:
            self._listeners.insert(0, listener)
        else:
            self._listeners.append(listener)

    def writer(self, name: str = "local") -> MemoryFeed:
        """Return the local writable feed called `name`, creating it on first use."""
        if name in self._writers:
            return self._writers[name]
        feed = MemoryFeed.create()
        self._writers[name] = feed
        self._add_feed(feed, name)
        return feed

    def feeds(self) -> List[MemoryFeed]:
        return list(self._feeds.values())

    def feed_keys(self) -> List[str]:
        return list(self._feeds)

    def get(self, key: KeyLike) -> Optional[MemoryFeed]:
        return self._feeds.get(feed_key_hex(key))

    def _add_feed(self, feed: MemoryFeed, name: Optional[str]) -> None:
        self._feeds[feed.key_hex] = feed
        for listener in list(self._listeners):
            listener(feed, name)

    def _advertise(self) -> dict:
        if self.gate is None:
            return {"keys": self.feed_keys(), "signatures": []}
        return self.gate.have(self.feed_keys()).to_dict()

    def _accept(self, offer: dict) -> List[str]:
        if self.gate is None:
            return list(offer["keys"])
        return self.gate.want(offer["keys"], offer.get("signatures", []))

    def _receive(self, source: "MemoryFeedHost", keys: List[str]) -> None:
        for key in keys:
            remote = source.get(key)
            if remote is None:
                continue
            local = self._feeds.get(key)
            if local is None:
                self._add_feed(MemoryFeed(remote.key, entries=remote.entries), key)
            elif len(local.entries) < len(remote.entries):
                local.entries.extend(remote.entries[len(local.entries):])


def replicate(a: MemoryFeedHost, b: MemoryFeedHost) -> None:
    """
    One full sync between two hosts: each side advertises through `have`,
    the other filters through `want`, then accepted feeds are copied.
    """
    if a.key != b.key:
        raise ReplicationError("Hosts do not share a network key")

    offer_a = a._advertise()
    offer_b = b._advertise()
    wanted_by_b = b._accept(offer_a)
    wanted_by_a = a._accept(offer_b)

    b._receive(a, wanted_by_b)
    a._receive(b, wanted_by_a)
    logger.debug("Replicated %d feed(s) a→b and %d feed(s) b→a", len(wanted_by_b), len(wanted_by_a))
