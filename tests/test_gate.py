# tests/test_gate.py
import threading

import pytest

from trustfeed.config import GateConfig
from trustfeed.core.errors import (
    ConfigurationError,
    InvalidSignatureError,
    KeyMismatchError,
)
from trustfeed.gate.replication import ReplicationGate
from trustfeed.storage import MemoryStorage
from trustfeed.store.signatures import SignatureStore


class FakeFeed:
    def __init__(self, key: bytes, writable: bool = True):
        self.key = key
        self.writable = writable


class FakeHost:
    def __init__(self):
        self.key = b"\x00" * 32
        self.listeners = []

    def bind_network_key(self, key):
        self.key = key

    def on_feed(self, listener, prepend=False):
        if prepend:
            self.listeners.insert(0, listener)
        else:
            self.listeners.append(listener)

    def emit(self, feed, name=None):
        for listener in self.listeners:
            listener(feed, name)


@pytest.fixture
def gate(trust_pair, storage) -> ReplicationGate:
    return ReplicationGate(trust_pair.public_key, storage)


@pytest.fixture
def signing_gate(trust_pair, storage) -> ReplicationGate:
    return ReplicationGate(trust_pair.public_key_hex(), storage, trust_pair.secret_key_hex())


# ── construction ────────────────────────────────────────────────────────

def test_requires_trust_key(storage):
    with pytest.raises(ConfigurationError, match="key is required"):
        ReplicationGate(None, storage)


def test_requires_storage(trust_pair):
    with pytest.raises(ConfigurationError, match="Storage is required"):
        ReplicationGate(trust_pair.public_key, None)


def test_rejects_malformed_keys(trust_pair, storage):
    with pytest.raises(ConfigurationError, match="trust key"):
        ReplicationGate("not-hex", storage)
    with pytest.raises(ConfigurationError, match="secret"):
        ReplicationGate(trust_pair.public_key, storage, "00" * 5)


def test_from_config(trust_pair, tmp_path):
    config = GateConfig(
        trust_key=trust_pair.public_key_hex(),
        storage=str(tmp_path / "sigs"),
        secret=trust_pair.secret_key_hex(),
    )
    gate = ReplicationGate.from_config(config)
    assert gate.network_key == trust_pair.public_key
    assert gate.can_sign


def test_config_from_env(trust_pair, monkeypatch):
    monkeypatch.setenv("TRUSTFEED_TRUST_KEY", trust_pair.public_key_hex())
    monkeypatch.setenv("TRUSTFEED_STORAGE", "memory:")
    monkeypatch.delenv("TRUSTFEED_SECRET_KEY", raising=False)
    config = GateConfig.from_env()
    assert config.trust_key == trust_pair.public_key_hex()
    assert config.storage == "memory:"
    assert config.secret is None

    monkeypatch.delenv("TRUSTFEED_TRUST_KEY")
    with pytest.raises(ConfigurationError):
        GateConfig.from_env()


# ── lifecycle ───────────────────────────────────────────────────────────

def test_initialize_binds_key_loads_and_listens(trust_pair, make_feed_key):
    key = make_feed_key()
    storage = MemoryStorage()
    SignatureStore(storage).set(key, trust_pair.sign(key))

    host = FakeHost()
    other_listener = lambda feed, name: None
    host.on_feed(other_listener)

    gate = ReplicationGate(trust_pair.public_key, storage, trust_pair.secret_key)
    gate.initialize(host)

    assert host.key == trust_pair.public_key
    assert gate.store.loaded
    assert gate.store.get(key) is not None
    assert host.listeners[0] == gate.on_feed_created
    assert host.listeners[1] is other_listener

    gate.initialize(host)
    assert len(host.listeners) == 2


def test_writable_feed_is_signed_on_creation(signing_gate, trust_pair, make_feed_key):
    host = FakeHost()
    signing_gate.initialize(host)
    feed = FakeFeed(make_feed_key())

    host.emit(feed, "local")

    assert signing_gate.is_trusted(feed.key)
    assert SignatureStore(signing_gate.store.storage).load().keys() == {feed.key.hex()}


def test_readonly_feed_is_not_signed(signing_gate, make_feed_key):
    host = FakeHost()
    signing_gate.initialize(host)
    host.emit(FakeFeed(make_feed_key(), writable=False))
    assert len(signing_gate.store) == 0


def test_no_secret_leaves_feed_unsigned(gate, storage, make_feed_key):
    host = FakeHost()
    gate.initialize(host)
    feed = FakeFeed(make_feed_key())
    host.emit(feed)
    assert not gate.is_trusted(feed.key)
    assert storage.writes == 0


def test_no_secret_accepts_hex_string_feed_key(gate, storage, make_feed_key):
    host = FakeHost()
    gate.initialize(host)
    feed = FakeFeed(make_feed_key().hex())

    host.emit(feed, "local")

    assert not gate.is_trusted(feed.key)
    assert storage.writes == 0


def test_signing_accepts_hex_string_feed_key(signing_gate, make_feed_key):
    host = FakeHost()
    signing_gate.initialize(host)
    feed = FakeFeed(make_feed_key().hex())

    host.emit(feed, "local")

    assert signing_gate.is_trusted(feed.key)


def test_sign_feed_requires_secret(gate, make_feed_key):
    with pytest.raises(ConfigurationError, match="secret"):
        gate.sign_feed(make_feed_key())


def test_mismatched_secret_surfaces_on_feed_creation(trust_pair, other_pair, storage, make_feed_key):
    gate = ReplicationGate(trust_pair.public_key, storage, other_pair.secret_key)
    host = FakeHost()
    gate.initialize(host)
    with pytest.raises(KeyMismatchError):
        host.emit(FakeFeed(make_feed_key()))
    assert len(gate.store) == 0
    assert storage.writes == 0


def test_set_signature_checks_validity(gate, trust_pair, other_pair, make_feed_key):
    key = make_feed_key()
    with pytest.raises(InvalidSignatureError):
        gate.set_signature(key, other_pair.sign(key))
    gate.set_signature(key, trust_pair.sign(key).hex())
    assert gate.is_trusted(key)


def test_is_trusted_tolerates_garbage(gate):
    assert gate.is_trusted("zz") is False
    assert gate.is_trusted(b"\x00" * 32) is False


# ── have ────────────────────────────────────────────────────────────────

def test_have_filters_to_validly_signed(gate, trust_pair, make_feed_key):
    a, b, c = make_feed_key(), make_feed_key(), make_feed_key()
    sig_a = trust_pair.sign(a).hex()
    gate.store.update([(a, sig_a), (b, trust_pair.sign(c))])

    keys, signatures = gate.have([a.hex(), b.hex(), c.hex()])

    assert keys == [a.hex()]
    assert signatures == [sig_a]


def test_have_accepts_bytes_and_skips_malformed(gate, trust_pair, make_feed_key):
    a = make_feed_key()
    gate.store.set(a, trust_pair.sign(a))
    adv = gate.have([a, "zz", a.hex()])
    assert adv.keys == [a.hex()]
    assert adv.to_dict()["signatures"] == [trust_pair.sign(a).hex()]


def test_have_with_empty_store(gate, make_feed_key):
    assert len(gate.have([make_feed_key()])) == 0


# ── want ────────────────────────────────────────────────────────────────

def test_want_accepts_and_persists(gate, trust_pair, storage, make_feed_key):
    k = make_feed_key()
    sig = trust_pair.sign(k).hex()

    accepted = gate.want([k.hex()], [sig])

    assert accepted == [k.hex()]
    assert SignatureStore(storage).load() == {k.hex(): sig}


def test_want_rejects_invalid_offers(gate, storage, other_pair, make_feed_key):
    k, j = make_feed_key(), make_feed_key()

    accepted = gate.want([k.hex(), j.hex()], ["00" * 64, other_pair.sign(j).hex()])

    assert accepted == []
    assert gate.store.snapshot() == {}
    assert storage.writes == 0


def test_want_is_idempotent(gate, trust_pair, storage, make_feed_key):
    k = make_feed_key()
    sig = trust_pair.sign(k).hex()

    first = gate.want([k.hex()], [sig])
    writes_after_first = storage.writes
    second = gate.want([k.hex()], [sig])

    assert first == second == [k.hex()]
    assert storage.writes == writes_after_first
    assert SignatureStore(storage).load() == {k.hex(): sig}


def test_want_prefers_stored_signature(gate, trust_pair, storage, make_feed_key):
    k = make_feed_key()
    gate.store.set(k, trust_pair.sign(k))
    writes = storage.writes

    assert gate.want([k.hex()], ["garbage"]) == [k.hex()]
    assert storage.writes == writes


def test_want_judges_each_key_independently(gate, trust_pair, storage, make_feed_key):
    good, bad, good2 = make_feed_key(), make_feed_key(), make_feed_key()
    offered = [good.hex(), bad.hex(), "nothex", good2.hex()]
    sigs = [trust_pair.sign(good), b"\x00" * 64, "00", trust_pair.sign(good2).hex()]

    accepted = gate.want(offered, sigs)

    assert accepted == [good.hex(), good2.hex()]
    assert set(SignatureStore(storage).load()) == {good.hex(), good2.hex()}
    # one coalesced save: header + payload
    assert storage.writes == 2


def test_want_handles_missing_signatures(gate, make_feed_key):
    assert gate.want([make_feed_key().hex()]) == []
    assert gate.want([make_feed_key().hex(), make_feed_key().hex()], [None]) == []


def test_want_ignores_duplicate_offers(gate, trust_pair, make_feed_key):
    k = make_feed_key()
    sig = trust_pair.sign(k).hex()
    assert gate.want([k.hex(), k.hex().upper()], [sig, sig]) == [k.hex()]


def test_concurrent_wants_do_not_drop_entries(trust_pair, make_feed_key):
    storage = MemoryStorage()
    gate = ReplicationGate(trust_pair.public_key, storage)
    keys = [make_feed_key() for _ in range(16)]
    sigs = [trust_pair.sign(k).hex() for k in keys]

    def offer(i):
        gate.want([keys[i].hex()], [sigs[i]])

    threads = [threading.Thread(target=offer, args=(i,)) for i in range(len(keys))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert SignatureStore(storage).load() == {k.hex(): s for k, s in zip(keys, sigs)}


def test_repeated_keys_are_reported_once(gate, trust_pair, make_feed_key):
    keys = [make_feed_key() for _ in range(200)]
    sigs = [trust_pair.sign(k).hex() for k in keys]

    accepted = gate.want([k.hex() for k in keys] * 3, sigs * 3)
    assert accepted == [k.hex() for k in keys]

    adv = gate.have([k.hex() for k in reversed(keys)] * 3)
    assert adv.keys == [k.hex() for k in reversed(keys)]
    assert adv.signatures == list(reversed(sigs))
