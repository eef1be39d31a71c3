# tests/conftest.py
import pytest

from trustfeed.crypto.keys import TrustKeyPair
from trustfeed.storage import MemoryStorage


class CountingStorage(MemoryStorage):
    """MemoryStorage that records how many writes reached it."""

    def __init__(self, data=None):
        super().__init__(data)
        self.writes = 0

    def write(self, offset, data):
        self.writes += 1
        super().write(offset, data)


@pytest.fixture
def trust_pair() -> TrustKeyPair:
    return TrustKeyPair.generate()


@pytest.fixture
def other_pair() -> TrustKeyPair:
    return TrustKeyPair.generate()


@pytest.fixture
def storage() -> CountingStorage:
    return CountingStorage()


def new_feed_key() -> bytes:
    return TrustKeyPair.generate().public_key


@pytest.fixture
def make_feed_key():
    return new_feed_key
