# examples/three_node_demo.py
# Run with: python examples/three_node_demo.py
#
# Two signing nodes and one non-signing node share a trust key.
# Feeds from the signing nodes spread everywhere; the third node's own
# feed stays local because nobody can vouch for it.

import logging
from tempfile import TemporaryDirectory
from pathlib import Path

from trustfeed import ReplicationGate, TrustKeyPair
from trustfeed.host import MemoryFeedHost, replicate


def spawn(pair: TrustKeyPair, store: Path, can_sign: bool) -> MemoryFeedHost:
    host = MemoryFeedHost()
    gate = ReplicationGate(
        pair.public_key,
        str(store),
        pair.secret_key if can_sign else None,
    )
    host.use(gate)
    feed = host.writer()
    feed.append("hello from " + store.stem)
    return host


def short(host: MemoryFeedHost) -> list:
    return sorted(k[:12] for k in host.feed_keys())


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    pair = TrustKeyPair.generate()

    with TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        computer = spawn(pair, tmp / "computer.sig", can_sign=True)
        laptop = spawn(pair, tmp / "laptop.sig", can_sign=True)
        hashbase = spawn(pair, tmp / "hashbase.sig", can_sign=False)

        replicate(computer, laptop)
        replicate(hashbase, laptop)

        print("computer:", short(computer))
        print("laptop:  ", short(laptop))
        print("hashbase:", short(hashbase))


if __name__ == "__main__":
    main()
