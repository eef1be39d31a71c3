# trustfeed/core/types.py
from dataclasses import dataclass, field
from typing import Dict, List, Union

# feed-key hex -> signature hex
SignatureRecord = Dict[str, str]


@dataclass(frozen=True)
class Advertisement:
    """Outcome of a `have` step: trusted feed keys plus their signatures, index-aligned."""
    keys: List[str] = field(default_factory=list)
    signatures: List[str] = field(default_factory=list)

    def __iter__(self):
        # allows `keys, signatures = gate.have(...)`
        yield self.keys
        yield self.signatures

    def __len__(self) -> int:
        return len(self.keys)

    def to_dict(self) -> dict:
        """Wire form sent to the peer alongside the key list."""
        return {"keys": list(self.keys), "signatures": list(self.signatures)}


@dataclass(frozen=True)
class Loaded:
    record: SignatureRecord


@dataclass(frozen=True)
class Empty:
    """No signatures persisted yet (absent, zero-length or partially written region)."""
    reason: str = "empty"


@dataclass(frozen=True)
class Failed:
    error: Exception


LoadResult = Union[Loaded, Empty, Failed]
