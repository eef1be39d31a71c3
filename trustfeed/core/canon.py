# trustfeed/core/canon.py
import json
from typing import Any

try:
    import jcs
except ImportError:
    raise ImportError("Please install jcs: pip install jcs")

def canonical_json(obj: Any) -> bytes:
    """
    Produce deterministic UTF-8 bytes according to RFC 8785 (JSON Canonicalization Scheme).
    Identical signature records always persist to identical bytes.
    """
    return jcs.canonicalize(obj)


def canonical_json_str(obj: Any) -> str:
    """Same as above, but returns string (mostly for debugging)."""
    return canonical_json(obj).decode("utf-8")


def parse_json_object(data: bytes) -> dict:
    """Decode UTF-8 JSON bytes, requiring a top-level object."""
    obj = json.loads(data.decode("utf-8"))
    if not isinstance(obj, dict):
        raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
    return obj
