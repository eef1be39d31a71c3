# trustfeed/core/encoding.py
"""
Normalization boundary for key and signature material.

Public entry points accept either raw bytes or hex text; internally the
crypto layer works on bytes and the signature store keys on lowercase hex.
"""
from typing import Optional, Union

from trustfeed.core.errors import EncodingError

KeyLike = Union[bytes, bytearray, memoryview, str]

PUBLIC_KEY_LENGTH = 32
SEED_LENGTH = 32
SECRET_KEY_LENGTH = 64
SIGNATURE_LENGTH = 64


def ensure_bytes(value: KeyLike, length: Optional[int] = None, what: str = "value") -> bytes:
    """Convert bytes or hex text to bytes, optionally enforcing a length."""
    if value is None:
        raise EncodingError(f"{what} is required")
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
    elif isinstance(value, str):
        try:
            data = bytes.fromhex(value.strip())
        except ValueError as e:
            raise EncodingError(f"{what} is not valid hex: {e}") from e
    else:
        raise EncodingError(f"{what} must be bytes or hex str, got {type(value).__name__}")

    if length is not None and len(data) != length:
        raise EncodingError(f"{what} must be {length} bytes, got {len(data)}")
    return data


def to_hex(value: KeyLike, length: Optional[int] = None, what: str = "value") -> str:
    """Canonical lowercase hex form of bytes or hex text."""
    return ensure_bytes(value, length=length, what=what).hex()


def feed_key_hex(value: KeyLike) -> str:
    return to_hex(value, PUBLIC_KEY_LENGTH, what="feed key")


def signature_hex(value: KeyLike) -> str:
    return to_hex(value, SIGNATURE_LENGTH, what="signature")
