# trustfeed/crypto/keys.py
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from trustfeed.core.encoding import (
    KeyLike,
    PUBLIC_KEY_LENGTH,
    SEED_LENGTH,
    SECRET_KEY_LENGTH,
    ensure_bytes,
)
from trustfeed.core.errors import ConfigurationError, EncodingError


def _raw_public(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def _raw_seed(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )


@dataclass(frozen=True)
class TrustKeyPair:
    """
    Ed25519 key pair used as the trust root for feed signatures.

    A pair built from a public key only can verify but not sign.
    Secrets are accepted as a 32-byte seed or a 64-byte `seed || public`
    secret key; both are reduced to the seed.
    """
    public_key: bytes
    seed: Optional[bytes] = None

    @classmethod
    def generate(cls) -> "TrustKeyPair":
        private_key = Ed25519PrivateKey.generate()
        return cls(public_key=_raw_public(private_key), seed=_raw_seed(private_key))

    @classmethod
    def from_public(cls, public_key: KeyLike) -> "TrustKeyPair":
        return cls(public_key=ensure_bytes(public_key, PUBLIC_KEY_LENGTH, what="public key"))

    @classmethod
    def from_secret(cls, secret: KeyLike) -> "TrustKeyPair":
        raw = ensure_bytes(secret, what="secret key")
        if len(raw) not in (SEED_LENGTH, SECRET_KEY_LENGTH):
            raise EncodingError(
                f"secret key must be {SEED_LENGTH} or {SECRET_KEY_LENGTH} bytes, got {len(raw)}"
            )
        private_key = Ed25519PrivateKey.from_private_bytes(raw[:SEED_LENGTH])
        return cls(public_key=_raw_public(private_key), seed=raw[:SEED_LENGTH])

    @property
    def can_sign(self) -> bool:
        return self.seed is not None

    @property
    def secret_key(self) -> bytes:
        """64-byte `seed || public` form, interchangeable with libsodium key pairs."""
        if self.seed is None:
            raise ConfigurationError("key pair has no secret key")
        return self.seed + self.public_key

    def public_key_hex(self) -> str:
        return self.public_key.hex()

    def secret_key_hex(self) -> str:
        return self.secret_key.hex()

    def sign(self, message: bytes) -> bytes:
        if self.seed is None:
            raise ConfigurationError("cannot sign without a secret key")
        return Ed25519PrivateKey.from_private_bytes(self.seed).sign(message)

    def verify_bytes(self, signature: bytes, message: bytes) -> bool:
        try:
            Ed25519PublicKey.from_public_bytes(self.public_key).verify(signature, message)
            return True
        except (InvalidSignature, ValueError):
            return False
