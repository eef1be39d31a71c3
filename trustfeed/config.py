# trustfeed/config.py
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from trustfeed.core.errors import ConfigurationError

ENV_TRUST_KEY = "TRUSTFEED_TRUST_KEY"
ENV_SECRET_KEY = "TRUSTFEED_SECRET_KEY"
ENV_STORAGE = "TRUSTFEED_STORAGE"


def default_storage_uri() -> str:
    return str(Path.home() / ".trustfeed" / "signatures.json")


@dataclass(frozen=True)
class GateConfig:
    """Settings needed to build a ReplicationGate. Keys are hex strings."""
    trust_key: str
    storage: str
    secret: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        trust_key: Optional[str] = None,
        storage: Optional[str] = None,
        secret: Optional[str] = None,
    ) -> "GateConfig":
        """Explicit arguments win over environment variables, which win over defaults."""
        trust_key = trust_key or os.environ.get(ENV_TRUST_KEY)
        if not trust_key:
            raise ConfigurationError(
                f"Trust key is required (pass it explicitly or set {ENV_TRUST_KEY})"
            )
        return cls(
            trust_key=trust_key.strip(),
            storage=storage or os.environ.get(ENV_STORAGE) or default_storage_uri(),
            secret=(secret or os.environ.get(ENV_SECRET_KEY) or None),
        )
