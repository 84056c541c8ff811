"""
Personal API keys.

A key is `phk_` plus 64 random hex chars. Only its SHA-256 digest and a
short display prefix are persisted; the raw key leaves this module once,
inside the IssuedKey returned to whoever asked for it.
"""

import hashlib
import secrets
from dataclasses import dataclass

KEY_PREFIX = "phk_"
DISPLAY_PREFIX_LENGTH = 12


@dataclass(frozen=True, slots=True)
class IssuedKey:
    raw: str
    key_hash: str
    prefix: str

    @property
    def authorization(self) -> dict[str, str]:
        """Request headers that authenticate with this key."""
        return {"Authorization": f"Bearer {self.raw}"}


def hash_api_key(raw_key: str) -> str:
    """Lookup digest for a raw key."""
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()


def issue_api_key() -> IssuedKey:
    raw_key = KEY_PREFIX + secrets.token_hex(32)
    return IssuedKey(
        raw=raw_key,
        key_hash=hash_api_key(raw_key),
        prefix=raw_key[:DISPLAY_PREFIX_LENGTH],
    )
