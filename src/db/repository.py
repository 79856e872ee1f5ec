"""Protocol for the shared key/value store (a DHT in production, SQL via SQLAlchemy here)."""

import hashlib
from dataclasses import dataclass
from typing import Any, Protocol

# Well-known identifiers of the two shared collections
PLAYERS = "players"
CHALLENGES = "challenges"

# Version of a key that holds no value
ABSENT = 0


def store_key(identifier: str) -> str:
    """Fixed-width (160 bit, hex encoded) hash of a string identifier."""
    return hashlib.sha1(identifier.encode("utf-8")).hexdigest()


@dataclass
class Versioned:
    """A stored value plus the version token needed to overwrite it."""

    value: Any
    version: int


class SharedStore(Protocol):
    """Whole-value storage. No partial updates, no merge semantics."""

    def get(self, key: str) -> Versioned | None:
        """Get the value stored under key, if any."""
        ...

    def put(self, key: str, value: Any, expected_version: int) -> int:
        """
        Store value if the current version still equals expected_version (ABSENT for a new key).
        Returns the new version, raises StaleWriteError otherwise.
        """
        ...

    def remove(self, key: str) -> bool:
        """Delete the value. False if there was nothing to delete."""
        ...

    def ping(self) -> None:
        """Round-trip to the store. Raises StoreFailureError if it cannot be reached."""
        ...
