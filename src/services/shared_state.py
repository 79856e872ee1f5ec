"""
Read -> mutate -> write against the shared store.

There are no locks: every peer reads a whole value, changes its own copy and writes it back.
The version token returned by `get` makes a lost update visible: if another peer wrote in between,
`put` raises StaleWriteError and the whole cycle starts again from a fresh read.
"""

import logging
from copy import deepcopy
from typing import Any, Callable

from src.core.exceptions import StaleWriteError
from src.db.repository import ABSENT, SharedStore

logger = logging.getLogger(__name__)

DEFAULT_WRITE_ATTEMPTS = 3

# Receives the current value (None if the key is absent) and returns the value to write.
# Returning None means there is nothing to write.
Mutation = Callable[[Any], Any]


def read_modify_write(
    store: SharedStore,
    key: str,
    mutate: Mutation,
    attempts: int = DEFAULT_WRITE_ATTEMPTS,
) -> Any:
    """
    Apply mutate to the value under key and write it back.

    Returns the value that was written, or the value that was read if mutate decided not to write.
    Exceptions raised by mutate propagate untouched (nothing has been written at that point).
    """
    for attempt in range(1, attempts + 1):
        current = store.get(key)
        value = deepcopy(current.value) if current is not None else None
        version = current.version if current is not None else ABSENT

        updated = mutate(value)
        if updated is None:
            return value

        try:
            store.put(key, updated, version)
        except StaleWriteError:
            logger.warning(
                "Concurrent write detected on %s (attempt %d/%d)", key, attempt, attempts
            )
            continue
        return updated

    raise StaleWriteError(f"Gave up writing {key=} after {attempts} attempts.")
