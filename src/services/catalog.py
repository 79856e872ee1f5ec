"""Shared list of open challenges."""

import logging
from typing import Any, Optional

from src.api.models import validate_code
from src.config import Settings
from src.core.context import PeerContext
from src.core.exceptions import DuplicateCodeError, InvalidCodeError, StaleWriteError
from src.core.models import (
    ChallengeRecord,
    ChallengeSummary,
    catalog_from_value,
    catalog_to_value,
)
from src.db.repository import ABSENT, CHALLENGES, PLAYERS, SharedStore, store_key
from src.services.broadcaster import Broadcaster
from src.services.registry import PeerRegistry
from src.services.shared_state import read_modify_write
from src.sudoku.generator import generate

logger = logging.getLogger(__name__)

# Challenge records live under hash(code): these codes would collide with the shared collections
RESERVED_CODES = frozenset({PLAYERS, CHALLENGES})

CatalogValue = Optional[list[dict[str, Any]]]


class ChallengeCatalog:
    """
    The catalog only keeps summaries (code, owner, number of players).
    The full record under hash(code) is the one source of truth for the state of a challenge.
    """

    def __init__(
        self,
        store: SharedStore,
        context: PeerContext,
        registry: PeerRegistry,
        broadcaster: Broadcaster,
        settings: Settings,
    ) -> None:
        self.store = store
        self.context = context
        self.registry = registry
        self.broadcaster = broadcaster
        self.settings = settings
        self.key = store_key(CHALLENGES)

    def create(self, code: str, seed: int) -> ChallengeRecord:
        """
        Create a challenge owned by the local player.

        Not atomic: the record is written before the catalog, so a failure halfway can leave a record
        that is not listed. Callers only get to know that the whole sequence failed.
        """
        owner = self.context.nickname
        validate_code(code)
        if code in RESERVED_CODES:
            raise InvalidCodeError(f"{code!r} is a reserved name.")

        solution, grid = generate(seed, self.settings.empty_cells)
        record = ChallengeRecord(
            code=code, owner=owner, grid=grid, solution=solution, scores={owner: 0}
        )

        # Both places are checked: a record can exist without being listed and vice versa
        if self.store.get(store_key(code)) is not None:
            raise DuplicateCodeError(f"Challenge {code!r} already exists.")
        self.refresh()
        if self.lookup(code) is not None:
            raise DuplicateCodeError(f"Challenge {code!r} is already listed.")

        try:
            self.store.put(store_key(code), record.to_dict(), ABSENT)
        except StaleWriteError as exc:
            raise DuplicateCodeError(f"Challenge {code!r} was just created by another peer.") from exc

        def add_summary(value: CatalogValue) -> CatalogValue:
            catalog = catalog_from_value(value)
            if any(entry.code == code for entry in catalog):
                return None
            catalog.append(record.summary())
            return catalog_to_value(catalog)

        written = read_modify_write(
            self.store, self.key, add_summary, self.settings.write_attempts
        )
        self.context.catalog = catalog_from_value(written)
        self.context.session = record
        logger.info("%s created challenge %s (seed=%d)", owner, code, seed)

        self._broadcast()
        return record

    def remove(self, code: str) -> bool:
        """Hard delete of the challenge record."""
        removed = self.store.remove(store_key(code))
        logger.info("Challenge %s record %s", code, "deleted" if removed else "was already gone")
        return removed

    def refresh(self) -> list[ChallengeSummary]:
        """Replace the cached catalog with the shared one. An absent shared catalog keeps the cache."""
        current = self.store.get(self.key)
        if current is not None:
            self.context.catalog = catalog_from_value(current.value)
        return self.context.catalog

    def lookup(self, code: str) -> Optional[ChallengeSummary]:
        return next((entry for entry in self.context.catalog if entry.code == code), None)

    def update_summary(self, record: ChallengeRecord) -> None:
        """The number of participants changed: rewrite the summary and tell everyone."""

        def replace_summary(value: CatalogValue) -> CatalogValue:
            catalog = catalog_from_value(value)
            for index, entry in enumerate(catalog):
                if entry.code == record.code:
                    catalog[index] = record.summary()
                    return catalog_to_value(catalog)
            return None

        written = read_modify_write(
            self.store, self.key, replace_summary, self.settings.write_attempts
        )
        self.context.catalog = catalog_from_value(written)
        self._broadcast()

    def remove_and_rebroadcast(self, code: str) -> None:
        """Delist a challenge that ended or lost its players, then tell everyone."""

        def drop_summary(value: CatalogValue) -> CatalogValue:
            catalog = catalog_from_value(value)
            remaining = [entry for entry in catalog if entry.code != code]
            if len(remaining) == len(catalog):
                return None
            return catalog_to_value(remaining)

        written = read_modify_write(
            self.store, self.key, drop_summary, self.settings.write_attempts
        )
        self.context.catalog = catalog_from_value(written)
        logger.info("Challenge %s removed from the catalog", code)
        self._broadcast()

    def _broadcast(self) -> None:
        roster = self.registry.refresh()
        exclude = self.context.player.nickname if self.context.player else None
        self.broadcaster.broadcast_catalog(self.context.catalog, roster, exclude)
