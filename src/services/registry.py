"""Shared roster of registered players."""

import logging
from typing import Any, Optional

from src.config import Settings
from src.core.context import PeerContext
from src.core.exceptions import (
    AlreadyRegisteredError,
    DuplicateNameError,
    InvalidNameError,
)
from src.core.models import PlayerRecord, roster_from_value, roster_to_value
from src.db.repository import PLAYERS, SharedStore, store_key
from src.services.shared_state import read_modify_write

logger = logging.getLogger(__name__)


class PeerRegistry:
    def __init__(self, store: SharedStore, context: PeerContext, settings: Settings) -> None:
        self.store = store
        self.context = context
        self.settings = settings
        self.key = store_key(PLAYERS)

    def validate(self, nickname: str) -> str:
        """Nicknames have no whitespace and a length within the configured range."""
        low, high = self.settings.min_nickname_length, self.settings.max_nickname_length
        if not isinstance(nickname, str) or any(character.isspace() for character in nickname):
            raise InvalidNameError(f"Nickname cannot contain whitespace: {nickname!r}")
        if not low <= len(nickname) <= high:
            raise InvalidNameError(
                f"Nickname must be between {low} and {high} characters: {nickname!r}"
            )
        return nickname

    def register(self, nickname: str) -> PlayerRecord:
        """Add the local player to the shared roster, if nobody else uses the nickname."""
        if self.context.player is not None:
            raise AlreadyRegisteredError(
                f"This peer is already registered as {self.context.player.nickname!r}."
            )
        self.validate(nickname)
        player = PlayerRecord(nickname=nickname, address=self.context.address)

        def add_player(value: Optional[list[dict[str, Any]]]) -> list[dict[str, Any]]:
            roster = roster_from_value(value)
            if any(entry.nickname == nickname for entry in roster):
                raise DuplicateNameError(f"Nickname {nickname!r} is already in use.")
            roster.append(player)
            return roster_to_value(roster)

        written = read_modify_write(
            self.store, self.key, add_player, self.settings.write_attempts
        )
        self.context.roster = roster_from_value(written)
        self.context.player = player
        logger.info("Registered %s at %s", nickname, player.address)
        return player

    def remove(self, nickname: str) -> None:
        """Drop a player from the shared roster (a roster of one becomes the empty roster)."""

        def drop_player(
            value: Optional[list[dict[str, Any]]],
        ) -> Optional[list[dict[str, Any]]]:
            roster = roster_from_value(value)
            remaining = [entry for entry in roster if entry.nickname != nickname]
            if len(remaining) == len(roster):
                return None
            return roster_to_value(remaining)

        written = read_modify_write(
            self.store, self.key, drop_player, self.settings.write_attempts
        )
        self.context.roster = roster_from_value(written)
        logger.info("Removed %s from the roster", nickname)

    def refresh(self) -> list[PlayerRecord]:
        """Replace the cached roster with the shared one. An absent shared roster keeps the cache."""
        current = self.store.get(self.key)
        if current is not None:
            self.context.roster = roster_from_value(current.value)
        return self.context.roster

    def lookup(self, nickname: str) -> Optional[PlayerRecord]:
        return next(
            (player for player in self.context.roster if player.nickname == nickname),
            None,
        )
