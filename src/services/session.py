"""
Lifecycle of a single challenge.

    PENDING ---(second player joins)---> ACTIVE ---(last empty cell filled)---> COMPLETE
       |                                   |
       +------(one participant left)-------+----------------------------------> TERMINATED_EARLY

Every transition re-reads the record stored under hash(code), changes it and writes it back
(see services/shared_state.py), then pushes the new snapshot to the other participants.
A record that vanished from the store means the challenge is over for the local peer as well.
"""

import logging
from typing import Any, Callable, Optional

from src.config import Settings
from src.core.context import PeerContext
from src.core.exceptions import (
    ChallengeNotFoundError,
    ChallengeStateError,
    NotParticipantError,
)
from src.core.models import ChallengeRecord, Winner
from src.core.shared_types import Placement
from src.db.repository import SharedStore, store_key
from src.services.broadcaster import Broadcaster
from src.services.catalog import ChallengeCatalog
from src.services.registry import PeerRegistry
from src.services.shared_state import read_modify_write
from src.sudoku.engine import evaluate, is_complete, render

logger = logging.getLogger(__name__)

# Receives the stored record, returns the record to write back (or None to leave it untouched)
Transition = Callable[[ChallengeRecord], Optional[ChallengeRecord]]


def find_winner(scores: dict[str, int]) -> Winner:
    """
    Highest score wins.
    NOTE: on a tie the participant seen first in the scores mapping wins (max keeps the first maximum).
    """
    nickname, score = max(scores.items(), key=lambda item: item[1])
    return Winner(nickname=nickname, score=score)


class ChallengeSession:
    def __init__(
        self,
        store: SharedStore,
        context: PeerContext,
        catalog: ChallengeCatalog,
        registry: PeerRegistry,
        broadcaster: Broadcaster,
        settings: Settings,
    ) -> None:
        self.store = store
        self.context = context
        self.catalog = catalog
        self.registry = registry
        self.broadcaster = broadcaster
        self.settings = settings

    def fetch(self, code: str) -> ChallengeRecord:
        """Reload the challenge into the local context."""
        current = self.store.get(store_key(code))
        if current is None:
            self._vanished(code)
        record = ChallengeRecord.from_dict(current.value)
        self.context.session = record
        return record

    def join(self, code: str) -> ChallengeRecord:
        nickname = self.context.nickname

        def add_participant(record: ChallengeRecord) -> ChallengeRecord:
            if record.terminated:
                raise ChallengeStateError(f"Challenge {code!r} is already over.")
            # Joining twice keeps the score earned so far
            record.scores.setdefault(nickname, 0)
            return record

        record = self._transition(code, add_participant)
        self.context.session = record
        logger.info("%s joined challenge %s", nickname, code)

        self.catalog.update_summary(record)
        self._notify(record)
        return record

    def start(self, code: str) -> ChallengeRecord:
        """Triggered by the presentation layer once a second player joined. Starting twice is a no-op."""
        changed = False

        def mark_started(record: ChallengeRecord) -> Optional[ChallengeRecord]:
            nonlocal changed
            changed = False
            if record.started:
                return None
            if record.terminated or len(record.scores) < 2:
                raise ChallengeStateError(
                    f"Challenge {code!r} cannot start. status: {record.status}"
                )
            record.started = True
            changed = True
            return record

        record = self._transition(code, mark_started)
        self.context.session = record
        if changed:
            logger.info("Challenge %s started with %d players", code, len(record.scores))
            self._notify(record)
        return record

    def quit(self, code: str) -> Optional[ChallengeRecord]:
        """
        Leave the challenge.
        * nobody left: the record is deleted and the challenge delisted
        * one player left: the challenge is terminated and delisted
        * otherwise the remaining players carry on
        Returns the record as left behind, None if it no longer exists.
        """
        nickname = self.context.nickname
        emptied = False
        participant = True

        def remove_participant(record: ChallengeRecord) -> Optional[ChallengeRecord]:
            nonlocal emptied, participant
            emptied = False
            participant = nickname in record.scores
            if not participant:
                return None
            del record.scores[nickname]
            if not record.scores:
                emptied = True
                return None
            if len(record.scores) == 1:
                record.terminated = True
            return record

        try:
            record = self._transition(code, remove_participant)
        except ChallengeNotFoundError:
            logger.info("Challenge %s vanished before %s could quit", code, nickname)
            return None

        self._leave_locally(code)
        if not participant:
            return record

        logger.info("%s quit challenge %s", nickname, code)
        if emptied:
            self.catalog.remove(code)
            self.catalog.remove_and_rebroadcast(code)
            return None

        if len(record.scores) == 1:
            self._notify(record)
            self.catalog.remove_and_rebroadcast(code)
        else:
            self.catalog.update_summary(record)
            self._notify(record)
        return record

    def place_number(self, code: str, x: int, y: int, value: int) -> Placement:
        """
        Try to place value at grid[x][y] for the local player.

        wrong number: -1 point, the grid is not touched
        right number on an empty cell: +1 point, the cell is filled
        right number on a filled cell: nothing happens
        Filling the last empty cell completes the challenge.
        """
        nickname = self.context.nickname
        placement = Placement.ALREADY_FILLED
        completed = False

        def apply_placement(record: ChallengeRecord) -> ChallengeRecord:
            nonlocal placement, completed
            if record.terminated:
                raise ChallengeStateError(f"Challenge {code!r} is already over.")
            if not record.started:
                raise ChallengeStateError(f"Challenge {code!r} has not started yet.")
            if nickname not in record.scores:
                raise NotParticipantError(f"{nickname!r} is not playing challenge {code!r}.")

            placement = evaluate(record.grid, record.solution, x, y, value)
            record.scores[nickname] += placement.value
            if placement == Placement.CORRECT_FILLED:
                record.grid[x][y] = value

            completed = is_complete(record.grid)
            if completed:
                record.full = True
                record.winner = find_winner(record.scores)
                record.terminated = True
            return record

        record = self._transition(code, apply_placement)
        self.context.session = record
        logger.debug("%s placed %d at (%d, %d) in %s: %s", nickname, value, x, y, code, placement.name)

        if completed and record.winner is not None:
            logger.info(
                "Challenge %s solved. %s wins with %d points\n%s",
                code,
                record.winner.nickname,
                record.winner.score,
                render(record.grid),
            )
            self.catalog.remove_and_rebroadcast(code)

        self._notify(record)
        return placement

    # -- Internal helpers --
    def _transition(self, code: str, transition: Transition) -> ChallengeRecord:
        """Apply transition to the stored record. Raises ChallengeNotFoundError if it is gone."""

        def mutate(value: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
            if value is None:
                self._vanished(code)
            updated = transition(ChallengeRecord.from_dict(value))
            return updated.to_dict() if updated is not None else None

        written = read_modify_write(
            self.store, store_key(code), mutate, self.settings.write_attempts
        )
        return ChallengeRecord.from_dict(written)

    def _vanished(self, code: str) -> None:
        self.context.mark_session_terminated(code)
        raise ChallengeNotFoundError(f"Challenge {code!r} not found.")

    def _leave_locally(self, code: str) -> None:
        if self.context.session is not None and self.context.session.code == code:
            self.context.session = None

    def _notify(self, record: ChallengeRecord) -> None:
        roster = self.registry.refresh()
        self.broadcaster.broadcast_session(record, roster, exclude=self.context.nickname)
