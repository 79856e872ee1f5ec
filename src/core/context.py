"""
Everything a single peer knows locally: its identity and its cached copies of shared state.

One PeerContext is created per peer and handed to every service, instead of module level singletons.
"""

from dataclasses import dataclass, field
from typing import Optional

from src.core.exceptions import NotRegisteredError
from src.core.models import ChallengeRecord, ChallengeSummary, PlayerRecord


@dataclass
class PeerContext:
    address: str
    player: Optional[PlayerRecord] = None
    roster: list[PlayerRecord] = field(default_factory=list)
    catalog: list[ChallengeSummary] = field(default_factory=list)
    session: Optional[ChallengeRecord] = None
    notices: list[str] = field(default_factory=list)

    @property
    def nickname(self) -> str:
        """Nickname of the local player. Most operations are meaningless before registration."""
        if self.player is None:
            raise NotRegisteredError("Register a nickname first.")
        return self.player.nickname

    def mark_session_terminated(self, code: str) -> None:
        """The challenge vanished from shared state: end the local view of it."""
        if self.session is not None and self.session.code == code:
            self.session.terminated = True

    def pop_notices(self) -> list[str]:
        notices, self.notices = self.notices, []
        return notices

    def clear(self) -> None:
        self.player = None
        self.roster = []
        self.catalog = []
        self.session = None
        self.notices = []
