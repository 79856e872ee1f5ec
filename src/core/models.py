"""
Boundary layer data model(s).

These objects are what the services read from and write to the shared store.
The store only knows JSON-compatible blobs, so every model can be converted with to_dict / from_dict.
(The API layer has its own pydantic models; the services convert at the boundary.)
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Optional, Self

from src.core.shared_types import Status

# Type aliases to make the records easier to read
Grid = list[list[int]]
Nickname = str


@dataclass
class PlayerRecord:
    """A registered player and the address other peers use to reach it."""

    nickname: Nickname
    address: str

    def to_dict(self) -> dict[str, Any]:
        return {"nickname": self.nickname, "address": self.address}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(nickname=data["nickname"], address=data["address"])


@dataclass
class Winner:
    nickname: Nickname
    score: int

    def to_dict(self) -> dict[str, Any]:
        return {"nickname": self.nickname, "score": self.score}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(nickname=data["nickname"], score=data["score"])


@dataclass
class ChallengeSummary:
    """Catalog entry. The full record stored under the challenge code is the source of truth."""

    code: str
    owner: Nickname
    player_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "owner": self.owner, "player_count": self.player_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(code=data["code"], owner=data["owner"], player_count=data["player_count"])


@dataclass
class ChallengeRecord:
    """Full state of one challenge."""

    code: str
    owner: Nickname
    grid: Grid
    solution: Grid
    scores: dict[Nickname, int] = field(default_factory=dict)
    started: bool = False
    terminated: bool = False
    full: bool = False
    winner: Optional[Winner] = None

    @property
    def status(self) -> Status:
        if self.terminated:
            return Status.COMPLETE if self.full else Status.TERMINATED_EARLY
        if len(self.scores) < 2:
            return Status.PENDING
        return Status.ACTIVE

    @property
    def ready_to_start(self) -> bool:
        """The presentation layer starts the challenge as soon as a second player shows up."""
        return not self.started and not self.terminated and len(self.scores) > 1

    def summary(self) -> ChallengeSummary:
        return ChallengeSummary(
            code=self.code, owner=self.owner, player_count=len(self.scores)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "owner": self.owner,
            "grid": deepcopy(self.grid),
            "solution": deepcopy(self.solution),
            "scores": dict(self.scores),
            "started": self.started,
            "terminated": self.terminated,
            "full": self.full,
            "winner": self.winner.to_dict() if self.winner else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        winner = data.get("winner")
        return cls(
            code=data["code"],
            owner=data["owner"],
            grid=deepcopy(data["grid"]),
            solution=deepcopy(data["solution"]),
            scores=dict(data["scores"]),
            started=data.get("started", False),
            terminated=data.get("terminated", False),
            full=data.get("full", False),
            winner=Winner.from_dict(winner) if winner else None,
        )


def roster_from_value(value: Optional[list[dict[str, Any]]]) -> list[PlayerRecord]:
    return [PlayerRecord.from_dict(entry) for entry in value or []]


def roster_to_value(roster: list[PlayerRecord]) -> list[dict[str, Any]]:
    return [player.to_dict() for player in roster]


def catalog_from_value(value: Optional[list[dict[str, Any]]]) -> list[ChallengeSummary]:
    return [ChallengeSummary.from_dict(entry) for entry in value or []]


def catalog_to_value(catalog: list[ChallengeSummary]) -> list[dict[str, Any]]:
    return [entry.to_dict() for entry in catalog]
