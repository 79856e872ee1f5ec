"""Requests and Response models"""

from typing import Optional, Self

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidCodeError, InvalidMoveError
from src.core.models import (
    ChallengeRecord,
    ChallengeSummary,
    Grid,
    PlayerRecord,
    Winner,
)
from src.core.shared_types import Outcome, Status
from src.sudoku.engine import ROW_LABELS, SIZE

Nickname = str


def validate_code(value: str) -> str:
    """A challenge code is any non-empty string without whitespace."""
    if not value or any(character.isspace() for character in value):
        raise InvalidCodeError(f"Invalid challenge code: {value!r}")
    return value


# --- SHARED STATE MODELS ---
class PlayerModel(BaseModel):
    nickname: Nickname
    address: str

    @classmethod
    def from_record(cls, record: PlayerRecord) -> Self:
        return cls(nickname=record.nickname, address=record.address)


class CatalogEntry(BaseModel):
    code: str
    owner: Nickname
    player_count: int

    @classmethod
    def from_summary(cls, summary: ChallengeSummary) -> Self:
        return cls(
            code=summary.code, owner=summary.owner, player_count=summary.player_count
        )

    def to_summary(self) -> ChallengeSummary:
        return ChallengeSummary(
            code=self.code, owner=self.owner, player_count=self.player_count
        )


class WinnerModel(BaseModel):
    nickname: Nickname
    score: int


class ChallengeSnapshot(BaseModel):
    """Full state of a challenge as shown to the players (and sent between peers)."""

    code: str
    owner: Nickname
    scores: dict[Nickname, int]
    grid: Grid
    solution: Grid
    started: bool
    terminated: bool
    full: bool
    winner: Optional[WinnerModel] = None
    status: Status

    @classmethod
    def from_record(cls, record: ChallengeRecord) -> Self:
        return cls(
            code=record.code,
            owner=record.owner,
            scores=dict(record.scores),
            grid=[list(row) for row in record.grid],
            solution=[list(row) for row in record.solution],
            started=record.started,
            terminated=record.terminated,
            full=record.full,
            winner=(
                WinnerModel(nickname=record.winner.nickname, score=record.winner.score)
                if record.winner
                else None
            ),
            status=record.status,
        )

    def to_record(self) -> ChallengeRecord:
        return ChallengeRecord(
            code=self.code,
            owner=self.owner,
            grid=[list(row) for row in self.grid],
            solution=[list(row) for row in self.solution],
            scores=dict(self.scores),
            started=self.started,
            terminated=self.terminated,
            full=self.full,
            winner=(
                Winner(nickname=self.winner.nickname, score=self.winner.score)
                if self.winner
                else None
            ),
        )


# --- REQUEST MODELS ---
class CreateChallengeRequest(BaseModel):
    code: str
    seed: int = 0

    @field_validator("code")
    @classmethod
    def validate_code(cls, value: str) -> str:
        return validate_code(value)


class ChallengeCodeRequest(BaseModel):
    """Any operation addressing an existing challenge by its code."""

    code: str

    @field_validator("code")
    @classmethod
    def validate_code(cls, value: str) -> str:
        return validate_code(value)


class PlaceNumberRequest(BaseModel):
    code: str
    x: int
    y: int
    value: int

    @field_validator(*["x", "y"])
    @classmethod
    def validate_coordinate(cls, value: int) -> int:
        if not 0 <= value < SIZE:
            raise InvalidMoveError(f"Coordinate out of the grid: {value}")
        return value

    @field_validator("value")
    @classmethod
    def validate_value(cls, value: int) -> int:
        if not 1 <= value <= SIZE:
            raise InvalidMoveError(f"Only numbers 1-{SIZE} can be placed: {value}")
        return value

    @classmethod
    def from_notation(cls, code: str, notation: str) -> Self:
        """
        Parse player input of the form 'XY-N'.
        X is the row label, Y the column label (both A-I), N the number to place (1-9).
        """
        text = notation.strip().upper() if isinstance(notation, str) else ""
        if (
            len(text) != 4
            or text[0] not in ROW_LABELS
            or text[1] not in ROW_LABELS
            or text[2] != "-"
            or text[3] not in "0123456789"
        ):
            raise InvalidMoveError(
                f"Cannot interpret {notation!r} as a move. Expected something like 'AB-5'."
            )
        return cls(
            code=code,
            x=ROW_LABELS.index(text[0]),
            y=ROW_LABELS.index(text[1]),
            value=int(text[3]),
        )


# --- RESPONSE MODELS ---
class ServiceResponse(BaseModel):
    outcome: Outcome
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.SUCCESS


class PlayerResponse(ServiceResponse):
    player: Optional[PlayerModel] = None


class RosterResponse(ServiceResponse):
    players: list[PlayerModel] = []


class CatalogResponse(ServiceResponse):
    challenges: list[CatalogEntry] = []


class ChallengeResponse(ServiceResponse):
    challenge: Optional[ChallengeSnapshot] = None
    notices: list[str] = []


class PlacementResponse(ServiceResponse):
    """score_delta is -1, 0 or +1; None when the number could not be placed at all."""

    score_delta: Optional[int] = None
    challenge: Optional[ChallengeSnapshot] = None
