"""
Type definitions used across layers
"""

from enum import IntEnum, StrEnum


class Status(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETE = "complete"
    TERMINATED_EARLY = "terminated early"


class Placement(IntEnum):
    """Result of placing a number. The value is the score delta for the acting player."""

    INCORRECT = -1
    ALREADY_FILLED = 0
    CORRECT_FILLED = 1


class PayloadKind(StrEnum):
    CATALOG = "catalog"
    SESSION = "session"


class Outcome(StrEnum):
    """Typed result handed to the presentation layer instead of an exception."""

    SUCCESS = "success"
    INVALID_NAME = "invalid name"
    DUPLICATE_NAME = "duplicate name"
    ALREADY_REGISTERED = "already registered"
    NOT_REGISTERED = "not registered"
    INVALID_CODE = "invalid code"
    DUPLICATE_CODE = "duplicate code"
    INVALID_MOVE = "invalid move"
    NOT_FOUND = "not found"
    NOT_PARTICIPANT = "not a participant"
    INVALID_STATE = "invalid state"
    STORE_FAILURE = "store failure"
    STALE_WRITE = "stale write"
    MESSENGER_FAILURE = "messenger failure"
    MASTER_UNREACHABLE = "master unreachable"
