"""
Custom exceptions raised by the domain, persistence and messaging layers.

Every exception knows which Outcome it becomes once it reaches the SudokuService boundary.
"""

from src.core.shared_types import Outcome


class SudokuError(Exception):
    """Top-level exception of the project."""

    outcome: Outcome = Outcome.INVALID_STATE


# --- Startup ---
class MasterUnreachableError(SudokuError):
    """The shared store cannot be reached: the peer cannot join the network."""

    outcome = Outcome.MASTER_UNREACHABLE


# --- Input validation ---
class InvalidRequestError(SudokuError):
    """Raised by the request models when the input is malformed."""

    outcome = Outcome.INVALID_MOVE


class InvalidNameError(InvalidRequestError):
    outcome = Outcome.INVALID_NAME


class InvalidCodeError(InvalidRequestError):
    outcome = Outcome.INVALID_CODE


class InvalidMoveError(InvalidRequestError):
    outcome = Outcome.INVALID_MOVE


# --- Players ---
class DuplicateNameError(SudokuError):
    outcome = Outcome.DUPLICATE_NAME


class AlreadyRegisteredError(SudokuError):
    outcome = Outcome.ALREADY_REGISTERED


class NotRegisteredError(SudokuError):
    outcome = Outcome.NOT_REGISTERED


# --- Challenges ---
class DuplicateCodeError(SudokuError):
    outcome = Outcome.DUPLICATE_CODE


class ChallengeNotFoundError(SudokuError):
    """The challenge vanished from shared state. Callers treat this as an implicit termination."""

    outcome = Outcome.NOT_FOUND


class NotParticipantError(SudokuError):
    outcome = Outcome.NOT_PARTICIPANT


class ChallengeStateError(SudokuError):
    """Transition not allowed in the current lifecycle state."""

    outcome = Outcome.INVALID_STATE


# --- Infrastructure ---
class RepositoryError(SudokuError):
    outcome = Outcome.STORE_FAILURE


class StoreFailureError(RepositoryError):
    outcome = Outcome.STORE_FAILURE


class StaleWriteError(RepositoryError):
    """The value changed between our read and our write."""

    outcome = Outcome.STALE_WRITE


class MessengerFailureError(SudokuError):
    outcome = Outcome.MESSENGER_FAILURE
