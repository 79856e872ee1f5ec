"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/helpers required for testing multiple layers.
"""

from copy import deepcopy
from typing import Any, Callable, Generator, Optional

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.config import Settings
from src.core.exceptions import StaleWriteError
from src.db.repository import ABSENT, Versioned
from src.db.schema import Base
from src.db.sql_repository import SQLSharedStore
from src.messaging.messenger import LocalNetwork
from src.services.sudoku_service import SudokuService

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# Small puzzles keep the completion tests short
TEST_SETTINGS = Settings(empty_cells=2)


class MockStore:
    """
    Mock the SharedStore using a dictionary of (value, version) pairs.
    `before_next_put` runs once right before the next write, to simulate another peer writing concurrently.
    """

    def __init__(self) -> None:
        self._values: dict[str, Versioned] = {}
        self.puts: list[str] = []
        self.before_next_put: Optional[Callable[[], Any]] = None

    def get(self, key: str) -> Versioned | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        return Versioned(value=_copy(entry.value), version=entry.version)

    def put(self, key: str, value: Any, expected_version: int) -> int:
        hook, self.before_next_put = self.before_next_put, None
        if hook is not None:
            hook()
        entry = self._values.get(key)
        current_version = entry.version if entry else ABSENT
        if current_version != expected_version:
            raise StaleWriteError(f"{key=} is at version {current_version}")
        self._values[key] = Versioned(value=_copy(value), version=current_version + 1)
        self.puts.append(key)
        return current_version + 1

    def remove(self, key: str) -> bool:
        return self._values.pop(key, None) is not None

    def ping(self) -> None:
        return None


def _copy(value: Any) -> Any:
    # Mimic a real store: callers never share objects with what is stored
    return deepcopy(value)


class RecordingMessenger:
    """Messenger that acknowledges everything and remembers what was sent where."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send_direct(self, address: str, payload: str) -> str:
        self.sent.append((address, payload))
        return "success"


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def db_session_shared() -> Generator[Session, None, None]:
    """Connection to a test database. Mock real setup with multiple sessions connecting to the same engine / database tables."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def mock_store() -> MockStore:
    return MockStore()


@pytest.fixture
def network() -> LocalNetwork:
    return LocalNetwork()


@pytest.fixture
def make_peer(network: LocalNetwork) -> Generator[Any, None, None]:
    """
    Factory for peers that share one SQLite database and one LocalNetwork.
    Every peer gets its own SQLAlchemy session, like separate processes would.
    """
    Base.metadata.create_all(bind=engine)
    sessions: list[Session] = []

    def _make_peer(peer_id: int, settings: Settings = TEST_SETTINGS) -> SudokuService:
        db = TestingSessionLocal()
        sessions.append(db)
        address = f"127.0.0.1:{4000 + peer_id}"
        peer = SudokuService(SQLSharedStore(db), network, settings, address=address)
        network.attach(address, peer.handle_message)
        peer.bootstrap()
        return peer

    try:
        yield _make_peer
    finally:
        for db in sessions:
            db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def recording_messenger() -> RecordingMessenger:
    return RecordingMessenger()


@pytest.fixture
def make_mock_peer(mock_store: MockStore, network: LocalNetwork) -> Any:
    """Factory for peers sharing one MockStore and one LocalNetwork."""

    def _make_peer(peer_id: int, settings: Settings = TEST_SETTINGS) -> SudokuService:
        address = f"127.0.0.1:{4000 + peer_id}"
        peer = SudokuService(mock_store, network, settings, address=address)
        network.attach(address, peer.handle_message)
        peer.bootstrap()
        return peer

    return _make_peer
