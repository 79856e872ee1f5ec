"""Unit tests for src/core/context.py"""

import pytest

from src.core.context import PeerContext
from src.core.exceptions import NotRegisteredError
from src.core.models import ChallengeRecord, PlayerRecord


@pytest.fixture
def context() -> PeerContext:
    return PeerContext(address="127.0.0.1:4001")


def make_record(code: str) -> ChallengeRecord:
    return ChallengeRecord(code=code, owner="amy", grid=[], solution=[], scores={"amy": 0})


def test_nickname_requires_registration(context: PeerContext) -> None:
    with pytest.raises(NotRegisteredError):
        _ = context.nickname
    context.player = PlayerRecord(nickname="amy", address=context.address)
    assert context.nickname == "amy"


def test_mark_session_terminated(context: PeerContext) -> None:
    context.session = make_record("X1")
    context.mark_session_terminated("X2")
    assert not context.session.terminated
    context.mark_session_terminated("X1")
    assert context.session.terminated


def test_mark_session_terminated_without_session(context: PeerContext) -> None:
    context.mark_session_terminated("X1")
    assert context.session is None


def test_pop_notices(context: PeerContext) -> None:
    context.notices.append("one")
    context.notices.append("two")
    assert context.pop_notices() == ["one", "two"]
    assert context.pop_notices() == []


def test_clear_keeps_address(context: PeerContext) -> None:
    context.player = PlayerRecord(nickname="amy", address=context.address)
    context.session = make_record("X1")
    context.notices.append("one")
    context.clear()
    assert context == PeerContext(address="127.0.0.1:4001")
