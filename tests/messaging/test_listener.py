"""Unit tests for src/messaging/listener.py and src/messaging/payloads.py"""

import json

import pytest
from pydantic import ValidationError

from src.core.context import PeerContext
from src.core.models import ChallengeRecord, ChallengeSummary, Winner
from src.messaging.listener import (
    ACK,
    CHALLENGE_UPDATED_NOTICE,
    NACK,
    NEW_CHALLENGES_NOTICE,
    MessageListener,
)
from src.messaging.payloads import (
    CatalogUpdate,
    SessionUpdate,
    decode,
    encode_catalog,
    encode_session,
)

CATALOG = [
    ChallengeSummary(code="X1", owner="amy", player_count=2),
    ChallengeSummary(code="X2", owner="bob", player_count=1),
]


def make_record(code: str = "X1", **changes: object) -> ChallengeRecord:
    solution = [[(3 * (row % 3) + row // 3 + col) % 9 + 1 for col in range(9)] for row in range(9)]
    grid = [list(row) for row in solution]
    grid[0][0] = 0
    record = ChallengeRecord(
        code=code, owner="amy", grid=grid, solution=solution, scores={"amy": 0, "bob": 0}
    )
    for name, value in changes.items():
        setattr(record, name, value)
    return record


@pytest.fixture
def context() -> PeerContext:
    return PeerContext(address="127.0.0.1:4002")


# -- PAYLOADS --
def test_decode_catalog() -> None:
    update = decode(encode_catalog(CATALOG))
    assert isinstance(update, CatalogUpdate)
    assert [entry.to_summary() for entry in update.challenges] == CATALOG


def test_decode_session_keeps_winner_and_status() -> None:
    record = make_record(started=True, terminated=True, full=True, winner=Winner("amy", 3))
    update = decode(encode_session(record))
    assert isinstance(update, SessionUpdate)
    assert update.challenge.status == "complete"
    assert update.challenge.to_record() == record


@pytest.mark.parametrize(
    "payload",
    [
        "not json at all",
        json.dumps({"challenges": []}),  # no discriminant
        json.dumps({"kind": "gossip", "challenges": []}),  # unknown discriminant
        json.dumps({"kind": "session", "challenges": []}),  # shape of the other kind
    ],
)
def test_decode_rejects_unknown_envelopes(payload: str) -> None:
    with pytest.raises(ValidationError):
        _ = decode(payload)


# -- LISTENER --
def test_catalog_update_while_idle(context: PeerContext) -> None:
    listener = MessageListener(context)
    assert listener(encode_catalog(CATALOG)) == ACK
    assert context.catalog == CATALOG
    assert context.pop_notices() == [NEW_CHALLENGES_NOTICE]


def test_catalog_update_while_playing(context: PeerContext) -> None:
    """Peers in a challenge get the new catalog but are not interrupted with a notice."""
    context.session = make_record()
    assert MessageListener(context).handle(encode_catalog(CATALOG)) == ACK
    assert context.catalog == CATALOG
    assert context.notices == []


def test_empty_catalog_update(context: PeerContext) -> None:
    context.catalog = CATALOG
    assert MessageListener(context).handle(encode_catalog([])) == ACK
    assert context.catalog == []


def test_session_update_for_current_challenge(context: PeerContext) -> None:
    context.session = make_record()
    updated = make_record(started=True, scores={"amy": 1, "bob": 0})

    assert MessageListener(context).handle(encode_session(updated)) == ACK
    assert context.session == updated
    assert context.pop_notices() == [CHALLENGE_UPDATED_NOTICE]


def test_session_update_for_other_challenge_is_acknowledged_and_ignored(context: PeerContext) -> None:
    current = make_record("X1")
    context.session = current
    assert MessageListener(context).handle(encode_session(make_record("X2"))) == ACK
    assert context.session is current
    assert context.notices == []


def test_session_update_while_idle_is_ignored(context: PeerContext) -> None:
    assert MessageListener(context).handle(encode_session(make_record())) == ACK
    assert context.session is None


def test_malformed_message(context: PeerContext) -> None:
    context.catalog = CATALOG
    assert MessageListener(context).handle("{garbage") == NACK
    assert context.catalog == CATALOG
    assert context.notices == []
