"""Unit tests for src/services/broadcaster.py"""

import json

from conftest import RecordingMessenger
from src.core.exceptions import MessengerFailureError
from src.core.models import ChallengeRecord, ChallengeSummary, PlayerRecord
from src.messaging.messenger import LocalNetwork
from src.services.broadcaster import Broadcaster

AMY = PlayerRecord(nickname="amy", address="127.0.0.1:4001")
BOB = PlayerRecord(nickname="bob", address="127.0.0.1:4002")
CAT = PlayerRecord(nickname="cat", address="127.0.0.1:4003")


def make_record(*participants: str) -> ChallengeRecord:
    grid = [[0] * 9 for _ in range(9)]
    return ChallengeRecord(
        code="X1",
        owner=participants[0],
        grid=grid,
        solution=grid,
        scores={nickname: 0 for nickname in participants},
    )


def test_notify_all_skips_excluded(recording_messenger: RecordingMessenger) -> None:
    broadcaster = Broadcaster(recording_messenger)
    delivered = broadcaster.notify_all("hello", [AMY, BOB, CAT], exclude="bob")
    assert delivered == ["amy", "cat"]
    assert recording_messenger.sent == [(AMY.address, "hello"), (CAT.address, "hello")]


def test_unreachable_peer_is_skipped() -> None:
    """One dead peer does not stop the others from being notified."""
    network = LocalNetwork()
    received: list[str] = []

    def answer(payload: str) -> str:
        received.append(payload)
        return "success"

    def explode(payload: str) -> str:
        raise MessengerFailureError("boom")

    network.attach(AMY.address, explode)
    network.attach(CAT.address, answer)
    # BOB never attached

    delivered = Broadcaster(network).notify_all("hello", [AMY, BOB, CAT])
    assert delivered == ["cat"]
    assert received == ["hello"]


def test_broadcast_catalog(recording_messenger: RecordingMessenger) -> None:
    catalog = [ChallengeSummary(code="X1", owner="amy", player_count=1)]

    delivered = Broadcaster(recording_messenger).broadcast_catalog(catalog, [AMY, BOB], exclude="amy")
    assert delivered == ["bob"]
    (address, payload), = recording_messenger.sent
    assert address == BOB.address
    assert json.loads(payload) == {
        "kind": "catalog",
        "challenges": [{"code": "X1", "owner": "amy", "player_count": 1}],
    }


def test_broadcast_session_only_reaches_participants(recording_messenger: RecordingMessenger) -> None:
    record = make_record("amy", "bob")

    delivered = Broadcaster(recording_messenger).broadcast_session(record, [AMY, BOB, CAT], exclude="amy")
    assert delivered == ["bob"]
    (address, payload), = recording_messenger.sent
    assert address == BOB.address
    message = json.loads(payload)
    assert message["kind"] == "session"
    assert message["challenge"]["code"] == "X1"
    assert message["challenge"]["scores"] == {"amy": 0, "bob": 0}


def test_broadcast_session_to_participant_missing_from_roster(recording_messenger: RecordingMessenger) -> None:
    """Participants that left the roster have no known address: they are silently skipped."""
    record = make_record("amy", "dan")
    delivered = Broadcaster(recording_messenger).broadcast_session(record, [AMY, BOB])
    assert delivered == ["amy"]
