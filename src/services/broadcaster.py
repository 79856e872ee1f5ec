"""Best-effort fan-out of fresh snapshots to the other peers."""

import logging
from typing import Iterable, Optional

from src.core.exceptions import MessengerFailureError
from src.core.models import ChallengeRecord, ChallengeSummary, PlayerRecord
from src.messaging.messenger import Messenger
from src.messaging.payloads import encode_catalog, encode_session

logger = logging.getLogger(__name__)


class Broadcaster:
    """
    Pushes snapshots, one blocking send per recipient.

    Not an atomic broadcast: a recipient that cannot be reached is logged and skipped,
    it will catch up on its next refresh.
    """

    def __init__(self, messenger: Messenger) -> None:
        self.messenger = messenger

    def notify_all(
        self,
        payload: str,
        recipients: Iterable[PlayerRecord],
        exclude: Optional[str] = None,
    ) -> list[str]:
        """Send payload to every recipient but `exclude`. Returns the nicknames that acknowledged."""
        delivered: list[str] = []
        for player in recipients:
            if player.nickname == exclude:
                continue
            try:
                ack = self.messenger.send_direct(player.address, payload)
            except MessengerFailureError as exc:
                logger.warning("Could not notify %s at %s: %s", player.nickname, player.address, exc)
                continue
            logger.debug("%s acknowledged with %r", player.nickname, ack)
            delivered.append(player.nickname)
        return delivered

    def broadcast_catalog(
        self,
        catalog: list[ChallengeSummary],
        roster: list[PlayerRecord],
        exclude: Optional[str] = None,
    ) -> list[str]:
        return self.notify_all(encode_catalog(catalog), roster, exclude)

    def broadcast_session(
        self,
        record: ChallengeRecord,
        roster: list[PlayerRecord],
        exclude: Optional[str] = None,
    ) -> list[str]:
        """Only participants of the challenge are notified; their addresses come from the roster."""
        participants = [player for player in roster if player.nickname in record.scores]
        return self.notify_all(encode_session(record), participants, exclude)
