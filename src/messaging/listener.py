"""Receiving side of direct messages: apply incoming snapshots to the local peer context."""

import logging

from pydantic import ValidationError

from src.core.context import PeerContext
from src.core.shared_types import PayloadKind
from src.messaging.payloads import CatalogUpdate, SessionUpdate, decode

logger = logging.getLogger(__name__)

ACK = "success"
NACK = "invalid"

NEW_CHALLENGES_NOTICE = "New challenges were created, refresh to see them."
CHALLENGE_UPDATED_NOTICE = "The challenge was updated, refresh to see it."


class MessageListener:
    """Acknowledges every well-formed envelope, even when it is not relevant for this peer any more."""

    def __init__(self, context: PeerContext) -> None:
        self.context = context

    def __call__(self, payload: str) -> str:
        return self.handle(payload)

    def handle(self, payload: str) -> str:
        try:
            update = decode(payload)
        except ValidationError as exc:
            logger.warning("Ignoring malformed message: %s", exc)
            return NACK

        if update.kind == PayloadKind.CATALOG:
            self._apply_catalog(update)
        elif update.kind == PayloadKind.SESSION:
            self._apply_session(update)
        return ACK

    def _apply_catalog(self, update: CatalogUpdate) -> None:
        self.context.catalog = [entry.to_summary() for entry in update.challenges]
        logger.debug("Catalog replaced: %d open challenge(s)", len(self.context.catalog))
        if self.context.session is None:
            self.context.notices.append(NEW_CHALLENGES_NOTICE)

    def _apply_session(self, update: SessionUpdate) -> None:
        current = self.context.session
        if current is None or current.code != update.challenge.code:
            logger.debug("Ignoring update for challenge %s", update.challenge.code)
            return
        self.context.session = update.challenge.to_record()
        self.context.notices.append(CHALLENGE_UPDATED_NOTICE)
