"""Direct point-to-point messaging between peers."""

import logging
from typing import Callable, Protocol

from src.core.exceptions import MessengerFailureError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], str]


class Messenger(Protocol):
    def send_direct(self, address: str, payload: str) -> str:
        """
        Deliver payload to the peer at address and block until it answers.
        Returns the acknowledgement, raises MessengerFailureError if the peer cannot be reached.
        """
        ...


class LocalNetwork:
    """
    In-process transport: every peer attaches a handler under its address.

    Delivery is a plain synchronous call into the receiving peer's handler, which returns the acknowledgement.
    Used to run several peers inside one process (tests, local simulations).
    """

    def __init__(self) -> None:
        self._handlers: dict[str, MessageHandler] = {}

    def attach(self, address: str, handler: MessageHandler) -> None:
        if address in self._handlers:
            raise MessengerFailureError(f"Address {address} is already in use.")
        self._handlers[address] = handler
        logger.debug("Peer attached at %s", address)

    def detach(self, address: str) -> None:
        self._handlers.pop(address, None)
        logger.debug("Peer detached from %s", address)

    def send_direct(self, address: str, payload: str) -> str:
        handler = self._handlers.get(address)
        if handler is None:
            raise MessengerFailureError(f"No peer listening at {address}.")
        try:
            return handler(payload)
        except Exception as exc:
            raise MessengerFailureError(f"Peer at {address} failed to handle the message: {exc}") from exc
