"""Unit tests for src/messaging/messenger.py"""

import pytest

from src.core.exceptions import MessengerFailureError
from src.messaging.messenger import LocalNetwork

ADDRESS = "127.0.0.1:4001"


def test_send_direct(network: LocalNetwork) -> None:
    received: list[str] = []

    def handler(payload: str) -> str:
        received.append(payload)
        return "success"

    network.attach(ADDRESS, handler)
    assert network.send_direct(ADDRESS, "ping") == "success"
    assert received == ["ping"]


def test_send_to_unknown_address(network: LocalNetwork) -> None:
    with pytest.raises(MessengerFailureError):
        _ = network.send_direct(ADDRESS, "ping")


def test_address_can_only_be_attached_once(network: LocalNetwork) -> None:
    network.attach(ADDRESS, lambda payload: "success")
    with pytest.raises(MessengerFailureError):
        network.attach(ADDRESS, lambda payload: "other")


def test_detach(network: LocalNetwork) -> None:
    network.attach(ADDRESS, lambda payload: "success")
    network.detach(ADDRESS)
    with pytest.raises(MessengerFailureError):
        _ = network.send_direct(ADDRESS, "ping")
    # Detaching twice is harmless, and the address is free again
    network.detach(ADDRESS)
    network.attach(ADDRESS, lambda payload: "again")
    assert network.send_direct(ADDRESS, "ping") == "again"


def test_handler_failure_becomes_messenger_failure(network: LocalNetwork) -> None:
    def broken(payload: str) -> str:
        raise RuntimeError("handler crashed")

    network.attach(ADDRESS, broken)
    with pytest.raises(MessengerFailureError, match="handler crashed"):
        _ = network.send_direct(ADDRESS, "ping")
