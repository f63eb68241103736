"""A virtual proxy that rejects every request."""

from __future__ import annotations

from typing import Any


class RejectError(ConnectionRefusedError):
    """Raised for every dial through :class:`Reject`."""

    def __init__(self, network: str = "", addr: str = "") -> None:
        super().__init__("REJECT")
        self.network = network
        self.addr = addr

    def __str__(self) -> str:
        return "REJECT"


class Reject:
    """A dialer that refuses all connections."""

    addr = "REJECT"

    def dial(self, network: str, addr: str) -> Any:
        """Always raise :class:`RejectError` naming the refused target."""
        error = RejectError(network, addr)
        raise error

    def dial_udp(self, network: str, addr: str) -> Any:
        """Always raise :class:`RejectError` naming the refused target."""
        error = RejectError(network, addr)
        raise error


def new_reject_dialer(url: str, dialer: Any) -> Reject:
    """Create a reject dialer for ``reject://``; both arguments are ignored."""
    return Reject()