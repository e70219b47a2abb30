from __future__ import annotations


class IotPanelError(Exception):
    """Base class for errors raised inside the panel core."""


class TransportError(IotPanelError):
    """Connect, send or receive failure on the device link."""


class DecodeError(IotPanelError):
    """Inbound frame could not be turned into a sensor snapshot."""

    def __init__(self, message: str, payload: str | bytes | None = None) -> None:
        super().__init__(message)
        self.payload = payload
