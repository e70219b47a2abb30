from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable


@dataclass(frozen=True)
class TransportHandlers:
    """Callbacks a transport fires into its owner. All are called on the event loop."""

    on_open: Callable[[], None]
    on_close: Callable[[], None]
    on_error: Callable[[Exception], None]
    on_message: Callable[[str], None]


@runtime_checkable
class Transport(Protocol):
    url: str

    @property
    def is_open(self) -> bool:
        ...

    def start(self) -> None:
        ...

    async def send(self, text: str) -> None:
        ...

    async def close(self) -> None:
        ...


TransportFactory = Callable[[str, TransportHandlers], Transport]
