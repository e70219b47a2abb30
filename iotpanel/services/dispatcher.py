from __future__ import annotations
import logging
from typing import TYPE_CHECKING

from ..core.errors import TransportError
from ..domain.models import Command
from .codec import encode_command

if TYPE_CHECKING:
    from .connection import ConnectionManager

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Best-effort command sender.

    Borrows the manager's current transport for each send. Commands issued
    while there is no open link are dropped, not queued: a slider moved while
    offline must not fire late after reconnecting. Values are forwarded as
    given, range limits belong to whoever builds the command.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager
        self.sent_count = 0
        self.dropped_count = 0

    async def send(self, command: Command) -> bool:
        transport = self._manager.transport
        if transport is None or not transport.is_open:
            self.dropped_count += 1
            logger.debug("Dropped %s command (no open connection)", command.type)
            return False

        frame = encode_command(command)
        try:
            await transport.send(frame)
        except TransportError as e:
            await self._manager.handle_transport_error(e, transport)
            return False

        self.sent_count += 1
        logger.debug("Sent %s", frame)
        return True
