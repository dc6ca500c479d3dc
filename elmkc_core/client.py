"""Application glue between the supervisor and the chat view."""

from __future__ import annotations

import logging

from .channel import Connected, Connection, ConnectionEvent, Disconnected, Received
from .chat_log import ChatLog
from .config import ClientConfig
from .supervisor import ConnectionSupervisor

_LOGGER = logging.getLogger(__name__)


class ChatClient:
    """Tracks connection state and chat history for one chat window.

    Usage:
        client = ChatClient(load_config())
        task = asyncio.create_task(client.run())
        ...
        if client.submit(text):
            input_box.clear()
        ...
        await client.close()
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config
        self.auth = config.auth()
        self.log = ChatLog()
        self.supervisor = ConnectionSupervisor(
            self.auth,
            config.server,
            reconnect_delay=config.reconnect_delay,
            outbound_capacity=config.outbound_capacity,
            connect_timeout=config.connect_timeout,
        )
        self._connection: Connection | None = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def title(self) -> str:
        return self.log.title(self.config.server)

    async def run(self) -> None:
        """Feed supervisor events into this client until closed."""
        async for event in self.supervisor.events():
            self.handle_event(event)

    async def close(self) -> None:
        self._connection = None
        await self.supervisor.close()

    def handle_event(self, event: ConnectionEvent) -> bool:
        """Apply one event.

        Returns:
            True if the chat log changed and the view should scroll to the end
        """
        if isinstance(event, Connected):
            self._connection = event.connection
            return False
        if isinstance(event, Disconnected):
            self._connection = None
            return False
        if isinstance(event, Received):
            return self.log.apply(event.frame)
        return False

    def submit(self, text: str, reply: int | None = None) -> bool:
        """Send user input if connected.

        Returns:
            True if the message was queued and the input should be cleared
        """
        if self._connection is None:
            _LOGGER.debug("[%s] Not connected, keeping input", self.config.server)
            return False
        return self._connection.send_message(text, reply)
