"""Connection supervisor for a ChatKC server.

Owns the socket for its whole lifetime. It handles:
- Secure WebSocket connect and the post-connect hello frame
- Racing inbound socket frames against queued outbound frames
- Decoding inbound frames into application events
- Reconnecting after any connectivity failure, forever

Application code consumes ``events()`` and submits frames through the
``Connection`` carried by each ``Connected`` event. Nothing outside this
module ever sees the socket.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from .channel import Connected, Connection, ConnectionEvent, Disconnected, Received
from .errors import (
    ElmKCClientError,
    ElmKCConnectionError,
    ElmKCDecodeError,
    ElmKCHandshakeError,
    ElmKCTimeout,
    UnknownFrameTypeError,
)
from .protocol import MessageAuth, OutboundFrame, decode, encode, hello
from .transport.ws import DEFAULT_PORT, build_url
from .transport.ws_client import ElmKCWsClient, ElmKCWsMessage, ElmKCWsMessageType

_LOGGER = logging.getLogger(__name__)

DEFAULT_RECONNECT_DELAY = 1.0
DEFAULT_OUTBOUND_CAPACITY = 100


@dataclass(slots=True)
class DisconnectedState:
    """No socket; the next step attempts a handshake."""

    auth: MessageAuth
    server: str


@dataclass(slots=True)
class ConnectedState:
    """Live socket plus the queue of frames waiting to be written.

    ``inbound_task`` and ``outbound_task`` survive between steps so that a
    source which became ready but was not serviced is not lost.
    """

    auth: MessageAuth
    server: str
    ws: ElmKCWsClient
    outbound: asyncio.Queue[OutboundFrame]
    connection: Connection
    inbound_task: asyncio.Task[ElmKCWsMessage] | None = None
    outbound_task: asyncio.Task[OutboundFrame] | None = None
    prefer_inbound: bool = True


ConnectionState = DisconnectedState | ConnectedState


class ConnectionSupervisor:
    """State machine driving one ChatKC connection.

    Usage:
        supervisor = ConnectionSupervisor(GoogleAuth(token), "server.mattkc.com")
        async for event in supervisor.events():
            if isinstance(event, Connected):
                event.connection.send_message("hello")
        ...
        await supervisor.close()
    """

    def __init__(
        self,
        auth: MessageAuth,
        server: str,
        *,
        port: int = DEFAULT_PORT,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        max_reconnect_delay: float | None = None,
        outbound_capacity: int = DEFAULT_OUTBOUND_CAPACITY,
        connect_timeout: float = 15.0,
    ) -> None:
        """Initialize supervisor.

        Args:
            auth: Descriptor attached to every outbound frame
            server: Server hostname
            port: Server port
            reconnect_delay: Wait after a failed handshake (seconds)
            max_reconnect_delay: When set, the wait doubles after each
                consecutive failure up to this cap (seconds)
            outbound_capacity: Frames that may wait in the outbound queue
            connect_timeout: Handshake timeout (seconds)
        """
        if outbound_capacity < 1:
            raise ValueError("outbound_capacity must be at least 1")
        if reconnect_delay < 0:
            raise ValueError("reconnect_delay must not be negative")

        self._port = port
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._outbound_capacity = outbound_capacity
        self._connect_timeout = connect_timeout

        self._state: ConnectionState = DisconnectedState(auth, server)
        self._failed_attempts = 0
        self._shutdown = asyncio.Event()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def server(self) -> str:
        return self._state.server

    @property
    def is_connected(self) -> bool:
        return isinstance(self._state, ConnectedState)

    @property
    def failed_attempts(self) -> int:
        """Consecutive handshake failures since the last successful connect."""
        return self._failed_attempts

    @property
    def closed(self) -> bool:
        return self._shutdown.is_set()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def events(self) -> AsyncIterator[ConnectionEvent]:
        """Yield connection events until ``close()`` is called."""
        while not self._shutdown.is_set():
            event = await self.step()
            # close() may land while a step is awaiting the socket
            if event is not None and not self._shutdown.is_set():
                yield event

    async def step(self) -> ConnectionEvent | None:
        """Run exactly one transition and return the event it produced."""
        if self._shutdown.is_set():
            return None

        state = self._state
        if isinstance(state, ConnectedState):
            return await self._service(state)
        return await self._connect(state)

    async def close(self) -> None:
        """Stop the supervisor and release the socket."""
        _LOGGER.info("[%s] Closing supervisor", self.server)
        self._shutdown.set()

        state = self._state
        if isinstance(state, ConnectedState):
            self._state = DisconnectedState(state.auth, state.server)
            state.connection.invalidate()
            await self._release(state)

    # -------------------------------------------------------------------------
    # Internal: Disconnected
    # -------------------------------------------------------------------------

    async def _connect(self, state: DisconnectedState) -> ConnectionEvent | None:
        server = state.server
        _LOGGER.info(
            "[%s] Connecting to %s (attempt #%d)",
            server,
            build_url(server, self._port),
            self._failed_attempts + 1,
        )

        ws = ElmKCWsClient()
        try:
            await ws.connect(server, self._port, timeout=self._connect_timeout)
        except ElmKCTimeout:
            _LOGGER.warning("[%s] Connection timeout - server unreachable", server)
            return await self._handshake_failed(state)
        except ElmKCHandshakeError as err:
            _LOGGER.error("[%s] WebSocket handshake failed: %s", server, err)
            return await self._handshake_failed(state)
        except ElmKCConnectionError as err:
            _LOGGER.warning("[%s] Connection failed: %s", server, err)
            return await self._handshake_failed(state)

        if self._shutdown.is_set():
            await self._close_socket(server, ws)
            return None

        try:
            await ws.send_text(encode(hello(), state.auth))
        except ElmKCConnectionError as err:
            _LOGGER.warning("[%s] Failed to send hello: %s", server, err)
            await self._close_socket(server, ws)
            return Disconnected()

        self._failed_attempts = 0
        outbound: asyncio.Queue[OutboundFrame] = asyncio.Queue(
            maxsize=self._outbound_capacity
        )
        connection = Connection(server, outbound)
        self._state = ConnectedState(
            auth=state.auth,
            server=server,
            ws=ws,
            outbound=outbound,
            connection=connection,
        )
        _LOGGER.info("[%s] Connected", server)
        return Connected(connection)

    async def _handshake_failed(self, state: DisconnectedState) -> Disconnected:
        self._failed_attempts += 1
        delay = self._retry_delay()
        _LOGGER.info(
            "[%s] Reconnecting in %.1fs (attempt %d)",
            state.server,
            delay,
            self._failed_attempts,
        )
        await self._wait_retry(delay)
        return Disconnected()

    def _retry_delay(self) -> float:
        if self._max_reconnect_delay is None:
            return self._reconnect_delay
        return min(
            self._reconnect_delay * (2 ** (self._failed_attempts - 1)),
            self._max_reconnect_delay,
        )

    async def _wait_retry(self, delay: float) -> None:
        """Sleep before the next handshake; returns early on shutdown."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=delay)
        except TimeoutError:
            pass

    # -------------------------------------------------------------------------
    # Internal: Connected
    # -------------------------------------------------------------------------

    async def _service(self, state: ConnectedState) -> ConnectionEvent | None:
        if state.inbound_task is None:
            state.inbound_task = asyncio.create_task(state.ws.receive())
        if state.outbound_task is None:
            state.outbound_task = asyncio.create_task(state.outbound.get())

        shutdown_task = asyncio.create_task(self._shutdown.wait())
        try:
            done, _ = await asyncio.wait(
                {state.inbound_task, state.outbound_task, shutdown_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            shutdown_task.cancel()

        if self._shutdown.is_set() or self._state is not state:
            return None

        inbound_ready = state.inbound_task in done
        outbound_ready = state.outbound_task in done

        # Both ready: alternate so neither source starves.
        if inbound_ready and (state.prefer_inbound or not outbound_ready):
            task, state.inbound_task = state.inbound_task, None
            state.prefer_inbound = False
            try:
                msg = task.result()
            except Exception as err:
                _LOGGER.exception("[%s] Unexpected receive error: %s", state.server, err)
                msg = ElmKCWsMessage(type=ElmKCWsMessageType.ERROR)
            return await self._handle_inbound(state, msg)

        task = state.outbound_task
        if task is None or not outbound_ready:
            return None
        state.outbound_task = None
        state.prefer_inbound = True
        return await self._handle_outbound(state, task.result())

    async def _handle_inbound(
        self, state: ConnectedState, msg: ElmKCWsMessage
    ) -> ConnectionEvent | None:
        if msg.type is ElmKCWsMessageType.TEXT:
            try:
                frame = decode(msg.data or "")
            except UnknownFrameTypeError as err:
                _LOGGER.debug(
                    "[%s] Ignoring frame of unknown type: %s",
                    state.server,
                    err.frame_type,
                )
                return None
            except ElmKCDecodeError as err:
                _LOGGER.warning("[%s] Dropping malformed frame: %s", state.server, err)
                return None
            return Received(frame)

        if msg.type is ElmKCWsMessageType.CLOSED:
            _LOGGER.info("[%s] WebSocket closed by server", state.server)
        else:
            _LOGGER.error("[%s] WebSocket error", state.server)
        return await self._teardown(state)

    async def _handle_outbound(
        self, state: ConnectedState, frame: OutboundFrame
    ) -> ConnectionEvent | None:
        try:
            await state.ws.send_text(encode(frame, state.auth))
        except ElmKCClientError as err:
            _LOGGER.warning(
                "[%s] Failed to send %s frame: %s", state.server, frame.frame_type, err
            )
            return await self._teardown(state)

        _LOGGER.debug("[%s] Sent %s frame", state.server, frame.frame_type)
        return None

    async def _teardown(self, state: ConnectedState) -> Disconnected:
        self._state = DisconnectedState(state.auth, state.server)
        state.connection.invalidate()
        await self._release(state)
        _LOGGER.info("[%s] Disconnected", state.server)
        return Disconnected()

    async def _release(self, state: ConnectedState) -> None:
        """Cancel pending socket/queue waits and close the socket."""
        # A finished queue-get already holds a dequeued frame.
        unsent = state.outbound.qsize()
        outbound_task = state.outbound_task
        if (
            outbound_task is not None
            and outbound_task.done()
            and not outbound_task.cancelled()
        ):
            unsent += 1

        tasks = [t for t in (state.inbound_task, state.outbound_task) if t is not None]
        state.inbound_task = None
        state.outbound_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if unsent:
            _LOGGER.warning("[%s] Discarding %d unsent frames", state.server, unsent)

        await self._close_socket(state.server, state.ws)

    @staticmethod
    async def _close_socket(server: str, ws: ElmKCWsClient) -> None:
        try:
            await asyncio.wait_for(ws.close(), timeout=2.0)
        except TimeoutError:
            _LOGGER.warning("[%s] WebSocket close timed out", server)
