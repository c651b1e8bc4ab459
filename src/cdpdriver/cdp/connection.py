"""JSON-RPC transport to a single DevTools WebSocket endpoint.

Frames flow through three tasks so that no consumer can stall the socket:

    reader   -- receives raw frames and puts them on the inbox queue
    decoder  -- parses frames, resolves pending calls, queues events
    delivery -- hands each event to every subscriber in registration order
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import json
import logging
from collections.abc import Callable
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from cdpdriver.config import CONFIG
from cdpdriver.exceptions import CommandTimeout, ConnectionFailure, RemoteProtocolError, TransportClosed

logger = logging.getLogger(__name__)

EventCallback = Callable[[dict[str, Any]], Any]

_STOP = object()


class Subscription:
    """Handle returned by :meth:`CDPConnection.subscribe`."""

    def __init__(self, connection: CDPConnection, callback: EventCallback):
        self._connection = connection
        self.callback = callback

    def unsubscribe(self) -> None:
        self._connection.unsubscribe(self)


class CDPConnection:
    """A full-duplex CDP connection with id-correlated commands and event fan-out.

    Example:
        >>> connection = await CDPConnection.connect('ws://127.0.0.1:9222/devtools/page/ABC')
        >>> result = await connection.send('Runtime.evaluate', {'expression': '1 + 1'})
        >>> await connection.close()
    """

    def __init__(self, endpoint: str, websocket: ClientConnection):
        self.endpoint = endpoint
        self._ws = websocket
        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future] = {}
        self._methods: dict[int, tuple[str, dict[str, Any] | None]] = {}
        self._subscriptions: list[Subscription] = []
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._events: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._tasks: list[asyncio.Task] = []

    @classmethod
    async def connect(cls, endpoint: str, handshake_timeout: float | None = None) -> CDPConnection:
        """Open a connection, failing fast if the handshake does not complete in time.

        Raises:
            ConnectionFailure: The endpoint refused, was unreachable, or timed out.
        """
        timeout = handshake_timeout if handshake_timeout is not None else CONFIG.CDPDRIVER_HANDSHAKE_TIMEOUT
        try:
            websocket = await connect(endpoint, open_timeout=timeout, max_size=None, ping_interval=None)
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError, TimeoutError) as e:
            raise ConnectionFailure(endpoint, f'Could not connect to {endpoint}: {e}') from e

        connection = cls(endpoint, websocket)
        connection._start()
        logger.debug(f'Connected to {endpoint}')
        return connection

    def _start(self) -> None:
        self._tasks = [
            asyncio.create_task(self._read_loop(), name=f'cdp-reader-{self.endpoint}'),
            asyncio.create_task(self._decode_loop(), name=f'cdp-decoder-{self.endpoint}'),
            asyncio.create_task(self._deliver_loop(), name=f'cdp-delivery-{self.endpoint}'),
        ]

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        """Number of commands still waiting for a response."""
        return len(self._pending)

    async def send(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a command and wait for its ``result`` object.

        Args:
            method: CDP method name, e.g. ``'Page.navigate'``.
            params: Command parameters; omitted from the frame when None.
            timeout: Seconds to wait for the response. Defaults to
                CDPDRIVER_COMMAND_TIMEOUT.

        Returns:
            The ``result`` object of the response (an empty dict when absent).

        Raises:
            TransportClosed: The connection is closed or closes while waiting.
            CommandTimeout: No response arrived in time.
            RemoteProtocolError: The browser returned an ``error`` payload.
        """
        if self._closed:
            raise TransportClosed(f'Cannot send {method}: connection to {self.endpoint} is closed')

        timeout = timeout if timeout is not None else CONFIG.CDPDRIVER_COMMAND_TIMEOUT
        message_id = next(self._ids)
        message: dict[str, Any] = {'id': message_id, 'method': method}
        if params is not None:
            message['params'] = params

        future = asyncio.get_running_loop().create_future()
        self._pending[message_id] = future
        self._methods[message_id] = (method, params)

        try:
            payload = json.dumps(message)
            logger.debug(f'>> {payload[:500]}')
            try:
                await self._ws.send(payload)
            except ConnectionClosed as e:
                raise TransportClosed(f'Connection to {self.endpoint} closed while sending {method}') from e

            try:
                return await asyncio.wait_for(future, timeout)
            except asyncio.TimeoutError:
                raise CommandTimeout(method, timeout, message_id) from None
        finally:
            self._pending.pop(message_id, None)
            self._methods.pop(message_id, None)

    def subscribe(self, callback: EventCallback) -> Subscription:
        """Register a callback for every message that has no ``id``.

        The callback may be a plain function or a coroutine function. Errors it
        raises are logged and do not affect other subscribers.
        """
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    async def close(self) -> None:
        """Close the connection and fail every outstanding command. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._fail_pending(TransportClosed(f'Connection to {self.endpoint} was closed'))

        try:
            await self._ws.close()
        except Exception as e:
            logger.debug(f'Error while closing websocket to {self.endpoint}: {e}')

        current = asyncio.current_task()
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()
        await asyncio.gather(*(t for t in self._tasks if t is not current), return_exceptions=True)
        logger.debug(f'Closed connection to {self.endpoint}')

    async def __aenter__(self) -> CDPConnection:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _fail_pending(self, error: Exception) -> None:
        for message_id, future in list(self._pending.items()):
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

    async def _read_loop(self) -> None:
        try:
            async for raw in self._ws:
                self._inbox.put_nowait(raw)
        except ConnectionClosed as e:
            logger.debug(f'Connection to {self.endpoint} closed by peer: {e}')
        finally:
            self._inbox.put_nowait(_STOP)
            if not self._closed:
                self._closed = True
                self._fail_pending(TransportClosed(f'Connection to {self.endpoint} was lost'))

    async def _decode_loop(self) -> None:
        while True:
            raw = await self._inbox.get()
            if raw is _STOP:
                self._events.put_nowait(_STOP)
                return
            try:
                message = json.loads(raw)
            except (TypeError, ValueError) as e:
                logger.warning(f'Dropping undecodable frame from {self.endpoint}: {e}')
                continue
            if not isinstance(message, dict):
                logger.warning(f'Dropping non-object frame from {self.endpoint}')
                continue

            logger.debug(f'<< {str(raw)[:500]}')
            if 'id' in message:
                self._resolve(message)
            else:
                self._events.put_nowait(message)

    def _resolve(self, message: dict[str, Any]) -> None:
        message_id = message['id']
        future = self._pending.pop(message_id, None)
        method, params = self._methods.pop(message_id, ('<unknown>', None))
        if future is None or future.done():
            logger.debug(f'Dropping response for unknown or settled id {message_id}')
            return

        if 'error' in message:
            future.set_exception(RemoteProtocolError(method, params, message['error'] or {}))
        else:
            future.set_result(message.get('result') or {})

    async def _deliver_loop(self) -> None:
        while True:
            event = await self._events.get()
            if event is _STOP:
                return
            for subscription in list(self._subscriptions):
                try:
                    outcome = subscription.callback(event)
                    if inspect.isawaitable(outcome):
                        await outcome
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.error(
                        f'Event subscriber {subscription.callback!r} failed on {event.get("method")}',
                        exc_info=True,
                    )
