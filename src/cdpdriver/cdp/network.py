"""Reassemble completed HTTP exchanges from Network domain events.

A completed exchange needs three events for the same request id:
``Network.requestWillBeSent`` (URL), ``Network.responseReceived`` (status and
MIME type) and ``Network.loadingFinished`` (body available). The body is then
fetched with ``Network.getResponseBody``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from cdpdriver.exceptions import CDPDriverError, ExchangeTimeout, FilterAlreadyRegistered

if TYPE_CHECKING:
    from cdpdriver.cdp.connection import CDPConnection, Subscription

logger = logging.getLogger(__name__)

DEFAULT_BODY_TIMEOUT = 5.0
DEFAULT_ENABLE_TIMEOUT = 5.0


class NetworkExchange(BaseModel):
    """A completed request/response pair with its body."""

    request_id: str
    url: str
    status: int
    mime_type: str
    body: str
    base64_encoded: bool = False


@dataclass
class WaitHandle:
    """An outstanding wait for the first exchange whose URL contains ``url_filter``."""

    url_filter: str
    future: asyncio.Future = field(repr=False)

    @property
    def done(self) -> bool:
        return self.future.done()


@dataclass
class _PartialExchange:
    url_filter: str
    url: str
    status: int | None = None
    mime_type: str | None = None


class NetworkCorrelator:
    """Join Network events into :class:`NetworkExchange` objects keyed by URL filter.

    Only one wait may be pending per filter string. Registering the same
    filter again before the first wait settles raises
    :class:`~cdpdriver.exceptions.FilterAlreadyRegistered`.

    Example:
        >>> correlator = NetworkCorrelator(connection)
        >>> await correlator.start()
        >>> handle = correlator.register_filter('/api/orders')
        >>> await driver.navigate('https://shop.example/orders')
        >>> exchange = await correlator.wait(handle, timeout=10)
        >>> exchange.status
        200
    """

    def __init__(self, connection: CDPConnection, body_timeout: float = DEFAULT_BODY_TIMEOUT):
        self._connection = connection
        self._body_timeout = body_timeout
        self._waits: dict[str, WaitHandle] = {}
        self._requests: dict[str, _PartialExchange] = {}
        self._body_tasks: set[asyncio.Task] = set()
        self._subscription: Subscription | None = None

    @property
    def pending_filters(self) -> list[str]:
        return list(self._waits)

    @property
    def tracked_requests(self) -> list[str]:
        return list(self._requests)

    async def start(self, enable_timeout: float = DEFAULT_ENABLE_TIMEOUT) -> None:
        """Subscribe to the connection and enable the Network domain."""
        if self._subscription is None:
            self._subscription = self._connection.subscribe(self._on_event)
        await self._connection.send('Network.enable', {}, enable_timeout)

    async def stop(self) -> None:
        """Unsubscribe, cancel body fetches and abandon every pending wait."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in list(self._body_tasks):
            task.cancel()
        if self._body_tasks:
            await asyncio.gather(*self._body_tasks, return_exceptions=True)
        for handle in self._waits.values():
            if not handle.future.done():
                handle.future.cancel()
        self._waits.clear()
        self._requests.clear()

    def register_filter(self, url_filter: str) -> WaitHandle:
        """Start watching for a URL containing ``url_filter``.

        Register before triggering the request so that the request-sent event
        is not missed.

        Raises:
            FilterAlreadyRegistered: A wait for this filter is still pending.
        """
        existing = self._waits.get(url_filter)
        if existing is not None and not existing.done:
            raise FilterAlreadyRegistered(url_filter)

        handle = WaitHandle(url_filter, asyncio.get_running_loop().create_future())
        self._waits[url_filter] = handle
        return handle

    async def wait(self, handle: WaitHandle, timeout: float) -> NetworkExchange:
        """Wait for the exchange matching ``handle``.

        The filter registration is removed when this returns or raises, so a
        later unrelated request cannot match it.

        Raises:
            ExchangeTimeout: No matching exchange completed in time.
            CDPDriverError: The response body could not be fetched.
        """
        try:
            # A CommandTimeout from the body fetch must surface unchanged
            done, _ = await asyncio.wait({handle.future}, timeout=timeout)
            if not done:
                handle.future.cancel()
                raise ExchangeTimeout(handle.url_filter, timeout)
            return handle.future.result()
        finally:
            self._release(handle)

    async def wait_for(self, url_filter: str, timeout: float) -> NetworkExchange:
        """Register ``url_filter`` and wait for it in one step."""
        return await self.wait(self.register_filter(url_filter), timeout)

    def _release(self, handle: WaitHandle) -> None:
        if self._waits.get(handle.url_filter) is handle:
            del self._waits[handle.url_filter]
        for request_id, partial in list(self._requests.items()):
            if partial.url_filter == handle.url_filter:
                del self._requests[request_id]

    def _on_event(self, message: dict[str, Any]) -> None:
        method = message.get('method')
        params = message.get('params') or {}

        if method == 'Network.requestWillBeSent':
            self._on_request_will_be_sent(params)
        elif method == 'Network.responseReceived':
            self._on_response_received(params)
        elif method == 'Network.loadingFinished':
            self._on_loading_finished(params)
        elif method == 'Network.loadingFailed':
            if self._requests.pop(params.get('requestId'), None) is not None:
                logger.debug(f'Request {params.get("requestId")} failed: {params.get("errorText")}')

    def _on_request_will_be_sent(self, params: dict[str, Any]) -> None:
        request_id = params.get('requestId')
        url = (params.get('request') or {}).get('url', '')
        if not request_id:
            return
        for url_filter, handle in self._waits.items():
            if not handle.done and url_filter in url:
                self._requests[request_id] = _PartialExchange(url_filter=url_filter, url=url)
                logger.debug(f'Request {request_id} matches filter {url_filter!r}: {url}')
                break

    def _on_response_received(self, params: dict[str, Any]) -> None:
        partial = self._requests.get(params.get('requestId'))
        if partial is None:
            return
        response = params.get('response') or {}
        partial.status = response.get('status')
        partial.mime_type = response.get('mimeType')
        partial.url = response.get('url', partial.url)

    def _on_loading_finished(self, params: dict[str, Any]) -> None:
        request_id = params.get('requestId')
        partial = self._requests.pop(request_id, None)
        if partial is None:
            return
        if partial.status is None:
            logger.debug(f'Request {request_id} finished without a response event; ignoring')
            return
        task = asyncio.create_task(self._complete(request_id, partial))
        self._body_tasks.add(task)
        task.add_done_callback(self._body_tasks.discard)

    async def _complete(self, request_id: str, partial: _PartialExchange) -> None:
        handle = self._waits.get(partial.url_filter)
        if handle is None or handle.done:
            return
        try:
            result = await self._connection.send(
                'Network.getResponseBody', {'requestId': request_id}, self._body_timeout
            )
        except CDPDriverError as e:
            logger.warning(f'Could not fetch body for {partial.url}: {e}')
            if not handle.done:
                handle.future.set_exception(e)
            return

        exchange = NetworkExchange(
            request_id=request_id,
            url=partial.url,
            status=partial.status,
            mime_type=partial.mime_type or '',
            body=result.get('body', ''),
            base64_encoded=result.get('base64Encoded', False),
        )
        if not handle.done:
            handle.future.set_result(exchange)
