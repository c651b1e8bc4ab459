"""Helpers for the browser's debug HTTP endpoints (/json, /json/new)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field

from cdpdriver.exceptions import ConnectionFailure, TargetDiscoveryTimeout

logger = logging.getLogger(__name__)

DEFAULT_HOST = '127.0.0.1'
DISCOVERY_ATTEMPTS = 10
DISCOVERY_INTERVAL = 0.1
HTTP_TIMEOUT = 5.0


class TargetDescriptor(BaseModel):
    """One entry of the ``/json`` target listing."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    id: str
    type: str
    url: str = ''
    title: str = ''
    web_socket_debugger_url: str | None = Field(default=None, alias='webSocketDebuggerUrl')
    attached: bool = False


def debug_base_url(port: int, host: str = DEFAULT_HOST) -> str:
    return f'http://{host}:{port}'


@asynccontextmanager
async def _http(client: httpx.AsyncClient | None) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as owned:
        yield owned


async def list_targets(
    port: int,
    host: str = DEFAULT_HOST,
    client: httpx.AsyncClient | None = None,
) -> list[TargetDescriptor]:
    """GET /json.

    Raises:
        ConnectionFailure: The debug endpoint could not be reached.
    """
    url = f'{debug_base_url(port, host)}/json'
    try:
        async with _http(client) as http:
            response = await http.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise ConnectionFailure(url, f'Could not list targets at {url}: {e}') from e
    return [TargetDescriptor.model_validate(item) for item in response.json()]


async def new_target(
    port: int,
    url: str = 'about:blank',
    host: str = DEFAULT_HOST,
    client: httpx.AsyncClient | None = None,
) -> TargetDescriptor:
    """PUT /json/new?<url> to open a new page target."""
    endpoint = f'{debug_base_url(port, host)}/json/new?{quote(url, safe=":/?&=#")}'
    try:
        async with _http(client) as http:
            response = await http.put(endpoint)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise ConnectionFailure(endpoint, f'Could not create a target at {endpoint}: {e}') from e
    return TargetDescriptor.model_validate(response.json())


async def get_first_page_ws_url(
    port: int,
    host: str = DEFAULT_HOST,
    client: httpx.AsyncClient | None = None,
) -> str:
    """WebSocket URL of the first page target, creating a blank page if there is none."""
    for target in await list_targets(port, host, client):
        if target.type == 'page' and target.web_socket_debugger_url:
            return target.web_socket_debugger_url
    logger.debug('No page target listed; opening a new one')
    created = await new_target(port, 'about:blank', host, client)
    if not created.web_socket_debugger_url:
        raise ConnectionFailure(debug_base_url(port, host), 'New target has no webSocketDebuggerUrl')
    return created.web_socket_debugger_url


async def get_ws_url_for_target(
    port: int,
    target_id: str,
    host: str = DEFAULT_HOST,
    attempts: int = DISCOVERY_ATTEMPTS,
    interval: float = DISCOVERY_INTERVAL,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Poll /json until ``target_id`` is listed with a WebSocket URL.

    A freshly created target can take a moment to appear in the listing.

    Raises:
        TargetDiscoveryTimeout: The target was not listed after ``attempts`` polls.
    """
    for attempt in range(1, attempts + 1):
        try:
            for target in await list_targets(port, host, client):
                if target.id == target_id and target.web_socket_debugger_url:
                    return target.web_socket_debugger_url
        except ConnectionFailure as e:
            logger.debug(f'Target listing failed on attempt {attempt}: {e}')
        if attempt < attempts:
            await asyncio.sleep(interval)
    raise TargetDiscoveryTimeout(target_id, attempts)
