"""Polling helpers shared by the driver and elements."""

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r'^[A-Za-z][A-Za-z0-9+.-]*://\S+$')
_TARGET_ID_IN_URL = re.compile(r'/devtools/page/([^/?#]+)')


async def wait_until(
    condition: Callable[[], Awaitable[bool]],
    timeout: float,
    interval: float,
) -> bool:
    """Await ``condition`` every ``interval`` seconds until it is true or ``timeout`` passes.

    The condition is always checked at least once, even with a zero timeout.

    Returns:
        True if the condition was met, False if the deadline passed first.
    """
    deadline = time.monotonic() + timeout
    while True:
        if await condition():
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        await asyncio.sleep(min(interval, remaining))


def is_absolute_url(url: str) -> bool:
    """True for ``scheme://rest`` URLs such as ``https://example.com``."""
    return bool(_ABSOLUTE_URL.match(url))


def target_id_from_ws_url(ws_url: str) -> str | None:
    """Extract the target id from a page WebSocket URL, or None for browser endpoints."""
    match = _TARGET_ID_IN_URL.search(ws_url)
    return match.group(1) if match else None


def ws_url_for_target(ws_url: str, target_id: str) -> str:
    """Build the page WebSocket URL for ``target_id`` on the same host as ``ws_url``."""
    head = ws_url.split('/devtools/', 1)[0]
    return f'{head}/devtools/page/{target_id}'
