"""Page-level automation driver over a single CDP page connection."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any

from cdpdriver.actor import scripts
from cdpdriver.actor.element import Element
from cdpdriver.actor.keys import Key
from cdpdriver.actor.locator import By, LocatorType
from cdpdriver.actor.mouse import Mouse
from cdpdriver.actor.utils import is_absolute_url, target_id_from_ws_url, wait_until, ws_url_for_target
from cdpdriver.actor.views import Rect
from cdpdriver.cdp.commands import CDPCommands, KeyEventType, WindowState
from cdpdriver.cdp.connection import CDPConnection
from cdpdriver.cdp.network import NetworkCorrelator
from cdpdriver.config import CONFIG
from cdpdriver.exceptions import (
    CommandFailed,
    NotFound,
    RemoteProtocolError,
    ScriptError,
    StaleReference,
    TransportClosed,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

PRESENCE_TIMEOUT = 1.0

_STALE_REFERENCE = re.compile(re.escape(scripts.STALE_REFERENCE_MARKER) + r'([\w.-]+)')

_LOCATOR_SNIPPETS = {
    LocatorType.ID: scripts.ID_LOCATOR,
    LocatorType.CSS: scripts.CSS_LOCATOR,
    LocatorType.XPATH: scripts.XPATH_LOCATOR,
}


class Driver:
    """Automation surface for one page target.

    Timeouts are per-instance: changing them on one driver never affects
    another. ``default_timeout`` applies to element lookups and actionability
    checks that are not given an explicit timeout, ``page_load_timeout`` to
    document-ready polling after navigation.

    Example:
        >>> async with await Driver.connect(ws_url) as driver:
        ...     await driver.navigate('https://example.com')
        ...     heading = await driver.find_element(By.css('Heading', 'h1'))
        ...     print(await heading.get_text())
    """

    def __init__(
        self,
        connection: CDPConnection,
        *,
        command_timeout: float | None = None,
        default_timeout: float | None = None,
        page_load_timeout: float | None = None,
        polling_interval: float | None = None,
    ):
        self._connection = connection
        self._command_timeout = command_timeout
        self.commands = CDPCommands(connection, command_timeout)
        self.mouse = Mouse(self.commands)
        self.network = NetworkCorrelator(connection)
        self._network_started = False
        self._target_id = target_id_from_ws_url(connection.endpoint)
        self._modifiers = 0
        self._closed = False

        self.default_timeout = default_timeout if default_timeout is not None else CONFIG.CDPDRIVER_DEFAULT_TIMEOUT
        self.page_load_timeout = (
            page_load_timeout if page_load_timeout is not None else CONFIG.CDPDRIVER_PAGE_LOAD_TIMEOUT
        )
        self.polling_interval = polling_interval if polling_interval is not None else CONFIG.CDPDRIVER_POLLING_INTERVAL

    @classmethod
    async def connect(cls, ws_url: str, *, enable_network: bool = False, **kwargs: Any) -> Driver:
        """Connect to a page WebSocket URL and install the element reference table.

        Args:
            ws_url: The page's ``webSocketDebuggerUrl``.
            enable_network: Start the network correlator right away.
            **kwargs: Timeouts forwarded to the constructor.
        """
        connection = await CDPConnection.connect(ws_url)
        driver = cls(connection, **kwargs)
        try:
            await driver._install_reference_table()
            if enable_network:
                await driver.start_network()
        except BaseException:
            await connection.close()
            raise
        return driver

    async def _install_reference_table(self) -> None:
        await self.commands.page_add_script_to_evaluate_on_new_document(scripts.REFERENCE_TABLE_SWEEP)
        await self.evaluate(scripts.REFERENCE_TABLE_SWEEP)

    async def start_network(self) -> NetworkCorrelator:
        """Enable the Network domain and begin correlating exchanges."""
        await self.network.start()
        self._network_started = True
        return self.network

    # Settings

    @property
    def default_timeout(self) -> float:
        return self._default_timeout

    @default_timeout.setter
    def default_timeout(self, value: float) -> None:
        if value < 0:
            raise ValueError('default_timeout must not be negative')
        self._default_timeout = value

    @property
    def page_load_timeout(self) -> float:
        return self._page_load_timeout

    @page_load_timeout.setter
    def page_load_timeout(self, value: float) -> None:
        if value < 0:
            raise ValueError('page_load_timeout must not be negative')
        self._page_load_timeout = value

    @property
    def polling_interval(self) -> float:
        return self._polling_interval

    @polling_interval.setter
    def polling_interval(self, value: float) -> None:
        if value <= 0:
            raise ValueError('polling_interval must be positive')
        self._polling_interval = value

    @property
    def modifiers(self) -> int:
        """Bitmask of modifier keys currently held (Alt=1, Control=2, Meta=4, Shift=8)."""
        return self._modifiers

    @property
    def target_id(self) -> str | None:
        return self._target_id

    @property
    def closed(self) -> bool:
        return self._closed or self._connection.closed

    # Script evaluation

    async def evaluate(self, expression: str, await_promise: bool = False) -> Any:
        """Evaluate ``expression`` in the page and return its value.

        Raises:
            StaleReference: The script looked up a reference id that is gone.
            ScriptError: The script threw any other exception.
            CommandFailed: The evaluation command itself failed.
        """
        result = await self.commands.runtime_evaluate(expression, return_by_value=True, await_promise=await_promise)
        details = result.get('exceptionDetails')
        if details:
            exception = details.get('exception') or {}
            description = exception.get('description') or str(exception.get('value') or details.get('text', ''))
            stale = _STALE_REFERENCE.search(description)
            if stale:
                raise StaleReference(stale.group(1))
            raise ScriptError(description, details)
        return (result.get('result') or {}).get('value')

    async def _evaluate_tolerant(self, expression: str) -> Any:
        """Evaluate, treating a missing execution context (mid-navigation) as None."""
        try:
            return await self.evaluate(expression)
        except ScriptError as e:
            logger.debug(f'Evaluation failed while polling: {e}')
            return None
        except CommandFailed as e:
            if isinstance(e.cause, RemoteProtocolError):
                logger.debug(f'Evaluation rejected while polling: {e.cause}')
                return None
            raise

    # Navigation

    async def navigate(self, url: str) -> None:
        """Navigate to ``url`` and wait for the document to finish loading.

        A page that does not reach ``readyState === 'complete'`` within
        ``page_load_timeout`` is logged, not raised; probe for elements next.

        Raises:
            ValueError: ``url`` is not absolute (``scheme://...``).
        """
        if not is_absolute_url(url):
            raise ValueError(f'URL must be absolute (scheme://...): {url!r}')

        logger.info(f'Navigating to {url}')
        result = await self.commands.page_navigate(url)
        if result.get('errorText'):
            logger.warning(f'Navigation to {url} reported {result["errorText"]}')
        await asyncio.sleep(self._polling_interval)
        await self._wait_after_navigation(url)

    get = navigate

    async def wait_for_document_ready(self, timeout: float | None = None) -> bool:
        """Poll ``document.readyState`` until it is ``complete``.

        Returns:
            True when the document is ready, False if the timeout passed first.
        """
        timeout = self._page_load_timeout if timeout is None else timeout

        async def ready() -> bool:
            return await self._evaluate_tolerant(scripts.DOCUMENT_READY) is True

        return await wait_until(ready, timeout, self._polling_interval)

    async def _wait_after_navigation(self, description: str) -> None:
        if not await self.wait_for_document_ready():
            logger.warning(
                f'Page did not finish loading within {self._page_load_timeout:.1f}s after {description}; continuing'
            )

    async def back(self) -> None:
        await self.evaluate(scripts.HISTORY_BACK)
        await asyncio.sleep(self._polling_interval)
        await self._wait_after_navigation('history back')

    async def forward(self) -> None:
        await self.evaluate(scripts.HISTORY_FORWARD)
        await asyncio.sleep(self._polling_interval)
        await self._wait_after_navigation('history forward')

    async def refresh(self) -> None:
        await self.commands.page_reload()
        await asyncio.sleep(self._polling_interval)
        await self._wait_after_navigation('reload')

    async def get_current_url(self) -> str:
        return await self.evaluate(scripts.GET_CURRENT_URL)

    async def get_title(self) -> str:
        return await self.evaluate(scripts.GET_TITLE)

    async def get_page_source(self) -> str:
        return await self.evaluate(scripts.GET_PAGE_SOURCE)

    async def capture_screenshot(self) -> str:
        """Capture the viewport as a base64-encoded PNG."""
        result = await self.commands.page_capture_screenshot('png')
        return result['data']

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    # Element lookup

    async def find_element(self, by: By, timeout: float | None = None) -> Element:
        """Return the first element matching ``by``.

        Raises:
            NotFound: Nothing matched within the timeout.
        """
        return await self._find_first(by, timeout, parent=None)

    async def find_elements(self, by: By, timeout: float | None = None) -> list[Element]:
        """Return every element matching ``by``, or an empty list once the timeout passes."""
        return await self._locate(by, timeout, parent=None)

    async def is_element_present(self, by: By, timeout: float = PRESENCE_TIMEOUT) -> bool:
        return bool(await self.find_elements(by, timeout))

    async def _find_first(self, by: By, timeout: float | None, parent: Element | None) -> Element:
        timeout = self._default_timeout if timeout is None else timeout
        elements = await self._locate(by, timeout, parent)
        if not elements:
            raise NotFound(by, timeout)
        return elements[0]

    async def _locate(self, by: By, timeout: float | None, parent: Element | None) -> list[Element]:
        if not by.type.is_structural:
            raise ValueError(
                f'{by} is a natural-language locator; wrap the driver in NaturalLanguageDriver to resolve it'
            )
        timeout = self._default_timeout if timeout is None else timeout
        snippet = _LOCATOR_SNIPPETS[by.type] % scripts.js_string(by.locator)
        parent_id = parent.reference_id if parent is not None else ''
        script = scripts.FIND_ELEMENTS % (scripts.js_string(parent_id), snippet)

        reference_ids: list[str] = []

        async def resolved() -> bool:
            nonlocal reference_ids
            reference_ids = await self.evaluate(script) or []
            return bool(reference_ids)

        await wait_until(resolved, timeout, self._polling_interval)
        return self._to_elements(by, reference_ids, parent)

    def _to_elements(self, by: By, reference_ids: Sequence[str], parent: Element | None) -> list[Element]:
        if len(reference_ids) == 1:
            return [Element(self, by, reference_ids[0], parent)]
        return [
            Element(self, by.with_name(f'{by.name}[{index}]'), reference_id, parent)
            for index, reference_id in enumerate(reference_ids)
        ]

    # Keyboard

    async def key_down(self, key: Key | str) -> None:
        """Press ``key``; modifier keys are added to the held-modifier mask first."""
        key = _as_key(key)
        if key.is_modifier:
            self._modifiers |= key.modifier
        text = key.text_with_modifiers(self._modifiers)
        await self._dispatch_key('keyDown' if text else 'rawKeyDown', key, text or None)

    async def key_up(self, key: Key | str) -> None:
        """Release ``key``; modifier keys are removed from the mask first."""
        key = _as_key(key)
        if key.is_modifier:
            self._modifiers &= ~key.modifier
        await self._dispatch_key('keyUp', key, None)

    async def key_press(self, key: Key | str) -> None:
        await self.key_down(key)
        await asyncio.sleep(self._polling_interval)
        await self.key_up(key)

    async def send_keys(self, text: str) -> None:
        """Type ``text`` as one keyDown/keyUp pair per character.

        Raises:
            ValueError: ``text`` contains something other than ASCII letters and digits.
                Nothing is dispatched in that case.
        """
        keys = [Key.for_character(char) for char in text]
        unsupported = sorted({char for char, key in zip(text, keys) if key is None})
        if unsupported:
            raise ValueError(f'send_keys supports ASCII letters and digits only, got {unsupported}')
        for char, key in zip(text, keys):
            await self._dispatch_key('keyDown', key, char)
            await self._dispatch_key('keyUp', key, None)

    async def _dispatch_key(self, event_type: KeyEventType, key: Key, text: str | None) -> None:
        await self.commands.input_dispatch_key_event(
            event_type,
            modifiers=self._modifiers,
            text=text,
            code=key.code,
            key=text if text and text.strip() else key.key,
            windows_virtual_key_code=int(key),
            native_virtual_key_code=int(key),
        )

    # Windows and targets

    async def _page_targets(self) -> list[dict[str, Any]]:
        infos = (await self.commands.target_get_targets()).get('targetInfos', [])
        pages = [info for info in infos if info.get('type') == 'page']
        current = next((info for info in pages if info.get('targetId') == self._target_id), None)
        if current is not None and current.get('browserContextId'):
            pages = [info for info in pages if info.get('browserContextId') == current['browserContextId']]
        return pages

    async def get_window_handles(self) -> list[str]:
        """Target ids of every page in this driver's browser context."""
        return [info['targetId'] for info in await self._page_targets()]

    async def get_window_handle(self) -> str | None:
        """Target id of the page this driver controls."""
        pages = await self._page_targets()
        if any(info['targetId'] == self._target_id for info in pages):
            return self._target_id
        attached = [info['targetId'] for info in pages if info.get('attached')]
        return attached[0] if attached else None

    async def switch_to_window(self, handle: str) -> None:
        """Bring the page ``handle`` to front and route subsequent commands to it.

        Raises:
            ValueError: No page with that handle exists.
        """
        if handle not in await self.get_window_handles():
            raise ValueError(f'No window with handle {handle}')
        if handle == self._target_id:
            await self.commands.target_activate_target(handle)
            return
        await self._rebind(handle)

    async def _rebind(self, handle: str) -> None:
        ws_url = ws_url_for_target(self._connection.endpoint, handle)
        logger.debug(f'Switching driver from {self._target_id} to {handle}')
        new_connection = await CDPConnection.connect(ws_url)

        await self.network.stop()
        await self._connection.close()

        self._connection = new_connection
        self.commands = CDPCommands(new_connection, self._command_timeout)
        self.mouse = Mouse(self.commands)
        self.network = NetworkCorrelator(new_connection)
        self._target_id = handle

        await self.commands.target_activate_target(handle)
        await self._install_reference_table()
        if self._network_started:
            await self.network.start()

    async def close_window(self) -> None:
        """Close the current page; closing the last page closes the browser."""
        handles = await self.get_window_handles()
        if len(handles) <= 1:
            await self.close_browser()
            return
        current = self._target_id or await self.get_window_handle()
        await self.commands.target_close_target(current)
        remaining = [handle for handle in handles if handle != current]
        await self._rebind(remaining[0])

    async def close_tab(self) -> None:
        """Close this page and the driver's connection."""
        await self._send_final(self.commands.page_close)
        logger.info('Page closed')
        await self.close()

    async def close_browser(self) -> None:
        """Close the whole browser and the driver's connection."""
        await self._send_final(self.commands.browser_close)
        logger.info('Browser closed')
        await self.close()

    async def _send_final(self, command) -> None:
        try:
            await command()
        except CommandFailed as e:
            if not isinstance(e.cause, TransportClosed):
                raise
            logger.debug(f'Connection dropped while sending {e.method}; target is gone')

    async def _window(self) -> tuple[int, dict[str, Any]]:
        result = await self.commands.browser_get_window_for_target(self._target_id)
        return result['windowId'], result.get('bounds', {})

    async def get_window_rect(self) -> Rect:
        _, bounds = await self._window()
        return Rect(
            x=bounds.get('left', 0),
            y=bounds.get('top', 0),
            width=bounds.get('width', 0),
            height=bounds.get('height', 0),
        )

    async def set_window_rect(self, rect: Rect) -> None:
        window_id, bounds = await self._window()
        if bounds.get('windowState', 'normal') != 'normal':
            await self.commands.browser_set_window_bounds(window_id, {'windowState': 'normal'})
        await self.commands.browser_set_window_bounds(
            window_id,
            {'left': int(rect.x), 'top': int(rect.y), 'width': int(rect.width), 'height': int(rect.height)},
        )

    async def _set_window_state(self, state: WindowState) -> None:
        window_id, bounds = await self._window()
        current = bounds.get('windowState', 'normal')
        if current == state:
            return
        if current != 'normal':
            await self.commands.browser_set_window_bounds(window_id, {'windowState': 'normal'})
        await self.commands.browser_set_window_bounds(window_id, {'windowState': state})

    async def maximize_window(self) -> None:
        await self._set_window_state('maximized')

    async def minimize_window(self) -> None:
        await self._set_window_state('minimized')

    async def full_screen_window(self) -> None:
        await self._set_window_state('fullscreen')

    # Lifecycle

    async def close(self) -> None:
        """Close the connection. Safe to call repeatedly or after the connection dropped."""
        if self._closed:
            return
        self._closed = True
        await self.network.stop()
        await self._connection.close()
        logger.debug('Driver connection closed')

    async def __aenter__(self) -> Driver:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f'Driver(target_id={self._target_id!r}, endpoint={self._connection.endpoint!r})'


def _as_key(key: Key | str) -> Key:
    return key if isinstance(key, Key) else Key.from_name(key)
