"""Isolated browser contexts: separate cookies, storage and cache per context."""

from __future__ import annotations

import logging
from typing import Any

from cdpdriver.actor.driver import Driver
from cdpdriver.browser.targets import DEFAULT_HOST, get_ws_url_for_target
from cdpdriver.cdp.commands import CDPCommands
from cdpdriver.cdp.connection import CDPConnection
from cdpdriver.exceptions import CDPDriverError

logger = logging.getLogger(__name__)


class BrowserContext:
    """A browser context created over the browser-level connection.

    The context remembers every page target it created and closes them,
    best-effort, before disposing itself.

    Example:
        >>> context = await BrowserContext.create(browser.ws_url, browser.port)
        >>> driver = await context.new_driver()
        >>> await driver.navigate('https://example.com')
        >>> await context.close()
    """

    def __init__(self, connection: CDPConnection, context_id: str, port: int, host: str = DEFAULT_HOST):
        self._connection = connection
        self._commands = CDPCommands(connection)
        self._context_id = context_id
        self._port = port
        self._host = host
        self._target_ids: list[str] = []
        self._drivers: list[Driver] = []
        self._closed = False

    @classmethod
    async def create(cls, browser_ws_url: str, port: int, host: str = DEFAULT_HOST) -> BrowserContext:
        """Connect to the browser endpoint and create a new context on it."""
        connection = await CDPConnection.connect(browser_ws_url)
        try:
            result = await CDPCommands(connection).target_create_browser_context()
        except BaseException:
            await connection.close()
            raise
        context_id = result['browserContextId']
        logger.info(f'Created browser context {context_id}')
        return cls(connection, context_id, port, host)

    @property
    def context_id(self) -> str:
        return self._context_id

    @property
    def target_ids(self) -> list[str]:
        return list(self._target_ids)

    @property
    def closed(self) -> bool:
        return self._closed

    async def new_page(self, url: str = 'about:blank') -> str:
        """Open a page in this context and return its WebSocket URL."""
        if self._closed:
            raise CDPDriverError(f'Browser context {self._context_id} is closed')
        result = await self._commands.target_create_target(url, self._context_id)
        target_id = result['targetId']
        self._target_ids.append(target_id)
        logger.debug(f'Created target {target_id} in context {self._context_id}')
        return await get_ws_url_for_target(self._port, target_id, host=self._host)

    async def new_driver(self, **driver_kwargs: Any) -> Driver:
        """Open a page in this context and connect a driver to it.

        The driver is closed along with the context.
        """
        driver = await Driver.connect(await self.new_page(), **driver_kwargs)
        self._drivers.append(driver)
        return driver

    async def close(self) -> None:
        """Close drivers and pages, dispose the context, then close the connection.

        Failures closing individual pages are logged and skipped. Safe to call twice.
        """
        if self._closed:
            return
        self._closed = True

        for driver in self._drivers:
            try:
                await driver.close()
            except CDPDriverError as e:
                logger.warning(f'Failed to close driver {driver!r}: {e}')
        self._drivers.clear()

        for target_id in self._target_ids:
            try:
                await self._commands.target_close_target(target_id)
            except CDPDriverError as e:
                logger.warning(f'Failed to close target {target_id}: {e}')
        self._target_ids.clear()

        try:
            await self._commands.target_dispose_browser_context(self._context_id)
            logger.info(f'Disposed browser context {self._context_id}')
        except CDPDriverError as e:
            logger.warning(f'Failed to dispose browser context {self._context_id}: {e}')
        finally:
            await self._connection.close()

    async def __aenter__(self) -> BrowserContext:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
