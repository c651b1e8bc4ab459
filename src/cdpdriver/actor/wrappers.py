"""Composable wrappers around :class:`Driver` and :class:`Element`.

Each wrapper exposes the same operations as the object it wraps and
delegates explicitly. Wrappers stack, and elements returned through a
wrapped driver are wrapped the same way:

    >>> driver = LoggingDriver(NaturalLanguageDriver(raw_driver, OllamaLocatorResolver()))
    >>> button = await driver.find_element(By.natural_language('Submit', 'the blue submit button'))
    >>> await button.click()   # logged, and resolved through the LLM first
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from cdpdriver.actor.element import Element
from cdpdriver.actor.keys import Key
from cdpdriver.actor.locator import By, LocatorType
from cdpdriver.actor.views import Dimension, Point, Rect

if TYPE_CHECKING:
    from cdpdriver.actor.driver import Driver
    from cdpdriver.cdp.commands import CDPCommands
    from cdpdriver.cdp.network import NetworkCorrelator
    from cdpdriver.llm.base import LocatorResolver

logger = logging.getLogger(__name__)

T = TypeVar('T')


class DriverWrapper:
    """Base wrapper: forwards every driver operation through :meth:`_call`."""

    def __init__(self, inner: Driver | DriverWrapper):
        self._inner = inner

    @property
    def inner(self) -> Driver | DriverWrapper:
        return self._inner

    async def _call(self, name: str, operation: Callable[..., Awaitable[T]], *args: Any) -> T:
        return await operation(*args)

    def _wrap_element(self, element: Element | ElementWrapper) -> Element | ElementWrapper:
        return element

    # Settings and collaborators

    @property
    def default_timeout(self) -> float:
        return self._inner.default_timeout

    @default_timeout.setter
    def default_timeout(self, value: float) -> None:
        self._inner.default_timeout = value

    @property
    def page_load_timeout(self) -> float:
        return self._inner.page_load_timeout

    @page_load_timeout.setter
    def page_load_timeout(self, value: float) -> None:
        self._inner.page_load_timeout = value

    @property
    def polling_interval(self) -> float:
        return self._inner.polling_interval

    @polling_interval.setter
    def polling_interval(self, value: float) -> None:
        self._inner.polling_interval = value

    @property
    def modifiers(self) -> int:
        return self._inner.modifiers

    @property
    def target_id(self) -> str | None:
        return self._inner.target_id

    @property
    def closed(self) -> bool:
        return self._inner.closed

    @property
    def commands(self) -> CDPCommands:
        return self._inner.commands

    @property
    def network(self) -> NetworkCorrelator:
        return self._inner.network

    # Navigation and page queries

    async def navigate(self, url: str) -> None:
        return await self._call('navigate', self._inner.navigate, url)

    async def get(self, url: str) -> None:
        return await self.navigate(url)

    async def wait_for_document_ready(self, timeout: float | None = None) -> bool:
        return await self._call('wait_for_document_ready', self._inner.wait_for_document_ready, timeout)

    async def back(self) -> None:
        return await self._call('back', self._inner.back)

    async def forward(self) -> None:
        return await self._call('forward', self._inner.forward)

    async def refresh(self) -> None:
        return await self._call('refresh', self._inner.refresh)

    async def get_current_url(self) -> str:
        return await self._call('get_current_url', self._inner.get_current_url)

    async def get_title(self) -> str:
        return await self._call('get_title', self._inner.get_title)

    async def get_page_source(self) -> str:
        return await self._call('get_page_source', self._inner.get_page_source)

    async def capture_screenshot(self) -> str:
        return await self._call('capture_screenshot', self._inner.capture_screenshot)

    async def evaluate(self, expression: str, await_promise: bool = False) -> Any:
        return await self._call('evaluate', self._inner.evaluate, expression, await_promise)

    async def sleep(self, seconds: float) -> None:
        return await self._call('sleep', self._inner.sleep, seconds)

    async def start_network(self) -> NetworkCorrelator:
        return await self._call('start_network', self._inner.start_network)

    # Element lookup

    async def find_element(self, by: By, timeout: float | None = None) -> Element | ElementWrapper:
        return self._wrap_element(await self._call('find_element', self._inner.find_element, by, timeout))

    async def find_elements(self, by: By, timeout: float | None = None) -> list[Element | ElementWrapper]:
        elements = await self._call('find_elements', self._inner.find_elements, by, timeout)
        return [self._wrap_element(element) for element in elements]

    async def is_element_present(self, by: By, timeout: float = 1.0) -> bool:
        return await self._call('is_element_present', self._inner.is_element_present, by, timeout)

    # Keyboard

    async def key_down(self, key: Key | str) -> None:
        return await self._call('key_down', self._inner.key_down, key)

    async def key_up(self, key: Key | str) -> None:
        return await self._call('key_up', self._inner.key_up, key)

    async def key_press(self, key: Key | str) -> None:
        return await self._call('key_press', self._inner.key_press, key)

    async def send_keys(self, text: str) -> None:
        return await self._call('send_keys', self._inner.send_keys, text)

    # Windows

    async def get_window_handle(self) -> str | None:
        return await self._call('get_window_handle', self._inner.get_window_handle)

    async def get_window_handles(self) -> list[str]:
        return await self._call('get_window_handles', self._inner.get_window_handles)

    async def switch_to_window(self, handle: str) -> None:
        return await self._call('switch_to_window', self._inner.switch_to_window, handle)

    async def close_window(self) -> None:
        return await self._call('close_window', self._inner.close_window)

    async def close_tab(self) -> None:
        return await self._call('close_tab', self._inner.close_tab)

    async def close_browser(self) -> None:
        return await self._call('close_browser', self._inner.close_browser)

    async def get_window_rect(self) -> Rect:
        return await self._call('get_window_rect', self._inner.get_window_rect)

    async def set_window_rect(self, rect: Rect) -> None:
        return await self._call('set_window_rect', self._inner.set_window_rect, rect)

    async def maximize_window(self) -> None:
        return await self._call('maximize_window', self._inner.maximize_window)

    async def minimize_window(self) -> None:
        return await self._call('minimize_window', self._inner.minimize_window)

    async def full_screen_window(self) -> None:
        return await self._call('full_screen_window', self._inner.full_screen_window)

    # Lifecycle

    async def close(self) -> None:
        return await self._call('close', self._inner.close)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class ElementWrapper:
    """Base element wrapper; children it finds are wrapped by ``driver``."""

    def __init__(self, inner: Element | ElementWrapper, driver: DriverWrapper):
        self._inner = inner
        self._driver = driver

    @property
    def inner(self) -> Element | ElementWrapper:
        return self._inner

    @property
    def driver(self) -> DriverWrapper:
        return self._driver

    @property
    def by(self) -> By:
        return self._inner.by

    @property
    def reference_id(self) -> str:
        return self._inner.reference_id

    @property
    def parent(self) -> Element | ElementWrapper | None:
        return self._inner.parent

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (Element, ElementWrapper)):
            return NotImplemented
        return self.reference_id == other.reference_id

    def __hash__(self) -> int:
        return hash(self.reference_id)

    def __str__(self) -> str:
        return str(self._inner)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._inner!r})'

    async def _call(self, name: str, operation: Callable[..., Awaitable[T]], *args: Any) -> T:
        return await operation(*args)

    async def find_element(self, by: By, timeout: float | None = None) -> Element | ElementWrapper:
        return self._driver._wrap_element(await self._call('find_element', self._inner.find_element, by, timeout))

    async def find_elements(self, by: By, timeout: float | None = None) -> list[Element | ElementWrapper]:
        elements = await self._call('find_elements', self._inner.find_elements, by, timeout)
        return [self._driver._wrap_element(element) for element in elements]

    async def is_element_present(self, by: By, timeout: float = 1.0) -> bool:
        return await self._call('is_element_present', self._inner.is_element_present, by, timeout)

    async def get_text(self) -> str:
        return await self._call('get_text', self._inner.get_text)

    async def get_attribute(self, name: str) -> str | None:
        return await self._call('get_attribute', self._inner.get_attribute, name)

    async def get_css_value(self, property_name: str) -> str:
        return await self._call('get_css_value', self._inner.get_css_value, property_name)

    async def get_rect(self) -> Rect:
        return await self._call('get_rect', self._inner.get_rect)

    async def get_location(self) -> Point:
        return await self._call('get_location', self._inner.get_location)

    async def get_size(self) -> Dimension:
        return await self._call('get_size', self._inner.get_size)

    async def get_center_location(self) -> Point:
        return await self._call('get_center_location', self._inner.get_center_location)

    async def get_scroll_height(self) -> int:
        return await self._call('get_scroll_height', self._inner.get_scroll_height)

    async def get_scroll_left(self) -> float:
        return await self._call('get_scroll_left', self._inner.get_scroll_left)

    async def get_scroll_top(self) -> float:
        return await self._call('get_scroll_top', self._inner.get_scroll_top)

    async def is_displayed(self) -> bool:
        return await self._call('is_displayed', self._inner.is_displayed)

    async def is_enabled(self) -> bool:
        return await self._call('is_enabled', self._inner.is_enabled)

    async def is_selected(self) -> bool:
        return await self._call('is_selected', self._inner.is_selected)

    async def is_element_obscured(self) -> bool:
        return await self._call('is_element_obscured', self._inner.is_element_obscured)

    async def is_element_actionable(self, timeout: float | None = None) -> bool:
        return await self._call('is_element_actionable', self._inner.is_element_actionable, timeout)

    async def scroll_by(self, x: float, y: float) -> None:
        return await self._call('scroll_by', self._inner.scroll_by, x, y)

    async def scroll_into_view(self) -> None:
        return await self._call('scroll_into_view', self._inner.scroll_into_view)

    async def clear(self) -> None:
        return await self._call('clear', self._inner.clear)

    async def send_keys(self, text: str) -> None:
        return await self._call('send_keys', self._inner.send_keys, text)

    async def click(self) -> None:
        return await self._call('click', self._inner.click)

    async def double_click(self) -> None:
        return await self._call('double_click', self._inner.double_click)

    async def mouse_move(self, x_offset: float = 0, y_offset: float = 0) -> None:
        return await self._call('mouse_move', self._inner.mouse_move, x_offset, y_offset)

    async def drag_drop(self, x_offset: float, y_offset: float) -> None:
        return await self._call('drag_drop', self._inner.drag_drop, x_offset, y_offset)

    async def capture_screenshot(self) -> str:
        return await self._call('capture_screenshot', self._inner.capture_screenshot)


# Logging


async def _logged(label: str, name: str, operation: Callable[..., Awaitable[T]], args: tuple, level: int) -> T:
    rendered = ', '.join(repr(arg) for arg in args)
    logger.log(level, f'{label}.{name}({rendered})')
    start = time.monotonic()
    try:
        result = await operation(*args)
    except Exception as e:
        logger.warning(f'{label}.{name} failed after {time.monotonic() - start:.3f}s: {type(e).__name__}: {e}')
        raise
    logger.debug(f'{label}.{name} finished in {time.monotonic() - start:.3f}s')
    return result


class LoggingDriver(DriverWrapper):
    """Logs every driver call, its duration and any failure."""

    def __init__(self, inner: Driver | DriverWrapper, level: int = logging.INFO):
        super().__init__(inner)
        self._level = level

    async def _call(self, name: str, operation: Callable[..., Awaitable[T]], *args: Any) -> T:
        return await _logged('driver', name, operation, args, self._level)

    def _wrap_element(self, element: Element | ElementWrapper) -> LoggingElement:
        return LoggingElement(element, self, self._level)


class LoggingElement(ElementWrapper):
    """Logs every element call, labelled with the element's locator chain."""

    def __init__(self, inner: Element | ElementWrapper, driver: DriverWrapper, level: int = logging.INFO):
        super().__init__(inner, driver)
        self._level = level

    async def _call(self, name: str, operation: Callable[..., Awaitable[T]], *args: Any) -> T:
        return await _logged(f'element {self.by.name}', name, operation, args, self._level)


# Natural-language locators


class NaturalLanguageDriver(DriverWrapper):
    """Rewrites NATURAL_LANGUAGE locators into CSS or XPath before delegating.

    The page source and the description go to ``resolver``; a selector
    starting with ``/`` becomes an XPATH locator, anything else CSS. The
    locator's name is kept so element names stay readable.
    """

    def __init__(self, inner: Driver | DriverWrapper, resolver: LocatorResolver):
        super().__init__(inner)
        self._resolver = resolver

    async def resolve(self, by: By) -> By:
        """Return ``by`` unchanged if it is structural, otherwise resolve it once."""
        if by.type is not LocatorType.NATURAL_LANGUAGE:
            return by
        html = await self._inner.get_page_source()
        selector = await self._resolver.resolve(html, by.locator)
        resolved = By.from_selector(by.name, selector)
        logger.info(f'Resolved {by.locator!r} to {resolved.type.value} {resolved.locator!r}')
        return resolved

    async def find_element(self, by: By, timeout: float | None = None) -> Element | ElementWrapper:
        return await super().find_element(await self.resolve(by), timeout)

    async def find_elements(self, by: By, timeout: float | None = None) -> list[Element | ElementWrapper]:
        return await super().find_elements(await self.resolve(by), timeout)

    async def is_element_present(self, by: By, timeout: float = 1.0) -> bool:
        return await super().is_element_present(await self.resolve(by), timeout)

    def _wrap_element(self, element: Element | ElementWrapper) -> NaturalLanguageElement:
        return NaturalLanguageElement(element, self)


class NaturalLanguageElement(ElementWrapper):
    """Element whose child lookups accept natural-language locators."""

    _driver: NaturalLanguageDriver

    async def find_element(self, by: By, timeout: float | None = None) -> Element | ElementWrapper:
        return await super().find_element(await self._driver.resolve(by), timeout)

    async def find_elements(self, by: By, timeout: float | None = None) -> list[Element | ElementWrapper]:
        return await super().find_elements(await self._driver.resolve(by), timeout)

    async def is_element_present(self, by: By, timeout: float = 1.0) -> bool:
        return await super().is_element_present(await self._driver.resolve(by), timeout)
