"""Element handles backed by the page-side reference table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cdpdriver.actor import scripts
from cdpdriver.actor.locator import By
from cdpdriver.actor.utils import wait_until
from cdpdriver.actor.views import Dimension, Point, Rect

if TYPE_CHECKING:
    from cdpdriver.actor.driver import Driver

logger = logging.getLogger(__name__)


class Element:
    """A handle to a DOM node, identified only by its reference id.

    The handle owns nothing in the page; the page's reference table holds the
    node. Once the page navigates or the node is detached and swept, every
    operation raises :class:`~cdpdriver.exceptions.StaleReference`.

    Two handles are equal when their reference ids are equal, regardless of
    the locator or parent they were found through.
    """

    def __init__(self, driver: Driver, by: By, reference_id: str, parent: Element | None = None):
        self._driver = driver
        self._by = by
        self._reference_id = reference_id
        self._parent = parent

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def by(self) -> By:
        return self._by

    @property
    def reference_id(self) -> str:
        return self._reference_id

    @property
    def parent(self) -> Element | None:
        return self._parent

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Element):
            return NotImplemented
        return self._reference_id == other._reference_id

    def __hash__(self) -> int:
        return hash(self._reference_id)

    def __str__(self) -> str:
        if self._parent is None:
            return str(self._by)
        return f'{self._parent} --> {self._by}'

    def __repr__(self) -> str:
        return f'Element({self._by.name!r}, reference_id={self._reference_id!r})'

    async def _run(self, template: str, *args: Any) -> Any:
        return await self._driver.evaluate(template % (scripts.js_string(self._reference_id), *args))

    # Child lookup

    async def find_element(self, by: By, timeout: float | None = None) -> Element:
        """Return the first descendant matching ``by``.

        Raises:
            NotFound: Nothing matched within the timeout.
        """
        return await self._driver._find_first(by, timeout, parent=self)

    async def find_elements(self, by: By, timeout: float | None = None) -> list[Element]:
        return await self._driver._locate(by, timeout, parent=self)

    async def is_element_present(self, by: By, timeout: float = 1.0) -> bool:
        return bool(await self.find_elements(by, timeout))

    # Queries

    async def get_text(self) -> str:
        return await self._run(scripts.GET_INNER_TEXT)

    async def get_attribute(self, name: str) -> str | None:
        return await self._run(scripts.GET_ATTRIBUTE, scripts.js_string(name))

    async def get_css_value(self, property_name: str) -> str:
        return await self._run(scripts.GET_CSS_VALUE, scripts.js_string(property_name))

    async def get_rect(self) -> Rect:
        """Bounding client rect in viewport coordinates."""
        return Rect(**await self._run(scripts.GET_RECT))

    async def get_location(self) -> Point:
        return (await self.get_rect()).point

    async def get_size(self) -> Dimension:
        return (await self.get_rect()).dimension

    async def get_center_location(self) -> Point:
        """Center of the part of the element inside the viewport."""
        return Point(**await self._run(scripts.IN_VIEW_CENTER_POINT))

    async def get_scroll_height(self) -> int:
        return await self._run(scripts.GET_SCROLL_HEIGHT)

    async def get_scroll_left(self) -> float:
        return await self._run(scripts.GET_SCROLL_LEFT)

    async def get_scroll_top(self) -> float:
        return await self._run(scripts.GET_SCROLL_TOP)

    async def is_displayed(self) -> bool:
        return bool(await self._run(scripts.IS_DISPLAYED))

    async def is_enabled(self) -> bool:
        return bool(await self._run(scripts.IS_ENABLED))

    async def is_selected(self) -> bool:
        return bool(await self._run(scripts.IS_SELECTED))

    async def is_element_obscured(self) -> bool:
        """True when another element sits on top of this one at its center point."""
        center = await self.get_center_location()
        return bool(await self._run(scripts.IS_ELEMENT_OBSCURED, center.x, center.y))

    async def is_element_actionable(self, timeout: float | None = None) -> bool:
        """Poll until the element is displayed, enabled and not obscured."""
        timeout = self._driver.default_timeout if timeout is None else timeout

        async def actionable() -> bool:
            return (
                await self.is_displayed()
                and await self.is_enabled()
                and not await self.is_element_obscured()
            )

        return await wait_until(actionable, timeout, self._driver.polling_interval)

    # Actions

    async def scroll_by(self, x: float, y: float) -> None:
        await self._run(scripts.SCROLL_BY, x, y)

    async def scroll_into_view(self) -> None:
        await self._run(scripts.SCROLL_INTO_VIEW)

    async def clear(self) -> None:
        await self._run(scripts.CLEAR_VALUE)

    async def send_keys(self, text: str) -> None:
        """Append ``text`` to the element's value and fire input/change events."""
        await self._run(scripts.APPEND_VALUE, scripts.js_string(text))

    async def _prepare_pointer(self) -> Point:
        await self.scroll_into_view()
        center = await self.get_center_location()
        if not await self.is_element_actionable():
            logger.warning(f'{self} is not actionable (hidden, disabled or obscured); dispatching anyway')
        return center

    async def click(self) -> None:
        center = await self._prepare_pointer()
        await self._driver.mouse.click(center.x, center.y, 'left', 1, self._driver.modifiers)
        logger.debug(f'Clicked {self} at ({center.x}, {center.y})')

    async def double_click(self) -> None:
        center = await self._prepare_pointer()
        await self._driver.mouse.click(center.x, center.y, 'left', 2, self._driver.modifiers)

    async def mouse_move(self, x_offset: float = 0, y_offset: float = 0) -> None:
        """Move the pointer to the element's center plus an offset."""
        center = await self._prepare_pointer()
        await self._driver.mouse.move(center.x + x_offset, center.y + y_offset, self._driver.modifiers)

    async def drag_drop(self, x_offset: float, y_offset: float) -> None:
        """Press on the element's center, move by the offset and release."""
        center = await self._prepare_pointer()
        await self._driver.mouse.drag(
            center.x, center.y, center.x + x_offset, center.y + y_offset, self._driver.modifiers
        )

    async def capture_screenshot(self) -> str:
        """Capture just this element as a base64-encoded PNG.

        Returns an empty string for an element with no area.
        """
        await self.scroll_into_view()
        rect = Rect(**await self._run(scripts.GET_DOCUMENT_RECT))
        if rect.width <= 0 or rect.height <= 0:
            logger.debug(f'{self} has no area; skipping screenshot')
            return ''
        result = await self._driver.commands.page_capture_screenshot(
            'png', clip={'x': rect.x, 'y': rect.y, 'width': rect.width, 'height': rect.height}
        )
        return result['data']
