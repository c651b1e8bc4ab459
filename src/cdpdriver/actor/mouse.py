"""Mouse operations using Input.dispatchMouseEvent."""

import logging
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from cdpdriver.cdp.commands import CDPCommands

logger = logging.getLogger(__name__)

MouseButton = Literal['left', 'right', 'middle']


class Mouse:
    """Mouse operations for one page.

    Tracks the last pointer position so relative moves and drags start from
    where the pointer actually is.
    """

    def __init__(self, commands: 'CDPCommands'):
        self._commands = commands
        self._current_x: float = 0
        self._current_y: float = 0

    @property
    def position(self) -> tuple[float, float]:
        return self._current_x, self._current_y

    async def move(self, x: float, y: float, modifiers: int = 0) -> None:
        """Move the pointer to ``(x, y)`` with no button held."""
        await self._commands.input_dispatch_mouse_event(
            'mouseMoved', x, y, modifiers=modifiers, button='none', click_count=0
        )
        self._current_x = x
        self._current_y = y

    async def down(self, button: MouseButton = 'left', click_count: int = 1, modifiers: int = 0) -> None:
        await self._commands.input_dispatch_mouse_event(
            'mousePressed', self._current_x, self._current_y,
            modifiers=modifiers, button=button, click_count=click_count,
        )

    async def up(self, button: MouseButton = 'left', click_count: int = 1, modifiers: int = 0) -> None:
        await self._commands.input_dispatch_mouse_event(
            'mouseReleased', self._current_x, self._current_y,
            modifiers=modifiers, button=button, click_count=click_count,
        )

    async def click(
        self,
        x: float,
        y: float,
        button: MouseButton = 'left',
        click_count: int = 1,
        modifiers: int = 0,
    ) -> None:
        """Move to ``(x, y)`` and press/release ``click_count`` times.

        A double click is two press/release pairs, the second carrying
        ``clickCount`` 2, which is what the browser needs to fire ``dblclick``.

        Args:
            x: X coordinate in CSS pixels
            y: Y coordinate in CSS pixels
            button: Mouse button ('left', 'right', 'middle')
            click_count: Number of clicks (1 for single, 2 for double)
            modifiers: Modifier bitmask held during the click
        """
        await self.move(x, y, modifiers)
        for count in range(1, click_count + 1):
            await self.down(button, count, modifiers)
            await self.up(button, count, modifiers)

    async def drag(
        self,
        from_x: float,
        from_y: float,
        to_x: float,
        to_y: float,
        modifiers: int = 0,
    ) -> None:
        """Press at the start point, move to the end point and release there."""
        await self.move(from_x, from_y, modifiers)
        await self.down('left', 1, modifiers)
        await self._commands.input_dispatch_mouse_event(
            'mouseMoved', to_x, to_y, modifiers=modifiers, button='left', click_count=0
        )
        self._current_x = to_x
        self._current_y = to_y
        await self.up('left', 1, modifiers)
        logger.debug(f'Dragged from ({from_x}, {from_y}) to ({to_x}, {to_y})')
