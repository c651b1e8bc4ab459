"""Typed helpers for the CDP commands used by the driver.

Each helper builds the parameter object, performs exactly one round trip
and returns the ``result`` object. Any transport failure is re-raised as
:class:`~cdpdriver.exceptions.CommandFailed` carrying the method and params.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from cdpdriver.config import CONFIG
from cdpdriver.exceptions import CDPDriverError, CommandFailed

if TYPE_CHECKING:
    from cdpdriver.cdp.connection import CDPConnection

logger = logging.getLogger(__name__)

MouseEventType = Literal['mousePressed', 'mouseReleased', 'mouseMoved', 'mouseWheel']
KeyEventType = Literal['keyDown', 'keyUp', 'rawKeyDown', 'char']
MouseButton = Literal['none', 'left', 'middle', 'right', 'back', 'forward']
WindowState = Literal['normal', 'minimized', 'maximized', 'fullscreen']


class CDPCommands:
    """One method per protocol command, sharing a default timeout."""

    def __init__(self, connection: CDPConnection, default_timeout: float | None = None):
        self.connection = connection
        self.default_timeout = default_timeout if default_timeout is not None else CONFIG.CDPDRIVER_COMMAND_TIMEOUT

    async def execute(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Send a raw command through the connection.

        Raises:
            CommandFailed: The command timed out, was rejected, or the connection closed.
        """
        try:
            return await self.connection.send(
                method, params, timeout if timeout is not None else self.default_timeout
            )
        except CDPDriverError as e:
            logger.debug(f'{method} failed: {e}')
            raise CommandFailed(method, params, e) from e

    # Browser

    async def browser_get_version(self) -> dict[str, Any]:
        return await self.execute('Browser.getVersion')

    async def browser_close(self) -> dict[str, Any]:
        return await self.execute('Browser.close')

    async def browser_get_window_for_target(self, target_id: str | None = None) -> dict[str, Any]:
        params = {'targetId': target_id} if target_id else {}
        return await self.execute('Browser.getWindowForTarget', params)

    async def browser_get_window_bounds(self, window_id: int) -> dict[str, Any]:
        return await self.execute('Browser.getWindowBounds', {'windowId': window_id})

    async def browser_set_window_bounds(self, window_id: int, bounds: dict[str, Any]) -> dict[str, Any]:
        """Set window bounds.

        ``left``/``top``/``width``/``height`` may only be combined with
        ``windowState`` ``'normal'``; the browser rejects any other mix.
        """
        return await self.execute('Browser.setWindowBounds', {'windowId': window_id, 'bounds': bounds})

    # DOM

    async def dom_enable(self) -> dict[str, Any]:
        return await self.execute('DOM.enable')

    async def dom_disable(self) -> dict[str, Any]:
        return await self.execute('DOM.disable')

    async def dom_get_document(self, depth: int = 1, pierce: bool = False) -> dict[str, Any]:
        return await self.execute('DOM.getDocument', {'depth': depth, 'pierce': pierce})

    async def dom_describe_node(self, node_id: int, depth: int = 1) -> dict[str, Any]:
        return await self.execute('DOM.describeNode', {'nodeId': node_id, 'depth': depth})

    async def dom_query_selector(self, node_id: int, selector: str) -> dict[str, Any]:
        return await self.execute('DOM.querySelector', {'nodeId': node_id, 'selector': selector})

    async def dom_query_selector_all(self, node_id: int, selector: str) -> dict[str, Any]:
        return await self.execute('DOM.querySelectorAll', {'nodeId': node_id, 'selector': selector})

    async def dom_get_attributes(self, node_id: int) -> dict[str, Any]:
        return await self.execute('DOM.getAttributes', {'nodeId': node_id})

    async def dom_get_box_model(self, node_id: int) -> dict[str, Any]:
        return await self.execute('DOM.getBoxModel', {'nodeId': node_id})

    async def dom_get_outer_html(self, node_id: int) -> dict[str, Any]:
        return await self.execute('DOM.getOuterHTML', {'nodeId': node_id})

    async def dom_get_node_for_location(self, x: int, y: int) -> dict[str, Any]:
        return await self.execute('DOM.getNodeForLocation', {'x': x, 'y': y})

    async def dom_focus(self, node_id: int) -> dict[str, Any]:
        return await self.execute('DOM.focus', {'nodeId': node_id})

    # Input

    async def input_dispatch_key_event(
        self,
        event_type: KeyEventType,
        modifiers: int = 0,
        text: str | None = None,
        key_identifier: str | None = None,
        code: str | None = None,
        key: str | None = None,
        windows_virtual_key_code: int | None = None,
        native_virtual_key_code: int | None = None,
    ) -> dict[str, Any]:
        """Dispatch a key event.

        Args:
            event_type: ``keyDown``, ``keyUp``, ``rawKeyDown`` or ``char``.
            modifiers: Bitmask of held modifiers (Alt=1, Control=2, Meta=4, Shift=8).
            text: Text generated by the key, if any.
            key_identifier: Legacy key identifier.
            code: Physical key code, e.g. ``KeyA``.
            key: Logical key value, e.g. ``a``.
            windows_virtual_key_code: Windows virtual key code.
            native_virtual_key_code: Native virtual key code.
        """
        params: dict[str, Any] = {'type': event_type, 'modifiers': modifiers}
        optional = {
            'text': text,
            'keyIdentifier': key_identifier,
            'code': code,
            'key': key,
            'windowsVirtualKeyCode': windows_virtual_key_code,
            'nativeVirtualKeyCode': native_virtual_key_code,
        }
        params.update({name: value for name, value in optional.items() if value is not None})
        return await self.execute('Input.dispatchKeyEvent', params)

    async def input_dispatch_mouse_event(
        self,
        event_type: MouseEventType,
        x: float,
        y: float,
        modifiers: int = 0,
        button: MouseButton = 'none',
        click_count: int = 0,
    ) -> dict[str, Any]:
        return await self.execute(
            'Input.dispatchMouseEvent',
            {
                'type': event_type,
                'x': x,
                'y': y,
                'modifiers': modifiers,
                'button': button,
                'clickCount': click_count,
            },
        )

    # Log

    async def log_enable(self) -> dict[str, Any]:
        return await self.execute('Log.enable')

    async def log_disable(self) -> dict[str, Any]:
        return await self.execute('Log.disable')

    async def log_clear(self) -> dict[str, Any]:
        return await self.execute('Log.clear')

    # Network

    async def network_enable(self) -> dict[str, Any]:
        return await self.execute('Network.enable')

    async def network_disable(self) -> dict[str, Any]:
        return await self.execute('Network.disable')

    async def network_clear_browser_cache(self) -> dict[str, Any]:
        return await self.execute('Network.clearBrowserCache')

    async def network_clear_browser_cookies(self) -> dict[str, Any]:
        return await self.execute('Network.clearBrowserCookies')

    async def network_get_response_body(self, request_id: str) -> dict[str, Any]:
        return await self.execute('Network.getResponseBody', {'requestId': request_id})

    # Overlay

    async def overlay_enable(self) -> dict[str, Any]:
        return await self.execute('Overlay.enable')

    async def overlay_disable(self) -> dict[str, Any]:
        return await self.execute('Overlay.disable')

    async def overlay_highlight_rect(self, x: int, y: int, width: int, height: int) -> dict[str, Any]:
        """Outline a rectangle in red."""
        return await self.execute(
            'Overlay.highlightRect',
            {
                'x': x,
                'y': y,
                'width': width,
                'height': height,
                'color': {'r': 255, 'g': 0, 'b': 0, 'a': 0.0},
                'outlineColor': {'r': 255, 'g': 0, 'b': 0, 'a': 1.0},
            },
        )

    async def overlay_hide_highlight(self) -> dict[str, Any]:
        return await self.execute('Overlay.hideHighlight')

    # Page

    async def page_enable(self) -> dict[str, Any]:
        return await self.execute('Page.enable')

    async def page_disable(self) -> dict[str, Any]:
        return await self.execute('Page.disable')

    async def page_navigate(self, url: str) -> dict[str, Any]:
        return await self.execute('Page.navigate', {'url': url})

    async def page_reload(self, ignore_cache: bool = False) -> dict[str, Any]:
        return await self.execute('Page.reload', {'ignoreCache': ignore_cache})

    async def page_close(self) -> dict[str, Any]:
        return await self.execute('Page.close')

    async def page_bring_to_front(self) -> dict[str, Any]:
        return await self.execute('Page.bringToFront')

    async def page_capture_screenshot(
        self,
        image_format: Literal['png', 'jpeg', 'webp'] = 'png',
        clip: dict[str, float] | None = None,
    ) -> dict[str, Any]:
        """Capture the viewport, or a clipped region when ``clip`` is given.

        ``clip`` carries ``x``, ``y``, ``width`` and ``height``; ``scale``
        defaults to 1.
        """
        params: dict[str, Any] = {'format': image_format}
        if clip is not None:
            params['clip'] = {'scale': 1, **clip}
        return await self.execute('Page.captureScreenshot', params)

    async def page_add_script_to_evaluate_on_new_document(self, source: str) -> dict[str, Any]:
        return await self.execute('Page.addScriptToEvaluateOnNewDocument', {'source': source})

    async def page_get_navigation_history(self) -> dict[str, Any]:
        return await self.execute('Page.getNavigationHistory')

    async def page_navigate_to_history_entry(self, entry_id: int) -> dict[str, Any]:
        return await self.execute('Page.navigateToHistoryEntry', {'entryId': entry_id})

    # Performance

    async def performance_enable(self) -> dict[str, Any]:
        return await self.execute('Performance.enable')

    async def performance_disable(self) -> dict[str, Any]:
        return await self.execute('Performance.disable')

    async def performance_get_metrics(self) -> dict[str, Any]:
        return await self.execute('Performance.getMetrics')

    # Runtime

    async def runtime_enable(self) -> dict[str, Any]:
        return await self.execute('Runtime.enable')

    async def runtime_disable(self) -> dict[str, Any]:
        return await self.execute('Runtime.disable')

    async def runtime_evaluate(
        self,
        expression: str,
        return_by_value: bool = True,
        await_promise: bool = False,
    ) -> dict[str, Any]:
        return await self.execute(
            'Runtime.evaluate',
            {'expression': expression, 'returnByValue': return_by_value, 'awaitPromise': await_promise},
        )

    # SystemInfo

    async def system_info_get_info(self) -> dict[str, Any]:
        return await self.execute('SystemInfo.getInfo')

    # Target

    async def target_get_targets(self) -> dict[str, Any]:
        return await self.execute('Target.getTargets')

    async def target_create_target(self, url: str = 'about:blank', browser_context_id: str | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {'url': url}
        if browser_context_id:
            params['browserContextId'] = browser_context_id
        return await self.execute('Target.createTarget', params)

    async def target_close_target(self, target_id: str) -> dict[str, Any]:
        return await self.execute('Target.closeTarget', {'targetId': target_id})

    async def target_activate_target(self, target_id: str) -> dict[str, Any]:
        return await self.execute('Target.activateTarget', {'targetId': target_id})

    async def target_create_browser_context(self, dispose_on_detach: bool = False) -> dict[str, Any]:
        return await self.execute('Target.createBrowserContext', {'disposeOnDetach': dispose_on_detach})

    async def target_dispose_browser_context(self, browser_context_id: str) -> dict[str, Any]:
        return await self.execute('Target.disposeBrowserContext', {'browserContextId': browser_context_id})
