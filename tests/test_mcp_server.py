"""Tests for the MCP tool server.

The browser is replaced with mocks; these tests cover tool listing,
locator parsing, dispatch to the driver and lazy start-up and teardown.
"""

from unittest.mock import AsyncMock, MagicMock

import mcp.types as types
import pytest

from cdpdriver.actor.locator import LocatorType
from cdpdriver.actor.wrappers import LoggingDriver, NaturalLanguageDriver
from cdpdriver.mcp import server as mcp_server_module
from cdpdriver.mcp.server import CdpDriverServer, parse_locator


@pytest.fixture()
def fake_driver():
    driver = AsyncMock()
    driver.closed = False
    driver.get_current_url.return_value = "https://example.com/"
    return driver


@pytest.fixture()
def mcp_server(fake_driver):
    """A server whose driver is already running."""
    server = CdpDriverServer(resolver=MagicMock())
    server.driver = fake_driver
    return server


# ===========================================================================
# Locator arguments
# ===========================================================================


class TestParseLocator:
    """Tests for the locator argument."""

    @pytest.mark.parametrize(
        ("by", "expected"),
        [
            ("id", LocatorType.ID),
            ("css", LocatorType.CSS),
            ("XPATH", LocatorType.XPATH),
            ("natural_language", LocatorType.NATURAL_LANGUAGE),
        ],
    )
    def test_strategies(self, by, expected):
        locator = parse_locator({"locator": {"by": by, "value": "#go"}})
        assert locator.type is expected
        assert locator.locator == "#go"
        assert locator.name == "#go"

    def test_optional_name(self):
        assert parse_locator({"name": "Go button", "locator": {"by": "css", "value": "#go"}}).name == "Go button"

    @pytest.mark.parametrize(
        "arguments",
        [
            {},
            {"locator": "#go"},
            {"locator": {"by": "link_text", "value": "Go"}},
            {"locator": {"by": "css", "value": ""}},
        ],
    )
    def test_invalid_locators(self, arguments):
        with pytest.raises(ValueError):
            parse_locator(arguments)


# ===========================================================================
# Tools
# ===========================================================================


class TestTools:
    """Tests for tool listing and dispatch."""

    def test_tool_names(self, mcp_server):
        names = {tool.name for tool in mcp_server.list_tools()}
        assert {"navigate", "click", "type", "get_text", "press_key", "take_screenshot", "close_browser"} <= names

    def test_handlers_registered_on_low_level_server(self, mcp_server):
        """list_tools and call_tool handlers are installed on the mcp Server."""
        handlers = mcp_server.server.request_handlers
        assert types.ListToolsRequest in handlers
        assert types.CallToolRequest in handlers

    @pytest.mark.asyncio
    async def test_navigate(self, mcp_server, fake_driver):
        result = await mcp_server._execute_tool("navigate", {"url": "https://example.com/"})
        fake_driver.navigate.assert_awaited_once_with("https://example.com/")
        assert result == "Navigated to: https://example.com/"

    @pytest.mark.asyncio
    async def test_click(self, mcp_server, fake_driver):
        element = AsyncMock()
        fake_driver.find_element.return_value = element

        await mcp_server._execute_tool("click", {"locator": {"by": "css", "value": "#go"}})

        (by,), _ = fake_driver.find_element.await_args
        assert by.type is LocatorType.CSS
        element.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_type_with_clear(self, mcp_server, fake_driver):
        element = AsyncMock()
        fake_driver.find_element.return_value = element

        result = await mcp_server._execute_tool(
            "type", {"locator": {"by": "id", "value": "q"}, "text": "cdp", "clear": True}
        )

        element.clear.assert_awaited_once()
        element.send_keys.assert_awaited_once_with("cdp")
        assert result.startswith("Typed 3 characters")

    @pytest.mark.asyncio
    async def test_get_text(self, mcp_server, fake_driver):
        element = AsyncMock()
        element.get_text.return_value = "Welcome"
        fake_driver.find_element.return_value = element
        assert await mcp_server._execute_tool("get_text", {"locator": {"by": "css", "value": "h1"}}) == "Welcome"

    @pytest.mark.asyncio
    async def test_press_key(self, mcp_server, fake_driver):
        await mcp_server._execute_tool("press_key", {"key": "Enter"})
        fake_driver.key_press.assert_awaited_once_with("Enter")

    @pytest.mark.asyncio
    async def test_unknown_tool(self, mcp_server):
        assert await mcp_server._execute_tool("teleport", {}) == "Unknown tool: teleport"


# ===========================================================================
# Browser lifecycle
# ===========================================================================


class TestLifecycle:
    """Tests for lazy start-up and teardown."""

    @pytest.mark.asyncio
    async def test_first_call_launches_browser(self, monkeypatch, fake_driver):
        context = AsyncMock()
        context.new_driver.return_value = fake_driver
        browser = AsyncMock()
        browser.new_context.return_value = context
        launcher = MagicMock()
        launcher.return_value.launch = AsyncMock(return_value=browser)
        monkeypatch.setattr(mcp_server_module, "BrowserLauncher", launcher)

        server = CdpDriverServer(resolver=MagicMock())
        await server._execute_tool("get_page_title", {})

        assert isinstance(server.driver, NaturalLanguageDriver)
        assert isinstance(server.driver.inner, LoggingDriver)
        assert server.driver.inner.inner is fake_driver
        fake_driver.get_title.assert_awaited_once()

        await server._execute_tool("close_browser", {})
        context.close.assert_awaited_once()
        browser.close.assert_awaited_once()
        assert server.driver is None
        assert server.browser is None
