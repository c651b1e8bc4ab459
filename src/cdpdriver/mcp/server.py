"""MCP server that exposes a cdpdriver browser as tools over stdio.

The browser is launched lazily on the first tool call: a fresh profile, one
isolated browser context and one page. Element arguments take a locator
object, for example ``{"by": "css", "value": "#submit"}`` or
``{"by": "natural_language", "value": "the search button"}``.

Usage in an MCP client configuration:
    {
        "mcpServers": {
            "cdpdriver": {"command": "cdpdriver", "args": ["mcp"]}
        }
    }
"""

import logging
import sys
from typing import Any

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from cdpdriver import __version__
from cdpdriver.actor import By, LoggingDriver, NaturalLanguageDriver
from cdpdriver.browser import BrowserContext, BrowserLauncher, LaunchedBrowser, LaunchProfile
from cdpdriver.llm import LocatorResolver, OllamaLocatorResolver
from cdpdriver.logging_config import setup_logging

logger = logging.getLogger(__name__)

SERVER_NAME = 'cdpdriver'

LOCATOR_SCHEMA = {
	'type': 'object',
	'description': 'How to find the element',
	'properties': {
		'by': {
			'type': 'string',
			'enum': ['id', 'css', 'xpath', 'natural_language'],
			'description': 'Locator strategy',
		},
		'value': {'type': 'string', 'description': 'Element id, CSS selector, XPath, or a plain-English description'},
	},
	'required': ['by', 'value'],
}

_LOCATOR_FACTORIES = {
	'id': By.id,
	'css': By.css,
	'xpath': By.xpath,
	'natural_language': By.natural_language,
}


def parse_locator(arguments: dict[str, Any]) -> By:
	"""Build a :class:`By` from a tool's ``locator`` argument.

	Raises:
		ValueError: The argument is missing or uses an unknown strategy.
	"""
	locator = arguments.get('locator')
	if not isinstance(locator, dict):
		raise ValueError('A "locator" object with "by" and "value" is required')
	strategy = str(locator.get('by', '')).lower()
	value = locator.get('value')
	if strategy not in _LOCATOR_FACTORIES:
		raise ValueError(f'Unknown locator strategy {strategy!r}; use one of {sorted(_LOCATOR_FACTORIES)}')
	if not value:
		raise ValueError('Locator "value" must not be empty')
	return _LOCATOR_FACTORIES[strategy](str(arguments.get('name') or value), str(value))


class CdpDriverServer:
	"""MCP Server for cdpdriver capabilities."""

	def __init__(self, profile: LaunchProfile | None = None, resolver: LocatorResolver | None = None):
		self.server = Server(SERVER_NAME)
		self.profile = profile or LaunchProfile()
		self._resolver = resolver
		self.browser: LaunchedBrowser | None = None
		self.context: BrowserContext | None = None
		self.driver: NaturalLanguageDriver | None = None

		self._setup_handlers()

	def _setup_handlers(self):
		"""Setup MCP server handlers."""

		@self.server.list_tools()
		async def handle_list_tools() -> list[types.Tool]:
			"""List all available cdpdriver tools."""
			return self.list_tools()

		@self.server.call_tool()
		async def handle_call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
			"""Handle tool execution."""
			try:
				result = await self._execute_tool(name, arguments or {})
				return [types.TextContent(type='text', text=result)]
			except Exception as e:
				logger.error(f'Tool execution failed: {e}', exc_info=True)
				return [types.TextContent(type='text', text=f'Error: {str(e)}')]

	def list_tools(self) -> list[types.Tool]:
		return [
			types.Tool(
				name='navigate',
				description='Navigate the page to an absolute URL and wait for it to load',
				inputSchema={
					'type': 'object',
					'properties': {'url': {'type': 'string', 'description': 'Absolute URL (scheme://...)'}},
					'required': ['url'],
				},
			),
			types.Tool(
				name='click',
				description='Click an element',
				inputSchema={
					'type': 'object',
					'properties': {'locator': LOCATOR_SCHEMA},
					'required': ['locator'],
				},
			),
			types.Tool(
				name='type',
				description='Click an element and type ASCII letters and digits into it',
				inputSchema={
					'type': 'object',
					'properties': {
						'locator': LOCATOR_SCHEMA,
						'text': {'type': 'string', 'description': 'Text to type'},
						'clear': {'type': 'boolean', 'description': 'Clear the field first', 'default': False},
					},
					'required': ['locator', 'text'],
				},
			),
			types.Tool(
				name='get_text',
				description='Get the visible text of an element',
				inputSchema={
					'type': 'object',
					'properties': {'locator': LOCATOR_SCHEMA},
					'required': ['locator'],
				},
			),
			types.Tool(
				name='press_key',
				description='Press and release a named key such as Enter, Tab or ArrowDown',
				inputSchema={
					'type': 'object',
					'properties': {'key': {'type': 'string', 'description': 'Key name'}},
					'required': ['key'],
				},
			),
			types.Tool(
				name='get_page_title',
				description='Get the title of the current page',
				inputSchema={'type': 'object', 'properties': {}},
			),
			types.Tool(
				name='get_current_url',
				description='Get the URL of the current page',
				inputSchema={'type': 'object', 'properties': {}},
			),
			types.Tool(
				name='get_page_source',
				description='Get the serialized HTML of the current page',
				inputSchema={'type': 'object', 'properties': {}},
			),
			types.Tool(
				name='take_screenshot',
				description='Capture the viewport as a base64-encoded PNG',
				inputSchema={'type': 'object', 'properties': {}},
			),
			types.Tool(
				name='go_back',
				description='Go back in history',
				inputSchema={'type': 'object', 'properties': {}},
			),
			types.Tool(
				name='go_forward',
				description='Go forward in history',
				inputSchema={'type': 'object', 'properties': {}},
			),
			types.Tool(
				name='refresh',
				description='Reload the current page',
				inputSchema={'type': 'object', 'properties': {}},
			),
			types.Tool(
				name='close_browser',
				description='Close the browser; the next tool call launches a new one',
				inputSchema={'type': 'object', 'properties': {}},
			),
		]

	async def _execute_tool(self, tool_name: str, arguments: dict[str, Any]) -> str:
		"""Execute a cdpdriver tool."""
		if tool_name == 'close_browser':
			await self.close()
			return 'Browser closed'

		driver = await self._ensure_driver()

		if tool_name == 'navigate':
			await driver.navigate(arguments['url'])
			return f'Navigated to: {await driver.get_current_url()}'

		elif tool_name == 'click':
			element = await driver.find_element(parse_locator(arguments))
			await element.click()
			return f'Clicked {element}'

		elif tool_name == 'type':
			element = await driver.find_element(parse_locator(arguments))
			if arguments.get('clear'):
				await element.clear()
			await element.send_keys(arguments['text'])
			return f'Typed {len(arguments["text"])} characters into {element}'

		elif tool_name == 'get_text':
			element = await driver.find_element(parse_locator(arguments))
			return await element.get_text()

		elif tool_name == 'press_key':
			await driver.key_press(arguments['key'])
			return f'Pressed {arguments["key"]}'

		elif tool_name == 'get_page_title':
			return await driver.get_title()

		elif tool_name == 'get_current_url':
			return await driver.get_current_url()

		elif tool_name == 'get_page_source':
			return await driver.get_page_source()

		elif tool_name == 'take_screenshot':
			return await driver.capture_screenshot()

		elif tool_name == 'go_back':
			await driver.back()
			return f'Navigated back to: {await driver.get_current_url()}'

		elif tool_name == 'go_forward':
			await driver.forward()
			return f'Navigated forward to: {await driver.get_current_url()}'

		elif tool_name == 'refresh':
			await driver.refresh()
			return f'Reloaded: {await driver.get_current_url()}'

		return f'Unknown tool: {tool_name}'

	async def _ensure_driver(self) -> NaturalLanguageDriver:
		"""Launch the browser, context and page on first use."""
		if self.driver is not None and not self.driver.closed:
			return self.driver

		await self.close()
		logger.info('Starting browser for MCP session')
		self.browser = await BrowserLauncher(self.profile).launch()
		try:
			self.context = await self.browser.new_context()
			driver = await self.context.new_driver()
		except BaseException:
			await self.close()
			raise
		resolver = self._resolver or OllamaLocatorResolver()
		self.driver = NaturalLanguageDriver(LoggingDriver(driver), resolver)
		return self.driver

	async def close(self) -> None:
		"""Tear down the context and the browser process, if running."""
		self.driver = None
		if self.context is not None:
			await self.context.close()
			self.context = None
		if self.browser is not None:
			await self.browser.close()
			self.browser = None

	async def run(self):
		"""Run the MCP server on stdio until the client disconnects."""
		try:
			async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
				await self.server.run(
					read_stream,
					write_stream,
					InitializationOptions(
						server_name=SERVER_NAME,
						server_version=__version__,
						capabilities=self.server.get_capabilities(
							notification_options=NotificationOptions(),
							experimental_capabilities={},
						),
					),
				)
		finally:
			await self.close()


async def main(profile: LaunchProfile | None = None):
	# stdout carries JSON-RPC; every log line must go to stderr
	setup_logging(stream=sys.stderr, force_setup=True)
	server = CdpDriverServer(profile=profile)
	logger.info(f'cdpdriver MCP server {__version__} starting')
	await server.run()
