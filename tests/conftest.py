"""Pytest configuration and fixtures for the cdpdriver test suite.

Configuration:
    - Adds src/ directory to Python path for test imports
    - Keeps library logging out of the way unless a test captures it

Shared fakes:
    FakeConnection stands in for :class:`cdpdriver.cdp.connection.CDPConnection`
    in driver, element, command and correlator tests. It records every
    command and answers from per-method handlers.

    The ``cdp_server`` fixture runs a real local WebSocket server so the
    transport can be tested end to end without a browser.
"""

import asyncio
import inspect
import json
import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add the src directory to the path so tests can import cdpdriver without installing it
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

os.environ.setdefault("CDPDRIVER_SETUP_LOGGING", "false")

from cdpdriver.cdp.connection import Subscription  # noqa: E402
from cdpdriver.exceptions import TransportClosed  # noqa: E402

PAGE_ENDPOINT = "ws://127.0.0.1:9222/devtools/page/TARGET1"


# ---------------------------------------------------------------------------
# Result helpers
# ---------------------------------------------------------------------------


def evaluated(value):
    """Runtime.evaluate result carrying ``value``."""
    return {"result": {"type": type(value).__name__, "value": value}}


def thrown(description):
    """Runtime.evaluate result for a script that threw ``description``."""
    return {
        "result": {"type": "object", "subtype": "error"},
        "exceptionDetails": {"text": "Uncaught", "exception": {"description": description}},
    }


# ---------------------------------------------------------------------------
# Fake connection
# ---------------------------------------------------------------------------


class FakeConnection:
    """In-memory stand-in for CDPConnection.

    Handlers are keyed by method. A handler may be a dict (returned as the
    result), an exception instance (raised), or a callable taking the params
    and returning either of those, possibly as a coroutine.
    """

    def __init__(self, endpoint=PAGE_ENDPOINT):
        self.endpoint = endpoint
        self.sent = []
        self.handlers = {}
        self._subscriptions = []
        self.closed = False
        self.close_calls = 0

    def on(self, method, handler):
        self.handlers[method] = handler

    async def send(self, method, params=None, timeout=None):
        if self.closed:
            raise TransportClosed(f"Cannot send {method}: connection is closed")
        self.sent.append((method, params))
        handler = self.handlers.get(method, {})
        if callable(handler):
            handler = handler(params)
            if inspect.isawaitable(handler):
                handler = await handler
        if isinstance(handler, BaseException):
            raise handler
        return handler

    def subscribe(self, callback):
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription):
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self):
        return len(self._subscriptions)

    async def emit(self, method, params):
        """Deliver an event to every subscriber, like the delivery task does."""
        for subscription in list(self._subscriptions):
            outcome = subscription.callback({"method": method, "params": params})
            if inspect.isawaitable(outcome):
                await outcome

    async def close(self):
        self.close_calls += 1
        self.closed = True

    def methods(self):
        return [method for method, _ in self.sent]

    def params_for(self, method):
        return [params for sent_method, params in self.sent if sent_method == method]


@pytest.fixture()
def fake_connection():
    """A fresh FakeConnection for the page TARGET1."""
    return FakeConnection()


# ---------------------------------------------------------------------------
# Local WebSocket server
# ---------------------------------------------------------------------------


class ScriptedServer:
    """A WebSocket server whose replies are decided by ``handler``.

    ``handler(message, websocket)`` is awaited for every frame the client
    sends; by default it echoes ``{"id": ..., "result": {}}``.
    """

    def __init__(self):
        self.received = []
        self.connections = []
        self.handler = self.echo
        self.url = None

    @staticmethod
    async def echo(message, websocket):
        await websocket.send(json.dumps({"id": message["id"], "result": {}}))

    async def serve(self, websocket):
        self.connections.append(websocket)
        async for raw in websocket:
            message = json.loads(raw)
            self.received.append(message)
            await self.handler(message, websocket)


@pytest_asyncio.fixture()
async def cdp_server():
    """A running ScriptedServer on a free local port."""
    from websockets.asyncio.server import serve

    scripted = ScriptedServer()
    async with serve(scripted.serve, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        scripted.url = f"ws://127.0.0.1:{port}/devtools/page/TARGET1"
        yield scripted
        for websocket in scripted.connections:
            await websocket.close()
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Browser availability
# ---------------------------------------------------------------------------


def browser_available():
    """True when a Chromium-family browser can be found on this machine."""
    from cdpdriver.browser.launcher import find_browser
    from cdpdriver.exceptions import LaunchFailure

    try:
        find_browser()
    except LaunchFailure:
        return False
    return True


# ---------------------------------------------------------------------------
# Page scripting for driver and element tests
# ---------------------------------------------------------------------------


class PageScripts:
    """Answers Runtime.evaluate by matching a fragment of the expression.

    ``page.when("getClientRects", {"x": 1, "y": 2})`` answers every script
    containing that fragment; the first registered fragment that matches wins.
    A value that is an exception description wrapped in :class:`Throw` is
    reported as a thrown script error.
    """

    def __init__(self):
        self.rules = []
        self.expressions = []

    def when(self, fragment, value):
        self.rules.append((fragment, value))
        return self

    def __call__(self, params):
        expression = params["expression"]
        self.expressions.append(expression)
        for fragment, value in self.rules:
            if fragment in expression:
                if callable(value):
                    value = value(expression)
                if isinstance(value, Throw):
                    return thrown(value.description)
                return evaluated(value)
        return evaluated(None)

    def matching(self, fragment):
        return [expression for expression in self.expressions if fragment in expression]


class Throw:
    def __init__(self, description):
        self.description = description


@pytest.fixture()
def page(fake_connection):
    """PageScripts wired to the fake connection's Runtime.evaluate."""
    scripts = PageScripts()
    fake_connection.on("Runtime.evaluate", scripts)
    return scripts


@pytest.fixture()
def driver(fake_connection, page):
    """A Driver over the fake connection with short timeouts."""
    from cdpdriver.actor.driver import Driver

    return Driver(fake_connection, default_timeout=0.2, page_load_timeout=0.1, polling_interval=0.01)
