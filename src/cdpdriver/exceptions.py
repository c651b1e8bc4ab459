"""Exception hierarchy for cdpdriver.

Transport failures are raised to the immediate caller. Teardown paths
(subscriber callbacks, target closing, profile directory removal) log and
continue instead of raising.
"""

from __future__ import annotations

from typing import Any


class CDPDriverError(Exception):
    """Base class for every error raised by cdpdriver."""


class ConnectionFailure(CDPDriverError):
    """The WebSocket connection to a DevTools endpoint could not be established."""

    def __init__(self, endpoint: str, message: str | None = None):
        self.endpoint = endpoint
        super().__init__(message or f'Could not connect to {endpoint}')


class TransportClosed(CDPDriverError):
    """The connection was closed while a command was outstanding, or before it was sent."""


class CommandTimeout(CDPDriverError, TimeoutError):
    """No response arrived for a command before its deadline."""

    def __init__(self, method: str, timeout: float, message_id: int | None = None):
        self.method = method
        self.timeout = timeout
        self.message_id = message_id
        super().__init__(f'{method} did not respond within {timeout:.3f}s')


class RemoteProtocolError(CDPDriverError):
    """The browser answered a command with an ``error`` payload."""

    def __init__(self, method: str, params: dict[str, Any] | None, error: dict[str, Any]):
        self.method = method
        self.params = params
        self.error = error
        self.code = error.get('code')
        self.data = error.get('data')
        detail = error.get('message', 'unknown error')
        super().__init__(f'{method} failed: {detail} (code {self.code})')


class CommandFailed(CDPDriverError):
    """Uniform failure raised by the command helpers.

    The original transport error is available as ``cause`` (and ``__cause__``).
    """

    def __init__(self, method: str, params: dict[str, Any] | None, cause: BaseException):
        self.method = method
        self.params = params
        self.cause = cause
        super().__init__(f'Command {method} with params {params} failed: {cause}')


class NotFound(CDPDriverError):
    """A locator resolved to zero elements within its timeout."""

    def __init__(self, locator: Any, timeout: float):
        self.locator = locator
        self.timeout = timeout
        super().__init__(f'No element found for {locator} within {timeout:.3f}s')


class StaleReference(CDPDriverError):
    """An element reference id is no longer present in the page-side table."""

    def __init__(self, reference_id: str):
        self.reference_id = reference_id
        super().__init__(f'Element reference {reference_id} is stale (node detached or page navigated)')


class ScriptError(CDPDriverError):
    """An injected script raised an exception inside the page."""

    def __init__(self, description: str, details: dict[str, Any] | None = None):
        self.description = description
        self.details = details or {}
        super().__init__(description)


class LaunchFailure(CDPDriverError):
    """The browser binary could not be found or exited before it was ready."""

    def __init__(self, message: str, candidates: list[str] | None = None):
        self.candidates = candidates or []
        super().__init__(message)


class TargetDiscoveryTimeout(CDPDriverError, TimeoutError):
    """The debug HTTP endpoint never listed the expected target."""

    def __init__(self, target_id: str, attempts: int):
        self.target_id = target_id
        self.attempts = attempts
        super().__init__(f'Target {target_id} was not listed after {attempts} attempts')


class ExchangeTimeout(CDPDriverError, TimeoutError):
    """No matching network exchange completed before the wait expired."""

    def __init__(self, url_filter: str, timeout: float):
        self.url_filter = url_filter
        self.timeout = timeout
        super().__init__(f'No response matching {url_filter!r} completed within {timeout:.3f}s')


class FilterAlreadyRegistered(CDPDriverError):
    """A wait for the same URL filter is already pending."""

    def __init__(self, url_filter: str):
        self.url_filter = url_filter
        super().__init__(f'A wait for {url_filter!r} is already pending')


class LocatorResolutionError(CDPDriverError):
    """A natural-language description could not be turned into a selector."""
