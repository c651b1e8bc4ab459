"""cdpdriver - drive Chromium-family browsers over the raw Chrome DevTools Protocol."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

# Core protocol and driver components - always available
from cdpdriver.actor import By, Driver, Element, Key, LocatorType
from cdpdriver.browser import BrowserContext, BrowserLauncher, LaunchedBrowser, LaunchProfile
from cdpdriver.cdp import CDPCommands, CDPConnection, NetworkCorrelator, NetworkExchange
from cdpdriver.exceptions import (
    CDPDriverError,
    CommandFailed,
    CommandTimeout,
    ConnectionFailure,
    ExchangeTimeout,
    FilterAlreadyRegistered,
    LaunchFailure,
    LocatorResolutionError,
    NotFound,
    RemoteProtocolError,
    ScriptError,
    StaleReference,
    TargetDiscoveryTimeout,
    TransportClosed,
)

# Lazy imports for modules with heavier dependencies
if TYPE_CHECKING:
    from cdpdriver.llm import LocatorResolver, OllamaLocatorResolver
    from cdpdriver.logging_config import setup_logging

_LAZY_IMPORTS = {
    'LocatorResolver': ('cdpdriver.llm', 'LocatorResolver'),
    'OllamaLocatorResolver': ('cdpdriver.llm', 'OllamaLocatorResolver'),
    'setup_logging': ('cdpdriver.logging_config', 'setup_logging'),
}


def __getattr__(name: str):
    """Lazily import optional components on first access."""
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        from importlib import import_module

        value = getattr(import_module(module_path), attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    '__version__',
    'By',
    'BrowserContext',
    'BrowserLauncher',
    'CDPCommands',
    'CDPConnection',
    'CDPDriverError',
    'CommandFailed',
    'CommandTimeout',
    'ConnectionFailure',
    'Driver',
    'Element',
    'ExchangeTimeout',
    'FilterAlreadyRegistered',
    'Key',
    'LaunchFailure',
    'LaunchProfile',
    'LaunchedBrowser',
    'LocatorResolutionError',
    'LocatorResolver',
    'LocatorType',
    'NetworkCorrelator',
    'NetworkExchange',
    'NotFound',
    'OllamaLocatorResolver',
    'RemoteProtocolError',
    'ScriptError',
    'StaleReference',
    'TargetDiscoveryTimeout',
    'TransportClosed',
    'setup_logging',
]
