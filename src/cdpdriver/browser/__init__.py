"""Browser process and context lifecycle."""

from cdpdriver.browser.context import BrowserContext
from cdpdriver.browser.launcher import BrowserLauncher, LaunchedBrowser, find_browser
from cdpdriver.browser.profile import LaunchProfile
from cdpdriver.browser.targets import TargetDescriptor

__all__ = ["BrowserContext", "BrowserLauncher", "LaunchProfile", "LaunchedBrowser", "TargetDescriptor", "find_browser"]
