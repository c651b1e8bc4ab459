"""Discover, launch and tear down a local Chromium-family browser."""

from __future__ import annotations

import asyncio
import logging
import os
import platform
import re
import shutil
import tempfile
import time
from collections import deque
from pathlib import Path
from urllib.parse import urlparse

import psutil
from pydantic import BaseModel, ConfigDict, PrivateAttr

from cdpdriver.browser.profile import LaunchProfile
from cdpdriver.browser.targets import get_first_page_ws_url
from cdpdriver.config import CONFIG
from cdpdriver.exceptions import LaunchFailure

logger = logging.getLogger(__name__)

DEVTOOLS_BANNER = re.compile(r'DevTools listening on (ws://\S+)')
KILL_TIMEOUT = 5.0

LINUX_EXECUTABLES = [
    'google-chrome',
    'google-chrome-stable',
    'chromium-browser',
    'chromium',
    'microsoft-edge',
]

MAC_EXECUTABLES = [
    '/Applications/Google Chrome.app/Contents/MacOS/Google Chrome',
    '/Applications/Chromium.app/Contents/MacOS/Chromium',
    '/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge',
]


def _windows_executables() -> list[str]:
    candidates = []
    for env_var in ('LOCALAPPDATA', 'PROGRAMFILES', 'PROGRAMFILES(X86)'):
        base = os.environ.get(env_var)
        if base:
            candidates.append(str(Path(base) / 'Google' / 'Chrome' / 'Application' / 'chrome.exe'))
    for env_var in ('PROGRAMFILES(X86)', 'PROGRAMFILES'):
        base = os.environ.get(env_var)
        if base:
            candidates.append(str(Path(base) / 'Microsoft' / 'Edge' / 'Application' / 'msedge.exe'))
    return candidates


def browser_candidates(system: str | None = None) -> list[str]:
    """Candidate executables in search order: CHROME_PATH first, then per-OS locations."""
    system = system or platform.system()
    candidates = []
    if CONFIG.CHROME_PATH:
        candidates.append(CONFIG.CHROME_PATH)
    if system == 'Windows':
        candidates.extend(_windows_executables())
    elif system == 'Darwin':
        candidates.extend(MAC_EXECUTABLES)
    else:
        candidates.extend(LINUX_EXECUTABLES)
    return candidates


def _executable(candidate: str) -> str | None:
    if os.sep in candidate or '/' in candidate:
        path = Path(candidate)
        return str(path) if path.is_file() and os.access(path, os.X_OK) else None
    return shutil.which(candidate)


def find_browser(executable_path: str | Path | None = None) -> str:
    """Return the browser executable to launch.

    An explicit ``executable_path`` is used as-is and must exist. Otherwise the
    first executable candidate from :func:`browser_candidates` wins.

    Raises:
        LaunchFailure: No candidate is an executable file; the message lists them all.
    """
    if executable_path is not None:
        candidates = [str(executable_path)]
    else:
        candidates = browser_candidates()

    for candidate in candidates:
        resolved = _executable(candidate)
        if resolved:
            logger.debug(f'Using browser executable {resolved}')
            return resolved
    raise LaunchFailure(f'No browser executable found. Searched: {candidates}', candidates)


class LaunchedBrowser(BaseModel):
    """A running browser process and its temporary profile directory."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    process: asyncio.subprocess.Process
    ws_url: str
    port: int
    user_data_dir: Path

    _stderr_task: asyncio.Task | None = PrivateAttr(default=None)
    _closed: bool = PrivateAttr(default=False)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def closed(self) -> bool:
        return self._closed

    async def get_first_page_ws_url(self) -> str:
        return await get_first_page_ws_url(self.port)

    async def new_context(self):
        """Create an isolated browser context on this browser."""
        from cdpdriver.browser.context import BrowserContext

        return await BrowserContext.create(self.ws_url, self.port)

    async def close(self) -> None:
        """Kill the browser and delete its profile directory. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        logger.info(f'Closing browser (PID {self.process.pid})')
        if self._stderr_task is not None:
            self._stderr_task.cancel()
            await asyncio.gather(self._stderr_task, return_exceptions=True)
        await kill_process_tree(self.process)
        remove_profile_dir(self.user_data_dir)

    async def __aenter__(self) -> LaunchedBrowser:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def kill_process_tree(process: asyncio.subprocess.Process) -> None:
    """Force-kill ``process`` and every child it spawned, then reap it."""
    if process.returncode is None:
        try:
            children = psutil.Process(process.pid).children(recursive=True)
        except psutil.Error:
            children = []
        for child in children:
            try:
                child.kill()
            except psutil.Error:
                pass
        try:
            process.kill()
        except ProcessLookupError:
            pass

    try:
        await asyncio.wait_for(process.wait(), timeout=KILL_TIMEOUT)
    except asyncio.TimeoutError:
        logger.warning(f'Browser process {process.pid} did not exit within {KILL_TIMEOUT}s of being killed')


def remove_profile_dir(user_data_dir: str | Path) -> None:
    """Delete the temporary profile directory, logging instead of raising on failure."""
    try:
        shutil.rmtree(user_data_dir)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f'Could not delete profile directory {user_data_dir}: {e}')


async def _read_devtools_url(process: asyncio.subprocess.Process, timeout: float) -> str:
    """Read stderr line by line until the DevTools banner appears."""
    assert process.stderr is not None
    recent: deque[str] = deque(maxlen=20)
    deadline = time.monotonic() + timeout

    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise LaunchFailure(f'Browser did not report a DevTools URL within {timeout:.1f}s')
        try:
            raw = await asyncio.wait_for(process.stderr.readline(), remaining)
        except asyncio.TimeoutError:
            raise LaunchFailure(f'Browser did not report a DevTools URL within {timeout:.1f}s') from None

        if not raw:
            returncode = await process.wait()
            output = '\n'.join(recent)
            raise LaunchFailure(f'Browser exited with code {returncode} before it was ready:\n{output}')

        line = raw.decode('utf-8', errors='replace').rstrip()
        recent.append(line)
        match = DEVTOOLS_BANNER.search(line)
        if match:
            return match.group(1)


async def _drain(stream: asyncio.StreamReader) -> None:
    # The browser blocks once the stderr pipe fills up, so keep reading it
    while True:
        line = await stream.readline()
        if not line:
            return
        logger.debug(f'[browser] {line.decode("utf-8", errors="replace").rstrip()}')


class BrowserLauncher:
    """Start a browser with a fresh profile and remote debugging enabled.

    Example:
        >>> async with await BrowserLauncher().launch() as browser:
        ...     async with await browser.new_context() as context:
        ...         driver = await context.new_driver()
    """

    def __init__(self, profile: LaunchProfile | None = None):
        self.profile = profile or LaunchProfile()

    async def launch(self, port: int | None = None) -> LaunchedBrowser:
        """Launch the browser and wait for its DevTools WebSocket URL.

        Args:
            port: Debugging port; defaults to the profile's (0 picks a free port).

        Raises:
            LaunchFailure: No executable, the process could not start, it exited
                early, or it did not report readiness in time. No process or
                profile directory is left behind.
        """
        executable = find_browser(self.profile.executable_path)
        user_data_dir = Path(tempfile.mkdtemp(prefix=self.profile.profile_dir_prefix))
        args = self.profile.get_args(user_data_dir, port)
        logger.info(f'Launching {executable} with profile {user_data_dir}')

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            remove_profile_dir(user_data_dir)
            raise LaunchFailure(f'Could not start {executable}: {e}', [executable]) from e

        try:
            ws_url = await _read_devtools_url(process, self.profile.launch_timeout)
        except BaseException:
            await kill_process_tree(process)
            remove_profile_dir(user_data_dir)
            raise

        browser = LaunchedBrowser(
            process=process,
            ws_url=ws_url,
            port=urlparse(ws_url).port or 0,
            user_data_dir=user_data_dir,
        )
        browser._stderr_task = asyncio.create_task(_drain(process.stderr))
        logger.info(f'Browser started (PID {process.pid}) at {ws_url}')
        return browser
