"""Launch settings for a local Chromium-family browser."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from cdpdriver.config import CONFIG

# Always passed, in this order, before any extra arguments
BASE_ARGS = [
    '--no-first-run',
    '--no-default-browser-check',
    '--disable-gpu',
    '--disable-extensions',
    '--disable-popup-blocking',
    '--disable-translate',
    '--no-sandbox',
    '--disable-dev-shm-usage',
]


class LaunchProfile(BaseModel):
    """Browser launch configuration.

    Each launch gets its own temporary profile directory, so cookies and
    storage never leak between launches.
    """

    model_config = ConfigDict(
        extra='ignore',
        validate_assignment=True,
    )

    executable_path: str | Path | None = Field(
        default=None,
        description='Browser binary. If None, CHROME_PATH and well-known install locations are searched.',
    )
    headless: bool = Field(
        default_factory=lambda: CONFIG.CDPDRIVER_HEADLESS,
        description='Run with --headless=new',
    )
    port: int = Field(
        default=0,
        ge=0,
        le=65535,
        description='Remote debugging port; 0 lets the browser pick a free one',
    )
    launch_timeout: float = Field(
        default_factory=lambda: CONFIG.CDPDRIVER_LAUNCH_TIMEOUT,
        gt=0,
        description='Seconds to wait for the DevTools banner on stderr',
    )
    profile_dir_prefix: str = Field(
        default='cdpdriver-chrome-profile-',
        description='Prefix of the temporary user data directory',
    )
    args: list[str] = Field(default_factory=list, description='Extra command line arguments')

    def get_args(self, user_data_dir: str | Path, port: int | None = None) -> list[str]:
        """Build the command line arguments (without the executable)."""
        launch_args = []
        if self.headless:
            launch_args.append('--headless=new')
        launch_args.append(f'--remote-debugging-port={self.port if port is None else port}')
        launch_args.extend(BASE_ARGS)
        launch_args.append(f'--user-data-dir={user_data_dir}')
        launch_args.extend(self.args)
        return launch_args
