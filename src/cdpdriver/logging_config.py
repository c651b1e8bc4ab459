"""Logging setup for cdpdriver."""

import logging
import os
import sys
from typing import TextIO

from dotenv import load_dotenv

load_dotenv()

from cdpdriver.config import CONFIG  # noqa: E402

CONSOLE_FORMAT = '%(levelname)-8s [%(name)s] %(message)s'
FILE_FORMAT = '%(asctime)s - %(levelname)-8s [%(name)s] %(message)s'

# Loggers of the WebSocket library, governed by CDP_LOGGING_LEVEL
WEBSOCKET_LOGGER_NAMES = (
    'websockets',
    'websockets.client',
    'websockets.protocol',
)


def setup_logging(
    stream: TextIO | None = None,
    log_level: str | None = None,
    force_setup: bool = False,
    debug_log_file: str | None = None,
    info_log_file: str | None = None,
) -> logging.Logger:
    """Configure the cdpdriver logger hierarchy.

    Args:
        stream: Stream for the console handler (defaults to stdout).
        log_level: Level name overriding CDPDRIVER_LOGGING_LEVEL.
        force_setup: Reconfigure even if handlers are already installed.
        debug_log_file: Optional path receiving DEBUG and above.
        info_log_file: Optional path receiving INFO and above.

    Returns:
        The ``cdpdriver`` package logger.
    """
    if os.environ.get('CDPDRIVER_SETUP_LOGGING', 'true').lower() == 'false' and not force_setup:
        return logging.getLogger('cdpdriver')

    root = logging.getLogger()
    if root.handlers and not force_setup:
        return logging.getLogger('cdpdriver')

    root.handlers = []

    level_name = (log_level or CONFIG.CDPDRIVER_LOGGING_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console_handler)

    debug_log_file = debug_log_file or CONFIG.CDPDRIVER_DEBUG_LOG_FILE
    info_log_file = info_log_file or CONFIG.CDPDRIVER_INFO_LOG_FILE

    handlers: list[logging.Handler] = [console_handler]
    for path, file_level in ((debug_log_file, logging.DEBUG), (info_log_file, logging.INFO)):
        if not path:
            continue
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)
        handlers.append(file_handler)

    final_level = logging.DEBUG if debug_log_file else level
    root.setLevel(final_level)

    package_logger = logging.getLogger('cdpdriver')
    package_logger.propagate = False
    package_logger.handlers = list(handlers)
    package_logger.setLevel(final_level)

    cdp_level = getattr(logging, CONFIG.CDP_LOGGING_LEVEL.upper(), logging.WARNING)
    for name in WEBSOCKET_LOGGER_NAMES:
        ws_logger = logging.getLogger(name)
        ws_logger.setLevel(cdp_level)
        ws_logger.handlers = [console_handler]
        ws_logger.propagate = False

    package_logger.debug(f'Logging configured at {logging.getLevelName(final_level)}')
    return package_logger
