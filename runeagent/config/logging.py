"""
Logging for RuneAgent.

Everything the agent logs goes through the ``runeagent`` package logger:
completion round trips and tool calls from the loop, session lifecycle, wiki
and host-state activity. Console lines are colored by level so tool warnings
stand out in the middle of a streamed chat answer. A log file, when
configured, also records the function and line of each entry.

LiteLLM and httpx log every request at INFO; they are held at WARNING unless
the agent itself runs at DEBUG.
"""

import logging
import sys
from pathlib import Path

from runeagent.config.settings import Settings

PACKAGE_LOGGER = "runeagent"
NOISY_LIBRARIES = ("LiteLLM", "litellm", "httpx", "httpcore")

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Colors the level name of console records."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        if original in self.COLORS:
            record.levelname = f"{self.COLORS[original]}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The file handler formats the same record afterwards
            record.levelname = original


def setup_logging(settings: Settings) -> None:
    """
    Attach console (and optional file) handlers to the package logger.

    Safe to call more than once; earlier handlers are replaced.

    Args:
        settings: Supplies log_level and log_file
    """
    level = getattr(logging, settings.log_level)
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    package_logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(file_handler)

    # Root handlers would print every agent line a second time
    package_logger.propagate = False

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    package_logger.info(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        package_logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the ``runeagent`` namespace.

    ``get_logger(__name__)`` inside the package returns the same logger as
    ``logging.getLogger(__name__)``; other names are prefixed.
    """
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
