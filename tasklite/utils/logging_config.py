"""Logging setup for TaskLite, driven by LOG_* environment variables."""

import os
import logging
import sys
from typing import IO, Optional
from pythonjsonlogger import jsonlogger

# supabase-py and its transports log every request and socket frame
QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "hpack",
    "supabase",
    "gotrue",
    "postgrest",
    "storage3",
    "realtime",
    "websockets",
)


def _env_flag(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class LoggingConfig:
    """
    Logging knobs, read once at import.

    LOG_TASK_CONTENT controls whether task titles and comment text reach
    the logs at all; LOG_MASK_SENSITIVE redacts user ids, emails and
    tokens in what does.
    """

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_TASK_CONTENT = _env_flag("LOG_TASK_CONTENT")
    LOG_MASK_SENSITIVE = _env_flag("LOG_MASK_SENSITIVE")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))

    @classmethod
    def level(cls) -> int:
        return getattr(logging, cls.LOG_LEVEL, logging.INFO)

    @classmethod
    def formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(
                "%(levelname)s %(name)s %(message)s",
                timestamp=True
            )
        return logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    @classmethod
    def setup_logging(cls, stream: Optional[IO[str]] = None) -> logging.Handler:
        """Replace the root handlers with a single stream handler and return it."""
        level = cls.level()
        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        for existing in list(root_logger.handlers):
            root_logger.removeHandler(existing)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(cls.formatter())
        root_logger.addHandler(handler)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))
        return handler
