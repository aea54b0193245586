from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger

DEFAULT_LOGGING_LEVEL = "INFO"
LOGGING_LEVEL_ENV = "LOGGING_LEVEL"
LOG_FILE_ENV = "LOG_FILE"
DEFAULT_LOG_FILE = Path("logs") / "chat_gateway.log"
NO_CALL_ID = "-"

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | call_id={extra[call_id]} | "
    "{name}:{function}:{line} - {message}"
)

_VALID_LEVELS = {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def resolve_logging_level() -> str:
    configured = os.environ.get(LOGGING_LEVEL_ENV, DEFAULT_LOGGING_LEVEL).upper()
    if configured in _VALID_LEVELS:
        return configured
    return DEFAULT_LOGGING_LEVEL


def is_debug_logging_enabled() -> bool:
    return resolve_logging_level() in {"TRACE", "DEBUG"}


def resolve_log_file() -> Path | None:
    """``LOG_FILE`` set to an empty string turns the file sink off."""
    configured = os.environ.get(LOG_FILE_ENV)
    if configured is None:
        return DEFAULT_LOG_FILE
    if configured.strip() == "":
        return None
    return Path(configured.strip())


def body_preview(body: bytes, *, max_chars: int = 2000) -> str:
    text = body.decode("utf-8", errors="replace")
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}..."


def configure_logging() -> str:
    """Route every record to stdout (and the log file) tagged with the call it belongs to.

    Records emitted outside a request carry ``call_id=-``.
    """
    level = resolve_logging_level()
    log_file = resolve_log_file()

    logger.remove()
    logger.configure(extra={"call_id": NO_CALL_ID})
    logger.add(sys.stdout, level=level, colorize=False, format=LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, colorize=False, format=LOG_FORMAT)

    logger.info("logging configured level={} file={}", level, log_file)
    return level
