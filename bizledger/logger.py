import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from . import settings

CONSOLE_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

# Chatty libraries kept at WARNING so advisor calls don't flood the ledger log.
QUIET_LOGGERS = ("urllib3",)


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        return resolved
    return level


def setup_logger(
    name: Optional[str] = "bizledger", log_level: Union[int, str, None] = None
) -> logging.Logger:
    """
    Attach console and rotating-file output to ``name`` (the package logger by
    default, so every ``bizledger.*`` module logger inherits it).

    Entry scripts call this once; library modules only use
    logging.getLogger(__name__). Calling it again returns the configured logger
    untouched.
    """
    logger = logging.getLogger(name)
    level = _resolve_level(log_level)
    logger.setLevel(level)

    # Only this logger's own handlers count; ancestors (or pytest's) don't.
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    log_dir = settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / settings.LOG_FILE,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(file_handler)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
