"""
Logging configuration.

Every module logs through `logging.getLogger(__name__)`, so pipeline records
propagate to the "doc_pipeline" logger configured here. Console output goes
to stderr; stdout is left to the CLI summary.

Environment (optional):
    DOC_PIPELINE_LOG_LEVEL: Level name used when none is passed, e.g. DEBUG
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = "doc_pipeline"
LOG_LEVEL_ENV = "DOC_PIPELINE_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Union[int, str, None] = None) -> int:
    """
    Turn a level number or name into a level number.

    Without a level, DOC_PIPELINE_LOG_LEVEL is used, then INFO.

    Raises:
        ValueError: for an unknown level name
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV) or logging.INFO
    if isinstance(level, str):
        value = logging.getLevelName(level.strip().upper())
        if not isinstance(value, int):
            raise ValueError(f"Unknown log level: {level}")
        return value
    return level


def level_from_flags(verbose: bool = False, quiet: bool = False) -> Optional[int]:
    """DEBUG for --verbose, WARNING for --quiet, otherwise None (environment/INFO)."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return None


def setup_logging(
    level: Union[int, str, None] = None,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level number or name; see `resolve_level`
        log_file: Optional file receiving the same records as the console
        format_string: Optional custom format string

    Returns:
        The "doc_pipeline" logger
    """
    level = resolve_level(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger below "doc_pipeline" for `name` (typically __name__)."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
