"""Logging configuration: loguru setup, standard logging interception, conversion context."""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger


class InterceptHandler(logging.Handler):
    """Route standard library logging to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding loguru level
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller frame (skip logging internals)
        frame, depth = sys._getframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Configure loguru with stdout + optional JSON file, intercept standard logging."""
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{message}",
            level=level,
            serialize=True,
            rotation="100 MB",
            retention=10,
            compression="gz",
        )

    # Intercept standard logging → loguru (bs4 and lxml warnings included)
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


@contextmanager
def conversion_context(profile_name: str) -> Iterator[str]:
    """Add conversion_id to logging context for correlation.

    Failures escaping the conversion are logged with that context and re-raised.
    """
    conversion_id = uuid.uuid4().hex[:12]
    with logger.contextualize(conversion_id=conversion_id, profile=profile_name):
        try:
            yield conversion_id
        except Exception as exc:
            logger.exception(f"Conversion to {profile_name} failed (conversion_id={conversion_id}): {exc}")
            raise
