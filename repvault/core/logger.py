"""Logger configuration for the RepVault AI backend."""

import sys

from loguru import logger


def setup_logger(level: str = "INFO", serialize: bool = False) -> None:
    """Configure loguru with a single stderr sink.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        serialize: Emit one JSON document per line instead of colored text.
            Structured context passed as keyword arguments ends up under
            ``record.extra`` either way.
    """
    # Remove default handler
    logger.remove()

    if serialize:
        logger.add(sys.stderr, level=level, serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> {extra}",
            level=level,
            colorize=True,
        )

    logger.info(f"Logger initialized with level={level} serialize={serialize}")
