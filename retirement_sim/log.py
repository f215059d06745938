import sys
from typing import Any

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"


def _stderr(message: str) -> None:
    # resolved per write so a swapped sys.stderr is honoured
    sys.stderr.write(message)


def configure_logging(level: str = "INFO", sink: Any = None) -> int:
    """Replace loguru's default handler with a single formatted sink."""
    logger.remove()
    return logger.add(sink if sink is not None else _stderr, format=LOG_FORMAT, level=level)
