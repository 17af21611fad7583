"""Simple logging utility for the Searchlab search widget."""

import logging
import sys

logging.basicConfig(
    stream=sys.stdout,
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
_logger = logging.getLogger("searchlab")


def log(level: str, msg: str):
    getattr(_logger, level, _logger.info)(msg)
