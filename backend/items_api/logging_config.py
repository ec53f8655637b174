"""Root logger configuration for the API process."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

LOGGER = logging.getLogger(__name__)


def resolve_level(level_name: str) -> int | None:
    level = logging.getLevelName(level_name.strip().upper())
    if isinstance(level, int):
        return level
    return None


def configure_logging(level_name: str) -> None:
    """Send log records to stdout at the requested level.

    Unknown level names fall back to INFO with a warning.
    """
    level = resolve_level(level_name)
    logging.basicConfig(
        level=level if level is not None else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    if level is None:
        LOGGER.warning("Invalid log level %s, defaulting to info", level_name)
