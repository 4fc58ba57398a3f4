"""Logging setup for command-line use."""

import logging
import sys


def configure_logging(level: str = "WARNING") -> None:
    """Send engine logs to stderr so they never mix with JSON output."""
    numeric = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("ziptax").setLevel(numeric)
