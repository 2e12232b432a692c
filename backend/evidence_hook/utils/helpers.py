"""
Shared utility functions.

This module contains helper functions that are used across multiple modules.
Keep utilities small and focused - if a utility grows complex, consider
moving it to its own service.

Current utilities:
- configure_logging: process-wide logging setup used by the entry point
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send all records at or above level to stderr in a single-line format."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
