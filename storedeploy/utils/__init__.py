"""Utility functions for storedeploy."""

from storedeploy.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
