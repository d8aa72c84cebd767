"""Utility functions for the DocTracker notifier."""

import logging

import structlog

from doc_tracker.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog to filter below the configured level.

    Args:
        settings: Application settings providing ``log_level``.
    """

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )
