"""Structured logging."""

from arb_paper.logging.setup import configure_from, get_logger, setup_logging

__all__ = ["configure_from", "get_logger", "setup_logging"]
