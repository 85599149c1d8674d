"""Logging setup for applications embedding fpromise."""

from fpromise.observability.logger import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
