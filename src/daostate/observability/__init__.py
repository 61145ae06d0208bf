"""Logging helpers for daostate."""

from .logger import JSONFormatter, configure_logging

__all__ = ["JSONFormatter", "configure_logging"]
