"""
Logging configuration and utilities for the speedrun core.
"""
from .config import configure_logging, configure_logging_from_config, get_logger

__all__ = ["configure_logging", "configure_logging_from_config", "get_logger"]
