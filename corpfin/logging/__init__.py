"""
Logging configuration and utilities for corpfin.
"""
from .config import configure_logging, get_calculator_logger, get_logger

__all__ = ["configure_logging", "get_logger", "get_calculator_logger"]
