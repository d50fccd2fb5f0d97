"""
Core utilities shared across the application.
"""

from .logger import LOG_LEVELS, level_from_env, setup_logging

__all__ = ["LOG_LEVELS", "level_from_env", "setup_logging"]
