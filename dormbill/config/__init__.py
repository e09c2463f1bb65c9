"""
Configuration package for the dormitory billing service.

Environment settings and logging configuration.
"""

from dormbill.config.settings import settings, get_settings, Settings
from dormbill.config.logging import setup_logging, get_logger

__all__ = ['settings', 'get_settings', 'Settings', 'setup_logging', 'get_logger']
