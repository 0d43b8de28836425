"""
Common utilities for win11-readiness-hub
"""

from .config import config, get_dsn
from .logging import setup_logging, get_logger

__all__ = [
    'config',
    'get_dsn',
    'setup_logging',
    'get_logger',
]
