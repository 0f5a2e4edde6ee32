"""
Utility modules

This package provides common utilities, error handling
and configuration management.
"""

from pycontentstate.utils.errors import (
    PyContentStateError,
    ValidationError,
    BackendError,
    PermissionError,
    ConfigError,
)
from pycontentstate.utils.logging import get_logger
from pycontentstate.utils.config import ConfigManager

__all__ = [
    # Exceptions
    "PyContentStateError",
    "ValidationError",
    "BackendError",
    "PermissionError",
    "ConfigError",
    
    # Utilities
    "get_logger",
    "ConfigManager",
]
