"""
PyContentState - per-user state for shared interactive content

PyContentState saves, loads and aggregates the state users accumulate
while working with embeddable content items, and records their
completion events, through a pluggable storage backend.
"""

__version__ = "0.1.0"
__author__ = "PyContentState Team"
__email__ = "team@pycontentstate.dev"
__license__ = "MIT"

import sys
from pathlib import Path
from typing import Optional, Union

from pycontentstate.security.permissions import Permission, PermissionManager
from pycontentstate.state.manager import ContentUserDataManager
from pycontentstate.state.models import ContentUserData, FinishedData, User
from pycontentstate.storage import (
    ContentUserDataStorage,
    FileContentUserDataStorage,
    MemoryContentUserDataStorage,
    create_storage,
)
from pycontentstate.utils.config import ConfigManager
from pycontentstate.utils.errors import (
    PyContentStateError,
    ValidationError,
    BackendError,
    PermissionError,
    ConfigError,
)
from pycontentstate.utils.logging import set_package_level

VERSION_INFO = tuple(int(part) for part in __version__.split('.') if part.isdigit())

__all__ = [
    # State
    "ContentUserDataManager",
    "ContentUserData",
    "FinishedData",
    "User",
    
    # Storage
    "ContentUserDataStorage",
    "FileContentUserDataStorage",
    "MemoryContentUserDataStorage",
    "create_storage",
    
    # Security
    "Permission",
    "PermissionManager",
    
    # Configuration
    "ConfigManager",
    "create_manager",
    
    # Exceptions
    "PyContentStateError",
    "ValidationError",
    "BackendError",
    "PermissionError",
    "ConfigError",
    
    # Version info
    "__version__",
    "VERSION_INFO",
]


def _validate_python_version():
    """Validate Python version compatibility"""
    if sys.version_info < (3, 8):
        raise RuntimeError(
            f"PyContentState requires Python 3.8 or higher. "
            f"Current version: {sys.version}"
        )


_validate_python_version()


def create_manager(
    config_file: Optional[Union[str, Path]] = None,
    permission_manager: Optional[PermissionManager] = None,
    **config_options
) -> ContentUserDataManager:
    """
    Create a ContentUserDataManager from configuration.
    
    Args:
        config_file: Optional JSON configuration file
        permission_manager: Authorization source handed to the backend
        **config_options: Default configuration values
        
    Returns:
        ContentUserDataManager instance
        
    Example:
        >>> manager = pycontentstate.create_manager(
        ...     storage={"backend": "file", "directory": "/var/lib/userdata"}
        ... )
    """
    config = ConfigManager(config_file=config_file, **config_options)
    set_package_level(config.get("logging.level", "INFO"))
    
    storage = create_storage(config, permission_manager=permission_manager)
    return ContentUserDataManager(storage)
