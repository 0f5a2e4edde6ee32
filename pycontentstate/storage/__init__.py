"""
Storage backends

This package provides the storage contract consumed by the state
manager together with in-memory and file-based implementations.
"""

from typing import Optional

from pycontentstate.security.permissions import PermissionManager
from pycontentstate.storage.base import ContentUserDataStorage
from pycontentstate.storage.file import FileContentUserDataStorage
from pycontentstate.storage.memory import MemoryContentUserDataStorage
from pycontentstate.utils.config import ConfigManager
from pycontentstate.utils.errors import ConfigError
from pycontentstate.utils.logging import get_logger

logger = get_logger(__name__)

BACKEND_NONE = "none"
BACKEND_MEMORY = "memory"
BACKEND_FILE = "file"


def create_storage(
    config: ConfigManager,
    permission_manager: Optional[PermissionManager] = None
) -> Optional[ContentUserDataStorage]:
    """
    Build the storage backend named by ``storage.backend``.
    
    Returns None for the "none" backend, which disables persistence.
    
    Raises:
        ConfigError: Unknown backend, or file backend without a directory
    """
    backend = str(config.get("storage.backend") or BACKEND_NONE).strip().lower()
    
    if backend == BACKEND_NONE:
        logger.info("Storage backend disabled")
        return None
    
    if backend == BACKEND_MEMORY:
        return MemoryContentUserDataStorage(permission_manager=permission_manager)
    
    if backend == BACKEND_FILE:
        directory = config.get("storage.directory")
        if not directory:
            raise ConfigError(
                "File storage backend requires 'storage.directory'",
                details={'backend': backend}
            )
        return FileContentUserDataStorage(directory, permission_manager=permission_manager)
    
    raise ConfigError(
        f"Unknown storage backend: {backend}",
        details={'backend': backend, 'supported': [BACKEND_NONE, BACKEND_MEMORY, BACKEND_FILE]}
    )


__all__ = [
    "ContentUserDataStorage",
    "FileContentUserDataStorage",
    "MemoryContentUserDataStorage",
    "create_storage",
]
