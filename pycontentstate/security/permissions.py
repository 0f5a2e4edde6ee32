"""
PyContentState Permission Management

This module provides a simple per-user permission system that storage
backends consult when a user acts on data it does not own.
"""

from enum import Enum
from typing import TYPE_CHECKING, Dict, Set

from pycontentstate.utils.errors import PermissionError as PyContentStatePermissionError
from pycontentstate.utils.logging import get_logger

if TYPE_CHECKING:
    from pycontentstate.state.models import User

logger = get_logger(__name__)


class Permission(Enum):
    """Permissions a requesting user may hold."""
    
    DELETE_OTHERS_USER_DATA = "userdata:delete-others"
    DELETE_CONTENT_USER_DATA = "userdata:delete-content"
    LIST_COMPLETIONS = "finished:list"


class PermissionManager:
    """
    Simple permission system with grant/deny semantics keyed by user id.
    
    A denial wins over a grant for the same user and permission.
    """
    
    def __init__(self):
        self.granted: Dict[str, Set[Permission]] = {}
        self.denied: Dict[str, Set[Permission]] = {}
        
        logger.debug("PermissionManager initialized")
    
    def grant(self, user_id: str, *permissions: Permission):
        """Grant permissions to a user."""
        for perm in permissions:
            self.granted.setdefault(user_id, set()).add(perm)
            self.denied.get(user_id, set()).discard(perm)
            logger.debug(f"Granted permission {perm.value} to {user_id}")
    
    def deny(self, user_id: str, *permissions: Permission):
        """Deny permissions to a user."""
        for perm in permissions:
            self.denied.setdefault(user_id, set()).add(perm)
            self.granted.get(user_id, set()).discard(perm)
            logger.debug(f"Denied permission {perm.value} to {user_id}")
    
    def revoke(self, user_id: str, *permissions: Permission):
        """Revoke granted permissions without recording a denial."""
        for perm in permissions:
            self.granted.get(user_id, set()).discard(perm)
            logger.debug(f"Revoked permission {perm.value} from {user_id}")
    
    def check(self, user: "User", permission: Permission) -> bool:
        """
        Check if permission is granted to user.
        
        Returns:
            bool: True if granted
        """
        return (
            permission in self.granted.get(user.id, set()) and
            permission not in self.denied.get(user.id, set())
        )
    
    def require(self, user: "User", permission: Permission):
        """
        Require permission or raise error.
        
        Raises:
            PermissionError: If permission not granted
        """
        if not self.check(user, permission):
            logger.warning(f"Permission {permission.value} denied for {user.id}")
            raise PyContentStatePermissionError(
                f"Permission denied: {permission.value}",
                details={'permission': permission.value, 'user_id': user.id}
            )
    
    def list_granted(self, user_id: str) -> Set[Permission]:
        """Get all effective permissions of a user."""
        return self.granted.get(user_id, set()) - self.denied.get(user_id, set())
    
    def reset(self):
        """Reset all permissions."""
        self.granted.clear()
        self.denied.clear()
        logger.info("All permissions reset")
