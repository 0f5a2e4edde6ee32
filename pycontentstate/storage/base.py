"""
PyContentState Storage Base Classes

This module defines the contract every storage backend must satisfy.
The state manager calls through this interface only; persistence
mechanics and authorization decisions belong to the backend.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from pycontentstate.security.permissions import Permission, PermissionManager
from pycontentstate.state.models import ContentUserData, FinishedData, User
from pycontentstate.utils.logging import get_logger

logger = get_logger(__name__)


class ContentUserDataStorage(ABC):
    """
    Abstract base class for content user data backends.
    
    Implementations must upsert on the (content_id, user_id, data_type,
    sub_content_id) key and treat deletes of missing data as success.
    Errors are raised to the caller unchanged.
    """
    
    def __init__(self, permission_manager: Optional[PermissionManager] = None):
        self.permission_manager = permission_manager
    
    @abstractmethod
    async def load_user_data(
        self,
        content_id: str,
        data_type: str,
        sub_content_id: str,
        user: User
    ) -> Optional[ContentUserData]:
        """Return the record stored at the exact key, or None."""
        pass
    
    @abstractmethod
    async def save_user_data(
        self,
        content_id: str,
        data_type: str,
        sub_content_id: str,
        user_state: str,
        invalidate: bool,
        preload: bool,
        user: User
    ):
        """Insert or replace the record at the exact key."""
        pass
    
    @abstractmethod
    async def delete_user_data_by_user(
        self,
        content_id: str,
        user_id: str,
        requesting_user: User
    ):
        """Remove every record of user_id for content_id."""
        pass
    
    @abstractmethod
    async def delete_all_user_data_for_content(
        self,
        content_id: str,
        requesting_user: User
    ):
        """Remove every record of content_id across all users."""
        pass
    
    @abstractmethod
    async def list_records_for_content(
        self,
        content_id: str,
        user_id: str
    ) -> List[ContentUserData]:
        """Return all records of user_id for content_id, in any order."""
        pass
    
    @abstractmethod
    async def record_completion(
        self,
        content_id: str,
        score: int,
        max_score: int,
        opened_timestamp: int,
        finished_timestamp: int,
        completion_time: int,
        user: User
    ):
        """Insert or replace the finished record of user for content_id."""
        pass
    
    @abstractmethod
    async def list_completions_for_content(
        self,
        content_id: str,
        requesting_user: User
    ) -> List[FinishedData]:
        """Return finished records for content_id visible to requesting_user."""
        pass
    
    # Authorization helpers shared by backends
    
    def _authorize_user_delete(self, user_id: str, requesting_user: User):
        if user_id == requesting_user.id:
            return
        self._require(requesting_user, Permission.DELETE_OTHERS_USER_DATA)
    
    def _authorize_content_delete(self, requesting_user: User):
        self._require(requesting_user, Permission.DELETE_CONTENT_USER_DATA)
    
    def _can_list_all_completions(self, requesting_user: User) -> bool:
        if self.permission_manager is None:
            return True
        return self.permission_manager.check(requesting_user, Permission.LIST_COMPLETIONS)
    
    def _require(self, requesting_user: User, permission: Permission):
        if self.permission_manager is None:
            logger.debug(f"No permission manager; allowing {permission.value} for {requesting_user.id}")
            return
        self.permission_manager.require(requesting_user, permission)
