"""
PyContentState Content User Data Manager

This module contains the storage-agnostic rules for saving, loading,
deleting and aggregating user state of content items. Persistence is
delegated to a ContentUserDataStorage backend.
"""

from typing import List, Optional

from pycontentstate.state.models import (
    ContentUserData,
    FinishedData,
    SerializedContentUserData,
    User,
    sub_content_sort_key,
)
from pycontentstate.storage.base import ContentUserDataStorage
from pycontentstate.utils.errors import ValidationError
from pycontentstate.utils.logging import get_logger

logger = get_logger(__name__)


class ContentUserDataManager:
    """
    Stateless orchestration of user data operations.
    
    Without a storage backend every operation is a no-op: loads and
    aggregation return None, mutations return without effect. Backend
    errors propagate unchanged; nothing is retried.
    """
    
    def __init__(self, storage: Optional[ContentUserDataStorage] = None):
        """
        Initialize the manager.
        
        Args:
            storage: Backend to persist through; None disables persistence
        """
        self.storage = storage
        
        if storage is None:
            logger.info("ContentUserDataManager initialized without storage; user data is not persisted")
        else:
            logger.info(f"ContentUserDataManager initialized with {type(storage).__name__}")
    
    @property
    def storage_configured(self) -> bool:
        return self.storage is not None
    
    async def load_user_data(
        self,
        content_id: str,
        data_type: str,
        sub_content_id: str,
        user: User
    ) -> Optional[ContentUserData]:
        """
        Load the record for content_id, data_type and sub_content_id.
        
        Returns:
            The stored record, or None if there is none or no storage is configured
        """
        if self.storage is None:
            return None
        
        logger.debug(f"Loading user data of {user.id} for content {content_id}")
        return await self.storage.load_user_data(content_id, data_type, sub_content_id, user)
    
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
        """
        Save user state, or discard all of the user's state for the content.
        
        When invalidate is True the call deletes every record of the user
        for content_id; data_type, sub_content_id, user_state and preload
        are ignored in that case.
        
        Raises:
            ValidationError: invalidate or preload is not a bool
        """
        if not isinstance(invalidate, bool) or not isinstance(preload, bool):
            logger.error(f"Invalid arguments passed for content {content_id}")
            raise ValidationError(
                "save_user_data received invalid arguments: invalidate or preload weren't boolean",
                details={
                    'content_id': content_id,
                    'invalidate_type': type(invalidate).__name__,
                    'preload_type': type(preload).__name__,
                }
            )
        
        if self.storage is None:
            return
        
        if invalidate:
            logger.debug(f"Invalidating user data of {user.id} for content {content_id}")
            await self.storage.delete_user_data_by_user(content_id, user.id, user)
            return
        
        logger.debug(f"Saving user data of {user.id} for content {content_id}")
        await self.storage.save_user_data(
            content_id,
            data_type,
            sub_content_id,
            user_state,
            invalidate,
            preload,
            user
        )
    
    async def delete_user_data_by_user(
        self,
        content_id: str,
        user_id: str,
        requesting_user: User
    ):
        """
        Delete every record of user_id for content_id.
        
        requesting_user is the user asking for the deletion, not
        necessarily the owner; the backend decides whether it may.
        """
        if self.storage is None:
            return
        
        logger.debug(f"Deleting user data of {user_id} for content {content_id}")
        await self.storage.delete_user_data_by_user(content_id, user_id, requesting_user)
    
    async def delete_all_user_data_for_content(
        self,
        content_id: str,
        requesting_user: User
    ):
        """Delete the records of every user for content_id."""
        if self.storage is None:
            return
        
        logger.debug(f"Deleting all user data for content {content_id}")
        await self.storage.delete_all_user_data_for_content(content_id, requesting_user)
    
    async def aggregate_for_delivery(
        self,
        content_id: str,
        user: User
    ) -> Optional[List[SerializedContentUserData]]:
        """
        Build the preload sequence delivered with the content.
        
        Only records saved with preload=True are included, ordered by
        the numeric value of their subContentId. Each element is a
        separate {dataType: userState} mapping; entries sharing a
        dataType are not merged.
        
        Returns:
            The ordered sequence, or None if no storage is configured
        """
        if self.storage is None:
            return None
        
        logger.debug(f"Aggregating user data of {user.id} for content {content_id}")
        records = await self.storage.list_records_for_content(content_id, user.id)
        
        preloaded = [record for record in records if record.preload]
        preloaded.sort(key=lambda record: sub_content_sort_key(record.sub_content_id))
        
        return [{record.data_type: record.user_state} for record in preloaded]
    
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
        """
        Save the finished record of user for content_id.
        
        Values are forwarded as given; score bounds and timestamp order
        are not checked.
        """
        if self.storage is None:
            return
        
        logger.debug(f"Saving finished data of {user.id} for content {content_id}")
        await self.storage.record_completion(
            content_id,
            score,
            max_score,
            opened_timestamp,
            finished_timestamp,
            completion_time,
            user
        )
    
    async def list_completions(
        self,
        content_id: str,
        requesting_user: User
    ) -> Optional[List[FinishedData]]:
        """List finished records of content_id visible to requesting_user."""
        if self.storage is None:
            return None
        
        return await self.storage.list_completions_for_content(content_id, requesting_user)
