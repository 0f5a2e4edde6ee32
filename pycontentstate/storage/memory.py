"""
PyContentState In-Memory Storage

Dictionary-backed storage for tests and deployments that do not need
user data to outlive the process.
"""

from typing import Dict, List, Optional, Tuple

from pycontentstate.security.permissions import PermissionManager
from pycontentstate.state.models import ContentUserData, FinishedData, User, UserDataKey
from pycontentstate.storage.base import ContentUserDataStorage
from pycontentstate.utils.logging import get_logger

logger = get_logger(__name__)


class MemoryContentUserDataStorage(ContentUserDataStorage):
    """Keeps records in process memory; all operations complete without awaiting."""
    
    def __init__(self, permission_manager: Optional[PermissionManager] = None):
        super().__init__(permission_manager=permission_manager)
        self.user_data: Dict[UserDataKey, ContentUserData] = {}
        self.finished: Dict[Tuple[str, str], FinishedData] = {}
    
    async def load_user_data(
        self,
        content_id: str,
        data_type: str,
        sub_content_id: str,
        user: User
    ) -> Optional[ContentUserData]:
        return self.user_data.get((content_id, user.id, data_type, sub_content_id))
    
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
        record = ContentUserData(
            content_id=content_id,
            user_id=user.id,
            data_type=data_type,
            sub_content_id=sub_content_id,
            user_state=user_state,
            preload=preload,
            invalidate=invalidate,
        )
        self.user_data[record.key] = record
        logger.debug(f"Stored user data {record.key}")
    
    async def delete_user_data_by_user(
        self,
        content_id: str,
        user_id: str,
        requesting_user: User
    ):
        self._authorize_user_delete(user_id, requesting_user)
        
        keys = [key for key in self.user_data if key[0] == content_id and key[1] == user_id]
        for key in keys:
            del self.user_data[key]
        logger.debug(f"Deleted {len(keys)} records of {user_id} for content {content_id}")
    
    async def delete_all_user_data_for_content(
        self,
        content_id: str,
        requesting_user: User
    ):
        self._authorize_content_delete(requesting_user)
        
        keys = [key for key in self.user_data if key[0] == content_id]
        for key in keys:
            del self.user_data[key]
        logger.debug(f"Deleted {len(keys)} records for content {content_id}")
    
    async def list_records_for_content(
        self,
        content_id: str,
        user_id: str
    ) -> List[ContentUserData]:
        return [
            record for key, record in self.user_data.items()
            if key[0] == content_id and key[1] == user_id
        ]
    
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
        self.finished[(content_id, user.id)] = FinishedData(
            content_id=content_id,
            user_id=user.id,
            score=score,
            max_score=max_score,
            opened_timestamp=opened_timestamp,
            finished_timestamp=finished_timestamp,
            completion_time=completion_time,
        )
        logger.debug(f"Stored finished data of {user.id} for content {content_id}")
    
    async def list_completions_for_content(
        self,
        content_id: str,
        requesting_user: User
    ) -> List[FinishedData]:
        show_all = self._can_list_all_completions(requesting_user)
        return [
            finished for (cid, uid), finished in self.finished.items()
            if cid == content_id and (show_all or uid == requesting_user.id)
        ]
