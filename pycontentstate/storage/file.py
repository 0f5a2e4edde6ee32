"""
PyContentState File Storage

This module persists content user data as JSON documents, one pair of
files per content item:

    <directory>/<contentId>-userdata.json
    <directory>/<contentId>-finished.json

Writes go to a temporary file that is atomically renamed over the
target, so readers never observe a partially written document.
"""

import asyncio
import json
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import aiofiles

from pycontentstate.security.permissions import PermissionManager
from pycontentstate.state.models import ContentUserData, FinishedData, User
from pycontentstate.storage.base import ContentUserDataStorage
from pycontentstate.utils.errors import BackendError, handle_async_exception
from pycontentstate.utils.logging import get_logger

logger = get_logger(__name__)

_SAFE_CONTENT_ID = re.compile(r'^[A-Za-z0-9_-]+$')

USER_DATA_SUFFIX = "-userdata.json"
FINISHED_SUFFIX = "-finished.json"

T = TypeVar("T")


class _ContentLock:
    """A lock plus the number of tasks holding or awaiting it."""
    
    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class FileContentUserDataStorage(ContentUserDataStorage):
    """
    JSON file storage using aiofiles.
    
    Read-modify-write cycles on one content item are serialized by a
    per-content asyncio.Lock, which makes upserts and deletes atomic
    within a single process. Locks exist only while a task uses them.
    """
    
    def __init__(
        self,
        directory: Union[str, Path],
        permission_manager: Optional[PermissionManager] = None
    ):
        """
        Initialize file storage.
        
        Args:
            directory: Directory holding the JSON documents (created if missing)
            permission_manager: Optional authorization source for deletes and listings
        
        Raises:
            BackendError: The directory cannot be created
        """
        super().__init__(permission_manager=permission_manager)
        self.directory = Path(directory)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendError(
                f"Failed to create storage directory {self.directory}: {e}",
                details={'path': str(self.directory), 'error': type(e).__name__}
            ) from e
        self._locks: Dict[str, _ContentLock] = {}
        
        logger.debug(f"FileContentUserDataStorage initialized in {self.directory}")
    
    @asynccontextmanager
    async def _locked(self, content_id: str):
        """Hold the content's lock; it is dropped once no task holds or awaits it."""
        entry = self._locks.get(content_id)
        if entry is None:
            entry = self._locks[content_id] = _ContentLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[content_id]
    
    def _path(self, content_id: str, suffix: str) -> Path:
        if not isinstance(content_id, str) or not _SAFE_CONTENT_ID.match(content_id):
            raise BackendError(
                f"Content id is not usable as a file name: {content_id!r}",
                details={'content_id': content_id}
            )
        return self.directory / f"{content_id}{suffix}"
    
    async def _read_list(self, path: Path) -> List[Dict[str, Any]]:
        if not path.exists():
            return []
        
        try:
            async with aiofiles.open(path, 'r') as f:
                data = json.loads(await f.read())
        except (json.JSONDecodeError, IOError) as e:
            raise BackendError(
                f"Failed to read {path.name}: {e}",
                details={'path': str(path), 'error': type(e).__name__}
            ) from e
        
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise BackendError(
                f"Expected a JSON list of objects in {path.name}",
                details={'path': str(path)}
            )
        return data
    
    def _decode(self, path: Path, items: List[Dict[str, Any]], factory: Callable[[Dict[str, Any]], T]) -> List[T]:
        try:
            return [factory(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(
                f"Malformed record in {path.name}: {e!r}",
                details={'path': str(path), 'error': type(e).__name__}
            ) from e
    
    async def _write_list(self, path: Path, items: List[Dict[str, Any]]):
        if not items:
            try:
                if path.exists():
                    path.unlink()
            except OSError as e:
                raise BackendError(
                    f"Failed to remove {path.name}: {e}",
                    details={'path': str(path), 'error': type(e).__name__}
                ) from e
            return
        
        temp_path = path.with_suffix('.tmp')
        try:
            async with aiofiles.open(temp_path, 'w') as f:
                await f.write(json.dumps(items, indent=2))
            
            # Atomic rename
            temp_path.replace(path)
        except (IOError, OSError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise BackendError(
                f"Failed to write {path.name}: {e}",
                details={'path': str(path), 'error': type(e).__name__}
            ) from e
    
    async def _modify(self, content_id: str, suffix: str, change: Callable[[Path, List[Dict[str, Any]]], List[Dict[str, Any]]]):
        path = self._path(content_id, suffix)
        async with self._locked(content_id):
            items = await self._read_list(path)
            await self._write_list(path, change(path, items))
    
    @handle_async_exception
    async def load_user_data(
        self,
        content_id: str,
        data_type: str,
        sub_content_id: str,
        user: User
    ) -> Optional[ContentUserData]:
        for record in await self.list_records_for_content(content_id, user.id):
            if record.data_type == data_type and record.sub_content_id == sub_content_id:
                return record
        return None
    
    @handle_async_exception
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
        
        def upsert(path, items):
            stored = self._decode(path, items, ContentUserData.from_dict)
            kept = [item for item, existing in zip(items, stored) if existing.key != record.key]
            kept.append(record.to_dict())
            return kept
        
        await self._modify(content_id, USER_DATA_SUFFIX, upsert)
        logger.debug(f"Stored user data {record.key}")
    
    @handle_async_exception
    async def delete_user_data_by_user(
        self,
        content_id: str,
        user_id: str,
        requesting_user: User
    ):
        self._authorize_user_delete(user_id, requesting_user)
        await self._modify(
            content_id,
            USER_DATA_SUFFIX,
            lambda path, items: [item for item in items if item.get('userId') != user_id]
        )
        logger.debug(f"Deleted records of {user_id} for content {content_id}")
    
    @handle_async_exception
    async def delete_all_user_data_for_content(
        self,
        content_id: str,
        requesting_user: User
    ):
        self._authorize_content_delete(requesting_user)
        await self._modify(content_id, USER_DATA_SUFFIX, lambda path, items: [])
        logger.debug(f"Deleted all records for content {content_id}")
    
    @handle_async_exception
    async def list_records_for_content(
        self,
        content_id: str,
        user_id: str
    ) -> List[ContentUserData]:
        path = self._path(content_id, USER_DATA_SUFFIX)
        async with self._locked(content_id):
            items = await self._read_list(path)
        return self._decode(
            path,
            [item for item in items if item.get('userId') == user_id],
            ContentUserData.from_dict
        )
    
    @handle_async_exception
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
        finished = FinishedData(
            content_id=content_id,
            user_id=user.id,
            score=score,
            max_score=max_score,
            opened_timestamp=opened_timestamp,
            finished_timestamp=finished_timestamp,
            completion_time=completion_time,
        )
        
        def upsert(path, items):
            kept = [item for item in items if item.get('userId') != user.id]
            kept.append(finished.to_dict())
            return kept
        
        await self._modify(content_id, FINISHED_SUFFIX, upsert)
        logger.debug(f"Stored finished data of {user.id} for content {content_id}")
    
    @handle_async_exception
    async def list_completions_for_content(
        self,
        content_id: str,
        requesting_user: User
    ) -> List[FinishedData]:
        path = self._path(content_id, FINISHED_SUFFIX)
        async with self._locked(content_id):
            items = await self._read_list(path)
        
        show_all = self._can_list_all_completions(requesting_user)
        return self._decode(
            path,
            [item for item in items if show_all or item.get('userId') == requesting_user.id],
            FinishedData.from_dict
        )
