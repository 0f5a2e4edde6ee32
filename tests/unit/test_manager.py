"""
Unit tests for the content user data manager

Tests save/load/delete semantics, invalidation, preload aggregation
and the behavior without a storage backend.
"""

from unittest.mock import AsyncMock

import pytest

from pycontentstate.state.manager import ContentUserDataManager
from pycontentstate.state.models import ContentUserData, FinishedData
from pycontentstate.storage.base import ContentUserDataStorage
from pycontentstate.utils.errors import BackendError, ValidationError


async def _save(manager, user, sub_content_id, state="state", data_type="state",
                preload=True, content_id="content-1"):
    await manager.save_user_data(content_id, data_type, sub_content_id, state, False, preload, user)


class TestSaveAndLoad:
    """Round trips through each backend."""
    
    @pytest.mark.asyncio
    async def test_save_then_load_returns_saved_state(self, manager, user):
        await manager.save_user_data("content-1", "state", "0", '{"progress": 3}', False, True, user)
        
        record = await manager.load_user_data("content-1", "state", "0", user)
        
        assert isinstance(record, ContentUserData)
        assert record.user_state == '{"progress": 3}'
        assert record.user_id == user.id
        assert record.preload is True
    
    @pytest.mark.asyncio
    async def test_save_replaces_existing_record(self, manager, user):
        await manager.save_user_data("content-1", "state", "0", "first", False, True, user)
        await manager.save_user_data("content-1", "state", "0", "second", False, False, user)
        
        record = await manager.load_user_data("content-1", "state", "0", user)
        assert record.user_state == "second"
        assert record.preload is False
    
    @pytest.mark.asyncio
    async def test_load_missing_record_returns_none(self, manager, user):
        assert await manager.load_user_data("content-1", "state", "0", user) is None
    
    @pytest.mark.asyncio
    async def test_records_are_scoped_by_user(self, manager, user, other_user):
        await manager.save_user_data("content-1", "state", "0", "mine", False, True, user)
        
        assert await manager.load_user_data("content-1", "state", "0", other_user) is None


class TestInvalidation:
    """A save with invalidate=True deletes the user's state."""
    
    @pytest.mark.asyncio
    async def test_invalidate_removes_all_records_of_user(self, manager, user):
        await manager.save_user_data("content-1", "state", "0", "a", False, True, user)
        await manager.save_user_data("content-1", "state", "3", "b", False, False, user)
        await manager.save_user_data("content-1", "answers", "0", "c", False, True, user)
        
        await manager.save_user_data("content-1", "unrelated", "99", "ignored", True, True, user)
        
        assert await manager.load_user_data("content-1", "state", "0", user) is None
        assert await manager.load_user_data("content-1", "state", "3", user) is None
        assert await manager.load_user_data("content-1", "answers", "0", user) is None
        assert await manager.load_user_data("content-1", "unrelated", "99", user) is None
    
    @pytest.mark.asyncio
    async def test_invalidate_keeps_other_users_and_contents(self, manager, user, other_user):
        await manager.save_user_data("content-1", "state", "0", "mine", False, True, user)
        await manager.save_user_data("content-1", "state", "0", "theirs", False, True, other_user)
        await manager.save_user_data("content-2", "state", "0", "elsewhere", False, True, user)
        
        await manager.save_user_data("content-1", "state", "0", "", True, False, user)
        
        assert (await manager.load_user_data("content-1", "state", "0", other_user)).user_state == "theirs"
        assert (await manager.load_user_data("content-2", "state", "0", user)).user_state == "elsewhere"
    
    @pytest.mark.asyncio
    async def test_invalidate_calls_delete_instead_of_save(self, user):
        storage = AsyncMock(spec=ContentUserDataStorage)
        manager = ContentUserDataManager(storage)
        
        await manager.save_user_data("content-1", "state", "0", "data", True, True, user)
        
        storage.delete_user_data_by_user.assert_awaited_once_with("content-1", user.id, user)
        storage.save_user_data.assert_not_awaited()


class TestValidation:
    """Non-boolean flags are rejected before storage is touched."""
    
    @pytest.mark.asyncio
    @pytest.mark.parametrize("invalidate,preload", [
        ("true", True),
        (False, "true"),
        (1, False),
        (False, 1),
        (None, False),
        ("1", "1"),
    ])
    async def test_non_boolean_flags_raise_validation_error(self, user, invalidate, preload):
        storage = AsyncMock(spec=ContentUserDataStorage)
        manager = ContentUserDataManager(storage)
        
        with pytest.raises(ValidationError) as exc_info:
            await manager.save_user_data("content-1", "state", "0", "data", invalidate, preload, user)
        
        assert "boolean" in str(exc_info.value)
        assert storage.mock_calls == []
    
    @pytest.mark.asyncio
    async def test_validation_applies_without_storage(self, unconfigured_manager, user):
        with pytest.raises(ValidationError):
            await unconfigured_manager.save_user_data("content-1", "state", "0", "data", "false", True, user)


class TestAggregateForDelivery:
    """Preload filtering and numeric ordering of the delivered sequence."""
    
    @pytest.mark.asyncio
    async def test_records_without_preload_are_excluded(self, manager, user):
        await _save(manager, user, "0", state="zero", preload=True)
        await _save(manager, user, "1", state="one", preload=False)
        await _save(manager, user, "2", state="two", preload=True)
        
        result = await manager.aggregate_for_delivery("content-1", user)
        
        assert result == [{"state": "zero"}, {"state": "two"}]
    
    @pytest.mark.asyncio
    async def test_sub_content_ids_sort_numerically(self, manager, user):
        await _save(manager, user, "2", state="two")
        await _save(manager, user, "10", state="ten")
        await _save(manager, user, "1", state="one")
        
        result = await manager.aggregate_for_delivery("content-1", user)
        
        assert result == [{"state": "one"}, {"state": "two"}, {"state": "ten"}]
    
    @pytest.mark.asyncio
    async def test_non_numeric_sub_content_ids_sort_last(self, manager, user):
        await _save(manager, user, "beta", state="beta")
        await _save(manager, user, "5", state="five")
        await _save(manager, user, "alpha", state="alpha")
        await _save(manager, user, "", state="top")
        
        result = await manager.aggregate_for_delivery("content-1", user)
        
        assert result == [{"state": "top"}, {"state": "five"}, {"state": "beta"}, {"state": "alpha"}]
    
    @pytest.mark.asyncio
    async def test_entries_with_same_data_type_are_not_merged(self, manager, user):
        await _save(manager, user, "0", state="first", data_type="state")
        await _save(manager, user, "1", state="second", data_type="state")
        await _save(manager, user, "2", state="answers", data_type="answers")
        
        result = await manager.aggregate_for_delivery("content-1", user)
        
        assert result == [{"state": "first"}, {"state": "second"}, {"answers": "answers"}]
        assert all(len(entry) == 1 for entry in result)
    
    @pytest.mark.asyncio
    async def test_empty_sequence_when_nothing_is_preloaded(self, manager, user):
        await _save(manager, user, "0", preload=False)
        
        assert await manager.aggregate_for_delivery("content-1", user) == []
    
    @pytest.mark.asyncio
    async def test_only_records_of_the_user_are_delivered(self, manager, user, other_user):
        await _save(manager, user, "0", state="mine")
        await _save(manager, other_user, "1", state="theirs")
        
        assert await manager.aggregate_for_delivery("content-1", user) == [{"state": "mine"}]


class TestDeletion:
    """Bulk deletes by user and by content."""
    
    @pytest.mark.asyncio
    async def test_delete_by_user_removes_every_record_of_user(self, manager, user, other_user):
        await _save(manager, user, "0", data_type="state")
        await _save(manager, user, "1", data_type="answers")
        await _save(manager, other_user, "0", state="theirs")
        
        await manager.delete_user_data_by_user("content-1", user.id, user)
        
        assert await manager.aggregate_for_delivery("content-1", user) == []
        assert await manager.aggregate_for_delivery("content-1", other_user) == [{"state": "theirs"}]
    
    @pytest.mark.asyncio
    async def test_delete_by_user_is_idempotent(self, manager, user):
        await manager.delete_user_data_by_user("content-1", user.id, user)
        await manager.delete_user_data_by_user("content-1", user.id, user)
        
        assert await manager.load_user_data("content-1", "state", "0", user) is None
    
    @pytest.mark.asyncio
    async def test_delete_all_for_content_spares_other_contents(self, manager, user, other_user):
        await _save(manager, user, "0", content_id="content-1")
        await _save(manager, other_user, "0", content_id="content-1")
        await _save(manager, user, "0", state="kept", content_id="content-2")
        
        await manager.delete_all_user_data_for_content("content-1", user)
        
        assert await manager.load_user_data("content-1", "state", "0", user) is None
        assert await manager.load_user_data("content-1", "state", "0", other_user) is None
        assert (await manager.load_user_data("content-2", "state", "0", user)).user_state == "kept"
    
    @pytest.mark.asyncio
    async def test_requesting_user_is_passed_to_storage(self, user, other_user):
        storage = AsyncMock(spec=ContentUserDataStorage)
        manager = ContentUserDataManager(storage)
        
        await manager.delete_user_data_by_user("content-1", other_user.id, user)
        await manager.delete_all_user_data_for_content("content-1", user)
        
        storage.delete_user_data_by_user.assert_awaited_once_with("content-1", other_user.id, user)
        storage.delete_all_user_data_for_content.assert_awaited_once_with("content-1", user)


class TestCompletion:
    """Finished records are forwarded verbatim."""
    
    @pytest.mark.asyncio
    async def test_record_completion_forwards_values_unchanged(self, user):
        storage = AsyncMock(spec=ContentUserDataStorage)
        manager = ContentUserDataManager(storage)
        
        await manager.record_completion("content-1", 12, 10, 2000, 1000, 55, user)
        
        storage.record_completion.assert_awaited_once_with("content-1", 12, 10, 2000, 1000, 55, user)
    
    @pytest.mark.asyncio
    async def test_completion_is_listed_after_recording(self, manager, user):
        await manager.record_completion("content-1", 8, 10, 1000, 1060, 60, user)
        await manager.record_completion("content-1", 9, 10, 2000, 2030, 30, user)
        
        finished = await manager.list_completions("content-1", user)
        
        assert finished == [FinishedData("content-1", user.id, 9, 10, 2000, 2030, 30)]


class TestWithoutStorage:
    """No-op behavior when persistence is disabled."""
    
    def test_storage_configured_flag(self, unconfigured_manager, memory_storage):
        assert unconfigured_manager.storage_configured is False
        assert ContentUserDataManager(memory_storage).storage_configured is True
    
    @pytest.mark.asyncio
    async def test_reads_return_none(self, unconfigured_manager, user):
        assert await unconfigured_manager.load_user_data("content-1", "state", "0", user) is None
        assert await unconfigured_manager.aggregate_for_delivery("content-1", user) is None
        assert await unconfigured_manager.list_completions("content-1", user) is None
    
    @pytest.mark.asyncio
    async def test_mutations_succeed_without_effect(self, unconfigured_manager, user):
        assert await unconfigured_manager.save_user_data("content-1", "state", "0", "x", False, True, user) is None
        assert await unconfigured_manager.save_user_data("content-1", "state", "0", "x", True, True, user) is None
        assert await unconfigured_manager.delete_user_data_by_user("content-1", user.id, user) is None
        assert await unconfigured_manager.delete_all_user_data_for_content("content-1", user) is None
        assert await unconfigured_manager.record_completion("content-1", 1, 1, 0, 1, 1, user) is None


class TestBackendErrors:
    """Storage failures reach the caller unchanged."""
    
    @pytest.mark.asyncio
    async def test_backend_error_is_propagated(self, user):
        storage = AsyncMock(spec=ContentUserDataStorage)
        storage.save_user_data.side_effect = BackendError("disk full")
        manager = ContentUserDataManager(storage)
        
        with pytest.raises(BackendError) as exc_info:
            await manager.save_user_data("content-1", "state", "0", "x", False, True, user)
        
        assert str(exc_info.value) == "disk full"
        storage.save_user_data.assert_awaited_once()
    
    @pytest.mark.asyncio
    async def test_foreign_exceptions_are_not_wrapped(self, user):
        storage = AsyncMock(spec=ContentUserDataStorage)
        error = ConnectionError("database unreachable")
        storage.list_records_for_content.side_effect = error
        manager = ContentUserDataManager(storage)
        
        with pytest.raises(ConnectionError) as exc_info:
            await manager.aggregate_for_delivery("content-1", user)
        
        assert exc_info.value is error
