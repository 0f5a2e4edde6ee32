"""
PyContentState test configuration and fixtures

This module provides shared test fixtures, configuration,
and utilities for the entire test suite.
"""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from pycontentstate.security.permissions import PermissionManager
from pycontentstate.state.manager import ContentUserDataManager
from pycontentstate.state.models import User
from pycontentstate.storage.file import FileContentUserDataStorage
from pycontentstate.storage.memory import MemoryContentUserDataStorage
from pycontentstate.utils.logging import get_logger


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_dir = Path(tempfile.mkdtemp(prefix="pycontentstate_test_"))
    try:
        yield temp_dir
    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def user() -> User:
    """The user taking part in most tests."""
    return User(id="user-1", name="Alice", email="alice@example.com")


@pytest.fixture
def other_user() -> User:
    """A second user sharing the same content."""
    return User(id="user-2", name="Bob", email="bob@example.com")


@pytest.fixture
def memory_storage() -> MemoryContentUserDataStorage:
    """In-memory backend without authorization."""
    return MemoryContentUserDataStorage()


@pytest.fixture
def file_storage(temp_dir: Path) -> FileContentUserDataStorage:
    """File backend rooted in the temporary directory."""
    return FileContentUserDataStorage(temp_dir / "userdata")


@pytest.fixture
def permission_manager() -> PermissionManager:
    """Empty permission manager."""
    return PermissionManager()


@pytest.fixture(params=["memory", "file"])
def storage(request, temp_dir: Path):
    """Each storage backend in turn."""
    if request.param == "memory":
        return MemoryContentUserDataStorage()
    return FileContentUserDataStorage(temp_dir / "userdata")


@pytest.fixture
def manager(storage) -> ContentUserDataManager:
    """Manager over each storage backend."""
    return ContentUserDataManager(storage)


@pytest.fixture
def unconfigured_manager() -> ContentUserDataManager:
    """Manager running without a storage backend."""
    return ContentUserDataManager()


@pytest.fixture
def logger():
    """Get a test logger instance."""
    return get_logger("test", level="DEBUG")


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "filesystem: mark test as touching the file system")


def pytest_collection_modifyitems(config, items):
    """Mark tests that use the file backend."""
    for item in items:
        if "file_storage" in getattr(item, "fixturenames", ()) or "temp_dir" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.filesystem)
