"""
State management modules

This package provides the content user data manager and the records
it exchanges with storage backends.
"""

from pycontentstate.state.manager import ContentUserDataManager
from pycontentstate.state.models import (
    ContentUserData,
    FinishedData,
    SerializedContentUserData,
    User,
)

__all__ = [
    "ContentUserDataManager",
    "ContentUserData",
    "FinishedData",
    "SerializedContentUserData",
    "User",
]
