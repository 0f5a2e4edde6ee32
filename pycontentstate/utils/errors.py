"""
PyContentState exception classes

This module defines all custom exceptions used throughout PyContentState,
providing clear error messages and proper exception hierarchy.
"""

from functools import wraps
from typing import Optional


class PyContentStateError(Exception):
    """Base exception for all PyContentState errors"""
    
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
    
    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(PyContentStateError):
    """Malformed call arguments, raised before any storage access"""
    pass


class BackendError(PyContentStateError):
    """Failures raised by a storage backend"""
    pass


class PermissionError(PyContentStateError):
    """A requesting user lacks the permission for a storage operation"""
    pass


class ConfigError(PyContentStateError):
    """Errors related to configuration management"""
    pass


def handle_exception(func):
    """
    Decorator to handle exceptions and convert them to PyContentState exceptions
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PyContentStateError:
            raise
        except Exception as e:
            raise PyContentStateError(
                f"Unexpected error in {func.__name__}: {str(e)}",
                details={'original_exception': type(e).__name__}
            ) from e
    return wrapper


def handle_async_exception(func):
    """
    Async decorator to handle exceptions and convert them to PyContentState exceptions
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyContentStateError:
            raise
        except Exception as e:
            raise PyContentStateError(
                f"Unexpected error in {func.__name__}: {str(e)}",
                details={'original_exception': type(e).__name__}
            ) from e
    return wrapper
