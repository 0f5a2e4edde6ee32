"""
PyContentState Test Suite

This package contains tests for PyContentState including:
- Unit tests for the state manager, models and error handling
- Storage backend tests against the in-memory and file backends
"""
