"""
Security modules

This package provides the permission system storage backends use
for their authorization decisions.
"""

from pycontentstate.security.permissions import Permission, PermissionManager

__all__ = [
    "Permission",
    "PermissionManager",
]
