"""Session-scoped permission state and its backing-store readers."""

from __future__ import annotations

from fleet_rbac.session.models import (
    ModuleDescriptor,
    ModulePermission,
    PermissionLevel,
    PermissionRecords,
    RoleAssignment,
    RoleDescriptor,
    SessionSnapshot,
)
from fleet_rbac.session.factory import create_permission_session
from fleet_rbac.session.source import PermissionLoadError, PermissionSource, SqlPermissionSource
from fleet_rbac.session.store import PermissionSession

__all__ = [
    "ModuleDescriptor",
    "ModulePermission",
    "PermissionLevel",
    "PermissionLoadError",
    "PermissionRecords",
    "PermissionSession",
    "PermissionSource",
    "RoleAssignment",
    "RoleDescriptor",
    "SessionSnapshot",
    "SqlPermissionSource",
    "create_permission_session",
]
