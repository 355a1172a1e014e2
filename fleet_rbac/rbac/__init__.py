"""Role-based access control for fleet compliance data."""

from __future__ import annotations

from fleet_rbac.rbac.context import PermissionContext, RestrictionKind, parse_restrictions
from fleet_rbac.rbac.evaluator import (
    PermissionEvaluator,
    RestrictionPolicy,
    get_effective_permissions,
    get_highest_role,
    has_fleet_access,
    has_permission,
    is_auditor,
    is_external_user,
    map_legacy_role,
    resolve_role_name,
    resolve_roles,
)
from fleet_rbac.rbac.permission_matrix import (
    PERMISSION_MATRIX,
    get_permissions_for_role,
    get_roles_for_action,
    role_has_module_access,
    role_has_permission,
)
from fleet_rbac.rbac.roles import Department, Module, Role, ScopeDimension
from fleet_rbac.rbac.scope_matrix import SCOPE_MATRIX, get_scope

__all__ = [
    "PERMISSION_MATRIX",
    "SCOPE_MATRIX",
    "Department",
    "Module",
    "PermissionContext",
    "PermissionEvaluator",
    "RestrictionKind",
    "RestrictionPolicy",
    "Role",
    "ScopeDimension",
    "get_effective_permissions",
    "get_highest_role",
    "get_permissions_for_role",
    "get_roles_for_action",
    "get_scope",
    "has_fleet_access",
    "has_permission",
    "is_auditor",
    "is_external_user",
    "map_legacy_role",
    "parse_restrictions",
    "resolve_role_name",
    "resolve_roles",
    "role_has_module_access",
    "role_has_permission",
]
