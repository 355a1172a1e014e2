"""Records read from the backing store and the session snapshot."""

from __future__ import annotations

import enum
import uuid
from typing import Any

from pydantic import BaseModel, Field, field_validator

from fleet_rbac.rbac.roles import Role  # noqa: TC001 - pydantic needs Role at runtime


class PermissionLevel(enum.StrEnum):
    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"


class RoleAssignment(BaseModel):
    """One role held by the user, optionally bound to a vessel or department."""

    role_name: str
    role_display_name: str | None = None
    vessel_id: str | None = None
    vessel_name: str | None = None
    department: str | None = None
    is_fleet_wide: bool = False

    @field_validator("vessel_id", mode="before")
    @classmethod
    def stringify_vessel_id(cls, v: Any) -> Any:
        # asyncpg returns uuid columns as uuid.UUID
        if isinstance(v, uuid.UUID):
            return str(v)
        return v


class ModulePermission(BaseModel):
    """Per-module view/edit/admin flags for the user."""

    module_key: str
    module_name: str | None = None
    can_view: bool = False
    can_edit: bool = False
    can_admin: bool = False
    scope: str | None = None
    restrictions: dict[str, Any] | None = None


class ModuleDescriptor(BaseModel):
    """A module from the module catalog."""

    key: str
    name: str
    description: str | None = None
    parent_key: str | None = None
    route: str | None = None
    sort_order: int = 0
    is_active: bool = True


class RoleDescriptor(BaseModel):
    """A role from the role catalog."""

    name: str
    display_name: str | None = None
    description: str | None = None
    is_system_role: bool = False
    default_scope: str | None = None


class PermissionRecords(BaseModel):
    """Everything one load reads for a user."""

    user_roles: list[RoleAssignment] = Field(default_factory=list)
    permissions: list[ModulePermission] = Field(default_factory=list)
    modules: list[ModuleDescriptor] = Field(default_factory=list)
    roles: list[RoleDescriptor] = Field(default_factory=list)


class SessionSnapshot(BaseModel):
    """Read-only view of a PermissionSession's state."""

    user_id: str | None = None
    permissions: list[ModulePermission] = Field(default_factory=list)
    user_roles: list[RoleAssignment] = Field(default_factory=list)
    modules: list[ModuleDescriptor] = Field(default_factory=list)
    roles: list[RoleDescriptor] = Field(default_factory=list)
    resolved_roles: list[Role] = Field(default_factory=list)
    is_loading: bool = False
    is_initialized: bool = False
    has_fleet_access: bool = False
    primary_role: Role | None = None
    current_vessel_id: str | None = None
    error: str | None = None
