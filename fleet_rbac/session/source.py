"""Backing-store readers for a user's role assignments and module grants.

The tables and functions read here belong to the application database; this
module only reads them.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from fleet_rbac.session.models import (
    ModuleDescriptor,
    ModulePermission,
    PermissionRecords,
    RoleAssignment,
    RoleDescriptor,
)

logger = logging.getLogger(__name__)


class PermissionLoadError(Exception):
    """Raised when a user's permission records cannot be read."""

    def __init__(self, user_id: str, message: str) -> None:
        self.user_id = user_id
        self.message = message
        super().__init__(f"Failed to load permissions for {user_id}: {message}")


@runtime_checkable
class PermissionSource(Protocol):
    """Anything that can read a user's permission records."""

    async def fetch(self, user_id: str) -> PermissionRecords:
        """Read role assignments, module grants and catalogs for a user.

        Raises:
            PermissionLoadError: the records could not be read.
        """
        ...


_USER_ROLES_SQL = text("""
    SELECT role_name, role_display_name, vessel_id, vessel_name,
           department, is_fleet_wide
    FROM get_user_roles_full(:user_id)
""")

_USER_PERMISSIONS_SQL = text("""
    SELECT module_key, module_name, can_view, can_edit, can_admin,
           scope, restrictions
    FROM get_user_permissions_full(:user_id)
""")

_MODULES_SQL = text("""
    SELECT key, name, description, parent_key, route, sort_order, is_active
    FROM modules
    WHERE is_active = true
    ORDER BY sort_order
""")

_ROLES_SQL = text("""
    SELECT name, display_name, description, is_system_role, default_scope
    FROM roles
    ORDER BY name
""")


def _json_field(value: Any) -> Any:
    # asyncpg hands jsonb back as text unless a codec is registered
    if isinstance(value, str):
        return json.loads(value) if value else None
    return value


class SqlPermissionSource:
    """Reads permission records over an async SQLAlchemy engine."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @classmethod
    def from_url(cls, url: str, query_timeout: float | None = None) -> SqlPermissionSource:
        """Engine for ``url``; ``query_timeout`` bounds each statement in seconds."""
        if query_timeout is None:
            return cls(create_async_engine(url, pool_pre_ping=True))
        return cls(
            create_async_engine(
                url,
                pool_pre_ping=True,
                connect_args={"command_timeout": query_timeout},
            )
        )

    async def fetch(self, user_id: str) -> PermissionRecords:
        try:
            async with self._engine.connect() as conn:
                role_rows = await conn.execute(_USER_ROLES_SQL, {"user_id": user_id})
                user_roles = [RoleAssignment(**dict(row._mapping)) for row in role_rows]

                perm_rows = await conn.execute(_USER_PERMISSIONS_SQL, {"user_id": user_id})
                permissions = []
                for row in perm_rows:
                    data = dict(row._mapping)
                    data["restrictions"] = _json_field(data.get("restrictions"))
                    permissions.append(ModulePermission(**data))

                module_rows = await conn.execute(_MODULES_SQL)
                modules = [ModuleDescriptor(**dict(row._mapping)) for row in module_rows]

                catalog_rows = await conn.execute(_ROLES_SQL)
                roles = [RoleDescriptor(**dict(row._mapping)) for row in catalog_rows]
        except (SQLAlchemyError, ValidationError, ValueError, OSError) as exc:
            logger.warning("Permission query failed for user %s", user_id, exc_info=True)
            raise PermissionLoadError(user_id, str(exc)) from exc

        logger.debug(
            "Fetched %d role assignments and %d module grants for %s",
            len(user_roles),
            len(permissions),
            user_id,
        )
        return PermissionRecords(
            user_roles=user_roles,
            permissions=permissions,
            modules=modules,
            roles=roles,
        )

    async def close(self) -> None:
        await self._engine.dispose()
