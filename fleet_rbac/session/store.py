"""Per-session permission state.

Lifecycle:
  empty → load_permissions(user_id) → initialized → ... → reset() → empty

Every query fails closed until a load has succeeded. Loads are tagged with a
monotonic token: a result that arrives after a newer load started, or after
reset(), is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from fleet_rbac.monitoring.metrics import (
    permission_load_seconds,
    permission_loads_total,
    session_checks_denied_total,
)
from fleet_rbac.rbac.context import PermissionContext, RestrictionKind, parse_restrictions
from fleet_rbac.rbac.evaluator import (
    PermissionEvaluator,
    get_highest_role,
    has_fleet_access,
    resolve_roles,
)
from fleet_rbac.rbac.roles import Module, Role, parse_role
from fleet_rbac.session.models import (
    ModuleDescriptor,
    ModulePermission,
    PermissionLevel,
    PermissionRecords,
    RoleAssignment,
    RoleDescriptor,
    SessionSnapshot,
)
from fleet_rbac.session.source import PermissionLoadError

if TYPE_CHECKING:
    from fleet_rbac.session.source import PermissionSource

logger = logging.getLogger(__name__)


class PermissionSession:
    """Resolved roles and module grants for one authenticated user.

    Construct one per authentication session and pass it to whatever needs
    permission decisions. Call reset() on sign-out.
    """

    def __init__(
        self,
        source: PermissionSource,
        evaluator: PermissionEvaluator | None = None,
    ) -> None:
        self._source = source
        self._evaluator = evaluator or PermissionEvaluator()
        self._load_token = 0
        self.current_vessel_id: str | None = None
        self.is_loading = False
        self.error: str | None = None
        self._clear_grants()

    def _clear_grants(self) -> None:
        self.user_id: str | None = None
        self.permissions: list[ModulePermission] = []
        self.user_roles: list[RoleAssignment] = []
        self.modules: list[ModuleDescriptor] = []
        self.roles: list[RoleDescriptor] = []
        self.resolved_roles: list[Role] = []
        self.is_initialized = False
        self.has_fleet_access = False
        self.primary_role: Role | None = None
        self._permissions_by_key: dict[str, ModulePermission] = {}

    # --- Lifecycle ---

    @property
    def source(self) -> PermissionSource:
        return self._source

    async def load_permissions(self, user_id: str) -> None:
        """Fetch and resolve the user's permissions.

        Never raises for a failed fetch: the failure is kept in ``error`` and
        the session stays uninitialized. No retries. Cancellation propagates.
        """
        self._load_token += 1
        token = self._load_token

        if user_id != self.user_id:
            # Another user's grants must not answer queries while this load runs
            self._clear_grants()
        self.is_loading = True
        self.error = None
        started = time.monotonic()

        try:
            records = await self._source.fetch(user_id)
        except asyncio.CancelledError:
            if token == self._load_token:
                self.is_loading = False
                permission_loads_total.labels(status="cancelled").inc()
                logger.info(
                    "Permission load cancelled for %s",
                    user_id,
                    extra={"user_id": user_id, "load_token": token},
                )
            raise
        except Exception as exc:
            if token != self._load_token:
                permission_loads_total.labels(status="superseded").inc()
                return
            message = exc.message if isinstance(exc, PermissionLoadError) else str(exc)
            logger.error(
                "Permission load failed for %s: %s",
                user_id,
                message,
                exc_info=not isinstance(exc, PermissionLoadError),
                extra={"user_id": user_id, "load_token": token},
            )
            self._clear_grants()
            self.error = message or "Failed to load permissions"
            self.is_loading = False
            permission_loads_total.labels(status="error").inc()
            return

        if token != self._load_token:
            logger.info(
                "Discarding superseded permission load for %s",
                user_id,
                extra={"user_id": user_id, "load_token": token},
            )
            permission_loads_total.labels(status="superseded").inc()
            return

        self._apply(user_id, records)
        elapsed = time.monotonic() - started
        permission_load_seconds.observe(elapsed)
        permission_loads_total.labels(status="success").inc()
        logger.info(
            "Permissions loaded for %s: roles=%s modules=%d",
            user_id,
            ",".join(self.resolved_roles),
            len(self.permissions),
            extra={"user_id": user_id, "load_token": token, "duration_ms": int(elapsed * 1000)},
        )

    def _apply(self, user_id: str, records: PermissionRecords) -> None:
        resolved = resolve_roles(assignment.role_name for assignment in records.user_roles)

        self.user_id = user_id
        self.user_roles = list(records.user_roles)
        self.permissions = list(records.permissions)
        self.modules = list(records.modules)
        self.roles = list(records.roles)
        self.resolved_roles = resolved
        self.has_fleet_access = has_fleet_access(resolved) or any(
            assignment.is_fleet_wide for assignment in records.user_roles
        )
        self.primary_role = get_highest_role(resolved)
        self._permissions_by_key = {perm.module_key: perm for perm in records.permissions}
        self.is_loading = False
        self.is_initialized = True

    def reset(self) -> None:
        """Return to the empty state. Any load still in flight is discarded."""
        self._load_token += 1
        self._clear_grants()
        self.current_vessel_id = None
        self.is_loading = False
        self.error = None
        logger.debug("Permission session reset")

    # --- Module grants ---

    def has_permission(
        self, module_key: Module | str, level: PermissionLevel | str = "view"
    ) -> bool:
        if not self.is_initialized:
            return False
        try:
            parsed_level = PermissionLevel(level)
        except ValueError:
            return False
        perm = self._permissions_by_key.get(str(module_key))
        if perm is None:
            return False
        if parsed_level is PermissionLevel.VIEW:
            return perm.can_view
        if parsed_level is PermissionLevel.EDIT:
            return perm.can_edit
        return perm.can_admin

    def can_view(self, module_key: Module | str) -> bool:
        return self.has_permission(module_key, PermissionLevel.VIEW)

    def can_edit(self, module_key: Module | str) -> bool:
        return self.has_permission(module_key, PermissionLevel.EDIT)

    def can_admin(self, module_key: Module | str) -> bool:
        return self.has_permission(module_key, PermissionLevel.ADMIN)

    def get_visible_modules(self) -> list[ModuleDescriptor]:
        """Catalog modules the user can view, in catalog order."""
        if not self.is_initialized:
            return []
        viewable = {perm.module_key for perm in self.permissions if perm.can_view}
        return [module for module in self.modules if module.key in viewable]

    def get_restrictions(self, module_key: Module | str) -> frozenset[RestrictionKind]:
        perm = self._permissions_by_key.get(str(module_key))
        if perm is None:
            return frozenset()
        return parse_restrictions(perm.restrictions)

    # --- Roles ---

    def has_role(self, role_name: Role | str) -> bool:
        """Membership test against loaded assignments.

        Accepts a Role, a stored role name or a display name.
        """
        if isinstance(role_name, Role):
            return role_name in self.resolved_roles
        wanted = role_name.strip().lower()
        for assignment in self.user_roles:
            if assignment.role_name.lower() == wanted:
                return True
            if assignment.role_display_name and assignment.role_display_name.lower() == wanted:
                return True
        role = parse_role(wanted)
        return role is not None and role in self.resolved_roles

    # --- Contextual decisions ---

    def set_current_vessel(self, vessel_id: str | None) -> None:
        self.current_vessel_id = vessel_id

    def _user_department(self) -> str | None:
        for assignment in self.user_roles:
            if assignment.department:
                return assignment.department
        return None

    def build_context(self, **targets: Any) -> PermissionContext:
        """Context for the acting user with the given targets.

        ``user_id``, ``vessel_id`` and ``user_department`` default to the
        session's user, current vessel and assigned department.
        """
        return PermissionContext(**targets).with_defaults(
            user_id=self.user_id,
            vessel_id=self.current_vessel_id,
            user_department=self._user_department(),
        )

    def check(
        self,
        module: Module | str,
        action: str,
        context: PermissionContext | None = None,
    ) -> bool:
        """Evaluate ``module.action`` for this user, then apply record restrictions."""
        if not self.is_initialized:
            session_checks_denied_total.labels(reason="not_initialized").inc()
            return False

        ctx = (context or PermissionContext()).with_defaults(
            user_id=self.user_id,
            vessel_id=self.current_vessel_id,
            user_department=self._user_department(),
        )
        if not self._evaluator.has_permission(self.resolved_roles, module, action, ctx):
            return False

        if not _passes_record_restrictions(self.get_restrictions(module), ctx):
            session_checks_denied_total.labels(reason="restriction").inc()
            logger.debug(
                "Record restriction denied %s.%s for %s",
                module,
                action,
                self.user_id,
                extra={
                    "user_id": self.user_id,
                    "rbac_module": str(module),
                    "rbac_action": action,
                },
            )
            return False
        return True

    def effective_permissions(self) -> dict[str, list[str]]:
        if not self.is_initialized:
            return {}
        return self._evaluator.effective_permissions(self.resolved_roles)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            user_id=self.user_id,
            permissions=self.permissions,
            user_roles=self.user_roles,
            modules=self.modules,
            roles=self.roles,
            resolved_roles=self.resolved_roles,
            is_loading=self.is_loading,
            is_initialized=self.is_initialized,
            has_fleet_access=self.has_fleet_access,
            primary_role=self.primary_role,
            current_vessel_id=self.current_vessel_id,
            error=self.error,
        )


def _passes_record_restrictions(
    restrictions: frozenset[RestrictionKind], ctx: PermissionContext
) -> bool:
    for kind in restrictions:
        if kind is RestrictionKind.VESSEL_ONLY:
            if ctx.target_vessel_id is not None and (
                ctx.vessel_id is None or ctx.crosses_vessel
            ):
                return False
        elif kind is RestrictionKind.DEPARTMENT_ONLY:
            if ctx.target_department is not None and (
                ctx.user_department is None
                or ctx.user_department.casefold() != ctx.target_department.casefold()
            ):
                return False
        elif kind is RestrictionKind.SELF_ONLY:
            if ctx.has_self_fields and not ctx.targets_self:
                return False
    return True
