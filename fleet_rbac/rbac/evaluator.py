"""Permission evaluation: role union, then contextual restriction.

Base access is the OR across held roles of matrix membership, each role limited
by its audit-mode rules. Restrictions can only narrow that grant. Which
granting roles must pass the restrictions is set by RestrictionPolicy.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable

from fleet_rbac.monitoring.metrics import permission_checks_total
from fleet_rbac.rbac.audit_mode import audit_mode_permits, is_auditor_visible
from fleet_rbac.rbac.context import PermissionContext
from fleet_rbac.rbac.permission_matrix import (
    PERMISSION_MATRIX,
    is_self_only_action,
    is_self_scoped_grant,
    role_has_permission,
)
from fleet_rbac.rbac.roles import (
    AUDITOR_ROLES,
    EXTERNAL_ROLES,
    ROLE_LABELS,
    ROLE_PRECEDENCE,
    Department,
    FleetScope,
    Module,
    Role,
    parse_module,
)
from fleet_rbac.rbac.scope_matrix import SCOPE_MATRIX, has_full_vessel_reach, is_self_bounded

logger = logging.getLogger(__name__)


class RestrictionPolicy(enum.StrEnum):
    """How contextual restrictions combine for multi-role users."""

    ANY_GRANTING_ROLE = "any"  # one granting role passing every restriction is enough
    ALL_GRANTING_ROLES = "all"  # every granting role must pass every restriction


# Roles bound to a fixed department; hod is bound to the user's own department
DEPARTMENT_BINDINGS: dict[Role, Department] = {
    Role.CHIEF_OFFICER: Department.DECK,
    Role.CHIEF_ENGINEER: Department.ENGINE,
}

LEGACY_ROLE_MAP: dict[str, Role] = {
    "master": Role.CAPTAIN,
    "shore_management": Role.DPA,
    "chief_engineer": Role.CHIEF_ENGINEER,
    "chief_officer": Role.CHIEF_OFFICER,
    "crew": Role.CREW,
    "dpa": Role.DPA,
}

# Display names used by the role catalog that are not role values
_ROLE_ALIASES: dict[str, Role] = {
    **{label.lower().replace(" ", "_"): role for role, label in ROLE_LABELS.items()},
    "captain/master": Role.CAPTAIN,
    "hod_deck": Role.HOD,
    "hod_engine": Role.HOD,
    "auditor": Role.AUDITOR_FLAG,
}


# ── Role resolution ──────────────────────────────────────────


def map_legacy_role(legacy_role: str) -> Role:
    """Map a legacy role name onto the role set. Unknown names become crew."""
    return LEGACY_ROLE_MAP.get(legacy_role.strip().lower(), Role.CREW)


def resolve_role_name(name: str) -> Role:
    """Resolve a stored role name, display label or legacy name to a Role.

    Anything unrecognised resolves to crew, the least privileged shipboard role.
    """
    key = name.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return Role(key)
    except ValueError:
        pass
    if key in _ROLE_ALIASES:
        return _ROLE_ALIASES[key]
    if key not in LEGACY_ROLE_MAP:
        logger.warning("Unknown role name %r resolved to crew", name)
    return map_legacy_role(key)


def resolve_roles(names: Iterable[str]) -> list[Role]:
    """Resolve names, drop duplicates and sort by precedence."""
    resolved = {resolve_role_name(name) for name in names}
    return [role for role in ROLE_PRECEDENCE if role in resolved]


def get_highest_role(roles: Iterable[Role]) -> Role | None:
    held = set(roles)
    for role in ROLE_PRECEDENCE:
        if role in held:
            return role
    return None


def has_fleet_access(roles: Iterable[Role]) -> bool:
    return any(SCOPE_MATRIX[role].fleet is FleetScope.FULL for role in roles)


def is_auditor(roles: Iterable[Role]) -> bool:
    return any(role in AUDITOR_ROLES for role in roles)


def is_external_user(roles: Iterable[Role]) -> bool:
    return any(role in EXTERNAL_ROLES for role in roles)


# ── Restrictions ─────────────────────────────────────────────


def _passes_self_scope(role: Role, module: Module, action: str, ctx: PermissionContext) -> bool:
    self_only = is_self_only_action(module, action) or (
        is_self_scoped_grant(module, action) and is_self_bounded(role)
    )
    if not self_only or not ctx.has_self_fields:
        return True
    return ctx.targets_self


def _passes_vessel_scope(role: Role, ctx: PermissionContext) -> bool:
    if has_full_vessel_reach(role):
        return True
    return not ctx.crosses_vessel


def _passes_department_scope(role: Role, ctx: PermissionContext) -> bool:
    if ctx.target_department is None:
        return True

    if role in DEPARTMENT_BINDINGS:
        own: str | None = DEPARTMENT_BINDINGS[role].value
    elif role is Role.HOD:
        own = ctx.user_department
    else:
        return True

    return own is not None and own.casefold() == ctx.target_department.casefold()


def check_context_restrictions(
    role: Role, module: Module, action: str, context: PermissionContext
) -> bool:
    """True if one granting role passes the self, vessel and department checks."""
    return (
        _passes_self_scope(role, module, action, context)
        and _passes_vessel_scope(role, context)
        and _passes_department_scope(role, context)
    )


# ── Decisions ────────────────────────────────────────────────


def _grants(role: Role, module: Module, action: str) -> bool:
    """Matrix membership, limited by the role's audit-mode rules."""
    return role_has_permission(role, module, action) and audit_mode_permits(role, module, action)


def has_permission(
    roles: Iterable[Role],
    module: Module | str,
    action: str,
    context: PermissionContext | None = None,
    policy: RestrictionPolicy = RestrictionPolicy.ANY_GRANTING_ROLE,
) -> bool:
    """Decide whether a user holding ``roles`` may perform ``module.action``.

    Args:
        roles: Every role the user holds. Empty denies.
        module: Module member or key. Unknown keys deny.
        action: Action name within the module. Unknown actions deny.
        context: Optional targets; restrictions apply only to fields present.
        policy: Combination rule when several held roles grant the action.
    """
    held = set(roles)
    if not held:
        return False

    parsed = parse_module(module)
    if parsed is None:
        return False

    granting = [
        role
        for role in ROLE_PRECEDENCE
        if role in held and _grants(role, parsed, action)
    ]
    if not granting:
        return False

    if not is_auditor_visible(held, parsed):
        return False

    if context is None:
        return True

    outcomes = (check_context_restrictions(role, parsed, action, context) for role in granting)
    if policy is RestrictionPolicy.ALL_GRANTING_ROLES:
        return all(outcomes)
    return any(outcomes)


def get_effective_permissions(roles: Iterable[Role]) -> dict[str, list[str]]:
    """Union of matrix grants across roles.

    Auditor-hidden modules and actions outside a role's audit-mode limits
    are left out.
    """
    held = set(roles)
    permissions: dict[str, list[str]] = {}
    for module, actions in PERMISSION_MATRIX.items():
        if not is_auditor_visible(held, module):
            continue
        granted = [
            action
            for action, allowed in actions.items()
            if any(audit_mode_permits(role, module, action) for role in held & allowed)
        ]
        if granted:
            permissions[module.value] = granted
    return permissions


class PermissionEvaluator:
    """Evaluator bound to one restriction policy; records every decision."""

    def __init__(self, policy: RestrictionPolicy = RestrictionPolicy.ANY_GRANTING_ROLE) -> None:
        self.policy = policy

    def has_permission(
        self,
        roles: Iterable[Role],
        module: Module | str,
        action: str,
        context: PermissionContext | None = None,
    ) -> bool:
        held = list(roles)
        allowed = has_permission(held, module, action, context, policy=self.policy)
        permission_checks_total.labels(result="allow" if allowed else "deny").inc()
        logger.debug(
            "Permission %s.%s for roles=%s policy=%s -> %s",
            module,
            action,
            ",".join(held),
            self.policy.value,
            "allow" if allowed else "deny",
        )
        return allowed

    def effective_permissions(self, roles: Iterable[Role]) -> dict[str, list[str]]:
        return get_effective_permissions(roles)
