"""Role → scope level per dimension.

Static configuration. Completeness over all roles and dimensions is checked
once at import time; lookups never fail at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from fleet_rbac.rbac.roles import (
    DepartmentScope,
    ExternalScope,
    FleetScope,
    Role,
    ScopeDimension,
    ScopeLevel,
    SelfScope,
    VesselScope,
    level_rank,
)


@dataclass(frozen=True, slots=True)
class ScopeAccess:
    """Scope levels held by one role."""

    fleet: FleetScope
    vessel: VesselScope
    department: DepartmentScope
    self_: SelfScope  # "self" would clash with the method receiver
    external: ExternalScope

    def level(self, dimension: ScopeDimension) -> ScopeLevel:
        if dimension is ScopeDimension.SELF:
            return self.self_
        return getattr(self, dimension.value)


def _scope(
    fleet: str, vessel: str, department: str, self_: str, external: str
) -> ScopeAccess:
    return ScopeAccess(
        fleet=FleetScope(fleet),
        vessel=VesselScope(vessel),
        department=DepartmentScope(department),
        self_=SelfScope(self_),
        external=ExternalScope(external),
    )


#                                    fleet    vessel        department  self    external
SCOPE_MATRIX: dict[Role, ScopeAccess] = {
    Role.SUPERADMIN:     _scope("full", "full",       "full", "full", "configure"),
    Role.DPA:            _scope("full", "full",       "full", "full", "view"),
    Role.FLEET_MASTER:   _scope("full", "full",       "full", "full", "none"),
    Role.CAPTAIN:        _scope("none", "full",       "full", "full", "none"),
    Role.PURSER:         _scope("none", "admin",      "full", "full", "none"),
    Role.CHIEF_OFFICER:  _scope("none", "read",       "full", "full", "none"),
    Role.CHIEF_ENGINEER: _scope("none", "read",       "full", "full", "none"),
    Role.HOD:            _scope("none", "read",       "full", "full", "none"),
    Role.OFFICER:        _scope("none", "limited",    "read", "full", "none"),
    Role.CREW:           _scope("none", "minimal",    "none", "full", "none"),
    Role.AUDITOR_FLAG:   _scope("none", "audit_view", "none", "none", "none"),
    Role.AUDITOR_CLASS:  _scope("none", "audit_view", "none", "none", "none"),
    Role.TRAVEL_AGENT:   _scope("none", "none",       "none", "none", "flights_only"),
    Role.EMPLOYER_API:   _scope("none", "none",       "none", "none", "crew_limited"),
}  # fmt: skip

_missing = set(Role) - set(SCOPE_MATRIX)
if _missing:
    msg = f"Scope matrix has no entry for roles: {sorted(_missing)}"
    raise RuntimeError(msg)


def get_scope(role: Role, dimension: ScopeDimension) -> ScopeLevel:
    """Return the role's level on one dimension."""
    return SCOPE_MATRIX[role].level(dimension)


def get_scope_access(role: Role) -> ScopeAccess:
    """Return all five levels for a role."""
    return SCOPE_MATRIX[role]


def has_full_vessel_reach(role: Role) -> bool:
    """True for roles whose authority crosses vessel boundaries.

    Fleet-level or full vessel scope exempts a role from vessel-target checks.
    """
    scope = SCOPE_MATRIX[role]
    return scope.vessel is VesselScope.FULL or scope.fleet is FleetScope.FULL


def is_self_bounded(role: Role) -> bool:
    """True for roles whose only full reach is their own records (e.g. crew)."""
    scope = SCOPE_MATRIX[role]
    return (
        scope.self_ is SelfScope.FULL
        and scope.fleet is FleetScope.NONE
        and scope.department is DepartmentScope.NONE
        and level_rank(scope.vessel) <= level_rank(VesselScope.MINIMAL)
    )
