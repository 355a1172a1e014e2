"""Roles, scope dimensions and scope levels.

Every value the RBAC core reasons about is a closed enum. Raw strings coming
from the backing store are converted at the boundary (see evaluator.resolve_role_name).
"""

from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Application roles, in precedence order (highest first)."""

    SUPERADMIN = "superadmin"
    DPA = "dpa"
    FLEET_MASTER = "fleet_master"
    CAPTAIN = "captain"
    PURSER = "purser"
    CHIEF_OFFICER = "chief_officer"
    CHIEF_ENGINEER = "chief_engineer"
    HOD = "hod"
    OFFICER = "officer"
    CREW = "crew"
    AUDITOR_FLAG = "auditor_flag"
    AUDITOR_CLASS = "auditor_class"
    TRAVEL_AGENT = "travel_agent"
    EMPLOYER_API = "employer_api"


ROLE_LABELS: dict[Role, str] = {
    Role.SUPERADMIN: "Superadmin",
    Role.DPA: "DPA",
    Role.FLEET_MASTER: "Fleet Master",
    Role.CAPTAIN: "Captain/Master",
    Role.PURSER: "Purser",
    Role.CHIEF_OFFICER: "Chief Officer",
    Role.CHIEF_ENGINEER: "Chief Engineer",
    Role.HOD: "Head of Department",
    Role.OFFICER: "Officer",
    Role.CREW: "Crew",
    Role.AUDITOR_FLAG: "Flag State Auditor",
    Role.AUDITOR_CLASS: "Classification Auditor",
    Role.TRAVEL_AGENT: "Travel Agent",
    Role.EMPLOYER_API: "Employer API",
}

# Definition order of Role is the precedence order
ROLE_PRECEDENCE: tuple[Role, ...] = tuple(Role)

AUDITOR_ROLES: frozenset[Role] = frozenset({Role.AUDITOR_FLAG, Role.AUDITOR_CLASS})
EXTERNAL_ROLES: frozenset[Role] = frozenset(
    {Role.AUDITOR_FLAG, Role.AUDITOR_CLASS, Role.TRAVEL_AGENT, Role.EMPLOYER_API}
)


class ScopeDimension(enum.StrEnum):
    """Axes along which a role's reach is measured."""

    FLEET = "fleet"
    VESSEL = "vessel"
    DEPARTMENT = "department"
    SELF = "self"
    EXTERNAL = "external"


# Level enums are declared lowest first; the declaration order is the rank.


class FleetScope(enum.StrEnum):
    NONE = "none"
    READ = "read"
    FULL = "full"


class VesselScope(enum.StrEnum):
    NONE = "none"
    AUDIT_VIEW = "audit_view"
    MINIMAL = "minimal"
    LIMITED = "limited"
    READ = "read"
    ADMIN = "admin"
    FULL = "full"


class DepartmentScope(enum.StrEnum):
    NONE = "none"
    READ = "read"
    FULL = "full"


class SelfScope(enum.StrEnum):
    NONE = "none"
    FULL = "full"


class ExternalScope(enum.StrEnum):
    NONE = "none"
    FLIGHTS_ONLY = "flights_only"
    CREW_LIMITED = "crew_limited"
    VIEW = "view"
    CONFIGURE = "configure"


ScopeLevel = FleetScope | VesselScope | DepartmentScope | SelfScope | ExternalScope

LEVELS_BY_DIMENSION: dict[ScopeDimension, type[enum.StrEnum]] = {
    ScopeDimension.FLEET: FleetScope,
    ScopeDimension.VESSEL: VesselScope,
    ScopeDimension.DEPARTMENT: DepartmentScope,
    ScopeDimension.SELF: SelfScope,
    ScopeDimension.EXTERNAL: ExternalScope,
}


def level_rank(level: ScopeLevel) -> int:
    """Position of a level within its own dimension (0 = none)."""
    return list(type(level)).index(level)


def valid_levels(dimension: ScopeDimension) -> tuple[ScopeLevel, ...]:
    """All levels allowed for a dimension, lowest first."""
    return tuple(LEVELS_BY_DIMENSION[dimension])  # type: ignore[arg-type]


class Department(enum.StrEnum):
    """Shipboard departments used by department-scoped roles."""

    DECK = "Deck"
    ENGINE = "Engine"
    INTERIOR = "Interior"
    GALLEY = "Galley"


class Module(enum.StrEnum):
    """Functional areas covered by the permission matrix."""

    USERS = "users"
    VESSELS = "vessels"
    FLEET_MAP = "fleet_map"
    CREW = "crew"
    FLIGHTS = "flights"
    ALERTS = "alerts"
    TEMPLATES = "templates"
    SUBMISSIONS = "submissions"
    INCIDENTS = "incidents"
    INVESTIGATIONS = "investigations"
    DRILLS = "drills"
    TRAINING = "training"
    FAMILIARIZATION = "familiarization"
    VESSEL_CERTIFICATES = "vessel_certificates"
    CORRECTIVE_ACTIONS = "corrective_actions"
    AUDITS = "audits"
    RISK_ASSESSMENTS = "risk_assessments"
    DOCUMENTS = "documents"
    MAINTENANCE = "maintenance"
    EXTERNAL = "external"


def parse_module(module: Module | str) -> Module | None:
    """Return the Module for a key, or None when the key is unknown."""
    if isinstance(module, Module):
        return module
    try:
        return Module(module)
    except ValueError:
        return None


def parse_role(role: Role | str) -> Role | None:
    """Return the Role for an exact role value, or None."""
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None
