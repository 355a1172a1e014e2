"""Module × action → allowed roles.

Deny by default: a (module, action) pair that is not listed, or a role that is
not in the pair's set, is denied. There is no wildcard; superadmin appears in
every entry explicitly and the import-time check below keeps it that way.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from fleet_rbac.rbac.roles import ROLE_PRECEDENCE, Module, Role, parse_module

# Shorthand groups used only to keep the table readable
_VESSEL_COMMAND = ("captain", "purser", "chief_officer", "chief_engineer", "hod", "officer")
_SHIPBOARD = (*_VESSEL_COMMAND, "crew")

# ── Raw table ────────────────────────────────────────────────

_RAW_MATRIX: dict[str, dict[str, tuple[str, ...]]] = {
    # Authentication & users
    "users": {
        "list": ("superadmin", "dpa", "captain"),
        "view_profile": ("superadmin", "dpa", "captain", "purser", "hod", "officer", "crew"),
        "update_profile": ("superadmin", "dpa", "captain"),
        "update_own_limited": ("superadmin", "crew"),
        "send_invitation": ("superadmin", "dpa", "captain", "purser"),
        "bulk_invite": ("superadmin", "dpa"),
    },
    "vessels": {
        "list": ("superadmin", "dpa", "fleet_master", *_VESSEL_COMMAND),
        "view": ("superadmin", "dpa", "fleet_master", *_VESSEL_COMMAND),
        "update": ("superadmin", "dpa", "captain"),
        "update_company_details": ("superadmin", "dpa"),
        "update_emergency_details": ("superadmin", "dpa", "captain"),
        "view_dashboard": ("superadmin", "dpa", "fleet_master", *_VESSEL_COMMAND),
        "view_crew_onboard": ("superadmin", "dpa", "captain"),
        "override_crew_onboard": ("superadmin", "dpa"),
    },
    # Fleet map & AIS
    "fleet_map": {
        "view_all": ("superadmin", "dpa", "fleet_master"),
        "view_assigned": ("superadmin", "captain", "purser", "chief_officer", "chief_engineer"),
        "view_vessel_detail": ("superadmin", "dpa", "captain"),
        "view_ais_history": ("superadmin", "dpa", "captain"),
        "refresh_ais": ("superadmin",),
    },
    "crew": {
        "list": ("superadmin", "dpa", "fleet_master", "captain", "purser", "hod", "officer"),
        "view_profile": (
            "superadmin", "dpa", "fleet_master", "captain", "purser", "hod", "officer", "crew",
        ),
        "edit_profile": ("superadmin", "dpa", "captain", "purser"),
        "edit_own_limited": ("superadmin", "crew"),
        "add_crew": ("superadmin", "dpa", "captain", "purser"),
        "delete_crew": ("superadmin", "dpa"),
        "import_csv": ("superadmin", "dpa", "purser"),
        "confirm_import": ("superadmin", "dpa", "purser"),
        "view_assignments": ("superadmin", "dpa", "captain"),
        "create_assignment": ("superadmin", "dpa", "captain"),
        "view_certificates": (
            "superadmin", "dpa", "fleet_master", "captain", "purser", "hod", "officer", "crew",
        ),
        "add_certificate": ("superadmin", "dpa", "captain", "purser"),
        "edit_certificate": ("superadmin", "dpa", "captain", "purser"),
        "delete_certificate": ("superadmin", "dpa"),
        "view_attachments": (
            "superadmin", "dpa", "fleet_master", "captain", "purser", "hod", "officer", "crew",
        ),
        "upload_attachment": ("superadmin", "dpa", "captain", "purser"),
        "delete_attachment": ("superadmin", "dpa"),
        "view_audit_log": ("superadmin", "dpa", "captain"),
        "send_invitation": ("superadmin", "dpa", "captain", "purser"),
        "view_salary": ("superadmin", "dpa", "purser", "crew"),
        "view_medical": ("superadmin", "dpa", "captain", "crew"),
        "view_disciplinary": ("superadmin", "dpa", "captain"),
    },
    "flights": {
        "list_all": ("superadmin", "dpa"),
        "list_vessel": ("superadmin", "captain", "purser"),
        "list_assigned": ("superadmin", "travel_agent"),
        "view": ("superadmin", "dpa", "captain", "purser", "travel_agent", "crew"),
        "create": ("superadmin", "dpa", "captain", "purser"),
        "update": ("superadmin", "dpa", "captain", "purser"),
        "send_to_agent": ("superadmin", "dpa", "captain", "purser"),
        "add_booking": ("superadmin", "dpa", "travel_agent"),
        "update_booking": ("superadmin", "dpa", "travel_agent"),
        "confirm_booking": ("superadmin", "dpa", "travel_agent"),
        "upload_documents": ("superadmin", "dpa", "travel_agent"),
        "generate_travel_letter": ("superadmin", "dpa", "captain", "purser"),
    },
    "alerts": {
        "list_fleet": ("superadmin", "dpa", "fleet_master"),
        "list_vessel": ("superadmin", "captain", "purser", "hod"),
        "view_summary": ("superadmin", "dpa", "captain"),
        "acknowledge": ("superadmin", "dpa", "captain", "purser", "hod"),
        "snooze": ("superadmin", "dpa", "captain"),
        "resolve": ("superadmin", "dpa", "captain", "purser"),
        "reassign": ("superadmin", "dpa"),
        "configure_rules": ("superadmin", "dpa"),
    },
    # SMS forms & checklists
    "templates": {
        "list": ("superadmin", "dpa", *_VESSEL_COMMAND),
        "view": ("superadmin", "dpa", *_VESSEL_COMMAND),
        "create": ("superadmin", "dpa"),
        "update": ("superadmin", "dpa"),
        "publish": ("superadmin", "dpa"),
    },
    "submissions": {
        "list": ("superadmin", "dpa", "captain", "auditor_flag"),
        "view": ("superadmin", "dpa", *_VESSEL_COMMAND, "auditor_flag"),
        "create": ("superadmin", "dpa", *_SHIPBOARD),
        "update_own": ("superadmin", "dpa", *_SHIPBOARD),
        "submit": ("superadmin", "dpa", *_SHIPBOARD),
        "sign": ("superadmin", "dpa", *_SHIPBOARD),
        "reject": ("superadmin", "dpa", *_SHIPBOARD),
        "amend": ("superadmin", "dpa"),
        "add_attachment": ("superadmin", "dpa", *_SHIPBOARD),
    },
    "incidents": {
        "list_all": ("superadmin", "dpa", "fleet_master", "captain", "purser"),
        "list_vessel": ("superadmin", "chief_officer", "chief_engineer", "hod", "officer"),
        "list_anonymized": ("superadmin", "crew"),
        "view": ("superadmin", "dpa", "fleet_master", *_VESSEL_COMMAND),
        "create": ("superadmin", "dpa", *_SHIPBOARD),
        "update": ("superadmin", "dpa", "captain"),
        "edit_own": ("superadmin", *_SHIPBOARD),
        "open_investigation": ("superadmin", "dpa", "captain"),
        "approve_no_investigation": ("superadmin", "dpa"),
        "notify_shipping_master": ("superadmin", "dpa", "captain"),
    },
    "investigations": {
        "view": ("superadmin", "dpa", "captain"),
        "update": ("superadmin", "dpa", "captain"),
        "complete": ("superadmin", "dpa"),
    },
    # Drills & training
    "drills": {
        "list_types": ("superadmin", "dpa", *_VESSEL_COMMAND),
        "list_occurrences": ("superadmin", "dpa", "fleet_master", "captain", "purser"),
        "view": ("superadmin", "dpa", "fleet_master", *_VESSEL_COMMAND, "auditor_flag"),
        "create_occurrence": ("superadmin", "dpa", "captain", "purser"),
        "update_occurrence": ("superadmin", "dpa", "captain"),
        "complete_occurrence": ("superadmin", "dpa", "captain", "purser"),
        "view_crew_matrix": ("superadmin", "dpa", "captain", "auditor_flag", "auditor_class"),
        "view_vessel_matrix": ("superadmin", "dpa", "captain", "auditor_flag", "auditor_class"),
    },
    "training": {
        "list": ("superadmin", "dpa", "fleet_master", "captain", "purser"),
        "view": (
            "superadmin", "dpa", "fleet_master", "captain", "purser", "hod", "officer", "crew",
        ),
        "create": ("superadmin", "dpa", "captain", "purser", "hod"),
        "update": ("superadmin", "dpa", "captain", "purser"),
    },
    "familiarization": {
        "view": ("superadmin", "dpa", "captain", "purser"),
        "update": ("superadmin", "dpa", "captain", "purser"),
    },
    "vessel_certificates": {
        "list": (
            "superadmin", "dpa", "fleet_master", "captain", "purser",
            "auditor_flag", "auditor_class",
        ),
        "view": (
            "superadmin", "dpa", "fleet_master", "captain", "purser",
            "auditor_flag", "auditor_class",
        ),
        "upload": ("superadmin", "dpa", "captain", "purser"),
        "update": ("superadmin", "dpa", "captain"),
        "review": ("superadmin", "dpa"),
    },
    # CAPA
    "corrective_actions": {
        "list": ("superadmin", "dpa", "fleet_master", "captain", "purser"),
        "view": (
            "superadmin", "dpa", "fleet_master", "captain", "purser",
            "chief_officer", "chief_engineer", "hod",
        ),
        "create": ("superadmin", "dpa", "captain"),
        "update": ("superadmin", "dpa", "captain", "purser"),
        "close": ("superadmin", "dpa", "captain"),
        "verify": ("superadmin", "dpa"),
    },
    "audits": {
        "list": ("superadmin", "dpa", "fleet_master", "captain", "auditor_flag", "auditor_class"),
        "view": ("superadmin", "dpa", "fleet_master", "captain", "auditor_flag", "auditor_class"),
        "schedule": ("superadmin", "dpa"),
        "conduct": ("superadmin", "dpa", "auditor_flag", "auditor_class"),
        "complete": ("superadmin", "dpa"),
        "manage_findings": ("superadmin", "dpa", "captain"),
    },
    "risk_assessments": {
        "list": ("superadmin", "dpa", "fleet_master", *_VESSEL_COMMAND),
        "view": ("superadmin", "dpa", "fleet_master", *_VESSEL_COMMAND),
        "create": ("superadmin", "dpa", *_VESSEL_COMMAND),
        "update": ("superadmin", "dpa", "captain", "purser"),
        "approve": ("superadmin", "dpa", "captain"),
    },
    "documents": {
        "list": ("superadmin", "dpa", "fleet_master", *_SHIPBOARD),
        "view": ("superadmin", "dpa", "fleet_master", *_SHIPBOARD),
        "create": ("superadmin", "dpa", "captain", "purser"),
        "update": ("superadmin", "dpa", "captain", "purser"),
        "delete": ("superadmin", "dpa"),
        "approve": ("superadmin", "dpa"),
    },
    "maintenance": {
        "view_dashboard": ("superadmin", "dpa", "fleet_master", "captain", "chief_engineer"),
        "view_defects": ("superadmin", "dpa", "captain", "chief_engineer", "hod"),
        "view_ism_critical": ("superadmin", "dpa", "captain", "chief_engineer"),
        "create_ism_defect": ("superadmin", "dpa", "captain", "chief_engineer"),
    },
    # External APIs
    "external": {
        "employer_crew": ("superadmin", "employer_api"),
        "auditor_vessel": ("superadmin", "auditor_flag", "auditor_class"),
        "agent_requests": ("superadmin", "travel_agent"),
    },
}


def _build(
    raw: dict[str, dict[str, tuple[str, ...]]],
) -> Mapping[Module, Mapping[str, frozenset[Role]]]:
    matrix: dict[Module, Mapping[str, frozenset[Role]]] = {}
    for module_key, actions in raw.items():
        module = Module(module_key)
        entries: dict[str, frozenset[Role]] = {}
        for action, names in actions.items():
            roles = frozenset(Role(name) for name in names)
            if Role.SUPERADMIN not in roles:
                msg = f"{module_key}.{action} does not list superadmin"
                raise RuntimeError(msg)
            entries[action] = roles
        matrix[module] = MappingProxyType(entries)
    return MappingProxyType(matrix)


PERMISSION_MATRIX: Mapping[Module, Mapping[str, frozenset[Role]]] = _build(_RAW_MATRIX)

# ── Self-scoped actions ──────────────────────────────────────

# Actions on one's own records, regardless of which role grants them
SELF_ONLY_ACTIONS: Mapping[Module, frozenset[str]] = MappingProxyType({
    Module.USERS: frozenset({"update_own_limited"}),
    Module.CREW: frozenset({"edit_own_limited"}),
    Module.INCIDENTS: frozenset({"edit_own"}),
    Module.SUBMISSIONS: frozenset({"update_own"}),
})

# Grants that cover only the holder's own records when held by a self-bounded role
SELF_SCOPED_GRANTS: Mapping[Module, frozenset[str]] = MappingProxyType({
    Module.USERS: frozenset({"view_profile"}),
    Module.CREW: frozenset({
        "view_profile",
        "view_certificates",
        "view_attachments",
        "view_salary",
        "view_medical",
    }),
    Module.TRAINING: frozenset({"view"}),
    Module.FLIGHTS: frozenset({"view"}),
})


# ── Lookups ──────────────────────────────────────────────────


def _allowed_roles(module: Module | str, action: str) -> frozenset[Role]:
    parsed = parse_module(module)
    if parsed is None:
        return frozenset()
    return PERMISSION_MATRIX.get(parsed, {}).get(action, frozenset())


def role_has_permission(role: Role, module: Module | str, action: str) -> bool:
    """True iff the role is listed for (module, action). Unknown pairs deny."""
    return role in _allowed_roles(module, action)


def get_roles_for_action(module: Module | str, action: str) -> list[Role]:
    """Roles allowed to perform an action, highest precedence first."""
    allowed = _allowed_roles(module, action)
    return [role for role in ROLE_PRECEDENCE if role in allowed]


def role_has_module_access(role: Role, module: Module | str) -> bool:
    """True iff the role is allowed at least one action in the module."""
    parsed = parse_module(module)
    if parsed is None:
        return False
    return any(role in roles for roles in PERMISSION_MATRIX.get(parsed, {}).values())


def get_permissions_for_role(role: Role) -> dict[str, list[str]]:
    """Every (module, action) the role is listed for, keyed by module."""
    permissions: dict[str, list[str]] = {}
    for module, actions in PERMISSION_MATRIX.items():
        granted = [action for action, roles in actions.items() if role in roles]
        if granted:
            permissions[module.value] = granted
    return permissions


def iter_permission_pairs() -> Iterator[tuple[Module, str]]:
    for module, actions in PERMISSION_MATRIX.items():
        for action in actions:
            yield module, action


def is_self_only_action(module: Module, action: str) -> bool:
    return action in SELF_ONLY_ACTIONS.get(module, frozenset())


def is_self_scoped_grant(module: Module, action: str) -> bool:
    return action in SELF_SCOPED_GRANTS.get(module, frozenset())
