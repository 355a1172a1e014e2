"""Audit-mode visibility rules for external roles.

Deny all, then allow explicitly: an external role sees only the modules listed
for it, and record fields matching its redaction patterns are replaced before
they leave the data layer. Patterns ending in ``.*`` match a whole prefix.
"""

from __future__ import annotations

import enum
import string
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fleet_rbac.rbac.roles import AUDITOR_ROLES, Module, Role, parse_module

REDACTED = "[REDACTED]"

_READ_VERBS = frozenset({"list", "view"})


class HRAuditAccess(enum.StrEnum):
    """How much HR data an audit session was granted."""

    NONE = "none"
    EMPLOYMENT_ONLY = "employment_only"
    LIMITED = "limited"
    FULL = "full"


@dataclass(frozen=True)
class AuditModeConfig:
    allowed_modules: frozenset[Module]
    redacted_fields: tuple[str, ...]
    allowed_actions: frozenset[str]
    data_scope: Mapping[str, str] = field(default_factory=dict)
    rate_limit: str | None = None


AUDIT_MODE_RULES: Mapping[Role, AuditModeConfig] = MappingProxyType({
    Role.AUDITOR_FLAG: AuditModeConfig(
        allowed_modules=frozenset({
            Module.VESSELS,
            Module.VESSEL_CERTIFICATES,
            Module.SUBMISSIONS,  # completed forms only
            Module.DRILLS,
            Module.TRAINING,
            Module.INCIDENTS,  # severity, date, status; no names
            Module.CORRECTIVE_ACTIONS,
            Module.AUDITS,
            Module.EXTERNAL,
        }),
        redacted_fields=(
            "crew.salary",
            "crew.medical_details",
            "crew.disciplinary_records",
            "crew.personal_phone",
            "crew.emergency_contact",
            "incident.crew_names",
            "maintenance.*",
            "defects.cost",
            "commercial.*",
            "hr.*",
            "profiles.salary",
            "profiles.compensation",
            "profiles.bank_details",
            "profiles.tax_info",
            "profiles.welfare_notes",
            "profiles.disciplinary",
            "profiles.pay_reviews",
            "profiles.annual_reviews",
            "profiles.performance_evaluations",
            "profiles.medical_records",
            "insurance_policies.premium_amount",
            "insurance_policies.deductible_amount",
            "insurance_policies.coverage_amount",
            "insurance_policies.notes",
            "insurance_claims.*",
        ),
        allowed_actions=frozenset({"view", "export_pdf", "auditor_vessel"}),
        data_scope={"vessels": "assigned_for_audit", "date_range": "audit_period_only"},
    ),
    Role.AUDITOR_CLASS: AuditModeConfig(
        allowed_modules=frozenset({
            Module.VESSELS,
            Module.VESSEL_CERTIFICATES,
            Module.MAINTENANCE,  # class-related defects and ISM critical equipment
            Module.CORRECTIVE_ACTIONS,
            Module.AUDITS,
            Module.EXTERNAL,
        }),
        redacted_fields=(
            "crew.*",
            "hr.*",
            "incidents.*",
            "commercial.*",
            "maintenance.cost",
            "insurance_policies.premium_amount",
            "insurance_policies.deductible_amount",
            "insurance_policies.coverage_amount",
            "insurance_policies.notes",
            "insurance_claims.*",
        ),
        allowed_actions=frozenset({"view", "export_pdf", "auditor_vessel"}),
        data_scope={"vessels": "assigned_for_audit", "date_range": "audit_period_only"},
    ),
    Role.EMPLOYER_API: AuditModeConfig(
        allowed_modules=frozenset({Module.EXTERNAL}),
        redacted_fields=(
            "crew.salary",
            "crew.medical_details",
            "crew.disciplinary_records",
            "crew.personal_phone",
            "crew.emergency_contact",
            "crew.passport_number",
            "crew.visa_details",
            "hr.*",
            "insurance.*",
        ),
        allowed_actions=frozenset({"view", "employer_crew"}),
        data_scope={"vessels": "all"},
        rate_limit="100 requests/hour",
    ),
    Role.TRAVEL_AGENT: AuditModeConfig(
        allowed_modules=frozenset({Module.FLIGHTS, Module.EXTERNAL}),
        redacted_fields=(
            "crew.*",
            "hr.*",
            "incidents.*",
            "maintenance.*",
            "documents.*",
            "insurance.*",
        ),
        allowed_actions=frozenset({
            "view", "update_booking", "upload_documents", "agent_requests",
        }),
    ),
})

EMPLOYER_API_ALLOWED_FIELDS: tuple[str, ...] = (
    "crew.name",
    "crew.rank",
    "crew.position",
    "crew.vessel_assignment",
    "crew.contract_start",
    "crew.contract_end",
    "crew.leave_balance",
    "crew.status",
)

# Never shown to auditors, whatever the HR access level
HR_ABSOLUTELY_RESTRICTED_FIELDS: tuple[str, ...] = (
    "salary",
    "compensation",
    "bank_details",
    "tax_info",
    "disciplinary_records",
    "welfare_notes",
    "medical_records",
    "pay_reviews",
    "annual_reviews",
    "performance_evaluations",
)

INSURANCE_ABSOLUTELY_RESTRICTED_FIELDS: tuple[str, ...] = (
    "premium_amount",
    "deductible_amount",
    "claim_amount",
    "settlement_amount",
    "correspondence_notes",
)

_INSURANCE_AUDIT_SAFE_FIELDS: tuple[str, ...] = (
    "id",
    "policy_type",
    "policy_number",
    "insurer_name",
    "coverage_start_date",
    "coverage_end_date",
    "certificate_url",
    "status",
    "vessel_id",
)

_HR_EMPLOYMENT_FIELDS: tuple[str, ...] = (
    "employment_exists",
    "contract_valid",
    "position",
    "department",
    "vessel_assignment",
)

_HR_LIMITED_FIELDS: tuple[str, ...] = (
    *_HR_EMPLOYMENT_FIELDS,
    "start_date",
    "end_date",
    "contract_type",
    "nationality",
    "certification_status",
)


def is_module_allowed(role: Role, module: Module | str) -> bool:
    """True unless the role runs in audit mode and the module is not listed for it."""
    rules = AUDIT_MODE_RULES.get(role)
    if rules is None:
        return True
    parsed = parse_module(module)
    return parsed is not None and parsed in rules.allowed_modules


def is_action_allowed(role: Role, action: str) -> bool:
    """True unless the role runs in audit mode and the action is not listed for it.

    Where ``view`` is listed, read actions (``list``, ``list_*``, ``view_*``)
    are allowed too.
    """
    rules = AUDIT_MODE_RULES.get(role)
    if rules is None:
        return True
    if action in rules.allowed_actions:
        return True
    return "view" in rules.allowed_actions and action.split("_", 1)[0] in _READ_VERBS


def audit_mode_permits(role: Role, module: Module | str, action: str) -> bool:
    """Whether a role's audit-mode rules let a matrix grant through."""
    return is_module_allowed(role, module) and is_action_allowed(role, action)


def is_auditor_visible(roles: Iterable[Role], module: Module | str) -> bool:
    """True unless an auditor role is held and the module is hidden from it.

    With several auditor roles, the module must be visible to each of them.
    """
    return all(is_module_allowed(role, module) for role in roles if role in AUDITOR_ROLES)


def is_field_redacted(role: Role, field_path: str) -> bool:
    rules = AUDIT_MODE_RULES.get(role)
    if rules is None:
        return False
    for pattern in rules.redacted_fields:
        if pattern.endswith(".*"):
            prefix = pattern[:-2]
            if field_path == prefix or field_path.startswith(prefix + "."):
                return True
        elif field_path == pattern:
            return True
    return False


def redact_data(data: Mapping[str, Any], role: Role, prefix: str = "") -> dict[str, Any]:
    """Return a copy of ``data`` with fields redacted for ``role``.

    Nested mappings are walked with dotted paths (``crew.salary``); lists are
    left as they are.
    """
    if role not in AUDIT_MODE_RULES:
        return dict(data)

    result: dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else key
        if is_field_redacted(role, path):
            result[key] = REDACTED
        elif isinstance(value, Mapping):
            result[key] = redact_data(value, role, path)
        else:
            result[key] = value
    return result


def anonymize_crew_name(index: int) -> str:
    """Stable placeholder for crew names in incident reports."""
    return f"Crew Member {string.ascii_uppercase[index % 26]}"


def mask_field_value(value: str | None, show_chars: int = 3) -> str:
    if not value or len(value) <= show_chars:
        return "***"
    return value[:show_chars] + "***"


def allowed_hr_fields_for_audit(access: HRAuditAccess) -> tuple[str, ...]:
    # FULL maps to the limited set; restricted fields are never included
    if access is HRAuditAccess.NONE:
        return ()
    if access is HRAuditAccess.EMPLOYMENT_ONLY:
        return _HR_EMPLOYMENT_FIELDS
    return _HR_LIMITED_FIELDS


def transform_for_audit_view(
    data: Mapping[str, Any],
    kind: str,
    access: HRAuditAccess | None = None,
) -> dict[str, Any]:
    """Project an HR or insurance record down to its audit-safe fields.

    Args:
        data: The record.
        kind: ``"hr"`` or ``"insurance"``; anything else is returned unchanged.
        access: HR access level of the audit session (HR records only).
    """
    if kind == "hr":
        if access is None or access is HRAuditAccess.NONE:
            return {"access_denied": True}
        allowed: Iterable[str] = allowed_hr_fields_for_audit(access)
        restricted: Iterable[str] = HR_ABSOLUTELY_RESTRICTED_FIELDS
    elif kind == "insurance":
        allowed = _INSURANCE_AUDIT_SAFE_FIELDS
        restricted = INSURANCE_ABSOLUTELY_RESTRICTED_FIELDS
    else:
        return dict(data)

    result = {name: data[name] for name in allowed if name in data}
    for name in restricted:
        if name in data:
            result[name] = REDACTED
    return result
