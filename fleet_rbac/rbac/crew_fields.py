"""Which crew profile fields a user may edit."""

from __future__ import annotations

from collections.abc import Iterable

from fleet_rbac.rbac.roles import Role

ALL_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "preferred_name",
    "email",
    "phone",
    "nationality",
    "date_of_birth",
    "gender",
    "emergency_contact_name",
    "emergency_contact_phone",
    "rank",
    "department",
    "contract_start_date",
    "contract_end_date",
    "rotation",
    "cabin",
    "status",
    "notes",
    "medical_expiry",
    "passport_number",
    "passport_expiry",
    "visa_status",
    # Assignment
    "join_date",
    "position",
    "vessel_id",
)

# Heads of department
BASIC_FIELDS: tuple[str, ...] = (
    "phone",
    "emergency_contact_name",
    "emergency_contact_phone",
    "cabin",
    "notes",
)

OWN_PROFILE_FIELDS: tuple[str, ...] = (
    "preferred_name",
    "phone",
    "emergency_contact_name",
    "emergency_contact_phone",
)

_FULL_EDITORS = frozenset({Role.SUPERADMIN, Role.DPA, Role.CAPTAIN, Role.PURSER})
_BASIC_EDITORS = frozenset({Role.CHIEF_OFFICER, Role.CHIEF_ENGINEER, Role.HOD})


def get_editable_fields(roles: Iterable[Role], is_own_profile: bool) -> list[str]:
    """Union of editable fields across held roles, in ALL_FIELDS order."""
    held = set(roles)
    editable: set[str] = set()
    if held & _FULL_EDITORS:
        editable.update(ALL_FIELDS)
    if held & _BASIC_EDITORS:
        editable.update(BASIC_FIELDS)
    if Role.CREW in held and is_own_profile:
        editable.update(OWN_PROFILE_FIELDS)
    return [name for name in ALL_FIELDS if name in editable]


def can_edit_field(roles: Iterable[Role], field_name: str, is_own_profile: bool) -> bool:
    return field_name in get_editable_fields(roles, is_own_profile)
