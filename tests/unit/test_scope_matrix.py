"""Unit tests for the role → scope matrix."""

from __future__ import annotations

import pytest

from fleet_rbac.rbac.roles import (
    DepartmentScope,
    ExternalScope,
    FleetScope,
    Module,
    Role,
    ScopeDimension,
    SelfScope,
    VesselScope,
    level_rank,
    parse_module,
    parse_role,
    valid_levels,
)
from fleet_rbac.rbac.scope_matrix import (
    SCOPE_MATRIX,
    get_scope,
    get_scope_access,
    has_full_vessel_reach,
    is_self_bounded,
)


class TestCompleteness:
    """Every role has a level on every dimension."""

    @pytest.mark.parametrize("role", list(Role))
    def test_every_role_has_entry(self, role: Role) -> None:
        assert role in SCOPE_MATRIX

    @pytest.mark.parametrize("role", list(Role))
    def test_levels_belong_to_their_dimension(self, role: Role) -> None:
        for dimension in ScopeDimension:
            assert get_scope(role, dimension) in valid_levels(dimension)


class TestGetScope:
    """Test get_scope() lookups."""

    def test_superadmin_configures_external(self) -> None:
        assert get_scope(Role.SUPERADMIN, ScopeDimension.EXTERNAL) is ExternalScope.CONFIGURE

    def test_dpa_has_fleet_and_external_view(self) -> None:
        assert get_scope(Role.DPA, ScopeDimension.FLEET) is FleetScope.FULL
        assert get_scope(Role.DPA, ScopeDimension.EXTERNAL) is ExternalScope.VIEW

    def test_captain_full_vessel_no_fleet(self) -> None:
        assert get_scope(Role.CAPTAIN, ScopeDimension.VESSEL) is VesselScope.FULL
        assert get_scope(Role.CAPTAIN, ScopeDimension.FLEET) is FleetScope.NONE

    def test_purser_vessel_admin(self) -> None:
        assert get_scope(Role.PURSER, ScopeDimension.VESSEL) is VesselScope.ADMIN

    def test_officer_department_read(self) -> None:
        assert get_scope(Role.OFFICER, ScopeDimension.DEPARTMENT) is DepartmentScope.READ

    def test_crew_self_full_vessel_minimal(self) -> None:
        assert get_scope(Role.CREW, ScopeDimension.SELF) is SelfScope.FULL
        assert get_scope(Role.CREW, ScopeDimension.VESSEL) is VesselScope.MINIMAL

    def test_auditors_audit_view(self) -> None:
        for role in (Role.AUDITOR_FLAG, Role.AUDITOR_CLASS):
            assert get_scope(role, ScopeDimension.VESSEL) is VesselScope.AUDIT_VIEW
            assert get_scope(role, ScopeDimension.SELF) is SelfScope.NONE

    def test_external_api_roles(self) -> None:
        travel = get_scope_access(Role.TRAVEL_AGENT)
        employer = get_scope_access(Role.EMPLOYER_API)
        assert travel.external is ExternalScope.FLIGHTS_ONLY
        assert employer.external is ExternalScope.CREW_LIMITED
        assert travel.vessel is VesselScope.NONE
        assert employer.fleet is FleetScope.NONE


class TestLevelRank:
    """Declaration order is the rank within a dimension."""

    def test_vessel_order(self) -> None:
        ranks = [level_rank(level) for level in valid_levels(ScopeDimension.VESSEL)]
        assert ranks == sorted(ranks)
        assert level_rank(VesselScope.NONE) == 0
        assert level_rank(VesselScope.MINIMAL) < level_rank(VesselScope.LIMITED)
        assert level_rank(VesselScope.ADMIN) < level_rank(VesselScope.FULL)


class TestDerivedPredicates:
    """has_full_vessel_reach() and is_self_bounded()."""

    @pytest.mark.parametrize(
        "role",
        [Role.SUPERADMIN, Role.DPA, Role.FLEET_MASTER, Role.CAPTAIN],
    )
    def test_full_vessel_reach(self, role: Role) -> None:
        assert has_full_vessel_reach(role)

    @pytest.mark.parametrize(
        "role",
        [Role.PURSER, Role.CHIEF_OFFICER, Role.HOD, Role.OFFICER, Role.CREW, Role.AUDITOR_FLAG],
    )
    def test_no_full_vessel_reach(self, role: Role) -> None:
        assert not has_full_vessel_reach(role)

    def test_only_crew_is_self_bounded(self) -> None:
        bounded = [role for role in Role if is_self_bounded(role)]
        assert bounded == [Role.CREW]


class TestParsing:
    """parse_module() and parse_role() at the string boundary."""

    def test_parse_module(self) -> None:
        assert parse_module("crew") is Module.CREW
        assert parse_module(Module.AUDITS) is Module.AUDITS
        assert parse_module("payroll") is None

    def test_parse_role(self) -> None:
        assert parse_role("purser") is Role.PURSER
        assert parse_role("Purser") is None
