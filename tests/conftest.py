"""Shared pytest fixtures for all test types."""

from __future__ import annotations

import pytest

from fleet_rbac.rbac.evaluator import PermissionEvaluator
from fleet_rbac.session.models import ModulePermission
from fleet_rbac.session.store import PermissionSession
from tests.unit.mocks.mock_permission_source import MockPermissionSource, make_records


@pytest.fixture
def source() -> MockPermissionSource:
    """A source that knows a captain (u-captain) and a crew member (u-crew)."""
    return MockPermissionSource(
        {
            "u-captain": make_records(
                "captain",
                permissions=[
                    ModulePermission(module_key="incidents", can_view=True, can_edit=True),
                    ModulePermission(module_key="vessels", can_view=True),
                    ModulePermission(module_key="crew", can_view=True, can_edit=True),
                ],
            ),
            "u-crew": make_records(
                "crew",
                permissions=[
                    ModulePermission(
                        module_key="crew",
                        can_view=True,
                        restrictions={"self_only": True},
                    ),
                ],
            ),
        }
    )


@pytest.fixture
def session(source: MockPermissionSource) -> PermissionSession:
    """Create a fresh, empty PermissionSession."""
    return PermissionSession(source, evaluator=PermissionEvaluator())
