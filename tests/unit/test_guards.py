"""Unit tests for permission guards."""

from __future__ import annotations

import pytest

from fleet_rbac.guards import PermissionDeniedError, ensure_permission, require_permission
from fleet_rbac.rbac.roles import Module
from fleet_rbac.session.store import PermissionSession


@require_permission(Module.INCIDENTS, "update")
async def close_incident(session: PermissionSession, incident_id: str) -> str:
    return f"closed {incident_id}"


@require_permission(
    Module.CREW,
    "edit_own_limited",
    context_factory=lambda session, target_user_id: session.build_context(
        target_user_id=target_user_id
    ),
)
def update_phone(session: PermissionSession, target_user_id: str) -> str:
    return target_user_id


class TestEnsurePermission:
    def test_raises_before_load(self, session: PermissionSession) -> None:
        with pytest.raises(PermissionDeniedError) as exc_info:
            ensure_permission(session, Module.INCIDENTS, "create")
        assert exc_info.value.module == "incidents"
        assert exc_info.value.action == "create"
        assert "incidents.create" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_passes_when_allowed(self, session: PermissionSession) -> None:
        await session.load_permissions("u-captain")
        ensure_permission(session, Module.INCIDENTS, "create")


class TestRequirePermission:
    @pytest.mark.asyncio
    async def test_async_allowed(self, session: PermissionSession) -> None:
        await session.load_permissions("u-captain")
        assert await close_incident(session, "INC-7") == "closed INC-7"

    @pytest.mark.asyncio
    async def test_async_denied(self, session: PermissionSession) -> None:
        await session.load_permissions("u-crew")
        with pytest.raises(PermissionDeniedError) as exc_info:
            await close_incident(session, "INC-7")
        assert exc_info.value.user_id == "u-crew"

    @pytest.mark.asyncio
    async def test_sync_with_context_factory(self, session: PermissionSession) -> None:
        await session.load_permissions("u-crew")
        assert update_phone(session, "u-crew") == "u-crew"
        with pytest.raises(PermissionDeniedError):
            update_phone(session, "u-other")

    def test_preserves_metadata(self) -> None:
        assert close_incident.__name__ == "close_incident"
        assert update_phone.__name__ == "update_phone"
