"""Unit tests for the CLI tool."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from fleet_rbac.cli.main import _mask_secret, _mask_url_password, app
from fleet_rbac.config import DatabaseSettings, LoggingSettings, RBACSettings, Settings
from fleet_rbac.session.models import ModulePermission
from fleet_rbac.session.store import PermissionSession
from tests.unit.mocks.mock_permission_source import MockPermissionSource, make_records

runner = CliRunner()


class TestVersion:
    """Test 'version' command."""

    def test_shows_version(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "Fleet RBAC v" in result.output


class TestConfigCheck:
    """Test 'config check' command."""

    def test_valid_config_passes(self) -> None:
        settings = Settings(database=DatabaseSettings(url="postgresql+asyncpg://u:p@h/db"))
        with patch("fleet_rbac.cli.main.get_settings", return_value=settings):
            result = runner.invoke(app, ["config", "check"])
        assert result.exit_code == 0
        assert "passed" in result.output.lower()

    def test_invalid_config_fails(self) -> None:
        settings = Settings(rbac=RBACSettings(restriction_policy="sometimes"))
        with patch("fleet_rbac.cli.main.get_settings", return_value=settings):
            result = runner.invoke(app, ["config", "check"])
        assert result.exit_code == 1
        assert "RBAC_RESTRICTION_POLICY" in result.output


class TestConfigShow:
    """Test 'config show' command."""

    def test_masks_database_password(self) -> None:
        settings = Settings(
            database=DatabaseSettings(url="postgresql+asyncpg://fleet:very-secret-pw@db/fleet")
        )
        with patch("fleet_rbac.cli.main.get_settings", return_value=settings):
            result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "very-secret-pw" not in result.output
        assert "very-s***" in result.output

    def test_shows_sections(self) -> None:
        with patch("fleet_rbac.cli.main.get_settings", return_value=Settings()):
            result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        for section in ("[database]", "[redis]", "[logging]", "[rbac]"):
            assert section in result.output


class TestMatrixCommands:
    """Commands that read the static matrices."""

    def test_roles_in_precedence_order(self) -> None:
        result = runner.invoke(app, ["roles"])
        assert result.exit_code == 0
        assert result.output.index("superadmin") < result.output.index("employer_api")
        assert "Captain/Master" in result.output

    def test_scopes(self) -> None:
        result = runner.invoke(app, ["scopes", "purser"])
        assert result.exit_code == 0
        assert "vessel" in result.output
        assert "admin" in result.output

    def test_scopes_unknown_role(self) -> None:
        result = runner.invoke(app, ["scopes", "bosun"])
        assert result.exit_code == 2

    def test_permissions_union(self) -> None:
        result = runner.invoke(app, ["permissions", "crew", "travel_agent"])
        assert result.exit_code == 0
        assert "[crew]" in result.output
        assert "edit_own_limited" in result.output
        assert "update_booking" in result.output

    def test_who_can(self) -> None:
        result = runner.invoke(app, ["who-can", "crew", "delete_crew"])
        assert result.exit_code == 0
        assert result.output.split() == ["superadmin", "dpa"]

    def test_who_can_unknown_action(self) -> None:
        result = runner.invoke(app, ["who-can", "crew", "keelhaul"])
        assert result.exit_code == 1

    def test_legacy(self) -> None:
        result = runner.invoke(app, ["legacy", "MASTER"])
        assert result.exit_code == 0
        assert "captain" in result.output
        assert "(legacy)" in result.output


class TestCheckCommand:
    """Test 'check' command."""

    def test_allow(self) -> None:
        result = runner.invoke(app, ["check", "incidents", "list_all", "crew", "captain"])
        assert result.exit_code == 0
        assert "allow" in result.output

    def test_deny(self) -> None:
        result = runner.invoke(app, ["check", "incidents", "list_all", "crew"])
        assert result.exit_code == 1
        assert "deny" in result.output

    def test_vessel_options(self) -> None:
        args = ["check", "crew", "edit_profile", "purser"]
        args += ["--vessel", "v1", "--target-vessel", "v2"]
        assert runner.invoke(app, args).exit_code == 1

    def test_strict_flag(self) -> None:
        args = [
            "check", "crew", "edit_profile", "purser", "captain",
            "--vessel", "v1", "--target-vessel", "v2",
        ]
        assert runner.invoke(app, args).exit_code == 0
        assert runner.invoke(app, [*args, "--strict"]).exit_code == 1

    def test_self_flag(self) -> None:
        base = ["check", "crew", "edit_own_limited", "crew"]
        assert runner.invoke(app, [*base, "--self"]).exit_code == 0
        assert runner.invoke(app, [*base, "--not-self"]).exit_code == 1

    def test_unknown_module(self) -> None:
        result = runner.invoke(app, ["check", "payroll", "view", "dpa"])
        assert result.exit_code == 2


class TestSessionCommand:
    """Test 'session' command (database load mocked)."""

    def test_prints_visible_modules(self) -> None:
        source = MockPermissionSource({
            "u-1": make_records(
                "captain",
                permissions=[
                    ModulePermission(module_key="crew", can_view=True),
                    ModulePermission(module_key="incidents", can_view=False),
                ],
            ),
        })
        with (
            patch("fleet_rbac.cli.main.setup_logging"),
            patch(
                "fleet_rbac.cli.main.create_permission_session",
                return_value=PermissionSession(source),
            ),
        ):
            result = runner.invoke(app, ["session", "u-1"])
        assert result.exit_code == 0
        assert "captain" in result.output
        assert "Crew" in result.output
        assert "Incidents" not in result.output
        assert "Vessels" not in result.output

    def test_load_failure(self) -> None:
        source = MockPermissionSource()
        source.fail("u-1", "connection refused")
        with (
            patch("fleet_rbac.cli.main.setup_logging"),
            patch(
                "fleet_rbac.cli.main.create_permission_session",
                return_value=PermissionSession(source),
            ),
        ):
            result = runner.invoke(app, ["session", "u-1"])
        assert result.exit_code == 1
        assert "connection refused" in result.output

    def test_configures_logging_from_settings(self) -> None:
        settings = Settings(logging=LoggingSettings(level="DEBUG", format="text"))
        source = MockPermissionSource({"u-1": make_records("crew")})
        with (
            patch("fleet_rbac.cli.main.get_settings", return_value=settings),
            patch("fleet_rbac.cli.main.setup_logging") as mock_setup,
            patch(
                "fleet_rbac.cli.main.create_permission_session",
                return_value=PermissionSession(source),
            ) as mock_create,
        ):
            result = runner.invoke(app, ["session", "u-1"])
        assert result.exit_code == 0
        mock_setup.assert_called_once_with(level="DEBUG", format_type="text")
        mock_create.assert_called_once_with(settings)

    def test_source_closed_after_load(self) -> None:
        source = MockPermissionSource({"u-1": make_records("crew")})
        source.close = AsyncMock()
        with (
            patch("fleet_rbac.cli.main.setup_logging"),
            patch(
                "fleet_rbac.cli.main.create_permission_session",
                return_value=PermissionSession(source),
            ),
        ):
            runner.invoke(app, ["session", "u-1"])
        source.close.assert_awaited_once()


class TestMasking:
    """Test secret masking utilities."""

    def test_mask_long_secret(self) -> None:
        assert _mask_secret("fleet_dev_pass") == "fleet_***"

    def test_mask_short_secret(self) -> None:
        assert _mask_secret("abc") == "***"

    def test_url_without_password(self) -> None:
        assert _mask_url_password("redis://localhost:6379/0") == "redis://localhost:6379/0"
