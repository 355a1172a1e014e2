"""Fleet RBAC admin CLI — main entry point.

Usage:
    fleet-rbac version
    fleet-rbac config check
    fleet-rbac config show
    fleet-rbac roles
    fleet-rbac scopes captain
    fleet-rbac permissions crew purser
    fleet-rbac check crew edit_profile purser --vessel v1 --target-vessel v2
    fleet-rbac who-can incidents list_all
    fleet-rbac legacy shore_management
    fleet-rbac session <user_id>
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import typer

from fleet_rbac import __version__
from fleet_rbac.config import Settings, get_settings
from fleet_rbac.logging.structured_logger import setup_logging
from fleet_rbac.rbac.context import PermissionContext
from fleet_rbac.rbac.evaluator import (
    LEGACY_ROLE_MAP,
    RestrictionPolicy,
    has_permission,
    resolve_role_name,
)
from fleet_rbac.rbac.permission_matrix import get_permissions_for_role, get_roles_for_action
from fleet_rbac.rbac.roles import ROLE_LABELS, ROLE_PRECEDENCE, Role, ScopeDimension, parse_module
from fleet_rbac.rbac.scope_matrix import get_scope
from fleet_rbac.session.factory import create_permission_session

if TYPE_CHECKING:
    from fleet_rbac.session.store import PermissionSession


app = typer.Typer(
    name="fleet-rbac",
    help="Fleet compliance access-control CLI",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration management")
app.add_typer(config_app, name="config")

# Keep first 6 chars of a secret, mask the rest
_SECRET_FIELDS = {"password", "key"}


def _mask_secret(value: str, visible_chars: int = 6) -> str:
    """Mask a secret value, keeping first few characters visible."""
    if len(value) <= visible_chars:
        return "***"
    return value[:visible_chars] + "***"


def _mask_url_password(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.password:
        return url
    return url.replace(f":{parsed.password}@", f":{_mask_secret(parsed.password)}@", 1)


def _collect_config_display(settings: Settings) -> list[tuple[str, str, str]]:
    """Collect (section, key, display_value) tuples from settings."""
    rows: list[tuple[str, str, str]] = []

    for section, sub_settings in settings:
        for sub_name, sub_value in sub_settings:
            display = str(sub_value)
            if sub_name == "url":
                display = _mask_url_password(display)
            elif sub_name in _SECRET_FIELDS and display:
                display = _mask_secret(display)
            rows.append((section, sub_name, display))

    return rows


def _parse_roles(names: list[str]) -> list[Role]:
    roles = []
    for name in names:
        try:
            roles.append(Role(name))
        except ValueError:
            raise typer.BadParameter(
                f"unknown role {name!r} (see 'fleet-rbac roles')", param_hint="ROLES"
            ) from None
    return roles


def _require_module(module: str) -> None:
    if parse_module(module) is None:
        raise typer.BadParameter(f"unknown module {module!r}", param_hint="MODULE")


@app.command()
def version() -> None:
    """Show application version."""
    typer.echo(f"Fleet RBAC v{__version__}")


@config_app.command("check")
def config_check() -> None:
    """Validate configuration and show status of each parameter."""
    settings = get_settings()
    result = settings.validate_required()

    if result.ok:
        typer.echo(typer.style("✅ All configuration checks passed", fg=typer.colors.GREEN))
    else:
        for err in result.errors:
            hint = f"  Hint: {err.hint}" if err.hint else ""
            typer.echo(
                typer.style(f"❌ {err.field}: {err.message}.{hint}", fg=typer.colors.RED)
            )
        typer.echo(f"\n{len(result.errors)} error(s) found.")
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration (secrets are masked)."""
    settings = get_settings()
    rows = _collect_config_display(settings)

    current_section = ""
    for section, key, value in rows:
        if section != current_section:
            if current_section:
                typer.echo("")
            typer.echo(typer.style(f"[{section}]", fg=typer.colors.CYAN, bold=True))
            current_section = section
        typer.echo(f"  {key} = {value}")


@app.command()
def roles() -> None:
    """List roles in precedence order."""
    for rank, role in enumerate(ROLE_PRECEDENCE, start=1):
        typer.echo(f"{rank:>2}. {role.value:<16} {ROLE_LABELS[role]}")


@app.command()
def scopes(role: str) -> None:
    """Show a role's scope level on every dimension."""
    (parsed,) = _parse_roles([role])
    for dimension in ScopeDimension:
        typer.echo(f"  {dimension.value:<11} {get_scope(parsed, dimension).value}")


@app.command()
def permissions(role_names: list[str] = typer.Argument(..., metavar="ROLES")) -> None:
    """List the (module, action) pairs granted to the union of roles."""
    held = _parse_roles(role_names)
    merged: dict[str, list[str]] = {}
    for role in held:
        for module, actions in get_permissions_for_role(role).items():
            bucket = merged.setdefault(module, [])
            bucket.extend(action for action in actions if action not in bucket)

    for module, actions in merged.items():
        typer.echo(typer.style(f"[{module}]", fg=typer.colors.CYAN, bold=True))
        for action in actions:
            typer.echo(f"  {action}")


@app.command()
def check(
    module: str,
    action: str,
    role_names: list[str] = typer.Argument(..., metavar="ROLES"),
    vessel: str | None = typer.Option(None, "--vessel", help="Acting user's vessel"),
    target_vessel: str | None = typer.Option(None, "--target-vessel"),
    user: str | None = typer.Option(None, "--user", help="Acting user id"),
    target_user: str | None = typer.Option(None, "--target-user"),
    is_self: bool | None = typer.Option(None, "--self/--not-self"),
    department: str | None = typer.Option(None, "--department", help="Acting user's department"),
    target_department: str | None = typer.Option(None, "--target-department"),
    strict: bool = typer.Option(False, "--strict", help="Every granting role must pass"),
) -> None:
    """Evaluate one permission for a set of roles. Exit code 1 on deny."""
    _require_module(module)
    held = _parse_roles(role_names)
    context = PermissionContext(
        user_id=user,
        target_user_id=target_user,
        is_self=is_self,
        vessel_id=vessel,
        target_vessel_id=target_vessel,
        user_department=department,
        target_department=target_department,
    )
    policy = RestrictionPolicy.ALL_GRANTING_ROLES if strict else RestrictionPolicy.ANY_GRANTING_ROLE

    if has_permission(held, module, action, context, policy=policy):
        typer.echo(typer.style(f"✅ allow {module}.{action}", fg=typer.colors.GREEN))
        return
    typer.echo(typer.style(f"❌ deny {module}.{action}", fg=typer.colors.RED))
    raise typer.Exit(code=1)


@app.command("who-can")
def who_can(module: str, action: str) -> None:
    """List roles allowed to perform an action, highest precedence first."""
    _require_module(module)
    allowed = get_roles_for_action(module, action)
    if not allowed:
        typer.echo(f"No role may perform {module}.{action}")
        raise typer.Exit(code=1)
    for role in allowed:
        typer.echo(role.value)


@app.command()
def legacy(name: str) -> None:
    """Show how a stored or legacy role name resolves."""
    resolved = resolve_role_name(name)
    note = " (legacy)" if name.strip().lower() in LEGACY_ROLE_MAP else ""
    typer.echo(f"{name} -> {resolved.value}{note}")


async def _load_session(settings: Settings, user_id: str) -> PermissionSession:
    session = create_permission_session(settings)
    try:
        await session.load_permissions(user_id)
    finally:
        close = getattr(session.source, "close", None)
        if close is not None:
            await close()
    return session


@app.command("session")
def session_show(user_id: str) -> None:
    """Load a user's permissions from the database and summarise them."""
    settings = get_settings()
    setup_logging(level=settings.logging.level, format_type=settings.logging.format)

    session = asyncio.run(_load_session(settings, user_id))
    if not session.is_initialized:
        typer.echo(typer.style(f"❌ {session.error}", fg=typer.colors.RED))
        raise typer.Exit(code=1)

    typer.echo(f"User:          {session.user_id}")
    typer.echo(f"Roles:         {', '.join(session.resolved_roles) or '-'}")
    primary = session.primary_role.value if session.primary_role else "-"
    typer.echo(f"Primary role:  {primary}")
    typer.echo(f"Fleet access:  {'yes' if session.has_fleet_access else 'no'}")

    typer.echo("Visible modules:")
    for module in session.get_visible_modules():
        typer.echo(f"  {module.key:<22} {module.name}")


if __name__ == "__main__":
    app()
