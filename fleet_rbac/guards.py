"""In-process guards for service functions.

The evaluator and session return booleans. Callers that prefer an exception
on denial (mutation paths, background jobs) use these guards instead.

Usage:
    @require_permission(Module.CREW, "edit_profile",
                        context_factory=lambda session, crew: session.build_context(
                            target_vessel_id=crew.vessel_id))
    async def update_crew(session: PermissionSession, crew: CrewRecord) -> None: ...
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fleet_rbac.rbac.context import PermissionContext
    from fleet_rbac.rbac.roles import Module
    from fleet_rbac.session.store import PermissionSession

logger = logging.getLogger(__name__)


class PermissionDeniedError(Exception):
    """Raised by guards when a session may not perform an action."""

    def __init__(self, module: str, action: str, user_id: str | None = None) -> None:
        self.module = module
        self.action = action
        self.user_id = user_id
        super().__init__(f"Permission denied: {module}.{action}")


def ensure_permission(
    session: PermissionSession,
    module: Module | str,
    action: str,
    context: PermissionContext | None = None,
) -> None:
    """Raise PermissionDeniedError unless the session allows ``module.action``."""
    if not session.check(module, action, context):
        logger.info(
            "Denied %s.%s for %s",
            module,
            action,
            session.user_id,
            extra={"user_id": session.user_id, "rbac_module": str(module), "rbac_action": action},
        )
        raise PermissionDeniedError(str(module), action, session.user_id)


def require_permission(
    module: Module | str,
    action: str,
    context_factory: Callable[..., PermissionContext] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator factory guarding a function whose first argument is the session.

    ``context_factory`` receives the same arguments as the guarded function and
    returns the PermissionContext to evaluate against.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def _async_guarded(session: PermissionSession, *args: Any, **kwargs: Any) -> Any:
                ctx = context_factory(session, *args, **kwargs) if context_factory else None
                ensure_permission(session, module, action, ctx)
                return await func(session, *args, **kwargs)

            return _async_guarded

        @functools.wraps(func)
        def _guarded(session: PermissionSession, *args: Any, **kwargs: Any) -> Any:
            ctx = context_factory(session, *args, **kwargs) if context_factory else None
            ensure_permission(session, module, action, ctx)
            return func(session, *args, **kwargs)

        return _guarded

    return decorator
