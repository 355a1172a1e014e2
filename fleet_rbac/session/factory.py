"""Wire a PermissionSession from application settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fleet_rbac.config import Settings, get_settings
from fleet_rbac.rbac.evaluator import PermissionEvaluator, RestrictionPolicy
from fleet_rbac.session.cache import CachedPermissionSource
from fleet_rbac.session.source import SqlPermissionSource
from fleet_rbac.session.store import PermissionSession

if TYPE_CHECKING:
    from fleet_rbac.session.source import PermissionSource

logger = logging.getLogger(__name__)


def build_source(settings: Settings) -> PermissionSource:
    """SQL source, behind the Redis cache when RBAC_CACHE_ENABLED is set."""
    source: PermissionSource = SqlPermissionSource.from_url(
        settings.database.url, query_timeout=settings.database.query_timeout
    )
    if settings.rbac.cache_enabled:
        logger.info("Permission cache enabled (ttl=%ss)", settings.redis.permissions_ttl)
        source = CachedPermissionSource.from_url(
            source, settings.redis.url, ttl=settings.redis.permissions_ttl
        )
    return source


def build_evaluator(settings: Settings) -> PermissionEvaluator:
    return PermissionEvaluator(RestrictionPolicy(settings.rbac.restriction_policy))


def create_permission_session(
    settings: Settings | None = None,
    source: PermissionSource | None = None,
) -> PermissionSession:
    """Create an empty session for one authenticated user.

    Raises:
        ValueError: RBAC_RESTRICTION_POLICY is not "any" or "all".
    """
    settings = settings or get_settings()
    return PermissionSession(
        source if source is not None else build_source(settings),
        evaluator=build_evaluator(settings),
    )
