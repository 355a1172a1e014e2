"""Evaluation context and record-level restriction kinds."""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PermissionContext:
    """Who is acting on what.

    Every field is optional. A restriction is applied only when the fields it
    compares are present; an empty context leaves the decision to the matrix.
    """

    user_id: str | None = None
    target_user_id: str | None = None
    is_self: bool | None = None
    vessel_id: str | None = None
    target_vessel_id: str | None = None
    user_department: str | None = None
    target_department: str | None = None

    @property
    def has_self_fields(self) -> bool:
        return self.is_self is not None or (
            self.user_id is not None and self.target_user_id is not None
        )

    @property
    def targets_self(self) -> bool:
        if self.is_self is not None:
            return self.is_self
        return self.user_id is not None and self.user_id == self.target_user_id

    @property
    def crosses_vessel(self) -> bool:
        return (
            self.vessel_id is not None
            and self.target_vessel_id is not None
            and self.vessel_id != self.target_vessel_id
        )

    def with_defaults(self, **defaults: Any) -> PermissionContext:
        """Fill fields that are still None from ``defaults``."""
        missing = {k: v for k, v in defaults.items() if getattr(self, k) is None}
        return replace(self, **missing) if missing else self


class RestrictionKind(enum.StrEnum):
    """Restrictions a module permission record can carry."""

    VESSEL_ONLY = "vessel_only"
    DEPARTMENT_ONLY = "department_only"
    SELF_ONLY = "self_only"


def parse_restrictions(payload: Mapping[str, Any] | None) -> frozenset[RestrictionKind]:
    """Convert a ``{"vessel_only": true, ...}`` payload into restriction kinds.

    Keys with a falsy value are ignored; unknown keys are logged and dropped.
    """
    if not payload:
        return frozenset()

    kinds: set[RestrictionKind] = set()
    for key, enabled in payload.items():
        if not enabled:
            continue
        try:
            kinds.add(RestrictionKind(key))
        except ValueError:
            logger.warning("Ignoring unknown permission restriction %r", key)
    return frozenset(kinds)
