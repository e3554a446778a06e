from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable

from fastapi import Depends, HTTPException

from tutoring_scheduler.core.security import verify_token


class Role(str, enum.Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


@dataclass(frozen=True)
class Actor:
    """The caller of an operation: identity plus realm roles."""

    user_id: str
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return is_admin(self.roles)


def get_roles_from_payload(payload: dict) -> list[str]:
    realm_access = payload.get("realm_access") or {}
    roles = realm_access.get("roles") or []
    # Normalize to strings only
    return [r for r in roles if isinstance(r, str)]


def is_admin(roles: Iterable[str]) -> bool:
    return Role.ADMIN.value in set(roles)


def get_actor(payload: dict = Depends(verify_token)) -> Actor:
    """FastAPI dependency: the authenticated caller as an ``Actor``."""
    user_id = payload.get("preferred_username") or payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: no subject")
    return Actor(user_id=user_id, roles=frozenset(get_roles_from_payload(payload)))


def require_roles(allowed_roles: Iterable[str]):
    """
    FastAPI dependency: requires the authenticated user to have at least one of
    the `allowed_roles` realm roles.

    Returns the caller as an ``Actor``.
    """

    allowed = {str(getattr(r, "value", r)) for r in allowed_roles if r}
    if not allowed:
        raise ValueError("require_roles() called with empty allowed_roles")

    def _dep(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.roles.intersection(allowed):
            return actor

        raise HTTPException(status_code=403, detail="Forbidden")

    return _dep
