from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from typing import Any, Iterator, Mapping

from bokkal.core.errors import AuthenticationError, AuthorizationError, NotFoundError, UpstreamError
from bokkal.services.repository import RepositoryError, RepositoryNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActorContext:
    """Trust flags of the acting user as currently persisted."""

    user_id: str
    is_admin: bool = False
    is_verified: bool = False

    @classmethod
    def from_user_row(cls, user_id: str, row: Mapping[str, Any] | None) -> ActorContext:
        if not row:
            return cls(user_id=user_id)
        return cls(
            user_id=user_id,
            is_admin=bool(row.get("is_admin")),
            is_verified=bool(row.get("is_verified")),
        )


def initial_status(actor: ActorContext) -> str:
    if actor.is_admin or actor.is_verified:
        return "approved"
    return "pending"


def is_owner(actor: ActorContext | None, event: Mapping[str, Any]) -> bool:
    return actor is not None and event.get("user_id") == actor.user_id


def can_approve(actor: ActorContext | None, event: Mapping[str, Any] | None = None) -> bool:
    return actor is not None and actor.is_admin


def can_reject(actor: ActorContext | None, event: Mapping[str, Any] | None = None) -> bool:
    return actor is not None and actor.is_admin


def can_delete(actor: ActorContext | None, event: Mapping[str, Any]) -> bool:
    if actor is None:
        return False
    return actor.is_admin or is_owner(actor, event)


def can_view(actor: ActorContext | None, event: Mapping[str, Any]) -> bool:
    if event.get("status") == "approved":
        return True
    if actor is None:
        return False
    return actor.is_admin or is_owner(actor, event)


def can_set_admin(actor: ActorContext | None, target_user_id: str, is_admin: bool) -> bool:
    if actor is None or not actor.is_admin:
        return False
    return is_admin or target_user_id != actor.user_id


def can_set_verified(actor: ActorContext | None) -> bool:
    return actor is not None and actor.is_admin


@contextmanager
def upstream(operation: str) -> Iterator[None]:
    """Translate record-store failures into domain errors for ``operation``."""
    try:
        yield
    except RepositoryNotFoundError as exc:
        raise NotFoundError(str(exc)) from exc
    except RepositoryError as exc:
        logger.warning("upstream call failed operation=%s error=%s", operation, exc)
        raise UpstreamError(str(exc)) from exc


async def resolve_actor(repository: Any, actor_id: str | None) -> ActorContext:
    """Load the acting user's current trust flags; never trust caller claims."""
    if not actor_id:
        raise AuthenticationError("authentication required")
    with upstream("get_user"):
        row = await repository.get_user(actor_id)
    return ActorContext.from_user_row(actor_id, row)


async def resolve_optional_actor(repository: Any, actor_id: str | None) -> ActorContext | None:
    if not actor_id:
        return None
    return await resolve_actor(repository, actor_id)


async def require_admin(repository: Any, actor_id: str | None) -> ActorContext:
    actor = await resolve_actor(repository, actor_id)
    if not actor.is_admin:
        raise AuthorizationError("admin access required")
    return actor
