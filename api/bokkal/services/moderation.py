from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Any, Callable, Mapping

import pydantic

from bokkal.core.catalog import legacy_event_type
from bokkal.core.errors import AuthenticationError, AuthorizationError, NotFoundError, SelfDemotionError, ValidationError
from bokkal.schemas.events import EventCreateRequest
from bokkal.services.access import (
    can_approve,
    can_delete,
    can_reject,
    can_set_admin,
    can_set_verified,
    initial_status,
    require_admin,
    resolve_actor,
    upstream,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ModerationEngine:
    """Event submission and the admin-only moderation transitions.

    Every operation re-reads the actor's trust flags from the user directory and
    checks authorization before issuing any write.
    """

    def __init__(self, repository: Any, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.repository = repository
        self._clock = clock

    async def submit_event(
        self,
        *,
        actor_id: str | None,
        payload: EventCreateRequest | Mapping[str, Any],
    ) -> dict[str, Any]:
        if not actor_id:
            raise AuthenticationError("you must be signed in to create an event")

        request = self._validate_submission(payload)
        actor = await resolve_actor(self.repository, actor_id)

        fields = request.model_dump()
        fields["event_type"] = request.event_type or legacy_event_type(request.category)
        fields["user_id"] = actor.user_id
        fields["status"] = initial_status(actor)

        with upstream("insert_event"):
            row = await self.repository.insert_event(fields)
        logger.info(
            "event submitted event_id=%s actor=%s status=%s",
            row.get("id"),
            actor.user_id,
            fields["status"],
        )
        return row

    async def approve_event(self, *, actor_id: str | None, event_id: str) -> dict[str, Any]:
        actor = await resolve_actor(self.repository, actor_id)
        if not can_approve(actor):
            raise AuthorizationError("admin access required")

        with upstream("approve_event"):
            row = await self.repository.update_event(
                event_id,
                {
                    "status": "approved",
                    "rejection_reason": None,
                    "reviewed_at": self._clock(),
                    "reviewed_by": actor.user_id,
                },
            )
        logger.info("event approved event_id=%s actor=%s", event_id, actor.user_id)
        return row

    async def reject_event(
        self,
        *,
        actor_id: str | None,
        event_id: str,
        reason: str | None = None,
    ) -> dict[str, Any]:
        actor = await resolve_actor(self.repository, actor_id)
        if not can_reject(actor):
            raise AuthorizationError("admin access required")

        normalized_reason = reason.strip() if isinstance(reason, str) else None
        with upstream("reject_event"):
            row = await self.repository.update_event(
                event_id,
                {
                    "status": "rejected",
                    "rejection_reason": normalized_reason or None,
                    "reviewed_at": self._clock(),
                    "reviewed_by": actor.user_id,
                },
            )
        logger.info("event rejected event_id=%s actor=%s", event_id, actor.user_id)
        return row

    async def delete_event(self, *, actor_id: str | None, event_id: str) -> None:
        actor = await resolve_actor(self.repository, actor_id)

        with upstream("get_event"):
            event = await self.repository.get_event(event_id)
        if event is None:
            raise NotFoundError("event not found")
        if not can_delete(actor, event):
            raise AuthorizationError("not allowed to delete this event")

        with upstream("delete_event"):
            await self.repository.delete_event(event_id)
        logger.info("event deleted event_id=%s actor=%s", event_id, actor.user_id)

    async def set_user_admin(self, *, actor_id: str | None, user_id: str, is_admin: bool) -> dict[str, Any]:
        actor = await require_admin(self.repository, actor_id)
        if not can_set_admin(actor, user_id, is_admin):
            raise SelfDemotionError("you cannot remove your own admin status")

        with upstream("update_user_flags"):
            row = await self.repository.update_user_flags(user_id, is_admin=is_admin)
        logger.info("user admin flag set user_id=%s is_admin=%s actor=%s", user_id, is_admin, actor.user_id)
        return row

    async def set_user_verified(self, *, actor_id: str | None, user_id: str, is_verified: bool) -> dict[str, Any]:
        actor = await resolve_actor(self.repository, actor_id)
        if not can_set_verified(actor):
            raise AuthorizationError("admin access required")

        with upstream("update_user_flags"):
            row = await self.repository.update_user_flags(user_id, is_verified=is_verified)
        logger.info(
            "user verified flag set user_id=%s is_verified=%s actor=%s",
            user_id,
            is_verified,
            actor.user_id,
        )
        return row

    @staticmethod
    def _validate_submission(payload: EventCreateRequest | Mapping[str, Any]) -> EventCreateRequest:
        if isinstance(payload, EventCreateRequest):
            return payload
        try:
            return EventCreateRequest.model_validate(dict(payload))
        except pydantic.ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'event'}: {error['msg']}"
                for error in exc.errors()
            )
            raise ValidationError(problems) from exc
