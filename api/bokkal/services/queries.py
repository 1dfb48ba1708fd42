from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import math
from typing import Any, Callable

from bokkal.core.errors import NotFoundError, ValidationError
from bokkal.services.access import can_view, require_admin, resolve_actor, resolve_optional_actor, upstream

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Page:
    rows: list[dict[str, Any]] = field(default_factory=list)
    count: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.count / self.page_size) if self.page_size else 0


def page_window(page: int, page_size: int) -> tuple[int, int]:
    """Return ``(limit, offset)`` for a 1-based page."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
    return page_size, (page - 1) * page_size


def start_of_day(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


class EventQueries:
    """Read side over the record store, applying the same visibility rules as the backend."""

    def __init__(
        self,
        repository: Any,
        *,
        clock: Callable[[], datetime] = _utcnow,
        admin_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.repository = repository
        self._clock = clock
        self.admin_page_size = admin_page_size

    async def list_public_events(
        self,
        *,
        category: str | None = None,
        city: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        limit, offset = page_window(page, page_size)
        with upstream("list_events"):
            rows, total = await self.repository.list_events(
                status="approved",
                category=category,
                city=city,
                search=search,
                starts_on_or_after=start_of_day(self._clock()),
                sort="start_date",
                limit=limit,
                offset=offset,
            )
        return Page(rows=rows, count=total, page=page, page_size=page_size)

    async def get_event(self, *, actor_id: str | None, event_id: str) -> dict[str, Any]:
        actor = await resolve_optional_actor(self.repository, actor_id)
        with upstream("get_event"):
            event = await self.repository.get_event(event_id)
        # Hidden events are reported as missing so their existence does not leak.
        if event is None or not can_view(actor, event):
            raise NotFoundError("event not found")
        return event

    async def list_my_events(self, *, actor_id: str | None) -> dict[str, Any]:
        actor = await resolve_actor(self.repository, actor_id)
        with upstream("list_events"):
            rows, _ = await self.repository.list_events(
                owner_id=actor.user_id,
                sort="created_at",
                limit=MAX_PAGE_SIZE * 10,
            )
        counts = {"pending": 0, "approved": 0, "rejected": 0}
        for row in rows:
            status = row.get("status")
            if status in counts:
                counts[status] += 1
        return {
            "data": rows,
            "pending_count": counts["pending"],
            "approved_count": counts["approved"],
            "rejected_count": counts["rejected"],
        }

    async def list_admin_events(
        self,
        *,
        actor_id: str | None,
        status: str | None = None,
        category: str | None = None,
        city: str | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        await require_admin(self.repository, actor_id)
        size = page_size or self.admin_page_size
        limit, offset = page_window(page, size)
        with upstream("list_events"):
            rows, total = await self.repository.list_events(
                status=status,
                category=category,
                city=city,
                search=search,
                sort="created_at",
                limit=limit,
                offset=offset,
            )
        return Page(rows=rows, count=total, page=page, page_size=size)

    async def list_admin_users(
        self,
        *,
        actor_id: str | None,
        search: str | None = None,
        is_admin: bool | None = None,
        is_verified: bool | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page:
        await require_admin(self.repository, actor_id)
        size = page_size or self.admin_page_size
        limit, offset = page_window(page, size)
        with upstream("list_users"):
            rows, total = await self.repository.list_users(
                search=search,
                is_admin=is_admin,
                is_verified=is_verified,
                limit=limit,
                offset=offset,
            )
        return Page(rows=rows, count=total, page=page, page_size=size)

    async def admin_stats(self, *, actor_id: str | None) -> dict[str, int]:
        await require_admin(self.repository, actor_id)
        with upstream("admin_stats"):
            total_events = await self.repository.count_events()
            pending_events = await self.repository.count_events(status="pending")
            total_users = await self.repository.count_users()
            verified_users = await self.repository.count_users(is_verified=True)
        return {
            "total_events": total_events,
            "pending_events": pending_events,
            "total_users": total_users,
            "verified_users": verified_users,
        }

    async def admin_status(self, *, actor_id: str | None) -> bool:
        actor = await resolve_optional_actor(self.repository, actor_id)
        return actor is not None and actor.is_admin
