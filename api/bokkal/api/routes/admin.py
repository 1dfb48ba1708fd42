from fastapi import APIRouter, Body, Depends, Query

from bokkal.api.deps import get_event_queries, get_moderation_engine, http_errors
from bokkal.core.auth import Principal, actor_id_of
from bokkal.core.catalog import CategoryId, City, EventStatus
from bokkal.core.security import get_optional_principal
from bokkal.schemas.admin import (
    AdminFlagPatchRequest,
    AdminStatsOut,
    AdminStatusOut,
    AdminUserOut,
    AdminUserPageOut,
    UserOut,
    VerifiedFlagPatchRequest,
)
from bokkal.schemas.events import EventOut, EventPageOut, RejectRequest
from bokkal.services.moderation import ModerationEngine
from bokkal.services.queries import EventQueries

router = APIRouter()


@router.post("/events/{event_id}/approve", response_model=EventOut)
async def approve_event(
    event_id: str,
    principal: Principal | None = Depends(get_optional_principal),
    engine: ModerationEngine = Depends(get_moderation_engine),
) -> EventOut:
    with http_errors():
        row = await engine.approve_event(actor_id=actor_id_of(principal), event_id=event_id)
    return EventOut(**row)


@router.post("/events/{event_id}/reject", response_model=EventOut)
async def reject_event(
    event_id: str,
    payload: RejectRequest | None = Body(default=None),
    principal: Principal | None = Depends(get_optional_principal),
    engine: ModerationEngine = Depends(get_moderation_engine),
) -> EventOut:
    with http_errors():
        row = await engine.reject_event(
            actor_id=actor_id_of(principal),
            event_id=event_id,
            reason=payload.reason if payload else None,
        )
    return EventOut(**row)


@router.get("/events", response_model=EventPageOut)
async def list_admin_events(
    principal: Principal | None = Depends(get_optional_principal),
    queries: EventQueries = Depends(get_event_queries),
    status_filter: EventStatus | None = Query(default=None, alias="status"),
    category: CategoryId | None = Query(default=None),
    city: City | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=100),
) -> EventPageOut:
    with http_errors():
        result = await queries.list_admin_events(
            actor_id=actor_id_of(principal),
            status=status_filter,
            category=category,
            city=city,
            search=search,
            page=page,
            page_size=page_size,
        )
    return EventPageOut(
        data=[EventOut(**row) for row in result.rows],
        count=result.count,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/stats", response_model=AdminStatsOut)
async def admin_stats(
    principal: Principal | None = Depends(get_optional_principal),
    queries: EventQueries = Depends(get_event_queries),
) -> AdminStatsOut:
    with http_errors():
        stats = await queries.admin_stats(actor_id=actor_id_of(principal))
    return AdminStatsOut(**stats)


@router.get("/users", response_model=AdminUserPageOut)
async def list_admin_users(
    principal: Principal | None = Depends(get_optional_principal),
    queries: EventQueries = Depends(get_event_queries),
    search: str | None = Query(default=None, max_length=200),
    is_admin: bool | None = Query(default=None),
    is_verified: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=100),
) -> AdminUserPageOut:
    with http_errors():
        result = await queries.list_admin_users(
            actor_id=actor_id_of(principal),
            search=search,
            is_admin=is_admin,
            is_verified=is_verified,
            page=page,
            page_size=page_size,
        )
    return AdminUserPageOut(
        data=[AdminUserOut(**row) for row in result.rows],
        count=result.count,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.patch("/users/{user_id}/admin", response_model=UserOut)
async def set_user_admin(
    user_id: str,
    payload: AdminFlagPatchRequest,
    principal: Principal | None = Depends(get_optional_principal),
    engine: ModerationEngine = Depends(get_moderation_engine),
) -> UserOut:
    with http_errors():
        row = await engine.set_user_admin(
            actor_id=actor_id_of(principal),
            user_id=user_id,
            is_admin=payload.is_admin,
        )
    return UserOut(**row)


@router.patch("/users/{user_id}/verified", response_model=UserOut)
async def set_user_verified(
    user_id: str,
    payload: VerifiedFlagPatchRequest,
    principal: Principal | None = Depends(get_optional_principal),
    engine: ModerationEngine = Depends(get_moderation_engine),
) -> UserOut:
    with http_errors():
        row = await engine.set_user_verified(
            actor_id=actor_id_of(principal),
            user_id=user_id,
            is_verified=payload.is_verified,
        )
    return UserOut(**row)


@router.get("/me", response_model=AdminStatusOut)
async def admin_status(
    principal: Principal | None = Depends(get_optional_principal),
    queries: EventQueries = Depends(get_event_queries),
) -> AdminStatusOut:
    with http_errors():
        is_admin = await queries.admin_status(actor_id=actor_id_of(principal))
    return AdminStatusOut(is_admin=is_admin)
