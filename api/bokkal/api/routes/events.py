from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response, status

from bokkal.api.deps import get_event_queries, get_moderation_engine, http_errors
from bokkal.core.auth import Principal, actor_id_of
from bokkal.core.catalog import CategoryId, City
from bokkal.core.security import get_optional_principal
from bokkal.schemas.events import EventOut, EventPageOut, MyEventsOut
from bokkal.services.moderation import ModerationEngine
from bokkal.services.queries import EventQueries

router = APIRouter()


@router.get("", response_model=EventPageOut)
async def list_events(
    queries: EventQueries = Depends(get_event_queries),
    category: CategoryId | None = Query(default=None),
    city: City | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> EventPageOut:
    with http_errors():
        result = await queries.list_public_events(
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


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: dict[str, Any] = Body(...),
    principal: Principal | None = Depends(get_optional_principal),
    engine: ModerationEngine = Depends(get_moderation_engine),
) -> EventOut:
    with http_errors():
        row = await engine.submit_event(actor_id=actor_id_of(principal), payload=payload)
    return EventOut(**row)


@router.get("/mine", response_model=MyEventsOut)
async def list_my_events(
    principal: Principal | None = Depends(get_optional_principal),
    queries: EventQueries = Depends(get_event_queries),
) -> MyEventsOut:
    with http_errors():
        result = await queries.list_my_events(actor_id=actor_id_of(principal))
    return MyEventsOut(
        data=[EventOut(**row) for row in result["data"]],
        pending_count=result["pending_count"],
        approved_count=result["approved_count"],
        rejected_count=result["rejected_count"],
    )


@router.get("/{event_id}", response_model=EventOut)
async def get_event(
    event_id: str,
    principal: Principal | None = Depends(get_optional_principal),
    queries: EventQueries = Depends(get_event_queries),
) -> EventOut:
    with http_errors():
        row = await queries.get_event(actor_id=actor_id_of(principal), event_id=event_id)
    return EventOut(**row)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    principal: Principal | None = Depends(get_optional_principal),
    engine: ModerationEngine = Depends(get_moderation_engine),
) -> Response:
    with http_errors():
        await engine.delete_event(actor_id=actor_id_of(principal), event_id=event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
