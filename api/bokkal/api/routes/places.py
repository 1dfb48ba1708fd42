import asyncio
import json
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from bokkal.api.deps import get_connection_geocoder
from bokkal.core.config import Settings, get_settings
from bokkal.core.errors import ValidationError
from bokkal.schemas.places import LocationSelectionOut, SuggestionsOut
from bokkal.services.geocoder import PhotonGeocoder, get_geocoder
from bokkal.services.resolver import LocationResolver, ResolverPolicy, Suggestions, resolve_once

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/suggest", response_model=SuggestionsOut)
async def suggest_places(
    q: str = Query(default="", max_length=200),
    settings: Settings = Depends(get_settings),
    geocoder: PhotonGeocoder = Depends(get_geocoder),
) -> SuggestionsOut:
    suggestions = await resolve_once(q, geocoder, policy=ResolverPolicy.from_settings(settings))
    return SuggestionsOut.from_suggestions(suggestions)


@router.websocket("/ws")
async def places_socket(
    websocket: WebSocket,
    settings: Settings = Depends(get_settings),
    geocoder: PhotonGeocoder = Depends(get_connection_geocoder),
) -> None:
    """Interactive suggestions: each text frame is the field's current value.

    A JSON frame ``{"select": "<suggestion id>"}`` picks a suggestion and ends
    resolution until the text changes again.
    """
    await websocket.accept()

    async def push(suggestions: Suggestions) -> None:
        await websocket.send_json(
            {"type": "suggestions", **SuggestionsOut.from_suggestions(suggestions).model_dump()}
        )

    resolver = LocationResolver(geocoder, policy=ResolverPolicy.from_settings(settings), on_update=push)
    inflight: set[asyncio.Task[Suggestions]] = set()
    try:
        while True:
            frame = await websocket.receive_text()
            selected = _selected_id(frame)
            if selected is None:
                task = asyncio.create_task(resolver.resolve(frame))
                inflight.add(task)
                task.add_done_callback(inflight.discard)
                continue

            try:
                selection = resolver.select(selected)
            except ValidationError as exc:
                await websocket.send_json({"type": "error", "detail": str(exc)})
                continue
            await websocket.send_json(
                {"type": "selection", **LocationSelectionOut.from_selection(selection).model_dump()}
            )
    except WebSocketDisconnect:
        logger.info("places socket closed generation=%s", resolver.current.generation)
    finally:
        await resolver.aclose()
        for task in list(inflight):
            task.cancel()
        if inflight:
            await asyncio.wait(list(inflight))


def _selected_id(frame: str) -> str | None:
    if not frame.startswith("{"):
        return None
    try:
        message = json.loads(frame)
    except ValueError:
        return None
    if not isinstance(message, dict):
        return None
    selected = message.get("select")
    return selected if isinstance(selected, str) else None
