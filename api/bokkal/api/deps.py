from contextlib import contextmanager
from typing import AsyncIterator, Iterator

from fastapi import Depends, HTTPException, status

from bokkal.core.config import Settings, get_settings
from bokkal.core.errors import (
    AuthenticationError,
    AuthorizationError,
    BokkalError,
    NotFoundError,
    SelfDemotionError,
    UpstreamError,
    ValidationError,
)
from bokkal.services.geocoder import PhotonGeocoder, build_geocoder
from bokkal.services.moderation import ModerationEngine
from bokkal.services.queries import EventQueries
from bokkal.services.repository import get_repository

_STATUS_BY_ERROR: tuple[tuple[type[BokkalError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (SelfDemotionError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UpstreamError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_for(exc: BokkalError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@contextmanager
def http_errors() -> Iterator[None]:
    try:
        yield
    except BokkalError as exc:
        raise HTTPException(status_code=status_for(exc), detail=str(exc)) from exc


def get_moderation_engine(repository=Depends(get_repository)) -> ModerationEngine:
    return ModerationEngine(repository)


def get_event_queries(
    repository=Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> EventQueries:
    return EventQueries(repository, admin_page_size=settings.admin_page_size)


async def get_connection_geocoder(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[PhotonGeocoder]:
    """Geocoder bound to one WebSocket connection, holding a shared client handle."""
    geocoder = build_geocoder(settings)
    try:
        yield geocoder
    finally:
        await geocoder.aclose()
