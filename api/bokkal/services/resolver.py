from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
import inspect
import logging
from typing import Any, Callable, Iterable

from bokkal.core.config import Settings
from bokkal.core.errors import ValidationError
from bokkal.services.gazetteer import KNOWN_PLACES, KnownPlace, search_known_places
from bokkal.services.geocoder import GeocoderUnavailableError, PhotonGeocoder
from bokkal.services.places import LocationSelection, PlaceCandidate

logger = logging.getLogger(__name__)

UpdateCallback = Callable[["Suggestions"], Any]


@dataclass(frozen=True, slots=True)
class ResolverPolicy:
    min_query_length: int = 2
    external_min_query_length: int = 3
    local_sufficient_count: int = 3
    max_results: int = 5
    debounce_seconds: float = 0.4

    @classmethod
    def from_settings(cls, settings: Settings) -> ResolverPolicy:
        return cls(
            min_query_length=settings.location_min_query_length,
            external_min_query_length=settings.location_external_min_query_length,
            local_sufficient_count=settings.location_local_sufficient_count,
            max_results=settings.location_max_results,
            debounce_seconds=settings.location_debounce_seconds,
        )


@dataclass(slots=True)
class QueryToken:
    """Cancellation token for one input generation."""

    generation: int
    query: str
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(frozen=True, slots=True)
class Suggestions:
    query: str
    generation: int
    local: tuple[PlaceCandidate, ...] = ()
    external: tuple[PlaceCandidate, ...] = ()
    searching: bool = False
    degraded: bool = False
    stale: bool = False

    @property
    def items(self) -> list[PlaceCandidate]:
        return [*self.local, *self.external]

    def find(self, candidate_id: str) -> PlaceCandidate | None:
        return next((candidate for candidate in self.items if candidate.id == candidate_id), None)


def merge_external(
    local_names: Iterable[str],
    external: Iterable[PlaceCandidate],
    *,
    limit: int,
) -> tuple[PlaceCandidate, ...]:
    """Drop external candidates whose name duplicates a local one, then cap."""
    seen = {name.casefold() for name in local_names}
    survivors = [candidate for candidate in external if candidate.name.casefold() not in seen]
    return tuple(survivors[:limit])


class LocationResolver:
    """Interactive place suggestions for one input field.

    Every call to :meth:`resolve` starts a new generation: the previous token is
    invalidated and its debounced lookup cancelled, so at most one external
    request is in flight and only the latest generation is ever applied.
    """

    def __init__(
        self,
        geocoder: PhotonGeocoder,
        *,
        policy: ResolverPolicy | None = None,
        places: tuple[KnownPlace, ...] = KNOWN_PLACES,
        on_update: UpdateCallback | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.policy = policy or ResolverPolicy()
        self.places = places
        self._on_update = on_update
        self._generation = 0
        self._token: QueryToken | None = None
        self._pending: asyncio.Task[tuple[list[PlaceCandidate], bool]] | None = None
        self._last_query: str | None = None
        self._selection: LocationSelection | None = None
        self.current = Suggestions(query="", generation=0)

    @property
    def selection(self) -> LocationSelection | None:
        return self._selection

    @property
    def lookup_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def resolve(self, query: str) -> Suggestions:
        text = (query or "").strip()
        if text == self._last_query:
            pending = self._pending
            if pending is not None and not pending.done():
                await asyncio.wait({pending})
            return self.current

        token = self._begin(text)
        policy = self.policy
        if len(text) < policy.min_query_length:
            return await self._apply(token, Suggestions(query=text, generation=token.generation))

        matches = search_known_places(text, places=self.places, min_length=policy.min_query_length)
        local = tuple(PlaceCandidate.from_known_place(place) for place in matches[: policy.max_results])
        needs_external = (
            len(text) >= policy.external_min_query_length and len(matches) < policy.local_sufficient_count
        )
        if not needs_external:
            return await self._apply(token, Suggestions(query=text, generation=token.generation, local=local))

        await self._apply(
            token,
            Suggestions(query=text, generation=token.generation, local=local, searching=True),
        )
        if token.cancelled:
            return Suggestions(query=text, generation=token.generation, local=local, stale=True)

        task = asyncio.create_task(self._debounced_lookup(token))
        self._pending = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled() or token.cancelled:
            return Suggestions(query=text, generation=token.generation, local=local, stale=True)

        external, degraded = task.result()
        merged = Suggestions(
            query=text,
            generation=token.generation,
            local=local,
            external=merge_external((place.name for place in matches), external, limit=policy.max_results),
            degraded=degraded,
        )
        return await self._apply(token, merged)

    def select(self, candidate_id: str) -> LocationSelection:
        candidate = self.current.find(candidate_id)
        if candidate is None:
            raise ValidationError(f"unknown suggestion: {candidate_id}")

        selection = LocationSelection.from_candidate(candidate)
        token = self._begin(candidate.name.strip())
        self.current = Suggestions(query=token.query, generation=token.generation)
        self._selection = selection
        return selection

    async def aclose(self) -> None:
        if self._token is not None:
            self._token.cancel()
        pending = self._pending
        self._pending = None
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.wait({pending})

    def _begin(self, text: str) -> QueryToken:
        if self._token is not None:
            self._token.cancel()
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self._generation += 1
        self._token = QueryToken(generation=self._generation, query=text)
        self._last_query = text
        self._selection = None
        return self._token

    async def _debounced_lookup(self, token: QueryToken) -> tuple[list[PlaceCandidate], bool]:
        await asyncio.sleep(self.policy.debounce_seconds)
        try:
            features = await self.geocoder.search(token.query)
        except GeocoderUnavailableError as exc:
            logger.warning(
                "location lookup degraded to local results query=%r generation=%s error=%s",
                token.query,
                token.generation,
                exc,
            )
            return [], True
        return [PlaceCandidate.from_photon_feature(feature, index) for index, feature in enumerate(features)], False

    async def _apply(self, token: QueryToken, suggestions: Suggestions) -> Suggestions:
        if token.cancelled or token is not self._token:
            return replace(suggestions, stale=True)
        self.current = suggestions
        if self._on_update is not None:
            outcome = self._on_update(suggestions)
            if inspect.isawaitable(outcome):
                await outcome
        return suggestions


async def resolve_once(
    query: str,
    geocoder: PhotonGeocoder,
    *,
    policy: ResolverPolicy | None = None,
    places: tuple[KnownPlace, ...] = KNOWN_PLACES,
) -> Suggestions:
    """One non-debounced resolution, for request/response callers."""
    effective = replace(policy or ResolverPolicy(), debounce_seconds=0.0)
    resolver = LocationResolver(geocoder, policy=effective, places=places)
    try:
        return await resolver.resolve(query)
    finally:
        await resolver.aclose()
