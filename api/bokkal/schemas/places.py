from typing import Literal

from pydantic import BaseModel, Field

from bokkal.core.catalog import PlaceType
from bokkal.services.places import LocationSelection, PlaceCandidate
from bokkal.services.resolver import Suggestions


class PlaceSuggestionOut(BaseModel):
    id: str
    name: str
    subtitle: str
    city: str | None = None
    lat: float | None = None
    lng: float | None = None
    place_type: PlaceType
    origin: Literal["local", "external"]

    @classmethod
    def from_candidate(cls, candidate: PlaceCandidate) -> "PlaceSuggestionOut":
        lat, lng = candidate.coordinates if candidate.coordinates else (None, None)
        return cls(
            id=candidate.id,
            name=candidate.name,
            subtitle=candidate.subtitle,
            city=candidate.city,
            lat=lat,
            lng=lng,
            place_type=candidate.place_type,
            origin=candidate.origin.value,
        )


class SuggestionsOut(BaseModel):
    query: str
    generation: int
    suggestions: list[PlaceSuggestionOut] = Field(default_factory=list)
    searching: bool = False
    degraded: bool = False

    @classmethod
    def from_suggestions(cls, suggestions: Suggestions) -> "SuggestionsOut":
        return cls(
            query=suggestions.query,
            generation=suggestions.generation,
            suggestions=[PlaceSuggestionOut.from_candidate(candidate) for candidate in suggestions.items],
            searching=suggestions.searching,
            degraded=suggestions.degraded,
        )


class LocationSelectionOut(BaseModel):
    name: str
    city: str | None = None
    lat: float | None = None
    lng: float | None = None

    @classmethod
    def from_selection(cls, selection: LocationSelection) -> "LocationSelectionOut":
        return cls(name=selection.name, city=selection.city, lat=selection.lat, lng=selection.lng)
