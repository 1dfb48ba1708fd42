from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from bokkal.core.catalog import detect_city
from bokkal.services.gazetteer import KnownPlace

UNNAMED_PLACE = "Lieu sans nom"
HOME_COUNTRY = "Sénégal"

# (osm_key, osm_value) -> place type
OSM_PLACE_TYPES: dict[tuple[str, str], str] = {
    ("tourism", "hotel"): "hotel",
    ("tourism", "guest_house"): "hotel",
    ("amenity", "restaurant"): "restaurant",
    ("amenity", "cafe"): "restaurant",
    ("amenity", "bar"): "bar",
    ("amenity", "pub"): "bar",
    ("amenity", "nightclub"): "bar",
    ("natural", "beach"): "plage",
    ("leisure", "beach_resort"): "plage",
    ("amenity", "theatre"): "salle",
    ("amenity", "cinema"): "salle",
    ("amenity", "community_centre"): "salle",
}


class PlaceOrigin(str, Enum):
    LOCAL = "local"
    EXTERNAL = "external"


@dataclass(frozen=True, slots=True)
class PlaceCandidate:
    id: str
    name: str
    subtitle: str
    city: str | None
    coordinates: tuple[float, float] | None
    place_type: str
    origin: PlaceOrigin

    @classmethod
    def from_known_place(cls, place: KnownPlace) -> PlaceCandidate:
        return cls(
            id=f"local-{place.id}",
            name=place.name,
            subtitle=place.city,
            city=place.city,
            coordinates=(place.lat, place.lng),
            place_type=place.place_type,
            origin=PlaceOrigin.LOCAL,
        )

    @classmethod
    def from_photon_feature(cls, feature: dict[str, Any], index: int) -> PlaceCandidate:
        raw_properties = feature.get("properties")
        properties: dict[str, Any] = raw_properties if isinstance(raw_properties, dict) else {}
        name = photon_display_name(properties)
        return cls(
            id=f"photon-{index}-{name}",
            name=name,
            subtitle=photon_subtitle(properties),
            city=detect_city(_as_text(properties.get("city")) or _as_text(properties.get("state"))),
            coordinates=_photon_coordinates(feature),
            place_type=detect_place_type(properties),
            origin=PlaceOrigin.EXTERNAL,
        )


@dataclass(frozen=True, slots=True)
class LocationSelection:
    """Definitive location picked by the user, ready to fill event fields."""

    name: str
    city: str | None = None
    lat: float | None = None
    lng: float | None = None

    @classmethod
    def from_candidate(cls, candidate: PlaceCandidate) -> LocationSelection:
        lat, lng = candidate.coordinates if candidate.coordinates else (None, None)
        return cls(name=candidate.name, city=candidate.city, lat=lat, lng=lng)


def photon_display_name(properties: dict[str, Any]) -> str:
    name = _as_text(properties.get("name"))
    if name:
        return name
    street = _as_text(properties.get("street"))
    if street:
        housenumber = _as_text(properties.get("housenumber"))
        return f"{housenumber} {street}" if housenumber else street
    return UNNAMED_PLACE


def photon_subtitle(properties: dict[str, Any]) -> str:
    parts: list[str] = []
    locality = _as_text(properties.get("city")) or _as_text(properties.get("state"))
    if locality:
        parts.append(locality)
    country = _as_text(properties.get("country"))
    if country and country != HOME_COUNTRY:
        parts.append(country)
    return ", ".join(parts) or HOME_COUNTRY


def detect_place_type(properties: dict[str, Any]) -> str:
    key = (_as_text(properties.get("osm_key")) or "").lower()
    value = (_as_text(properties.get("osm_value")) or "").lower()
    return OSM_PLACE_TYPES.get((key, value), "autre")


def _photon_coordinates(feature: dict[str, Any]) -> tuple[float, float] | None:
    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        return None
    coordinates = geometry.get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
        return None
    try:
        # GeoJSON order is [lon, lat].
        return float(coordinates[1]), float(coordinates[0])
    except (TypeError, ValueError):
        return None


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None
