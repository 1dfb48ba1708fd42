from __future__ import annotations

from functools import lru_cache
from typing import Any

import httpx

from bokkal.core.config import Settings, get_settings
from bokkal.services.shared_clients import SHARED_CLIENTS, SharedClientRegistry


class GeocoderUnavailableError(Exception):
    """Raised when the external search provider cannot answer a query."""


class PhotonGeocoder:
    """Text search against a Photon (komoot) endpoint, biased to the Petite Côte."""

    def __init__(
        self,
        *,
        base_url: str,
        bbox: str | None = None,
        bias_lat: float | None = None,
        bias_lon: float | None = None,
        language: str = "fr",
        limit: int = 5,
        timeout_seconds: float = 5.0,
        client: httpx.AsyncClient | None = None,
        registry: SharedClientRegistry | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.bbox = bbox
        self.bias_lat = bias_lat
        self.bias_lon = bias_lon
        self.language = language
        self.limit = limit
        self.timeout_seconds = timeout_seconds
        self._registry: SharedClientRegistry | None = None
        self._client = client
        if client is None and registry is not None:
            self._client = registry.acquire(self.base_url, timeout_seconds=timeout_seconds)
            self._registry = registry

    async def search(self, query: str) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"q": query, "limit": self.limit, "lang": self.language}
        if self.bias_lat is not None and self.bias_lon is not None:
            params["lat"] = self.bias_lat
            params["lon"] = self.bias_lon
        if self.bbox:
            params["bbox"] = self.bbox
        url = f"{self.base_url}/api/"

        try:
            if self._client is not None:
                response = await self._client.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise GeocoderUnavailableError(f"geocoder request failed: {exc.__class__.__name__}") from exc

        if response.status_code != 200:
            raise GeocoderUnavailableError(f"geocoder returned status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise GeocoderUnavailableError("geocoder returned invalid json") from exc

        features = payload.get("features") if isinstance(payload, dict) else None
        if not isinstance(features, list):
            return []
        return [feature for feature in features if isinstance(feature, dict)]

    async def aclose(self) -> None:
        if self._registry is not None:
            registry, self._registry = self._registry, None
            self._client = None
            await registry.release(self.base_url)


def build_geocoder(settings: Settings, *, registry: SharedClientRegistry | None = SHARED_CLIENTS) -> PhotonGeocoder:
    return PhotonGeocoder(
        base_url=settings.geocoder_base_url,
        bbox=settings.geocoder_bbox,
        bias_lat=settings.geocoder_bias_lat,
        bias_lon=settings.geocoder_bias_lon,
        language=settings.geocoder_language,
        limit=settings.geocoder_limit,
        timeout_seconds=settings.geocoder_timeout_seconds,
        registry=registry,
    )


@lru_cache
def get_geocoder() -> PhotonGeocoder:
    return build_geocoder(get_settings())
