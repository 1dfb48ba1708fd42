from __future__ import annotations

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

os.environ.setdefault("BOKKAL_OTEL_ENABLED", "false")

import pytest
from fastapi import HTTPException, status
from fastapi.testclient import TestClient

import bokkal.core.security as security
from bokkal.api.deps import get_connection_geocoder
from bokkal.core.config import get_settings
from bokkal.main import app
from bokkal.services.geocoder import GeocoderUnavailableError, get_geocoder
from bokkal.services.repository import RepositoryNotFoundError, RepositoryUnavailableError, get_repository

ADMIN_ID = "11111111-1111-1111-1111-111111111111"
VERIFIED_ID = "22222222-2222-2222-2222-222222222222"
USER_ID = "33333333-3333-3333-3333-333333333333"
OTHER_USER_ID = "44444444-4444-4444-4444-444444444444"
SECOND_ADMIN_ID = "55555555-5555-5555-5555-555555555555"
UNKNOWN_USER_ID = "66666666-6666-6666-6666-666666666666"

TOKENS = {
    "admin-token": ADMIN_ID,
    "verified-token": VERIFIED_ID,
    "user-token": USER_ID,
    "other-token": OTHER_USER_ID,
    "second-admin-token": SECOND_ADMIN_ID,
    "unknown-token": UNKNOWN_USER_ID,
}


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def event_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Concert sur la plage",
        "description": "Live music at sunset.",
        "category": "musique_fete",
        "subcategory": "concert_live",
        "location_name": "Hôtel Lamantin Beach",
        "location_city": "saly",
        "location_lat": 14.4483,
        "location_lng": -17.0211,
        "start_date": "2030-06-01T18:00:00+00:00",
        "tags": ["gratuit", "soir"],
    }
    payload.update(overrides)
    return payload


class FakeRepository:
    """In-memory record store and user directory."""

    def __init__(self) -> None:
        self._clock = datetime(2030, 1, 1, tzinfo=timezone.utc)
        self.users: dict[str, dict[str, Any]] = {}
        self.events: dict[str, dict[str, Any]] = {}
        self.writes: list[str] = []
        self.fail_on: set[str] = set()
        self.add_user(ADMIN_ID, full_name="Awa Admin", is_admin=True)
        self.add_user(VERIFIED_ID, full_name="Victor Verified", is_verified=True)
        self.add_user(USER_ID, full_name="Ursula User")
        self.add_user(OTHER_USER_ID, full_name="Oumar Other")
        self.add_user(SECOND_ADMIN_ID, full_name="Binta Admin", is_admin=True, is_verified=True)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RepositoryUnavailableError("database unavailable")

    def add_user(self, user_id: str, *, full_name: str, is_admin: bool = False, is_verified: bool = False) -> None:
        self.users[user_id] = {
            "id": user_id,
            "full_name": full_name,
            "avatar_url": None,
            "phone": None,
            "is_verified": is_verified,
            "is_admin": is_admin,
            "created_at": self._tick(),
        }

    def add_event(self, *, user_id: str, status: str = "pending", **fields: Any) -> dict[str, Any]:
        now = self._tick()
        row: dict[str, Any] = {
            "id": str(uuid4()),
            "user_id": user_id,
            "title": "Seeded event",
            "title_en": None,
            "title_wo": None,
            "description": "Seeded description",
            "description_en": None,
            "description_wo": None,
            "event_type": "concert",
            "category": "musique_fete",
            "subcategory": "concert_live",
            "tags": None,
            "location_name": "Plage de Saly",
            "location_city": "saly",
            "location_lat": None,
            "location_lng": None,
            "start_date": datetime(2030, 6, 1, 18, tzinfo=timezone.utc),
            "end_date": None,
            "price": None,
            "target_audience": None,
            "contact_phone": None,
            "contact_email": None,
            "contact_whatsapp": None,
            "image_url": None,
            "status": status,
            "rejection_reason": None,
            "reviewed_at": None,
            "reviewed_by": None,
            "created_at": now,
            "updated_at": now,
        }
        row.update(fields)
        self.events[row["id"]] = row
        return dict(row)

    async def close(self) -> None:
        return None

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        self._check("get_user")
        row = self.users.get(user_id)
        return dict(row) if row else None

    async def update_user_flags(
        self,
        user_id: str,
        *,
        is_admin: bool | None = None,
        is_verified: bool | None = None,
    ) -> dict[str, Any]:
        self._check("update_user_flags")
        self.writes.append("update_user_flags")
        row = self.users.get(user_id)
        if row is None:
            raise RepositoryNotFoundError("user not found")
        if is_admin is not None:
            row["is_admin"] = is_admin
        if is_verified is not None:
            row["is_verified"] = is_verified
        return dict(row)

    async def list_users(
        self,
        *,
        search: str | None = None,
        is_admin: bool | None = None,
        is_verified: bool | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        self._check("list_users")
        rows = sorted(self.users.values(), key=lambda row: row["created_at"], reverse=True)
        if search:
            rows = [row for row in rows if search.strip().lower() in (row["full_name"] or "").lower()]
        if is_admin is not None:
            rows = [row for row in rows if row["is_admin"] == is_admin]
        if is_verified is not None:
            rows = [row for row in rows if row["is_verified"] == is_verified]
        page = [
            {**row, "events_count": sum(1 for event in self.events.values() if event["user_id"] == row["id"])}
            for row in rows[offset : offset + limit]
        ]
        return page, len(rows)

    async def count_users(self, *, is_verified: bool | None = None) -> int:
        self._check("count_users")
        return sum(1 for row in self.users.values() if is_verified is None or row["is_verified"] == is_verified)

    async def insert_event(self, fields: dict[str, Any]) -> dict[str, Any]:
        self._check("insert_event")
        self.writes.append("insert_event")
        return self.add_event(**fields)

    async def get_event(self, event_id: str) -> dict[str, Any] | None:
        self._check("get_event")
        row = self.events.get(event_id)
        return dict(row) if row else None

    async def update_event(self, event_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        self._check("update_event")
        self.writes.append("update_event")
        row = self.events.get(event_id)
        if row is None:
            raise RepositoryNotFoundError("event not found")
        row.update(fields)
        row["updated_at"] = self._tick()
        return dict(row)

    async def delete_event(self, event_id: str) -> None:
        self._check("delete_event")
        self.writes.append("delete_event")
        if self.events.pop(event_id, None) is None:
            raise RepositoryNotFoundError("event not found")

    async def list_events(
        self,
        *,
        status: str | None = None,
        category: str | None = None,
        city: str | None = None,
        owner_id: str | None = None,
        search: str | None = None,
        starts_on_or_after: datetime | None = None,
        sort: str = "created_at",
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        self._check("list_events")
        rows = list(self.events.values())
        if status is not None:
            rows = [row for row in rows if row["status"] == status]
        if category is not None:
            rows = [row for row in rows if row["category"] == category]
        if city is not None:
            rows = [row for row in rows if row["location_city"] == city]
        if owner_id is not None:
            rows = [row for row in rows if row["user_id"] == owner_id]
        if search:
            rows = [row for row in rows if search.strip().lower() in row["title"].lower()]
        if starts_on_or_after is not None:
            rows = [row for row in rows if row["start_date"] >= starts_on_or_after]
        if sort == "start_date":
            rows.sort(key=lambda row: (row["start_date"], row["created_at"]))
        else:
            rows.sort(key=lambda row: row["created_at"], reverse=True)
        return [dict(row) for row in rows[offset : offset + limit]], len(rows)

    async def count_events(self, *, status: str | None = None, owner_id: str | None = None) -> int:
        self._check("count_events")
        return sum(
            1
            for row in self.events.values()
            if (status is None or row["status"] == status) and (owner_id is None or row["user_id"] == owner_id)
        )


class FakeGeocoder:
    """Stands in for PhotonGeocoder; records every query it receives."""

    def __init__(
        self,
        features: list[dict[str, Any]] | None = None,
        *,
        error: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.features = features or []
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.closed = False

    async def search(self, query: str) -> list[dict[str, Any]]:
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise GeocoderUnavailableError("geocoder returned status 502")
        return list(self.features)

    async def aclose(self) -> None:
        self.closed = True


def photon_feature(
    name: str | None,
    *,
    city: str | None = "Saly",
    lon: float = -17.0,
    lat: float = 14.45,
    osm_key: str = "tourism",
    osm_value: str = "hotel",
    **properties: Any,
) -> dict[str, Any]:
    props: dict[str, Any] = {"osm_key": osm_key, "osm_value": osm_value, "country": "Sénégal", **properties}
    if name is not None:
        props["name"] = name
    if city is not None:
        props["city"] = city
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": props,
    }


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


def _mock_supabase_users(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _fake_fetch(**kwargs: Any) -> dict[str, Any]:
        user_id = TOKENS.get(kwargs["token"])
        if user_id is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid bearer token")
        return {"id": user_id, "email": f"{kwargs['token']}@bokkal.test"}

    monkeypatch.setattr(security, "_fetch_supabase_user", _fake_fetch)


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch, repository: FakeRepository, geocoder: FakeGeocoder) -> TestClient:
    monkeypatch.setenv("BOKKAL_SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("BOKKAL_SUPABASE_ANON_KEY", "anon-key")
    get_settings.cache_clear()
    _mock_supabase_users(monkeypatch)

    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_connection_geocoder] = lambda: geocoder

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    get_settings.cache_clear()
