from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from functools import lru_cache
from typing import Any, Iterator
from uuid import UUID

import asyncpg  # type: ignore[import-untyped]

from bokkal.core.config import get_settings


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


EVENT_SELECT = """
  e.id::text as id,
  e.user_id::text as user_id,
  e.title,
  e.title_en,
  e.title_wo,
  e.description,
  e.description_en,
  e.description_wo,
  e.event_type,
  e.category,
  e.subcategory,
  e.tags,
  e.location_name,
  e.location_city,
  e.location_lat,
  e.location_lng,
  e.start_date,
  e.end_date,
  e.price,
  e.target_audience,
  e.contact_phone,
  e.contact_email,
  e.contact_whatsapp,
  e.image_url,
  e.status,
  e.rejection_reason,
  e.reviewed_at,
  e.reviewed_by::text as reviewed_by,
  e.created_at,
  e.updated_at
"""

USER_SELECT = """
  u.id::text as id,
  u.full_name,
  u.avatar_url,
  u.phone,
  u.is_verified,
  u.is_admin,
  u.created_at
"""

EVENT_WRITABLE_COLUMNS = {
    "user_id",
    "title",
    "title_en",
    "title_wo",
    "description",
    "description_en",
    "description_wo",
    "event_type",
    "category",
    "subcategory",
    "tags",
    "location_name",
    "location_city",
    "location_lat",
    "location_lng",
    "start_date",
    "end_date",
    "price",
    "target_audience",
    "contact_phone",
    "contact_email",
    "contact_whatsapp",
    "image_url",
    "status",
    "rejection_reason",
    "reviewed_at",
    "reviewed_by",
}
EVENT_SORTS = {
    "start_date": "e.start_date asc, e.created_at asc",
    "created_at": "e.created_at desc",
}


class PostgresRepository:
    """Record store and user directory over the Supabase Postgres database."""

    def __init__(self, database_url: str | None, min_pool_size: int, max_pool_size: int) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        normalized_id = self._coerce_uuid(user_id)
        if normalized_id is None:
            return None
        pool = await self._get_pool()
        with _translate_errors():
            row = await pool.fetchrow(
                f"""
                select {USER_SELECT}
                from users u
                where u.id = $1::uuid
                """,
                normalized_id,
            )
        return dict(row) if row else None

    async def update_user_flags(
        self,
        user_id: str,
        *,
        is_admin: bool | None = None,
        is_verified: bool | None = None,
    ) -> dict[str, Any]:
        normalized_id = self._coerce_uuid(user_id)
        if normalized_id is None:
            raise RepositoryNotFoundError("user not found")
        pool = await self._get_pool()
        with _translate_errors():
            row = await pool.fetchrow(
                f"""
                update users u
                set
                  is_admin = coalesce($2, u.is_admin),
                  is_verified = coalesce($3, u.is_verified)
                where u.id = $1::uuid
                returning {USER_SELECT}
                """,
                normalized_id,
                is_admin,
                is_verified,
            )
        if not row:
            raise RepositoryNotFoundError("user not found")
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
        pattern = self._like_pattern(search)
        pool = await self._get_pool()
        where = """
            where ($1::text is null or u.full_name ilike $1::text)
              and ($2::boolean is null or u.is_admin = $2::boolean)
              and ($3::boolean is null or u.is_verified = $3::boolean)
        """
        with _translate_errors():
            rows = await pool.fetch(
                f"""
                select
                  {USER_SELECT},
                  (select count(*) from events e where e.user_id = u.id)::int as events_count
                from users u
                {where}
                order by u.created_at desc
                limit $4
                offset $5
                """,
                pattern,
                is_admin,
                is_verified,
                limit,
                offset,
            )
            total = await pool.fetchval(
                f"select count(*)::int from users u {where}",
                pattern,
                is_admin,
                is_verified,
            )
        return [dict(row) for row in rows], int(total or 0)

    async def count_users(self, *, is_verified: bool | None = None) -> int:
        pool = await self._get_pool()
        with _translate_errors():
            total = await pool.fetchval(
                """
                select count(*)::int
                from users u
                where ($1::boolean is null or u.is_verified = $1::boolean)
                """,
                is_verified,
            )
        return int(total or 0)

    async def insert_event(self, fields: dict[str, Any]) -> dict[str, Any]:
        columns = self._writable_columns(fields)
        if "user_id" not in columns:
            raise RepositoryError("event insert requires user_id")
        placeholders = ", ".join(f"${index}" for index in range(1, len(columns) + 1))
        pool = await self._get_pool()
        with _translate_errors():
            row = await pool.fetchrow(
                f"""
                with inserted as (
                  insert into events ({", ".join(columns)})
                  values ({placeholders})
                  returning *
                )
                select {EVENT_SELECT}
                from inserted e
                """,
                *(fields[column] for column in columns),
            )
        if not row:
            raise RepositoryError("failed to insert event")
        return dict(row)

    async def get_event(self, event_id: str) -> dict[str, Any] | None:
        normalized_id = self._coerce_uuid(event_id)
        if normalized_id is None:
            return None
        pool = await self._get_pool()
        with _translate_errors():
            row = await pool.fetchrow(
                f"""
                select {EVENT_SELECT}
                from events e
                where e.id = $1::uuid
                """,
                normalized_id,
            )
        return dict(row) if row else None

    async def update_event(self, event_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        normalized_id = self._coerce_uuid(event_id)
        if normalized_id is None:
            raise RepositoryNotFoundError("event not found")
        columns = self._writable_columns(fields)
        if not columns:
            raise RepositoryError("event update requires at least one field")
        assignments = ", ".join(f"{column} = ${index}" for index, column in enumerate(columns, start=2))
        pool = await self._get_pool()
        with _translate_errors():
            row = await pool.fetchrow(
                f"""
                with updated as (
                  update events
                  set {assignments}, updated_at = now()
                  where id = $1::uuid
                  returning *
                )
                select {EVENT_SELECT}
                from updated e
                """,
                normalized_id,
                *(fields[column] for column in columns),
            )
        if not row:
            raise RepositoryNotFoundError("event not found")
        return dict(row)

    async def delete_event(self, event_id: str) -> None:
        normalized_id = self._coerce_uuid(event_id)
        if normalized_id is None:
            raise RepositoryNotFoundError("event not found")
        pool = await self._get_pool()
        with _translate_errors():
            deleted = await pool.fetchval(
                "delete from events where id = $1::uuid returning id::text",
                normalized_id,
            )
        if not deleted:
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
        order_by = EVENT_SORTS.get(sort)
        if order_by is None:
            raise RepositoryError(f"unsupported event sort: {sort}")
        normalized_owner = None
        if owner_id is not None:
            normalized_owner = self._coerce_uuid(owner_id)
            if normalized_owner is None:
                return [], 0

        args = (
            status,
            category,
            city,
            normalized_owner,
            self._like_pattern(search),
            starts_on_or_after,
        )
        where = """
            where ($1::text is null or e.status = $1::text)
              and ($2::text is null or e.category = $2::text)
              and ($3::text is null or e.location_city = $3::text)
              and ($4::uuid is null or e.user_id = $4::uuid)
              and ($5::text is null or e.title ilike $5::text)
              and ($6::timestamptz is null or e.start_date >= $6::timestamptz)
        """
        pool = await self._get_pool()
        with _translate_errors():
            rows = await pool.fetch(
                f"""
                select {EVENT_SELECT}
                from events e
                {where}
                order by {order_by}
                limit $7
                offset $8
                """,
                *args,
                limit,
                offset,
            )
            total = await pool.fetchval(f"select count(*)::int from events e {where}", *args)
        return [dict(row) for row in rows], int(total or 0)

    async def count_events(self, *, status: str | None = None, owner_id: str | None = None) -> int:
        normalized_owner = self._coerce_uuid(owner_id) if owner_id is not None else None
        if owner_id is not None and normalized_owner is None:
            return 0
        pool = await self._get_pool()
        with _translate_errors():
            total = await pool.fetchval(
                """
                select count(*)::int
                from events e
                where ($1::text is null or e.status = $1::text)
                  and ($2::uuid is null or e.user_id = $2::uuid)
                """,
                status,
                normalized_owner,
            )
        return int(total or 0)

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("BOKKAL_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _writable_columns(fields: dict[str, Any]) -> list[str]:
        unknown = set(fields) - EVENT_WRITABLE_COLUMNS
        if unknown:
            raise RepositoryError(f"unsupported event fields: {sorted(unknown)}")
        return sorted(fields)

    @staticmethod
    def _coerce_uuid(value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        try:
            return str(UUID(value.strip()))
        except ValueError:
            return None

    @staticmethod
    def _like_pattern(value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        if not stripped:
            return None
        escaped = stripped.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        raise RepositoryUnavailableError(str(exc)) from exc


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
    )
