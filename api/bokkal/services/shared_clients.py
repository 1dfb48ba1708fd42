from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

import httpx

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    client: httpx.AsyncClient
    holders: int


class SharedClientRegistry:
    """Reference-counted httpx clients keyed by base URL.

    Acquiring an existing key reuses its client; the client is created once per
    key and closed only when the last holder releases it.
    """

    def __init__(self, factory: Callable[[str, float], httpx.AsyncClient] | None = None) -> None:
        self._factory = factory or _default_factory
        self._entries: dict[str, _Entry] = {}

    def acquire(self, base_url: str, *, timeout_seconds: float) -> httpx.AsyncClient:
        key = _key(base_url)
        entry = self._entries.get(key)
        if entry is not None and not entry.client.is_closed:
            entry.holders += 1
            return entry.client

        client = self._factory(key, timeout_seconds)
        self._entries[key] = _Entry(client=client, holders=1)
        logger.info("shared http client opened base_url=%s", key)
        return client

    async def release(self, base_url: str) -> None:
        key = _key(base_url)
        entry = self._entries.get(key)
        if entry is None:
            return
        entry.holders -= 1
        if entry.holders > 0:
            return
        del self._entries[key]
        await entry.client.aclose()
        logger.info("shared http client closed base_url=%s", key)

    def holders(self, base_url: str) -> int:
        entry = self._entries.get(_key(base_url))
        return entry.holders if entry else 0

    async def close(self) -> None:
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            await entry.client.aclose()


def _key(base_url: str) -> str:
    return base_url.rstrip("/")


def _default_factory(base_url: str, timeout_seconds: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)


SHARED_CLIENTS = SharedClientRegistry()
