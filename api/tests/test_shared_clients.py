from __future__ import annotations

import asyncio

import httpx

from bokkal.services.shared_clients import SharedClientRegistry


def _counting_registry() -> tuple[SharedClientRegistry, list[httpx.AsyncClient]]:
    created: list[httpx.AsyncClient] = []

    def factory(base_url: str, timeout_seconds: float) -> httpx.AsyncClient:
        client = httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        created.append(client)
        return client

    return SharedClientRegistry(factory), created


def test_same_key_reuses_one_client() -> None:
    registry, created = _counting_registry()

    async def run() -> None:
        first = registry.acquire("https://photon.example/", timeout_seconds=5.0)
        second = registry.acquire("https://photon.example", timeout_seconds=5.0)
        assert first is second
        assert registry.holders("https://photon.example") == 2
        await registry.close()

    asyncio.run(run())
    assert len(created) == 1


def test_client_closes_when_last_holder_releases() -> None:
    registry, created = _counting_registry()

    async def run() -> None:
        registry.acquire("https://photon.example", timeout_seconds=5.0)
        registry.acquire("https://photon.example", timeout_seconds=5.0)
        await registry.release("https://photon.example")
        assert created[0].is_closed is False
        await registry.release("https://photon.example")
        assert created[0].is_closed is True
        assert registry.holders("https://photon.example") == 0

        # A later acquire builds a fresh client.
        again = registry.acquire("https://photon.example", timeout_seconds=5.0)
        assert again is not created[0]
        await registry.close()

    asyncio.run(run())
    assert len(created) == 2


def test_distinct_keys_get_distinct_clients() -> None:
    registry, created = _counting_registry()

    async def run() -> None:
        registry.acquire("https://photon.example", timeout_seconds=5.0)
        registry.acquire("https://other.example", timeout_seconds=5.0)
        await registry.close()

    asyncio.run(run())
    assert len(created) == 2
    assert all(client.is_closed for client in created)


def test_release_of_unknown_key_is_a_no_op() -> None:
    registry, _ = _counting_registry()
    asyncio.run(registry.release("https://nowhere.example"))
    assert registry.holders("https://nowhere.example") == 0
