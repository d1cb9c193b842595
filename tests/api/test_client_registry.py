import asyncio

import httpx

from sourcecart.core.client import SourceCartClient
from sourcecart.core.config import CoreConfig
from sourcecart.server.helpers.clients import ClientRegistry
from tests.helpers._fakes import FakeClock

CONFIG = CoreConfig(api_base_url="https://api.test/api/", retry_backoff_seconds=0)


def _registry(clock: FakeClock, **kwargs) -> tuple[ClientRegistry, list[SourceCartClient]]:
    created: list[SourceCartClient] = []

    def factory(token: str | None) -> SourceCartClient:
        client = SourceCartClient(
            CONFIG,
            token=token,
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"data": []})),
        )
        created.append(client)
        return client

    return ClientRegistry(CONFIG, client_factory=factory, clock=clock, **kwargs), created


def test_registry_reuses_the_reconciler_for_a_token(clock) -> None:
    registry, created = _registry(clock)

    async def scenario():
        return await registry.reconciler("tok-1"), await registry.reconciler("tok-1")

    first, second = asyncio.run(scenario())

    assert first is second
    assert len(created) == 1


def test_registry_evicts_least_recently_used_sessions(clock) -> None:
    registry, created = _registry(clock, max_sessions=2)

    async def scenario():
        first = await registry.reconciler("tok-1")
        await registry.reconciler("tok-2")
        await registry.reconciler("tok-1")
        await registry.reconciler("tok-3")
        return first

    first = asyncio.run(scenario())

    assert len(registry) == 2
    assert created[1]._http.is_closed
    assert not first.client._http.is_closed


def test_registry_closes_sessions_idle_past_the_timeout(clock) -> None:
    registry, created = _registry(clock, idle_seconds=60)

    async def scenario():
        await registry.reconciler("tok-1")
        clock.advance(61)
        await registry.reconciler("tok-2")

    asyncio.run(scenario())

    assert len(registry) == 1
    assert created[0]._http.is_closed


def test_registry_aclose_closes_every_client(clock) -> None:
    registry, created = _registry(clock)

    async def scenario():
        await registry.reconciler("tok-1")
        await registry.reconciler("tok-2")
        await registry.aclose()

    asyncio.run(scenario())

    assert len(registry) == 0
    assert all(client._http.is_closed for client in created)
