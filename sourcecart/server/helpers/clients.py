"""Per-caller upstream clients and wishlist reconcilers for the API routes."""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from fastapi import Request

from ...core.client import SourceCartClient
from ...core.config import CoreConfig, config_from_env
from ...core.wishlist import DEFAULT_STORAGE_KEY, InMemoryStorage, KeyValueStorage, SqliteStorage, WishlistReconciler

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str | None], SourceCartClient]

DEFAULT_MAX_SESSIONS = 256
DEFAULT_IDLE_SECONDS = 15 * 60


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def wishlist_storage_key(token: str) -> str:
    digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
    return f"{DEFAULT_STORAGE_KEY}:{digest}"


class ClientRegistry:
    """Builds request-scoped clients and keeps one reconciler per bearer token.

    Reconcilers are held in an LRU bounded by ``max_sessions``; entries idle for
    longer than ``idle_seconds`` are dropped and their upstream clients closed.
    The cache itself lives in ``storage``, so an evicted caller resumes from it.
    """

    def __init__(
        self,
        config: CoreConfig | None = None,
        *,
        client_factory: ClientFactory | None = None,
        storage: KeyValueStorage | None = None,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        idle_seconds: float = DEFAULT_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or config_from_env()
        self.client_factory = client_factory or self._default_factory
        self.storage = storage if storage is not None else InMemoryStorage()
        self.max_sessions = max(max_sessions, 1)
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._reconcilers: OrderedDict[str, tuple[WishlistReconciler, float]] = OrderedDict()

    @classmethod
    def from_storage_path(cls, path: str | None, **kwargs) -> "ClientRegistry":
        storage = SqliteStorage(path) if path else InMemoryStorage()
        return cls(storage=storage, **kwargs)

    def _default_factory(self, token: str | None) -> SourceCartClient:
        return SourceCartClient(self.config, token=token)

    def client(self, token: str | None) -> SourceCartClient:
        return self.client_factory(token)

    def __len__(self) -> int:
        return len(self._reconcilers)

    async def reconciler(self, token: str) -> WishlistReconciler:
        key = wishlist_storage_key(token)
        now = self._clock()
        await self._evict_idle(now, keep=key)

        cached = self._reconcilers.pop(key, None)
        if cached is not None:
            reconciler = cached[0]
        else:
            reconciler = WishlistReconciler(
                self.client(token),
                self.storage,
                ttl_seconds=self.config.wishlist_ttl_seconds,
                storage_key=key,
            )
        self._reconcilers[key] = (reconciler, now)

        while len(self._reconcilers) > self.max_sessions:
            _, (evicted, _) = self._reconcilers.popitem(last=False)
            await self._close(evicted)
        return reconciler

    async def _evict_idle(self, now: float, *, keep: str) -> None:
        idle = [
            key
            for key, (_, last_used) in self._reconcilers.items()
            if key != keep and now - last_used > self.idle_seconds
        ]
        for key in idle:
            evicted, _ = self._reconcilers.pop(key)
            await self._close(evicted)

    async def _close(self, reconciler: WishlistReconciler) -> None:
        reconciler.close()
        client = reconciler.client
        if isinstance(client, SourceCartClient):
            await client.aclose()

    async def aclose(self) -> None:
        count = len(self._reconcilers)
        while self._reconcilers:
            _, (reconciler, _) = self._reconcilers.popitem(last=False)
            await self._close(reconciler)
        logger.info("Closed %d wishlist sessions", count)


__all__ = [
    "DEFAULT_IDLE_SECONDS",
    "DEFAULT_MAX_SESSIONS",
    "ClientFactory",
    "ClientRegistry",
    "bearer_token",
    "wishlist_storage_key",
]
