"""Wishlist membership cache reconciled against the remote wishlist.

Every product id moves through ``Unknown -> Checking -> InWishlist | NotInWishlist``.
The local cache answers display queries; toggle decisions only trust entries
younger than the TTL. Reads are ordered by the version taken when their request
started and confirmed writes by the version taken when the server answered, so a
slow response never overwrites a newer resolution.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from ..canonical import ListingItem, WishlistEntry
from ..client import WishlistAddResult
from ..errors import LoginRequiredError, NetworkError, StaleWishlistWrite
from .storage import InMemoryStorage, KeyValueStorage

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "wishlist:v1"


class MembershipState(str, Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    IN_WISHLIST = "in_wishlist"
    NOT_IN_WISHLIST = "not_in_wishlist"


@dataclass(frozen=True)
class Membership:
    product_id: str
    state: MembershipState
    remote_id: int | None = None

    @property
    def is_member(self) -> bool:
        return self.state == MembershipState.IN_WISHLIST

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "state": self.state.value,
            "remote_id": self.remote_id,
            "in_wishlist": self.is_member,
        }


@dataclass(frozen=True)
class _CacheEntry:
    remote_id: int | None  # None records a confirmed absence
    checked_at: float
    version: int = 0


class WishlistClient(Protocol):
    @property
    def is_authenticated(self) -> bool: ...

    async def fetch_wishlist(self) -> dict[str, int]: ...

    async def add_wishlist(self, item: ListingItem) -> WishlistAddResult: ...

    async def remove_wishlist(self, remote_id: int) -> None: ...


class WishlistReconciler:
    def __init__(
        self,
        client: WishlistClient,
        storage: KeyValueStorage | None = None,
        *,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.time,
        storage_key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self.client = client
        self.storage = storage if storage is not None else InMemoryStorage()
        self.ttl_seconds = ttl_seconds
        self.storage_key = storage_key
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._refreshed_at: float | None = None
        self._snapshot_version = 0
        self._resolved_versions: dict[str, int] = {}
        self._version = 0
        self._checking: set[str] = set()
        self._inflight: dict[str, asyncio.Future[None]] = {}
        self._closed = False
        self._load()

    # -- persistence -------------------------------------------------------

    def _load(self) -> None:
        data = self.storage.get(self.storage_key)
        if not isinstance(data, dict):
            return
        entries = data.get("entries") if isinstance(data.get("entries"), dict) else {}
        for pid, raw in entries.items():
            if not isinstance(raw, dict):
                continue
            try:
                checked_at = float(raw.get("checked_at") or 0)
            except (TypeError, ValueError):
                continue
            remote_id = raw.get("id")
            self._entries[str(pid)] = _CacheEntry(
                remote_id=int(remote_id) if isinstance(remote_id, int) else None,
                checked_at=checked_at,
            )
        refreshed_at = data.get("refreshed_at")
        if isinstance(refreshed_at, (int, float)):
            self._refreshed_at = float(refreshed_at)

    def _persist(self) -> None:
        self.storage.set(
            self.storage_key,
            {
                "refreshed_at": self._refreshed_at,
                "entries": {
                    pid: {"id": entry.remote_id, "checked_at": entry.checked_at}
                    for pid, entry in self._entries.items()
                },
            },
        )

    # -- cache -------------------------------------------------------------

    def _next_version(self) -> int:
        self._version += 1
        return self._version

    def _is_fresh(self, timestamp: float | None) -> bool:
        return timestamp is not None and self._clock() - timestamp < self.ttl_seconds

    def _effective_version(self, product_id: str) -> int:
        return max(self._resolved_versions.get(product_id, 0), self._snapshot_version)

    def _lookup(self, product_id: str, *, allow_stale: bool) -> Membership | None:
        entry = self._entries.get(product_id)
        if entry is not None:
            if not allow_stale and not self._is_fresh(entry.checked_at):
                return None
            if entry.remote_id is None:
                return Membership(product_id, MembershipState.NOT_IN_WISHLIST)
            return Membership(product_id, MembershipState.IN_WISHLIST, entry.remote_id)
        if self._is_fresh(self._refreshed_at):
            # A fresh full snapshot without the id is a confirmed absence.
            return Membership(product_id, MembershipState.NOT_IN_WISHLIST)
        return None

    def _write(self, product_id: str, remote_id: int | None, version: int) -> None:
        if self._closed:
            raise StaleWishlistWrite(product_id)
        if self._effective_version(product_id) > version:
            raise StaleWishlistWrite(product_id)
        self._entries[product_id] = _CacheEntry(remote_id=remote_id, checked_at=self._clock(), version=version)
        self._resolved_versions[product_id] = version
        self._persist()

    def _evict(self, product_id: str, version: int) -> None:
        if self._closed:
            raise StaleWishlistWrite(product_id)
        if self._effective_version(product_id) > version:
            raise StaleWishlistWrite(product_id)
        self._entries.pop(product_id, None)
        self._resolved_versions[product_id] = version
        self._persist()

    def state(self, product_id: str) -> Membership:
        if product_id in self._checking:
            return Membership(product_id, MembershipState.CHECKING)
        cached = self._lookup(product_id, allow_stale=True)
        return cached or Membership(product_id, MembershipState.UNKNOWN)

    def entries(self) -> list[WishlistEntry]:
        return [
            WishlistEntry(product_id=pid, remote_id=entry.remote_id)
            for pid, entry in self._entries.items()
            if entry.remote_id is not None
        ]

    # -- remote ------------------------------------------------------------

    async def _check(self, product_id: str, *, raise_errors: bool = False) -> Membership:
        version = self._next_version()
        self._checking.add(product_id)
        try:
            remote = await self.client.fetch_wishlist()
        except NetworkError as exc:
            logger.warning("Wishlist existence check for %s failed: %s", product_id, exc)
            if raise_errors:
                raise
            return self._lookup(product_id, allow_stale=True) or Membership(product_id, MembershipState.UNKNOWN)
        finally:
            self._checking.discard(product_id)

        remote_id = remote.get(product_id)
        try:
            self._write(product_id, remote_id, version)
        except StaleWishlistWrite as exc:
            logger.debug("%s", exc)
            return self.state(product_id)
        if remote_id is None:
            return Membership(product_id, MembershipState.NOT_IN_WISHLIST)
        return Membership(product_id, MembershipState.IN_WISHLIST, remote_id)

    async def is_member(self, product_id: str) -> bool:
        if not self.client.is_authenticated:
            return False
        cached = self._lookup(product_id, allow_stale=True)
        if cached is not None:
            return cached.is_member
        return (await self._check(product_id)).is_member

    async def refresh_all(self, *, force: bool = False) -> bool:
        """Replace the whole cache from the remote wishlist; returns False when skipped."""
        if not self.client.is_authenticated:
            return False
        if not force and self._is_fresh(self._refreshed_at):
            return False

        version = self._next_version()
        try:
            remote = await self.client.fetch_wishlist()
        except NetworkError as exc:
            logger.warning("Wishlist refresh failed, keeping cached state: %s", exc)
            return False
        if self._closed or version < self._snapshot_version:
            logger.debug("Discarded stale wishlist snapshot (version %d)", version)
            return False

        now = self._clock()
        entries = {pid: _CacheEntry(remote_id=remote_id, checked_at=now, version=version) for pid, remote_id in remote.items()}
        # Keep per-product resolutions that started after this refresh did.
        for pid, resolved in self._resolved_versions.items():
            if resolved <= version:
                continue
            if pid in self._entries:
                entries[pid] = self._entries[pid]
            else:
                entries.pop(pid, None)
        self._entries = entries
        self._resolved_versions = {pid: v for pid, v in self._resolved_versions.items() if v > version}
        self._snapshot_version = version
        self._refreshed_at = now
        self._persist()
        logger.info("Wishlist refreshed with %d items", len(remote))
        return True

    async def toggle(self, item: ListingItem) -> Membership:
        if not self.client.is_authenticated:
            raise LoginRequiredError("Please log in to use the wishlist.")
        product_id = item.pid
        while product_id in self._inflight:
            await asyncio.shield(self._inflight[product_id])

        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._inflight[product_id] = done
        try:
            return await self._toggle(item)
        finally:
            del self._inflight[product_id]
            done.set_result(None)

    async def _toggle(self, item: ListingItem) -> Membership:
        product_id = item.pid
        current = self._lookup(product_id, allow_stale=False)
        if current is None:
            current = await self._check(product_id, raise_errors=True)

        # Confirmed writes take their version when the server answers.
        if current.is_member and current.remote_id is not None:
            await self.client.remove_wishlist(current.remote_id)
            version = self._next_version()
            try:
                self._evict(product_id, version)
            except StaleWishlistWrite as exc:
                logger.debug("%s", exc)
            logger.info("Removed %s from wishlist", product_id)
            return Membership(product_id, MembershipState.NOT_IN_WISHLIST)

        result = await self.client.add_wishlist(item)
        version = self._next_version()
        if result.already_exists:
            logger.info("%s already in wishlist; adopting remote id %s", product_id, result.remote_id)
        if result.remote_id is None:
            # Membership is real but unaddressable until the next check.
            try:
                self._evict(product_id, version)
            except StaleWishlistWrite as exc:
                logger.debug("%s", exc)
            return Membership(product_id, MembershipState.UNKNOWN)
        try:
            self._write(product_id, result.remote_id, version)
        except StaleWishlistWrite as exc:
            logger.debug("%s", exc)
        return Membership(product_id, MembershipState.IN_WISHLIST, result.remote_id)

    def clear(self) -> None:
        self._entries.clear()
        self._resolved_versions.clear()
        self._refreshed_at = None
        self._snapshot_version = self._next_version()
        self.storage.remove(self.storage_key)

    def close(self) -> None:
        self._closed = True


__all__ = [
    "DEFAULT_STORAGE_KEY",
    "Membership",
    "MembershipState",
    "WishlistClient",
    "WishlistReconciler",
]
