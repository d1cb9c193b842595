"""In-process stand-ins for the upstream client used by core tests."""

import asyncio
from decimal import Decimal
from typing import Any

from sourcecart.core.canonical import CartLineRequest, ListingItem, Source
from sourcecart.core.client import WishlistAddResult
from sourcecart.core.errors import NetworkError


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def listing_item(pid: str = "610947572360", source: Source = Source.MARKETPLACE_A) -> ListingItem:
    return ListingItem(
        pid=pid,
        source=source,
        title="Cotton T-shirt",
        image="https://img.example/a.jpg",
        price=Decimal("12.5"),
    )


class FakeWishlistClient:
    def __init__(self, remote: dict[str, int] | None = None, *, authenticated: bool = True) -> None:
        self.remote = dict(remote or {})
        self.is_authenticated = authenticated
        self.calls: list[tuple[Any, ...]] = []
        self.next_id = 100
        self.hidden: dict[str, int] = {}
        self.fail_fetch = False
        self.add_gate: asyncio.Event | None = None

    async def fetch_wishlist(self) -> dict[str, int]:
        self.calls.append(("fetch",))
        snapshot = dict(self.remote)
        await asyncio.sleep(0)
        if self.fail_fetch:
            raise NetworkError("upstream down", status=503)
        return snapshot

    async def add_wishlist(self, item: ListingItem) -> WishlistAddResult:
        self.calls.append(("add", item.pid))
        await asyncio.sleep(0)
        if self.add_gate is not None:
            await self.add_gate.wait()
        if item.pid in self.hidden:
            return WishlistAddResult(remote_id=self.hidden[item.pid], already_exists=True)
        if item.pid in self.remote:
            return WishlistAddResult(remote_id=self.remote[item.pid], already_exists=True)
        self.next_id += 1
        self.remote[item.pid] = self.next_id
        return WishlistAddResult(remote_id=self.next_id)

    async def remove_wishlist(self, remote_id: int) -> None:
        self.calls.append(("remove", remote_id))
        await asyncio.sleep(0)
        self.remote = {pid: rid for pid, rid in self.remote.items() if rid != remote_id}


class GatedWishlistClient(FakeWishlistClient):
    """Holds the first wishlist fetch until ``release`` is set."""

    def __init__(self, remote: dict[str, int] | None = None) -> None:
        super().__init__(remote)
        self.release = asyncio.Event()
        self._gated = True

    async def fetch_wishlist(self) -> dict[str, int]:
        self.calls.append(("fetch",))
        snapshot = dict(self.remote)
        if self._gated:
            self._gated = False
            await self.release.wait()
        return snapshot


class FakeProductClient:
    def __init__(self, payloads: dict[str, Any] | None = None, *, authenticated: bool = True) -> None:
        self.payloads = dict(payloads or {})
        self.is_authenticated = authenticated
        self.gates: dict[str, asyncio.Event] = {}
        self.cart_lines: list[CartLineRequest] = []
        self.failing_vinfos: set[str] = set()
        self.related: list[Any] = []
        self.vendor: list[Any] = []
        self.vendor_requests: list[tuple[str, str]] = []

    async def fetch_product(self, source: Source | str, product_id: str) -> Any:
        gate = self.gates.get(product_id)
        if gate is not None:
            await gate.wait()
        payload = self.payloads.get(product_id)
        if isinstance(payload, Exception):
            raise payload
        return payload

    async def fetch_related(self, source: Source | str, product_id: str) -> list[Any]:
        return list(self.related)

    async def fetch_like(self, source: Source | str, product_id: str) -> list[Any]:
        return list(self.related)

    async def fetch_vendor(self, product_id: str, seller: str = "") -> list[Any]:
        self.vendor_requests.append((product_id, seller))
        return list(self.vendor)

    async def add_cart_line(self, line: CartLineRequest) -> Any:
        await asyncio.sleep(0)
        if line.vinfo in self.failing_vinfos:
            raise NetworkError("cart rejected", status=500)
        self.cart_lines.append(line)
        return {"status": "success"}
