"""One product screen: fetch, normalize, index and track the purchase selection."""

from __future__ import annotations

import logging
from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from .adapters import listing_item_from_normalized, normalize, normalize_listing_items
from .canonical import CartLineRequest, ListingItem, NormalizedProduct, Product, Source
from .cart import BatchResult, CartComposer, ComposeResult
from .errors import LoginRequiredError, MalformedPayloadError, NetworkError
from .logging import product_to_loggable
from .selection import SelectionState
from .variants import VariantIndex

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Service not available for this country or product."

ConvertPriceFn = Callable[[Decimal], Any]


class ProductClient(Protocol):
    @property
    def is_authenticated(self) -> bool: ...

    async def fetch_product(self, source: Source | str, product_id: str) -> Any: ...

    async def fetch_related(self, source: Source | str, product_id: str) -> list[Any]: ...

    async def fetch_like(self, source: Source | str, product_id: str) -> list[Any]: ...

    async def fetch_vendor(self, product_id: str, seller: str = "") -> list[Any]: ...

    async def add_cart_line(self, line: CartLineRequest) -> Any: ...


class SessionStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


class ProductSession:
    def __init__(
        self,
        client: ProductClient,
        *,
        composer: CartComposer | None = None,
        convert_price: ConvertPriceFn | None = None,
    ) -> None:
        self.client = client
        self.composer = composer or CartComposer()
        self.convert_price = convert_price
        self.status = SessionStatus.IDLE
        self.message: str | None = None
        self.normalized: NormalizedProduct | None = None
        self.index = VariantIndex(())
        self.selection = SelectionState(self.index)
        self._generation = 0
        self._alive = True

    @property
    def product(self) -> Product | None:
        return self.normalized.product if self.normalized is not None else None

    def _is_current(self, generation: int) -> bool:
        return self._alive and generation == self._generation

    def _reset(self) -> None:
        self.normalized = None
        self.index = VariantIndex(())
        self.selection = SelectionState(self.index)
        self.message = None

    async def load(self, product_id: str, source: Source | str) -> SessionStatus:
        self._generation += 1
        generation = self._generation
        self._reset()
        self.status = SessionStatus.LOADING

        try:
            raw = await self.client.fetch_product(source, product_id)
        except NetworkError as exc:
            if not self._is_current(generation):
                logger.debug("Ignoring failed fetch for superseded product %s", product_id)
                return self.status
            logger.warning("Fetching product %s/%s failed: %s", source, product_id, exc)
            self.status = SessionStatus.ERROR
            self.message = str(exc)
            return self.status

        if not self._is_current(generation):
            logger.debug("Discarding late product payload for %s", product_id)
            return self.status

        try:
            normalized = normalize(raw, source)
        except MalformedPayloadError as exc:
            logger.warning("Product %s/%s unavailable: %s", source, product_id, exc)
            self.status = SessionStatus.UNAVAILABLE
            self.message = UNAVAILABLE_MESSAGE
            return self.status

        logger.debug("Loaded product: %s", product_to_loggable(normalized, verbosity="low"))
        self.normalized = normalized
        self.index = VariantIndex(normalized.variants)
        self.selection = SelectionState(self.index)
        self.status = SessionStatus.READY
        return self.status

    def display_price(self) -> Any:
        product = self.product
        if product is None:
            return None
        if self.convert_price is None:
            return product.display_price
        return self.convert_price(product.display_price)

    def listing_item(self) -> ListingItem | None:
        if self.normalized is None:
            return None
        return listing_item_from_normalized(self.normalized)

    def compose(self) -> ComposeResult:
        if self.product is None:
            raise RuntimeError("No product loaded")
        return self.composer.compose(self.product, self.selection)

    async def submit(self) -> ComposeResult | BatchResult:
        """Compose and submit the selection; validation failures never reach the network."""
        composed = self.compose()
        if not composed.ok:
            return composed
        if not self.client.is_authenticated:
            raise LoginRequiredError("Please log in to add items to your cart.")

        generation = self._generation
        result = await self.composer.submit(composed.lines, self.client)
        if result.successful and self._is_current(generation):
            self.selection.clear()
        return result

    async def _listing(self, kind: str) -> list[ListingItem]:
        product = self.product
        if product is None:
            return []
        if kind == "vendor" and product.source != Source.MARKETPLACE_A:
            return []
        generation = self._generation
        try:
            if kind == "vendor":
                items = await self.client.fetch_vendor(product.id, product.seller_key)
            elif kind == "like":
                items = await self.client.fetch_like(product.source, product.id)
            else:
                items = await self.client.fetch_related(product.source, product.id)
        except NetworkError as exc:
            logger.warning("Fetching %s products for %s failed: %s", kind, product.id, exc)
            return []
        if not self._is_current(generation):
            return []
        return normalize_listing_items(items, product.source)

    async def related(self) -> list[ListingItem]:
        return await self._listing("related")

    async def like(self) -> list[ListingItem]:
        return await self._listing("like")

    async def vendor(self) -> list[ListingItem]:
        """Other 1688 offers from the same seller; empty for other sources."""
        return await self._listing("vendor")

    def close(self) -> None:
        self._alive = False


__all__ = ["ProductSession", "SessionStatus", "UNAVAILABLE_MESSAGE"]
