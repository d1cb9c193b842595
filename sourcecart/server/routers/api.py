"""JSON API routes: /health, /api/v1/*."""

import logging
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from ...config import get_settings
from ...core.adapters import normalize_listing_items
from ...core.canonical import ListingItem, Product, Source, composite_key, format_decimal, parse_decimal_money
from ...core.canonical.serialization import product_from_dict, serialize_normalized_product, variant_from_dict
from ...core.cart import CartComposer, ComposeResult
from ...core.errors import (
    LoginRequiredError,
    MalformedPayloadError,
    NetworkError,
    SourceCartError,
    ValidationError,
)
from ...core.logging import cart_lines_to_loggable, product_to_loggable
from ...core.selection import SelectionState
from ...core.session import UNAVAILABLE_MESSAGE, ProductSession, SessionStatus
from ...core.variants import VariantIndex
from ...core.wishlist import Membership, MembershipState
from ..helpers.clients import ClientRegistry, bearer_token
from ..schemas import ComposeCartRequest, WishlistToggleRequest

settings = get_settings()
router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def _registry(request: Request) -> ClientRegistry:
    return request.app.state.clients


def _http_error(exc: SourceCartError) -> HTTPException:
    if isinstance(exc, LoginRequiredError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, MalformedPayloadError):
        return HTTPException(status_code=503, detail=UNAVAILABLE_MESSAGE)
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail={"code": exc.code, "message": str(exc)})
    if isinstance(exc, NetworkError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def _selection_from_request(payload: ComposeCartRequest) -> tuple[Product, SelectionState]:
    try:
        product = product_from_dict(payload.product)
        variants = [variant_from_dict(item) for item in payload.variants]
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid product payload: {exc}") from exc

    selection = SelectionState(VariantIndex(variants))
    by_key = {variant.key: variant for variant in variants}
    for key, quantity in payload.quantities.items():
        variant = by_key.get(key)
        if variant is None:
            raise HTTPException(status_code=422, detail=f"Unknown variant key: {key}")
        if quantity <= 0:
            continue
        selection_key = composite_key(variant.first_attr, variant.second_attr)
        if selection.index.variant_for_key(selection_key) is None:
            raise HTTPException(status_code=422, detail=f"Variant {key} has no selectable attribute.")
        before = selection.quantity(selection_key)
        if selection.adjust(variant, quantity) == before:
            raise HTTPException(
                status_code=422,
                detail=f"Quantity for {key} exceeds available stock ({variant.stock}).",
            )
    return product, selection


def _composed(payload: ComposeCartRequest) -> tuple[Product, SelectionState, ComposeResult]:
    product, selection = _selection_from_request(payload)
    result = CartComposer().compose(product, selection)
    if result.error is not None:
        raise _http_error(result.error)
    return product, selection, result


@router.get("/health")
def health() -> dict:
    return {"status": "ok", "app": settings.app_name}


@router.get("/api/v1/products/{source}/{product_id}")
async def get_product(source: str, product_id: str, request: Request) -> dict:
    async with _registry(request).client(bearer_token(request)) as client:
        session = ProductSession(client)
        status = await session.load(product_id, source)
        session.close()

    if status == SessionStatus.UNAVAILABLE:
        raise HTTPException(status_code=503, detail=session.message)
    if status != SessionStatus.READY or session.normalized is None:
        raise HTTPException(status_code=502, detail=session.message or "Failed to load product.")

    normalized = session.normalized
    logger.info("Product fetched: %s", product_to_loggable(normalized, verbosity=settings.log_verbosity))
    payload = serialize_normalized_product(normalized, include_raw=settings.debug)
    payload["groups"] = [group.to_dict() for group in session.index.groups.values()]
    payload["active_group"] = session.selection.active_group
    listing_item = session.listing_item()
    payload["listing_item"] = listing_item.to_dict() if listing_item is not None else None
    return payload


@router.get("/api/v1/products/{source}/{product_id}/related")
async def get_related_products(
    source: str,
    product_id: str,
    request: Request,
    kind: str = Query("related", pattern="^(related|like|vendor)$"),
    seller: str = Query(""),
) -> dict:
    resolved = Source.parse(source)
    if kind == "vendor" and resolved != Source.MARKETPLACE_A:
        return {"items": []}
    async with _registry(request).client(bearer_token(request)) as client:
        try:
            if kind == "vendor":
                items = await client.fetch_vendor(product_id, seller)
            elif kind == "like":
                items = await client.fetch_like(resolved, product_id)
            else:
                items = await client.fetch_related(resolved, product_id)
        except NetworkError as exc:
            logger.warning("Fetching %s products for %s failed: %s", kind, product_id, exc)
            items = []
    return {"items": [item.to_dict() for item in normalize_listing_items(items, resolved)]}


@router.post("/api/v1/cart/compose")
def compose_cart(payload: ComposeCartRequest) -> dict:
    product, selection, result = _composed(payload)
    return {
        "lines": [line.to_payload() for line in result.lines],
        "total_quantity": selection.total_quantity(),
        "subtotal": format_decimal(selection.subtotal()),
        "currency": product.currency,
    }


@router.post("/api/v1/cart")
async def add_to_cart(payload: ComposeCartRequest, request: Request) -> dict:
    product, _, result = _composed(payload)
    token = bearer_token(request)
    if token is None:
        raise _http_error(LoginRequiredError("Please log in to add items to your cart."))

    logger.info(
        "Submitting cart lines: %s",
        cart_lines_to_loggable(result.lines, currency=product.currency, verbosity=settings.log_verbosity),
    )
    async with _registry(request).client(token) as client:
        try:
            batch = await CartComposer().submit(result.lines, client)
        except SourceCartError as exc:
            raise _http_error(exc) from exc
    return batch.to_dict()


@router.get("/api/v1/wishlist/{product_id}")
async def get_wishlist_membership(product_id: str, request: Request) -> dict:
    token = bearer_token(request)
    if token is None:
        return Membership(product_id, MembershipState.UNKNOWN).to_dict()
    reconciler = await _registry(request).reconciler(token)
    await reconciler.is_member(product_id)
    return reconciler.state(product_id).to_dict()


@router.post("/api/v1/wishlist/toggle")
async def toggle_wishlist(payload: WishlistToggleRequest, request: Request) -> dict:
    token = bearer_token(request)
    if token is None:
        raise _http_error(LoginRequiredError("Please log in to use the wishlist."))

    item = ListingItem(
        pid=payload.pid,
        source=Source.parse(payload.src),
        title=payload.title,
        image=payload.img,
        price=parse_decimal_money(payload.price) or Decimal("0"),
    )
    try:
        reconciler = await _registry(request).reconciler(token)
        membership = await reconciler.toggle(item)
    except SourceCartError as exc:
        raise _http_error(exc) from exc
    return membership.to_dict()


@router.post("/api/v1/wishlist/refresh")
async def refresh_wishlist(request: Request, force: bool = Query(False)) -> dict[str, Any]:
    token = bearer_token(request)
    if token is None:
        raise _http_error(LoginRequiredError("Please log in to use the wishlist."))
    reconciler = await _registry(request).reconciler(token)
    refreshed = await reconciler.refresh_all(force=force)
    return {
        "refreshed": refreshed,
        "items": [{"pid": entry.product_id, "id": entry.remote_id} for entry in reconciler.entries()],
    }
