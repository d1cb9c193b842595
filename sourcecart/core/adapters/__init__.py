"""Per-source payload adapters producing canonical products and variants."""

import logging
from typing import Any

from ..canonical import ListingItem, NormalizedProduct, Source
from ..errors import MalformedPayloadError
from .common import (
    ChinesePayload,
    LocalPayload,
    MarketplaceAPayload,
    MarketplaceBPayload,
    SourcePayload,
    listing_item_from_normalized,
)
from .marketplace_a import listing_item_from_marketplace_a, normalize_marketplace_a, parse_marketplace_a_payload
from .marketplace_b import listing_item_from_marketplace_b, normalize_marketplace_b, parse_marketplace_b_payload
from .merchant import listing_item_from_merchant, normalize_merchant, parse_merchant_payload

logger = logging.getLogger(__name__)


def parse_source_payload(raw: Any, source: Source | str) -> SourcePayload:
    resolved = Source.parse(source)
    if not isinstance(raw, dict):
        raise MalformedPayloadError(f"{resolved.value} payload must be a JSON object", source=resolved.value)
    if resolved == Source.MARKETPLACE_A:
        return parse_marketplace_a_payload(raw)
    if resolved == Source.MARKETPLACE_B:
        return parse_marketplace_b_payload(raw)
    return parse_merchant_payload(raw, resolved)


def normalize_payload(payload: SourcePayload) -> NormalizedProduct:
    if isinstance(payload, MarketplaceAPayload):
        return normalize_marketplace_a(payload)
    if isinstance(payload, MarketplaceBPayload):
        return normalize_marketplace_b(payload)
    if isinstance(payload, (LocalPayload, ChinesePayload)):
        return normalize_merchant(payload)
    raise TypeError(f"Unsupported source payload: {type(payload).__name__}")


def normalize(raw: Any, source: Source | str) -> NormalizedProduct:
    normalized = normalize_payload(parse_source_payload(raw, source))
    logger.debug(
        "Normalized %s product %s with %d variants",
        normalized.product.source.value,
        normalized.product.id,
        len(normalized.variants),
    )
    return normalized


def normalize_listing_item(raw: Any, source: Source | str) -> ListingItem:
    resolved = Source.parse(source)
    if not isinstance(raw, dict):
        raise MalformedPayloadError(f"{resolved.value} listing item must be a JSON object", source=resolved.value)
    if resolved == Source.MARKETPLACE_A:
        return listing_item_from_marketplace_a(raw)
    if resolved == Source.MARKETPLACE_B:
        return listing_item_from_marketplace_b(raw)
    return listing_item_from_merchant(raw, resolved)


def normalize_listing_items(items: Any, source: Source | str) -> list[ListingItem]:
    """Normalize a recommendation list, skipping cards without an identity."""
    out: list[ListingItem] = []
    for item in items if isinstance(items, list) else []:
        try:
            out.append(normalize_listing_item(item, source))
        except MalformedPayloadError as exc:
            logger.debug("Skipping listing item: %s", exc)
    return out


__all__ = [
    "ChinesePayload",
    "LocalPayload",
    "MarketplaceAPayload",
    "MarketplaceBPayload",
    "SourcePayload",
    "listing_item_from_normalized",
    "normalize",
    "normalize_listing_item",
    "normalize_listing_items",
    "normalize_payload",
    "parse_source_payload",
]
