"""Retail marketplace (tb) payloads: SKU prices are integer cents, one attribute level."""

from decimal import Decimal
from typing import Any

from ..canonical import ListingItem, NormalizedProduct, Product, Source, Variant
from ..canonical.helpers import clean_text, dedupe, first_text, minor_to_major, normalize_url, parse_decimal_money, to_int
from .common import MarketplaceBPayload, as_dict, as_list, dig, first_present, require_identity, shipping_fee

SOURCE = Source.MARKETPLACE_B


def parse_marketplace_b_payload(raw: dict[str, Any]) -> MarketplaceBPayload:
    # The details endpoint nests the item under product.data.
    product = raw.get("product") if isinstance(raw.get("product"), dict) else raw
    if isinstance(product.get("data"), dict):
        product = product["data"]
    return MarketplaceBPayload(
        product=product,
        shipping=as_dict(raw.get("shipping")),
        weight=raw.get("weight"),
    )


def _cents(*values: Any) -> Decimal:
    return minor_to_major(first_present(*values)) or Decimal("0")


def _build_variants(product: dict[str, Any]) -> list[Variant]:
    variants: list[Variant] = []
    for item in as_list(product.get("sku_list")):
        sku = as_dict(item)
        sku_id = clean_text(sku.get("sku_id"))
        if not sku_id:
            continue
        properties = [as_dict(prop) for prop in as_list(sku.get("properties"))]
        pairs = tuple(
            (first_text(prop.get("prop_name"), prop.get("propName")) or "Variant", str(prop["value_name"]).strip())
            for prop in properties
            if clean_text(prop.get("value_name"))
        )
        variants.append(
            Variant(
                key=sku_id,
                first_attr=(clean_text(properties[0].get("value_name")) if properties else None) or "",
                second_attr=None,
                price=_cents(sku.get("coupon_price"), sku.get("price")),
                stock=to_int(sku.get("quantity")),
                image_url=normalize_url(sku.get("pic_url")) or "",
                sku_id=sku_id,
                attributes=pairs,
            )
        )
    return variants


def normalize_marketplace_b(payload: MarketplaceBPayload) -> NormalizedProduct:
    product = payload.product
    product_id = require_identity(first_present(product.get("item_id"), product.get("id")), field_name="item_id", source=SOURCE)
    variants = _build_variants(product)

    images = [normalize_url(url) for url in as_list(product.get("pic_urls"))]
    if not any(images):
        images = [normalize_url(product.get("main_image_url"))]

    inventory = product.get("inventory")
    weight = parse_decimal_money(first_present(product.get("weight"), payload.weight))

    return NormalizedProduct(
        product=Product(
            id=product_id,
            source=SOURCE,
            title=first_text(dig(product, "multi_language_info", "title"), product.get("title")) or "",
            images=tuple(dedupe(url for url in images if url)),
            weight_kg=weight or Decimal("0"),
            min_order_qty=1,
            seller_key="tb",
            display_price=_cents(product.get("coupon_price"), product.get("price")),
            total_stock=to_int(inventory) if inventory is not None else sum(v.stock for v in variants),
            currency="CNY",
            shipping_fee=shipping_fee(payload.shipping),
            raw=product,
        ),
        variants=tuple(variants),
    )


def listing_item_from_marketplace_b(raw: dict[str, Any]) -> ListingItem:
    pid = require_identity(first_present(raw.get("item_id"), raw.get("id")), field_name="item_id", source=SOURCE)
    pictures = as_list(raw.get("pic_urls"))
    return ListingItem(
        pid=pid,
        source=SOURCE,
        title=first_text(dig(raw, "multi_language_info", "title"), raw.get("title")) or "",
        image=(normalize_url(pictures[0]) if pictures else normalize_url(raw.get("main_image_url"))) or "",
        price=_cents(raw.get("promotion_price"), raw.get("price")),
    )


__all__ = [
    "listing_item_from_marketplace_b",
    "normalize_marketplace_b",
    "parse_marketplace_b_payload",
]
