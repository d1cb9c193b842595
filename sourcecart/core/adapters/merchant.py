"""Local and Chinese merchant catalogs: flat variants array, single "Variant" label."""

from decimal import Decimal
from typing import Any

from ..canonical import ListingItem, NormalizedProduct, Product, Source, Variant
from ..canonical.helpers import clean_text, dedupe, first_text, parse_decimal_money, resolve_merchant_image_url, to_int
from ..errors import SERVICE_NOT_AVAILABLE_MESSAGE, ServiceUnavailableError
from .common import ChinesePayload, LocalPayload, MerchantPayload, as_dict, as_list, first_present, require_identity, shipping_fee

VARIANT_ATTRIBUTE_NAME = "Variant"

_COUNTRY_CURRENCIES = {
    "IN": "INR",
    "CN": "CNY",
    "US": "USD",
    "GB": "GBP",
    "AE": "AED",
    "SA": "SAR",
}


def parse_merchant_payload(raw: dict[str, Any], source: Source) -> MerchantPayload:
    if raw.get("error") == SERVICE_NOT_AVAILABLE_MESSAGE:
        raise ServiceUnavailableError(SERVICE_NOT_AVAILABLE_MESSAGE, source=source.value)
    product = as_dict(raw.get("product"))
    variants = as_list(raw.get("variants")) or as_list(product.get("variants"))
    payload_cls = LocalPayload if source == Source.LOCAL else ChinesePayload
    return payload_cls(
        product=product,
        variants=[as_dict(item) for item in variants],
        shipping=as_dict(raw.get("shipping")),
    )


def _build_variants(raw_variants: list[dict[str, Any]]) -> list[Variant]:
    variants: list[Variant] = []
    for item in raw_variants:
        key = clean_text(item.get("id"))
        if not key:
            continue
        label = clean_text(item.get("variant")) or ""
        variants.append(
            Variant(
                key=key,
                first_attr=label,
                second_attr=None,
                price=parse_decimal_money(item.get("price")) or Decimal("0"),
                stock=to_int(item.get("quantity")),
                image_url=resolve_merchant_image_url(item.get("image")),
                sku_id=key,
                attributes=((VARIANT_ATTRIBUTE_NAME, label),) if label else (),
            )
        )
    return variants


def minimum_positive_price(raw_variants: list[dict[str, Any]]) -> Decimal:
    prices = [parse_decimal_money(item.get("price")) for item in raw_variants]
    positive = [price for price in prices if price is not None and price > 0]
    return min(positive) if positive else Decimal("0")


def _currency(product: dict[str, Any], source: Source) -> str:
    explicit = clean_text(product.get("currency"))
    if explicit:
        return explicit.upper()
    if source == Source.LOCAL:
        country = (clean_text(product.get("country")) or "").upper()
        return _COUNTRY_CURRENCIES.get(country, "CNY")
    return "CNY"


def normalize_merchant(payload: MerchantPayload) -> NormalizedProduct:
    source = Source.LOCAL if isinstance(payload, LocalPayload) else Source.CHINESE
    product = payload.product
    product_id = require_identity(product.get("id"), field_name="product.id", source=source)
    variants = _build_variants(payload.variants)

    # Display-only aggregates; purchasing still prices each variant individually.
    display_price = minimum_positive_price(payload.variants)
    total_stock = sum(to_int(item.get("quantity")) for item in payload.variants)

    images = [resolve_merchant_image_url(image) for image in as_list(product.get("images"))]

    return NormalizedProduct(
        product=Product(
            id=product_id,
            source=source,
            title=clean_text(product.get("title")) or "",
            images=tuple(dedupe(images)),
            weight_kg=parse_decimal_money(product.get("weight")) or Decimal("0"),
            min_order_qty=max(to_int(first_present(product.get("moq")), 1), 1),
            seller_key=clean_text(product.get("musername")) or "local",
            display_price=display_price,
            total_stock=total_stock,
            currency=_currency(product, source),
            shipping_fee=shipping_fee(payload.shipping),
            raw=product,
        ),
        variants=tuple(variants),
    )


def listing_item_from_merchant(raw: dict[str, Any], source: Source) -> ListingItem:
    pid = require_identity(raw.get("id"), field_name="id", source=source)
    images = as_list(raw.get("images"))
    image = resolve_merchant_image_url(images[0]) if images else resolve_merchant_image_url(raw.get("image"))
    price = parse_decimal_money(raw.get("price"))
    if price is None:
        price = minimum_positive_price([as_dict(item) for item in as_list(raw.get("variants"))])
    return ListingItem(
        pid=pid,
        source=source,
        title=first_text(raw.get("title")) or "",
        image=image,
        price=price,
    )


__all__ = [
    "VARIANT_ATTRIBUTE_NAME",
    "listing_item_from_merchant",
    "minimum_positive_price",
    "normalize_merchant",
    "parse_merchant_payload",
]
