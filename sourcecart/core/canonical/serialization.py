from decimal import Decimal
from typing import Any

from .entities import NormalizedProduct, Product, ShippingDetail, Source, Variant
from .helpers import clean_text, parse_decimal_money, to_int


def _decimal(value: Any, default: str = "0") -> Decimal:
    parsed = parse_decimal_money(value)
    return parsed if parsed is not None else Decimal(default)


def product_from_dict(data: dict[str, Any]) -> Product:
    product_id = clean_text(data.get("id"))
    if not product_id:
        raise ValueError("product.id is required")
    return Product(
        id=product_id,
        source=Source.parse(data.get("source")),
        title=str(data.get("title") or ""),
        images=tuple(str(url) for url in data.get("images") or [] if url),
        weight_kg=_decimal(data.get("weight_kg")),
        min_order_qty=max(to_int(data.get("min_order_qty"), 1), 1),
        seller_key=str(data.get("seller_key") or ""),
        display_price=_decimal(data.get("display_price")),
        total_stock=to_int(data.get("total_stock")),
        currency=str(data.get("currency") or "CNY"),
        shipping_fee=_decimal(data.get("shipping_fee"), "1.00"),
        video_url=clean_text(data.get("video_url")),
    )


def _shipping_from_dict(data: Any) -> ShippingDetail | None:
    if not isinstance(data, dict):
        return None
    return ShippingDetail(
        weight_kg=parse_decimal_money(data.get("weight_kg")),
        length=parse_decimal_money(data.get("length")),
        width=parse_decimal_money(data.get("width")),
        height=parse_decimal_money(data.get("height")),
    )


def variant_from_dict(data: dict[str, Any]) -> Variant:
    key = clean_text(data.get("key"))
    if not key:
        raise ValueError("variant.key is required")
    attributes: list[tuple[str, str]] = []
    for item in data.get("attributes") or []:
        if isinstance(item, dict) and item.get("name") and item.get("value"):
            attributes.append((str(item["name"]), str(item["value"])))
    return Variant(
        key=key,
        first_attr=str(data.get("first_attr") or ""),
        second_attr=clean_text(data.get("second_attr")),
        price=_decimal(data.get("price")),
        stock=to_int(data.get("stock")),
        image_url=str(data.get("image_url") or ""),
        sku_id=clean_text(data.get("sku_id")),
        attributes=tuple(attributes),
        shipping=_shipping_from_dict(data.get("shipping")),
    )


def serialize_normalized_product(normalized: NormalizedProduct, *, include_raw: bool = False) -> dict[str, Any]:
    return {
        "product": normalized.product.to_dict(include_raw=include_raw),
        "variants": [variant.to_dict() for variant in normalized.variants],
    }


__all__ = [
    "product_from_dict",
    "serialize_normalized_product",
    "variant_from_dict",
]
