"""Wholesale marketplace (1688) payloads: flat SKU list, prices in major units."""

from decimal import Decimal
from typing import Any

from ..canonical import ListingItem, NormalizedProduct, Product, ShippingDetail, Source, Variant
from ..canonical.helpers import clean_text, dedupe, first_text, normalize_url, parse_decimal_money, to_int
from .common import MarketplaceAPayload, as_dict, as_list, dig, first_present, require_identity, shipping_fee

SOURCE = Source.MARKETPLACE_A


def parse_marketplace_a_payload(raw: dict[str, Any]) -> MarketplaceAPayload:
    product = raw.get("product") if isinstance(raw.get("product"), dict) else raw
    return MarketplaceAPayload(product=product, shipping=as_dict(raw.get("shipping")))


def _attribute_value(attribute: Any) -> str:
    attr = as_dict(attribute)
    return first_text(attr.get("valueTrans"), attr.get("value")) or ""


def _attribute_pairs(attributes: list[Any]) -> tuple[tuple[str, str], ...]:
    pairs: list[tuple[str, str]] = []
    for attribute in attributes:
        attr = as_dict(attribute)
        value = first_text(attr.get("valueTrans"), attr.get("value"))
        if not value:
            continue
        name = first_text(attr.get("attributeNameTrans"), attr.get("attributeName")) or "Variant"
        pairs.append((name, value))
    return tuple(pairs)


def _shipping_details(product: dict[str, Any]) -> dict[str, ShippingDetail]:
    details: dict[str, ShippingDetail] = {}
    for item in as_list(dig(product, "productShippingInfo", "skuShippingDetails")):
        detail = as_dict(item)
        sku_id = clean_text(detail.get("skuId"))
        if not sku_id or sku_id in details:
            continue
        details[sku_id] = ShippingDetail(
            weight_kg=parse_decimal_money(detail.get("weight")),
            length=parse_decimal_money(detail.get("length")),
            width=parse_decimal_money(detail.get("width")),
            height=parse_decimal_money(detail.get("height")),
        )
    return details


def _sku_image(attributes: list[Any]) -> str:
    for attribute in attributes:
        url = normalize_url(as_dict(attribute).get("skuImageUrl"))
        if url:
            return url
    return ""


def _build_variants(product: dict[str, Any]) -> list[Variant]:
    shipping_by_sku = _shipping_details(product)
    variants: list[Variant] = []
    for item in as_list(product.get("productSkuInfos")):
        sku = as_dict(item)
        spec_id = clean_text(sku.get("specId"))
        if not spec_id:
            continue
        attributes = as_list(sku.get("skuAttributes"))
        second = _attribute_value(attributes[1]) if len(attributes) > 1 else ""
        sku_id = clean_text(sku.get("skuId"))
        variants.append(
            Variant(
                key=spec_id,
                first_attr=_attribute_value(attributes[0]) if attributes else "",
                second_attr=second or None,
                price=parse_decimal_money(first_present(sku.get("price"), sku.get("consignPrice"))) or Decimal("0"),
                stock=to_int(sku.get("amountOnSale")),
                image_url=_sku_image(attributes),
                sku_id=sku_id,
                attributes=_attribute_pairs(attributes),
                shipping=shipping_by_sku.get(sku_id) if sku_id else None,
            )
        )
    return variants


def _images(product: dict[str, Any]) -> list[str]:
    urls = [normalize_url(url) for url in as_list(dig(product, "productImage", "images"))]
    if not any(urls):
        urls = [normalize_url(as_dict(img).get("imageUrl")) for img in as_list(product.get("images"))]
    return dedupe(url for url in urls if url)


def normalize_marketplace_a(payload: MarketplaceAPayload) -> NormalizedProduct:
    product = payload.product
    product_id = require_identity(first_present(product.get("offerId"), product.get("id")), field_name="offerId", source=SOURCE)
    variants = _build_variants(product)

    display_price = parse_decimal_money(
        first_present(
            dig(product, "productSaleInfo", "priceRangeList", 0, "price"),
            dig(product, "productSkuInfos", 0, "price"),
        )
    )
    amount_on_sale = dig(product, "productSaleInfo", "amountOnSale")
    total_stock = to_int(amount_on_sale) if amount_on_sale is not None else sum(v.stock for v in variants)
    min_order = to_int(
        first_present(
            product.get("minOrderQuantity"),
            dig(product, "productSaleInfo", "fenxiaoSaleInfo", "startQuantity"),
        ),
        1,
    )

    return NormalizedProduct(
        product=Product(
            id=product_id,
            source=SOURCE,
            title=first_text(product.get("subjectTrans"), product.get("subject")) or "",
            images=tuple(_images(product)),
            weight_kg=parse_decimal_money(dig(product, "productShippingInfo", "weight")) or Decimal("0"),
            min_order_qty=max(min_order, 1),
            seller_key=first_text(product.get("sellerOpenId"), product.get("seller")) or "1688",
            display_price=display_price or Decimal("0"),
            total_stock=total_stock,
            currency="CNY",
            shipping_fee=shipping_fee(payload.shipping),
            video_url=normalize_url(product.get("mainVideo")),
            raw=product,
        ),
        variants=tuple(variants),
    )


def listing_item_from_marketplace_a(raw: dict[str, Any]) -> ListingItem:
    pid = require_identity(raw.get("offerId"), field_name="offerId", source=SOURCE)
    return ListingItem(
        pid=pid,
        source=SOURCE,
        title=first_text(raw.get("subjectTrans"), raw.get("subject")) or "",
        image=normalize_url(raw.get("imageUrl")) or "",
        price=parse_decimal_money(dig(raw, "priceInfo", "price")) or Decimal("0"),
    )


__all__ = [
    "listing_item_from_marketplace_a",
    "normalize_marketplace_a",
    "parse_marketplace_a_payload",
]
