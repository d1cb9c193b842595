from decimal import Decimal

import pytest

from sourcecart.core.adapters import normalize, normalize_listing_items
from sourcecart.core.canonical import Source
from sourcecart.core.errors import MalformedPayloadError
from tests.helpers._payloads import marketplace_b_raw


def test_marketplace_b_unwraps_nested_product_data() -> None:
    product = normalize(marketplace_b_raw(), "tb").product

    assert product.id == "712345"
    assert product.source == Source.MARKETPLACE_B
    assert product.title == "Canvas Bag"
    assert product.images == ("https://img.alicdn.com/bao/1.jpg", "https://img.alicdn.com/bao/2.jpg")
    assert product.seller_key == "tb"
    assert product.min_order_qty == 1
    assert product.total_stock == 40
    assert product.weight_kg == Decimal("0.8")


def test_marketplace_b_prices_are_cents_divided_by_one_hundred() -> None:
    normalized = normalize(marketplace_b_raw(), "tb")

    assert normalized.product.display_price == Decimal("25.99")
    assert [variant.price for variant in normalized.variants] == [Decimal("25.99"), Decimal("31.5")]


def test_marketplace_b_variants_have_one_attribute_level() -> None:
    variants = normalize(marketplace_b_raw(), "retail").variants

    assert [variant.first_attr for variant in variants] == ["Black", "White"]
    assert all(variant.second_attr is None for variant in variants)
    assert variants[0].key == "9001"
    assert variants[0].stock == 15
    assert variants[0].image_url == "https://img.alicdn.com/bao/black.jpg"
    assert variants[1].image_url == ""


def test_marketplace_b_missing_item_id_is_malformed() -> None:
    with pytest.raises(MalformedPayloadError):
        normalize(marketplace_b_raw(item_id=None), "tb")


def test_marketplace_b_non_object_payload_is_malformed() -> None:
    with pytest.raises(MalformedPayloadError):
        normalize(["not", "an", "object"], "tb")


def test_marketplace_b_listing_item_uses_first_picture() -> None:
    items = normalize_listing_items(
        [
            {
                "item_id": 55,
                "title": "Wallet",
                "pic_urls": ["//img.alicdn.com/w.jpg"],
                "promotion_price": 1999,
                "price": 2500,
            }
        ],
        "tb",
    )

    assert items[0].image == "https://img.alicdn.com/w.jpg"
    assert items[0].price == Decimal("19.99")
