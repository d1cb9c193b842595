from .entities import (
    CartLineRequest,
    Currency,
    ListingItem,
    NormalizedProduct,
    Product,
    QuantityEntry,
    ShippingDetail,
    Source,
    Variant,
    WishlistEntry,
)
from .helpers import (
    composite_key,
    format_decimal,
    minor_to_major,
    parse_decimal_money,
    resolve_merchant_image_url,
    round_half_up,
)
from .serialization import product_from_dict, serialize_normalized_product, variant_from_dict

__all__ = [
    "CartLineRequest",
    "Currency",
    "ListingItem",
    "NormalizedProduct",
    "Product",
    "QuantityEntry",
    "ShippingDetail",
    "Source",
    "Variant",
    "WishlistEntry",
    "composite_key",
    "format_decimal",
    "minor_to_major",
    "parse_decimal_money",
    "product_from_dict",
    "resolve_merchant_image_url",
    "round_half_up",
    "serialize_normalized_product",
    "variant_from_dict",
]
