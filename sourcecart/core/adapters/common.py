"""Tagged source payloads and helpers shared by the per-source adapters."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Union

from ..canonical import ListingItem, NormalizedProduct, Source
from ..canonical.helpers import parse_decimal_money
from ..errors import MalformedPayloadError

DEFAULT_SHIPPING_FEE = Decimal("1.00")


@dataclass(frozen=True)
class MarketplaceAPayload:
    product: dict[str, Any]
    shipping: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MarketplaceBPayload:
    product: dict[str, Any]
    shipping: dict[str, Any] = field(default_factory=dict)
    weight: Any = None


@dataclass(frozen=True)
class LocalPayload:
    product: dict[str, Any]
    variants: list[dict[str, Any]] = field(default_factory=list)
    shipping: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChinesePayload:
    product: dict[str, Any]
    variants: list[dict[str, Any]] = field(default_factory=list)
    shipping: dict[str, Any] = field(default_factory=dict)


SourcePayload = Union[MarketplaceAPayload, MarketplaceBPayload, LocalPayload, ChinesePayload]
MerchantPayload = Union[LocalPayload, ChinesePayload]


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def dig(data: Any, *path: str | int) -> Any:
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
            current = current[key]
            continue
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_present(*values: Any) -> Any:
    """Return the first scalar value that is not None, empty, or numerically zero."""
    for value in values:
        if value is None or value == "" or isinstance(value, (dict, list)):
            continue
        parsed = parse_decimal_money(value)
        if parsed is not None and parsed == 0:
            continue
        return value
    return None


def shipping_fee(shipping: dict[str, Any]) -> Decimal:
    parsed = parse_decimal_money(shipping.get("freight"))
    return parsed if parsed is not None else DEFAULT_SHIPPING_FEE


def require_identity(value: Any, *, field_name: str, source: Source) -> str:
    if value is None or isinstance(value, (bool, dict, list)):
        raise MalformedPayloadError(f"{source.value} payload is missing {field_name}", source=source.value)
    text = str(value).strip()
    if not text:
        raise MalformedPayloadError(f"{source.value} payload is missing {field_name}", source=source.value)
    return text


def listing_item_from_normalized(normalized: NormalizedProduct) -> ListingItem:
    product = normalized.product
    return ListingItem(
        pid=product.id,
        source=product.source,
        title=product.title,
        image=product.primary_image,
        price=product.display_price,
    )


__all__ = [
    "ChinesePayload",
    "DEFAULT_SHIPPING_FEE",
    "LocalPayload",
    "MarketplaceAPayload",
    "MarketplaceBPayload",
    "MerchantPayload",
    "SourcePayload",
    "as_dict",
    "as_list",
    "dig",
    "first_present",
    "listing_item_from_normalized",
    "require_identity",
    "shipping_fee",
]
