from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from .helpers import format_decimal

Currency = str


class Source(str, Enum):
    MARKETPLACE_A = "1688"
    MARKETPLACE_B = "tb"
    LOCAL = "local"
    CHINESE = "chinese"

    @classmethod
    def parse(cls, value: Any) -> "Source":
        if isinstance(value, Source):
            return value
        normalized = str(value or "").strip().lower()
        normalized = _SOURCE_ALIASES.get(normalized, normalized)
        for member in cls:
            if member.value == normalized:
                return member
        return cls.MARKETPLACE_A

    @property
    def is_merchant(self) -> bool:
        return self in (Source.LOCAL, Source.CHINESE)


_SOURCE_ALIASES = {
    "wholesale": "1688",
    "retail": "tb",
}


@dataclass(frozen=True)
class ShippingDetail:
    weight_kg: Decimal | None = None
    length: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "weight_kg": format_decimal(self.weight_kg) or None,
            "length": format_decimal(self.length) or None,
            "width": format_decimal(self.width) or None,
            "height": format_decimal(self.height) or None,
        }


@dataclass(frozen=True)
class Variant:
    key: str  # per-source spec id
    first_attr: str
    second_attr: str | None
    price: Decimal
    stock: int
    image_url: str = ""
    sku_id: str | None = None
    attributes: tuple[tuple[str, str], ...] = ()  # (("Color", "Red"), ("Size", "M"))
    shipping: ShippingDetail | None = None

    @property
    def label(self) -> str:
        return ", ".join(f"{name}: {value}" for name, value in self.attributes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "first_attr": self.first_attr,
            "second_attr": self.second_attr,
            "price": format_decimal(self.price),
            "stock": self.stock,
            "image_url": self.image_url,
            "sku_id": self.sku_id,
            "attributes": [{"name": name, "value": value} for name, value in self.attributes],
            "label": self.label,
            "shipping": self.shipping.to_dict() if self.shipping is not None else None,
        }


@dataclass(frozen=True)
class Product:
    id: str
    source: Source
    title: str
    images: tuple[str, ...] = ()
    weight_kg: Decimal = Decimal("0")
    min_order_qty: int = 1
    seller_key: str = ""
    display_price: Decimal = Decimal("0")
    total_stock: int = 0
    currency: Currency = "CNY"
    shipping_fee: Decimal = Decimal("1.00")
    video_url: str | None = None
    raw: dict[str, Any] | None = field(default=None, compare=False, repr=False)

    @property
    def primary_image(self) -> str:
        return self.images[0] if self.images else ""

    def to_dict(self, include_raw: bool = False) -> dict[str, Any]:
        data = {
            "id": self.id,
            "source": self.source.value,
            "title": self.title,
            "images": list(self.images),
            "weight_kg": format_decimal(self.weight_kg),
            "min_order_qty": self.min_order_qty,
            "seller_key": self.seller_key,
            "display_price": format_decimal(self.display_price),
            "total_stock": self.total_stock,
            "currency": self.currency,
            "shipping_fee": format_decimal(self.shipping_fee),
            "video_url": self.video_url,
        }
        if include_raw:
            data["raw"] = self.raw
        return data


@dataclass(frozen=True)
class NormalizedProduct:
    product: Product
    variants: tuple[Variant, ...] = ()


@dataclass(frozen=True)
class ListingItem:
    """Product card used by recommendation lists and wishlist adds."""

    pid: str
    source: Source
    title: str
    image: str
    price: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "pid": self.pid,
            "src": self.source.value,
            "title": self.title,
            "img": self.image,
            "price": format_decimal(self.price),
        }


@dataclass
class QuantityEntry:
    quantity: int
    price: Decimal
    spec_id: str
    image_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "quantity": self.quantity,
            "price": format_decimal(self.price),
            "spec_id": self.spec_id,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class WishlistEntry:
    product_id: str
    remote_id: int


@dataclass(frozen=True)
class CartLineRequest:
    src: str
    pid: str
    title: str
    image: str
    price: str
    quantity: int
    variant: str
    vinfo: str
    weight: int
    volume: int
    min_quantity: int
    dom_shipping: str
    seller: str
    tax: int = 0
    country: str = "0"

    def to_payload(self) -> dict[str, Any]:
        return {
            "src": self.src,
            "pid": self.pid,
            "title": self.title,
            "image": self.image,
            "price": self.price,
            "quantity": self.quantity,
            "variant": self.variant,
            "vinfo": self.vinfo,
            "weight": self.weight,
            "volume": self.volume,
            "min_quantity": self.min_quantity,
            "dom_shipping": self.dom_shipping,
            "tax": self.tax,
            "country": self.country,
            "seller": self.seller,
        }


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
]
