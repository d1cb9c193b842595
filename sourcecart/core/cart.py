"""Cart composition: validate a selection and turn it into per-variant cart lines."""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol

from .canonical import CartLineRequest, Product, QuantityEntry, Source, Variant, format_decimal, round_half_up
from .errors import BelowMinimumOrderError, LoginRequiredError, NoSelectionError, PartialBatchFailure, ValidationError
from .logging import cart_lines_to_loggable
from .selection import SelectionState

logger = logging.getLogger(__name__)

_GRAMS_PER_KG = Decimal("1000")


class CartLineSubmitter(Protocol):
    @property
    def is_authenticated(self) -> bool: ...

    async def add_cart_line(self, line: CartLineRequest) -> Any: ...


@dataclass
class ComposeResult:
    lines: list[CartLineRequest] = field(default_factory=list)
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> list[CartLineRequest]:
        if self.error is not None:
            raise self.error
        return self.lines


@dataclass(frozen=True)
class Notice:
    level: str  # "success" | "error"
    message: str


@dataclass
class BatchResult:
    successful: int = 0
    failed: int = 0
    errors: list[BaseException] = field(default_factory=list)

    @property
    def failure(self) -> PartialBatchFailure | None:
        if self.failed == 0:
            return None
        return PartialBatchFailure(self.successful, self.failed)

    def notices(self) -> list[Notice]:
        if self.successful == 0:
            # A batch with nothing added is one combined failure.
            return [Notice("error", "Failed to add to cart.")]
        notices = [Notice("success", f"Added {self.successful} variant(s) to cart.")]
        if self.failed:
            notices.append(Notice("error", f"Failed to add {self.failed} variant(s)."))
        return notices

    def to_dict(self) -> dict[str, Any]:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "notices": [{"level": notice.level, "message": notice.message} for notice in self.notices()],
        }


def line_weight_grams(product: Product, variant: Variant | None) -> int:
    if product.source == Source.MARKETPLACE_A and variant is not None and variant.shipping is not None:
        if variant.shipping.weight_kg:
            return round_half_up(variant.shipping.weight_kg * _GRAMS_PER_KG)
    return round_half_up(product.weight_kg * _GRAMS_PER_KG)


def line_volume(product: Product, variant: Variant | None) -> int:
    if product.source != Source.MARKETPLACE_A or variant is None or variant.shipping is None:
        return 0
    shipping = variant.shipping
    length = shipping.length or Decimal("0")
    width = shipping.width or Decimal("0")
    height = shipping.height or Decimal("0")
    return round_half_up(length * width * height)


def line_variant_label(product: Product, variant: Variant | None) -> str:
    if variant is None:
        return ""
    # Merchant carts take the bare variant value.
    if product.source.is_merchant:
        return variant.first_attr
    return variant.label


class CartComposer:
    def build_line(self, product: Product, entry: QuantityEntry, variant: Variant | None) -> CartLineRequest:
        image = entry.image_url or (variant.image_url if variant is not None else "") or product.primary_image
        return CartLineRequest(
            src=product.source.value,
            pid=product.id,
            title=product.title,
            image=image,
            price=format_decimal(entry.price),
            quantity=entry.quantity,
            variant=line_variant_label(product, variant),
            vinfo=entry.spec_id or (variant.key if variant is not None else ""),
            weight=line_weight_grams(product, variant),
            volume=line_volume(product, variant),
            min_quantity=product.min_order_qty,
            dom_shipping=format_decimal(product.shipping_fee),
            seller=product.seller_key,
        )

    def compose(self, product: Product, selection: SelectionState) -> ComposeResult:
        selected = selection.selected()
        if not selected:
            return ComposeResult(error=NoSelectionError())

        total = selection.total_quantity()
        if total < product.min_order_qty:
            return ComposeResult(error=BelowMinimumOrderError(product.min_order_qty, total))

        lines: list[CartLineRequest] = []
        for key, entry in selected.items():
            variant = selection.index.variant_for_key(key)
            if variant is None:
                logger.warning("No variant matches selection key %r for product %s", key, product.id)
                continue
            lines.append(self.build_line(product, entry, variant))
        if not lines:
            return ComposeResult(error=NoSelectionError())
        return ComposeResult(lines=lines)

    async def submit(self, lines: list[CartLineRequest], submitter: CartLineSubmitter) -> BatchResult:
        if not submitter.is_authenticated:
            raise LoginRequiredError("Please log in to add items to your cart.")

        logger.debug("Submitting cart lines: %s", cart_lines_to_loggable(lines))
        # Lines are independent; no rollback when some of them fail.
        outcomes = await asyncio.gather(
            *(submitter.add_cart_line(line) for line in lines),
            return_exceptions=True,
        )
        result = BatchResult()
        for line, outcome in zip(lines, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.warning("Cart line %s/%s failed: %s", line.pid, line.vinfo, outcome)
                result.failed += 1
                result.errors.append(outcome)
            else:
                result.successful += 1
        return result


def compose(product: Product, selection: SelectionState) -> ComposeResult:
    return CartComposer().compose(product, selection)


__all__ = [
    "BatchResult",
    "CartComposer",
    "CartLineSubmitter",
    "ComposeResult",
    "Notice",
    "compose",
    "line_volume",
    "line_variant_label",
    "line_weight_grams",
]
