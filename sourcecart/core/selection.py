"""Per-product selection: active attribute group and desired quantity per variant key."""

from decimal import Decimal
from typing import Any

from .canonical import QuantityEntry, Variant, composite_key, format_decimal
from .variants import VariantIndex


class SelectionState:
    def __init__(self, index: VariantIndex | None = None) -> None:
        self.index = index if index is not None else VariantIndex(())
        self.active_group: str | None = self.index.first_group
        self._entries: dict[str, QuantityEntry] = {}

    def set_active_group(self, first_attr: str) -> None:
        if first_attr not in self.index.groups:
            raise KeyError(f"Unknown attribute group: {first_attr}")
        self.active_group = first_attr

    def active_variants(self) -> list[Variant]:
        return self.index.variants_for_first_attribute(self.active_group)

    def set_quantity(
        self,
        key: str,
        delta: int,
        stock_ceiling: int,
        *,
        price: Decimal | None = None,
        spec_id: str | None = None,
        image_url: str | None = None,
    ) -> int:
        """Apply ``delta`` to the quantity for ``key``; out-of-range moves are no-ops.

        Keys the index does not know are ignored so every selected quantity maps to a
        purchasable variant.
        """
        entry = self._entries.get(key)
        current = entry.quantity if entry is not None else 0
        target = current + delta
        if target < 0 or target > max(stock_ceiling, 0):
            return current

        if entry is None:
            variant = self.index.variant_for_key(key)
            if variant is None:
                return 0
            entry = QuantityEntry(
                quantity=0,
                price=price if price is not None else variant.price,
                spec_id=spec_id if spec_id is not None else variant.key,
                image_url=image_url if image_url is not None else variant.image_url,
            )
            self._entries[key] = entry
        entry.quantity = target
        return target

    def adjust(self, variant: Variant, delta: int) -> int:
        return self.set_quantity(
            composite_key(variant.first_attr, variant.second_attr),
            delta,
            variant.stock,
            price=variant.price,
            spec_id=variant.key,
            image_url=variant.image_url,
        )

    def quantity(self, key: str) -> int:
        entry = self._entries.get(key)
        return entry.quantity if entry is not None else 0

    def entry(self, key: str) -> QuantityEntry | None:
        return self._entries.get(key)

    def selected(self) -> dict[str, QuantityEntry]:
        return {key: entry for key, entry in self._entries.items() if entry.quantity > 0}

    def total_quantity(self) -> int:
        # Counts every group, not only the active one.
        return sum(entry.quantity for entry in self._entries.values())

    def subtotal(self) -> Decimal:
        return sum((entry.price * entry.quantity for entry in self._entries.values()), Decimal("0"))

    def clear(self) -> None:
        self._entries.clear()

    def to_dict(self) -> dict[str, Any]:
        return {
            "active_group": self.active_group,
            "entries": {key: entry.to_dict() for key, entry in self._entries.items()},
            "total_quantity": self.total_quantity(),
            "subtotal": format_decimal(self.subtotal()),
        }


__all__ = ["SelectionState"]
