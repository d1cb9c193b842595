"""Two-level attribute grouping over canonical variants."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .canonical import Variant, composite_key


@dataclass(frozen=True)
class AttributeGroup:
    value: str
    attribute_name: str
    image_url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "attribute_name": self.attribute_name,
            "image_url": self.image_url,
        }


def _attribute_name(variant: Variant) -> str:
    if variant.attributes:
        return variant.attributes[0][0]
    return "Variant"


def group_by_first_attribute(variants: Iterable[Variant]) -> dict[str, AttributeGroup]:
    # First variant seen for a value supplies the thumbnail and label.
    groups: dict[str, AttributeGroup] = {}
    for variant in variants:
        if not variant.first_attr or variant.first_attr in groups:
            continue
        groups[variant.first_attr] = AttributeGroup(
            value=variant.first_attr,
            attribute_name=_attribute_name(variant),
            image_url=variant.image_url,
        )
    return groups


class VariantIndex:
    def __init__(self, variants: Iterable[Variant]) -> None:
        self._variants: tuple[Variant, ...] = tuple(variants)
        self._groups = group_by_first_attribute(self._variants)
        self._by_key: dict[str, Variant] = {}
        for variant in self._variants:
            if not variant.first_attr:
                continue
            self._by_key.setdefault(composite_key(variant.first_attr, variant.second_attr), variant)

    @property
    def variants(self) -> tuple[Variant, ...]:
        return self._variants

    @property
    def groups(self) -> dict[str, AttributeGroup]:
        return dict(self._groups)

    @property
    def first_group(self) -> str | None:
        return next(iter(self._groups), None)

    @property
    def is_single_group(self) -> bool:
        return len(self._groups) == 1

    def group_by_first_attribute(self) -> dict[str, AttributeGroup]:
        return self.groups

    def variants_for_first_attribute(self, first_attr: str | None) -> list[Variant]:
        if first_attr is None:
            if not self.is_single_group:
                return []
            first_attr = self.first_group
        seen: set[str] = set()
        out: list[Variant] = []
        for variant in self._variants:
            if variant.first_attr != first_attr:
                continue
            key = composite_key(variant.first_attr, variant.second_attr)
            if key in seen:
                continue
            seen.add(key)
            out.append(variant)
        return out

    def variant_for_key(self, key: str) -> Variant | None:
        return self._by_key.get(key)

    def keys(self) -> list[str]:
        return list(self._by_key)


__all__ = ["AttributeGroup", "VariantIndex", "group_by_first_attribute"]
