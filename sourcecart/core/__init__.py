"""Core engine API.

The core layer is framework-agnostic and safe to import from scripts, tests,
CLI commands, and web frontends.
"""

from typing import Any

_LAZY_EXPORTS: dict[str, tuple[str, str]] = {
    "BatchResult": ("sourcecart.core.cart", "BatchResult"),
    "CartComposer": ("sourcecart.core.cart", "CartComposer"),
    "CartLineRequest": ("sourcecart.core.canonical.entities", "CartLineRequest"),
    "ComposeResult": ("sourcecart.core.cart", "ComposeResult"),
    "CoreConfig": ("sourcecart.core.config", "CoreConfig"),
    "ListingItem": ("sourcecart.core.canonical.entities", "ListingItem"),
    "NormalizedProduct": ("sourcecart.core.canonical.entities", "NormalizedProduct"),
    "Product": ("sourcecart.core.canonical.entities", "Product"),
    "ProductSession": ("sourcecart.core.session", "ProductSession"),
    "SelectionState": ("sourcecart.core.selection", "SelectionState"),
    "Source": ("sourcecart.core.canonical.entities", "Source"),
    "SourceCartClient": ("sourcecart.core.client", "SourceCartClient"),
    "TitleTranslator": ("sourcecart.core.translation", "TitleTranslator"),
    "Variant": ("sourcecart.core.canonical.entities", "Variant"),
    "VariantIndex": ("sourcecart.core.variants", "VariantIndex"),
    "WishlistReconciler": ("sourcecart.core.wishlist.reconciler", "WishlistReconciler"),
    "compose": ("sourcecart.core.cart", "compose"),
    "config_from_env": ("sourcecart.core.config", "config_from_env"),
    "normalize": ("sourcecart.core.adapters", "normalize"),
    "normalize_listing_items": ("sourcecart.core.adapters", "normalize_listing_items"),
}

__all__ = [
    "BatchResult",
    "CartComposer",
    "CartLineRequest",
    "ComposeResult",
    "CoreConfig",
    "ListingItem",
    "NormalizedProduct",
    "Product",
    "ProductSession",
    "SelectionState",
    "Source",
    "SourceCartClient",
    "TitleTranslator",
    "Variant",
    "VariantIndex",
    "WishlistReconciler",
    "compose",
    "config_from_env",
    "normalize",
    "normalize_listing_items",
]


def __getattr__(name: str) -> Any:
    target = _LAZY_EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_name, attribute_name = target
    module = __import__(module_name, fromlist=[attribute_name])
    value = getattr(module, attribute_name)
    globals()[name] = value
    return value
