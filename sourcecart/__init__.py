"""Public package entrypoint for the SourceCart engine.

This package normalizes marketplace product payloads into one canonical shape,
composes validated cart lines and keeps a cached view of wishlist membership.
The CLI and FastAPI server are thin adapters on top of ``sourcecart.core``.
"""

from importlib.metadata import PackageNotFoundError, version
from typing import Any

_LAZY_EXPORTS: dict[str, tuple[str, str]] = {
    "Product": ("sourcecart.core", "Product"),
    "ProductSession": ("sourcecart.core", "ProductSession"),
    "Source": ("sourcecart.core", "Source"),
    "SourceCartClient": ("sourcecart.core", "SourceCartClient"),
    "WishlistReconciler": ("sourcecart.core", "WishlistReconciler"),
    "app": ("sourcecart.server.main", "app"),
    "compose": ("sourcecart.core", "compose"),
    "create_app": ("sourcecart.server.main", "create_app"),
    "normalize": ("sourcecart.core", "normalize"),
}

try:
    __version__ = version("sourcecart")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "Product",
    "ProductSession",
    "Source",
    "SourceCartClient",
    "WishlistReconciler",
    "__version__",
    "app",
    "compose",
    "create_app",
    "normalize",
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
