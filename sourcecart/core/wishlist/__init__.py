from .reconciler import DEFAULT_STORAGE_KEY, Membership, MembershipState, WishlistClient, WishlistReconciler
from .storage import InMemoryStorage, KeyValueStorage, SqliteStorage

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "InMemoryStorage",
    "KeyValueStorage",
    "Membership",
    "MembershipState",
    "SqliteStorage",
    "WishlistClient",
    "WishlistReconciler",
]
