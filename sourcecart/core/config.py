"""Core engine configuration.

Core config is side-effect free: it does not load dotenv files.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_BASE_URL = "https://api.wanslu.shop/api/"


@dataclass(frozen=True)
class CoreConfig:
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = 20.0
    wishlist_ttl_seconds: float = 30.0
    retry_attempts: int = 2  # one initial try plus one retry
    retry_backoff_seconds: float = 1.0
    lang_currency: str | None = None  # e.g. "en/USD"


def _env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return float(val.strip())
    except ValueError:
        return default


def config_from_env() -> CoreConfig:
    base_url = os.getenv("SOURCECART_API_BASE_URL", DEFAULT_API_BASE_URL).strip() or DEFAULT_API_BASE_URL
    if not base_url.endswith("/"):
        base_url = f"{base_url}/"
    return CoreConfig(
        api_base_url=base_url,
        request_timeout=_env_float("SOURCECART_REQUEST_TIMEOUT", 20.0),
        wishlist_ttl_seconds=_env_float("SOURCECART_WISHLIST_TTL", 30.0),
        retry_backoff_seconds=_env_float("SOURCECART_RETRY_BACKOFF", 1.0),
        lang_currency=(os.getenv("SOURCECART_LANG_CURRENCY") or "").strip() or None,
    )


__all__ = ["CoreConfig", "DEFAULT_API_BASE_URL", "config_from_env"]
