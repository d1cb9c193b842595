from decimal import Decimal
from typing import Any

from babel.numbers import get_currency_symbol

from ..canonical import CartLineRequest, NormalizedProduct, format_decimal, parse_decimal_money

_TITLE_LIMITS = {
    "low": 60,
    "medium": 120,
    "high": 240,
}
_SUPPORTED_VERBOSITIES = {"low", "medium", "high", "extrahigh"}


def _truncate(value: str | None, *, limit: int) -> str:
    text = str(value or "").strip()
    if len(text) <= limit:
        return text
    return f"{text[:limit].rstrip()}... [truncated]"


def _normalize_verbosity(verbosity: str | None) -> str:
    normalized = str(verbosity or "").strip().lower()
    if normalized in _SUPPORTED_VERBOSITIES:
        return normalized
    return "medium"


def _format_price(value: Any, currency: str | None) -> str:
    amount = value if isinstance(value, Decimal) else parse_decimal_money(value)
    if amount is None:
        return ""
    number = format_decimal(amount)

    symbol = ""
    currency_code = str(currency or "").upper()
    if currency_code:
        try:
            symbol = get_currency_symbol(currency_code, locale="en_US")
        except Exception:
            symbol = currency_code

    if symbol:
        if symbol.isalpha():
            return f"{number} {symbol}"
        return f"{symbol}{number}"
    return number


def product_to_loggable(normalized: NormalizedProduct, *, verbosity: str | None = None) -> dict[str, Any]:
    level = _normalize_verbosity(verbosity)
    product = normalized.product
    if level == "extrahigh":
        return {
            "product": product.to_dict(include_raw=True),
            "variants": [variant.to_dict() for variant in normalized.variants],
        }

    if level == "high":
        data = product.to_dict(include_raw=False)
        data["title"] = _truncate(product.title, limit=_TITLE_LIMITS["high"])
        data["variants"] = [variant.to_dict() for variant in normalized.variants]
        return data

    summary = {
        "source": product.source.value,
        "id": product.id,
        "title": _truncate(product.title, limit=_TITLE_LIMITS[level]),
        "price": _format_price(product.display_price, product.currency),
        "min_order_qty": product.min_order_qty,
        "images": {"count": len(product.images)},
        "variants_count": len(normalized.variants),
    }
    if level == "low":
        return summary

    summary["total_stock"] = product.total_stock
    summary["variants"] = [
        {
            "label": variant.label,
            "price": _format_price(variant.price, product.currency),
            "stock": variant.stock,
            "has_image": bool(variant.image_url),
        }
        for variant in normalized.variants
    ]
    return summary


def cart_lines_to_loggable(
    lines: list[CartLineRequest],
    *,
    currency: str | None = None,
    verbosity: str | None = None,
) -> list[dict[str, Any]]:
    level = _normalize_verbosity(verbosity)
    if level in {"high", "extrahigh"}:
        return [line.to_payload() for line in lines]
    if level == "low":
        return [{"vinfo": line.vinfo, "quantity": line.quantity} for line in lines]
    return [
        {
            "pid": line.pid,
            "vinfo": line.vinfo,
            "variant": line.variant,
            "quantity": line.quantity,
            "price": _format_price(line.price, currency),
            "weight": line.weight,
        }
        for line in lines
    ]


__all__ = ["cart_lines_to_loggable", "product_to_loggable"]
