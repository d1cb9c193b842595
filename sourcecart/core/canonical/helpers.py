from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import math
import re
from typing import Any, Iterable

_MONEY_SANITIZE_RE = re.compile(r"[^\d\.\-]")
_HUNDRED = Decimal("100")

MERCHANT_MEDIA_BASE_URL = "https://merchants.wanslu.shop/"


def parse_decimal_money(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if isinstance(value, int):
        return Decimal(str(value))

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        try:
            parsed = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        return parsed if parsed.is_finite() else None

    if isinstance(value, str):
        cleaned = _MONEY_SANITIZE_RE.sub("", value.strip().replace(",", ""))
        if cleaned in {"", "-", ".", "-."}:
            return None
        try:
            parsed = Decimal(cleaned)
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None

    return None


def minor_to_major(value: Any) -> Decimal | None:
    """Convert an integer-cents amount into major currency units."""
    parsed = parse_decimal_money(value)
    if parsed is None:
        return None
    return parsed / _HUNDRED


def format_decimal(value: Decimal | None) -> str:
    if value is None:
        return ""
    if not value.is_finite():
        return ""

    text = format(value.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in {"", "-0"}:
        return "0"
    return text


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "" or isinstance(value, bool):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    if isinstance(value, Decimal) and not value.is_finite():
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        parsed = parse_decimal_money(value)
        if parsed is None:
            return default
        return int(parsed)


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def first_text(*values: Any) -> str | None:
    for value in values:
        cleaned = clean_text(value)
        if cleaned:
            return cleaned
    return None


def normalize_url(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not stripped:
        return None
    if stripped.startswith("//"):
        return f"https:{stripped}"
    return stripped


def resolve_merchant_image_url(value: Any) -> str:
    if isinstance(value, dict):
        return normalize_url(value.get("imageUrl")) or ""
    url = normalize_url(value)
    if not url:
        return ""
    if url.startswith("http"):
        return url
    return f"{MERCHANT_MEDIA_BASE_URL}{url.lstrip('/')}"


def dedupe(seq: Iterable[str]) -> list[str]:
    seen = set()
    out: list[str] = []
    for x in seq:
        if isinstance(x, str) and x and x not in seen:
            seen.add(x)
            out.append(x)
    return out


def composite_key(first_attr: str, second_attr: str | None) -> str:
    return f"{first_attr}_{second_attr or ''}"


__all__ = [
    "MERCHANT_MEDIA_BASE_URL",
    "clean_text",
    "composite_key",
    "dedupe",
    "first_text",
    "format_decimal",
    "minor_to_major",
    "normalize_url",
    "parse_decimal_money",
    "resolve_merchant_image_url",
    "round_half_up",
    "to_int",
]
