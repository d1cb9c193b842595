"""Async collaborator for the upstream catalog, cart and wishlist endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

from .canonical import CartLineRequest, ListingItem, Source, format_decimal
from .config import CoreConfig
from .errors import LoginRequiredError, NetworkError

logger = logging.getLogger(__name__)

WISHLIST_ALREADY_EXISTS_MESSAGE = "Item already exists in wishlist"


@dataclass(frozen=True)
class WishlistAddResult:
    remote_id: int | None
    already_exists: bool = False


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, NetworkError) and exc.retryable


def _remote_id(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SourceCartClient:
    def __init__(
        self,
        config: CoreConfig | None = None,
        *,
        token: str | None = None,
        lang_currency: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or CoreConfig()
        self.token = token
        self.lang_currency = lang_currency or self.config.lang_currency
        self._http = httpx.AsyncClient(
            base_url=self.config.api_base_url,
            timeout=self.config.request_timeout,
            transport=transport,
        )

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "SourceCartClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _headers(self, *, auth: bool) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.lang_currency:
            headers["X-lang-currency"] = self.lang_currency
        if auth and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _require_login(self) -> None:
        if not self.is_authenticated:
            raise LoginRequiredError()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        auth: bool = False,
    ) -> Any:
        try:
            response = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(auth=auth),
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_error:
            message = data.get("message") if isinstance(data, dict) else None
            raise NetworkError(
                message or f"{method} {path} returned HTTP {response.status_code}",
                status=response.status_code,
                body=data,
            )
        return data

    async def _get(self, path: str, *, params: dict[str, Any] | None = None, auth: bool = False) -> Any:
        # GETs are idempotent: at most one retry after a fixed backoff.
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(self.config.retry_attempts, 1)),
            wait=wait_fixed(self.config.retry_backoff_seconds),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info("Retrying GET %s (attempt %d)", path, attempt.retry_state.attempt_number)
                return await self._request("GET", path, params=params, auth=auth)
        raise NetworkError(f"GET {path} exhausted retries")

    async def fetch_product(self, source: Source | str, product_id: str) -> Any:
        resolved = Source.parse(source)
        params = {"language": "en"} if resolved == Source.MARKETPLACE_A else None
        try:
            return await self._get(f"product/details/{resolved.value}/{product_id}", params=params)
        except NetworkError as exc:
            # Merchant catalogs report "service not available" as an error body.
            if resolved.is_merchant and isinstance(exc.body, dict) and exc.body.get("error"):
                return exc.body
            raise

    async def _fetch_listing(self, kind: str, source: Source | str, product_id: str) -> list[Any]:
        resolved = Source.parse(source)
        params = {"language": "en"} if resolved == Source.MARKETPLACE_A else None
        data = await self._get(f"product/{kind}/{resolved.value}/{product_id}", params=params)
        if not isinstance(data, dict):
            return data if isinstance(data, list) else []
        nested = data.get("result")
        if isinstance(nested, dict) and isinstance(nested.get("result"), list):
            return nested["result"]
        items = data.get("data")
        return items if isinstance(items, list) else []

    async def fetch_related(self, source: Source | str, product_id: str) -> list[Any]:
        return await self._fetch_listing("related", source, product_id)

    async def fetch_like(self, source: Source | str, product_id: str) -> list[Any]:
        return await self._fetch_listing("like", source, product_id)

    async def fetch_vendor(self, product_id: str, seller: str = "") -> list[Any]:
        """Other offers from the same 1688 seller."""
        data = await self._get(
            f"product/vendor/{Source.MARKETPLACE_A.value}/{product_id}",
            params={"seller": seller, "language": "en"},
        )
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict) or not result.get("success"):
            message = result.get("message") if isinstance(result, dict) else None
            raise NetworkError(message or "Failed to get vendor products", body=data)
        nested = result.get("result")
        items = nested.get("data") if isinstance(nested, dict) else None
        return items if isinstance(items, list) else []

    async def add_cart_line(self, line: CartLineRequest) -> Any:
        self._require_login()
        return await self._request("POST", "actions/cart", json=line.to_payload(), auth=True)

    async def fetch_wishlist(self, *, offset: int = 0, limit: int = 10000) -> dict[str, int]:
        """Return the remote wishlist as ``{product_id: remote_id}``."""
        self._require_login()
        data = await self._get("account/wishlist", params={"offset": offset, "limit": limit}, auth=True)
        items = data.get("data") if isinstance(data, dict) else None
        out: dict[str, int] = {}
        for item in items if isinstance(items, list) else []:
            if not isinstance(item, dict):
                continue
            pid = str(item.get("pid") or "").strip()
            remote_id = _remote_id(item.get("id"))
            if pid and remote_id is not None:
                out[pid] = remote_id
        return out

    async def add_wishlist(self, item: ListingItem) -> WishlistAddResult:
        self._require_login()
        body = {
            "src": item.source.value,
            "pid": item.pid,
            "img": item.image,
            "title": item.title,
            "price": format_decimal(item.price),
        }
        try:
            data = await self._request("POST", "actions/wishlist", json=body, auth=True)
        except NetworkError as exc:
            data = exc.body if isinstance(exc.body, dict) else {}
            if data.get("status") == "error" and data.get("message") == WISHLIST_ALREADY_EXISTS_MESSAGE:
                nested = data.get("data") if isinstance(data.get("data"), dict) else {}
                return WishlistAddResult(remote_id=_remote_id(nested.get("id")), already_exists=True)
            raise

        data = data if isinstance(data, dict) else {}
        if data.get("status") == "error":
            nested = data.get("data") if isinstance(data.get("data"), dict) else {}
            if data.get("message") == WISHLIST_ALREADY_EXISTS_MESSAGE:
                return WishlistAddResult(remote_id=_remote_id(nested.get("id")), already_exists=True)
            raise NetworkError(str(data.get("message") or "Failed to add to wishlist"), body=data)
        nested = data.get("data") if isinstance(data.get("data"), dict) else {}
        return WishlistAddResult(remote_id=_remote_id(data.get("id")) or _remote_id(nested.get("id")))

    async def remove_wishlist(self, remote_id: int) -> None:
        self._require_login()
        await self._request("DELETE", "actions/wishlist", json={"id": remote_id}, auth=True)


__all__ = [
    "SourceCartClient",
    "WISHLIST_ALREADY_EXISTS_MESSAGE",
    "WishlistAddResult",
]
