"""Error taxonomy shared by adapters, the cart composer and the wishlist reconciler."""

from typing import Any

SERVICE_NOT_AVAILABLE_MESSAGE = "Invalid country or service not available"


class SourceCartError(Exception):
    """Base class for every error raised by the core engine."""


class MalformedPayloadError(SourceCartError):
    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class ServiceUnavailableError(MalformedPayloadError):
    """Merchant catalog refused the product for the caller's country."""


class ValidationError(SourceCartError):
    code = "invalid_selection"


class NoSelectionError(ValidationError):
    code = "no_selection"

    def __init__(self) -> None:
        super().__init__("Please select at least one variant.")


class BelowMinimumOrderError(ValidationError):
    code = "below_minimum_order"

    def __init__(self, required: int, selected: int = 0) -> None:
        super().__init__(f"Minimum order quantity is {required}.")
        self.required = required
        self.selected = selected


class LoginRequiredError(SourceCartError):
    def __init__(self, message: str = "Please log in to continue.") -> None:
        super().__init__(message)


class NetworkError(SourceCartError):
    def __init__(self, message: str, *, status: int | None = None, body: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def retryable(self) -> bool:
        return self.status is None or self.status == 429 or self.status >= 500


class PartialBatchFailure(SourceCartError):
    def __init__(self, successful: int, failed: int) -> None:
        if successful:
            message = f"Added {successful} variant(s); failed to add {failed} variant(s)."
        else:
            message = "Failed to add to cart."
        super().__init__(message)
        self.successful = successful
        self.failed = failed


class StaleWishlistWrite(SourceCartError):
    def __init__(self, product_id: str) -> None:
        super().__init__(f"Discarded stale wishlist result for {product_id}")
        self.product_id = product_id


__all__ = [
    "BelowMinimumOrderError",
    "LoginRequiredError",
    "MalformedPayloadError",
    "NetworkError",
    "NoSelectionError",
    "PartialBatchFailure",
    "SERVICE_NOT_AVAILABLE_MESSAGE",
    "ServiceUnavailableError",
    "SourceCartError",
    "StaleWishlistWrite",
    "ValidationError",
]
