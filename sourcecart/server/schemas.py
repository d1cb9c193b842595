from typing import Any

from pydantic import BaseModel, Field


class ComposeCartRequest(BaseModel):
    product: dict[str, Any] = Field(..., description="Canonical product as returned by the product endpoint.")
    variants: list[dict[str, Any]] = Field(default_factory=list)
    quantities: dict[str, int] = Field(
        ...,
        examples=[{"4873245243": 2}],
        description="Requested quantity per variant key.",
    )


class WishlistToggleRequest(BaseModel):
    pid: str = Field(..., min_length=1)
    src: str = Field(default="1688", examples=["1688", "tb", "local", "chinese"])
    title: str = Field(default="")
    img: str = Field(default="")
    price: str = Field(default="0")
