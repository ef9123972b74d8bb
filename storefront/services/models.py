"""Catalog Models - Pydantic models for product records."""
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, field_validator

from storefront.services.money import to_decimal as _to_decimal


class Product(BaseModel):
    """Row of the products table. Unknown columns are kept as-is."""
    id: Union[int, str]
    name: str
    price: Decimal
    image_url: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None

    class Config:
        extra = "allow"  # Pass-through columns end up on the cart line item

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        # null or garbage prices must not turn into free products
        return _to_decimal(v, strict=True)
