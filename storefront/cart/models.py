"""Cart models with Decimal-based pricing."""
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Union

from storefront.errors import (
    ERROR_PRODUCT_FIELDS_INVALID,
    ERROR_PRODUCT_ID_REQUIRED,
    ERROR_PRODUCT_PRICE_INVALID,
    ERROR_PRODUCT_PRICE_REQUIRED,
    InvalidProductError,
)
from storefront.services.money import multiply, to_decimal

ProductId = Union[str, int]

# Fields a line item owns; everything else in a product record is passed through
_CORE_FIELDS = ("id", "name", "price", "quantity")


def _product_to_dict(product: Any) -> dict:
    """Accept a mapping or a pydantic model (catalog Product)."""
    if isinstance(product, Mapping):
        return dict(product)
    if hasattr(product, "model_dump"):
        return product.model_dump(mode="json")
    raise InvalidProductError(f"Unsupported product type: {type(product).__name__}")


def _validate_id(product_id: Any) -> ProductId:
    if product_id is None or isinstance(product_id, bool):
        raise InvalidProductError(ERROR_PRODUCT_ID_REQUIRED)
    if isinstance(product_id, str):
        if not product_id.strip():
            raise InvalidProductError(ERROR_PRODUCT_ID_REQUIRED)
        return product_id
    if isinstance(product_id, int):
        return product_id
    raise InvalidProductError(ERROR_PRODUCT_ID_REQUIRED)


def _validate_price(price: Any) -> Decimal:
    if price is None:
        raise InvalidProductError(ERROR_PRODUCT_PRICE_REQUIRED)
    try:
        value = to_decimal(price, strict=True)
    except ValueError as e:
        raise InvalidProductError(ERROR_PRODUCT_PRICE_INVALID) from e
    if value < 0:
        raise InvalidProductError(ERROR_PRODUCT_PRICE_INVALID)
    return value


def decimal_to_json(value: Decimal) -> Union[int, float, str]:
    """
    JSON value that reads back as the same Decimal.

    Whole amounts stay integers and short fractions become numbers, so
    stored records keep their original shape. Anything a float can't hold
    exactly is written as a string.
    """
    if value == value.to_integral_value():
        return int(value)
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


def json_default(obj: Any) -> Any:
    """`default=` hook for json.dumps of cart records."""
    if isinstance(obj, Decimal):
        return decimal_to_json(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


@dataclass(frozen=True)
class LineItem:
    """One distinct product held in the cart."""
    id: ProductId
    price: Decimal
    quantity: int = 1
    name: Optional[str] = None
    # Pass-through catalog attributes (image_url, category, ...)
    extras: dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "id", _validate_id(self.id))
        object.__setattr__(self, "price", _validate_price(self.price))
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise InvalidProductError(f"quantity must be a positive integer, got {self.quantity!r}")
        # Extras are written with the cart record as-is
        try:
            json.dumps(self.extras, default=json_default)
        except (TypeError, ValueError) as e:
            raise InvalidProductError(f"{ERROR_PRODUCT_FIELDS_INVALID}: {e}") from e

    @property
    def line_total(self) -> Decimal:
        """price * quantity, exact."""
        return multiply(self.price, self.quantity)

    def with_quantity(self, quantity: int) -> "LineItem":
        """Copy of this item with another quantity."""
        return LineItem(
            id=self.id,
            price=self.price,
            quantity=quantity,
            name=self.name,
            extras=dict(self.extras),
        )

    @classmethod
    def from_product(cls, product: Any) -> "LineItem":
        """
        Build a new line item (quantity 1) from a catalog record.

        Args:
            product: Mapping or Product model carrying at least id and price

        Raises:
            InvalidProductError: id missing/empty, price missing/invalid, or
                extra fields json.dumps can't write
        """
        data = _product_to_dict(product)
        data.pop("quantity", None)
        return cls._from_fields(data, quantity=1)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LineItem":
        """Create from a stored record (includes quantity)."""
        if not isinstance(data, Mapping):
            raise InvalidProductError(f"Line item record must be an object, got {type(data).__name__}")
        fields = dict(data)
        quantity = fields.pop("quantity", None)
        return cls._from_fields(fields, quantity=quantity)

    @classmethod
    def _from_fields(cls, fields: dict, quantity: Any) -> "LineItem":
        if "id" not in fields:
            raise InvalidProductError(ERROR_PRODUCT_ID_REQUIRED)
        if "price" not in fields:
            raise InvalidProductError(ERROR_PRODUCT_PRICE_REQUIRED)
        name = fields.get("name")
        return cls(
            id=fields["id"],
            price=fields["price"],
            quantity=quantity,
            name=None if name is None else str(name),
            extras={k: v for k, v in fields.items() if k not in _CORE_FIELDS},
        )

    def to_dict(self) -> dict:
        """Convert to a flat JSON-ready record."""
        data: dict[str, Any] = {"id": self.id}
        if self.name is not None:
            data["name"] = self.name
        data["price"] = decimal_to_json(self.price)
        data.update(self.extras)
        data["quantity"] = self.quantity
        return data


@dataclass(frozen=True)
class CartState:
    """Cart aggregate: line items unique by id, insertion order kept."""
    items: tuple[LineItem, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        seen = set()
        for item in self.items:
            if item.id in seen:
                raise ValueError(f"Duplicate line item id: {item.id!r}")
            seen.add(item.id)

    def subtotal(self) -> Decimal:
        """Sum of price * quantity; Decimal("0") for an empty cart."""
        return sum((item.line_total for item in self.items), Decimal("0"))

    def item_count(self) -> int:
        """Total units in the cart (not distinct products)."""
        return sum(item.quantity for item in self.items)

    def get_item(self, product_id: ProductId) -> Optional[LineItem]:
        return next((item for item in self.items if item.id == product_id), None)

    def is_empty(self) -> bool:
        return not self.items

    def to_records(self) -> list[dict]:
        """Convert to the list stored under the cart key."""
        return [item.to_dict() for item in self.items]
