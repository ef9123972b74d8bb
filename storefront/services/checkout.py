"""
Checkout Service - order summary and simulated order placement.

No payment provider is called: placing an order validates the form data,
snapshots the cart into a confirmation and clears the cart.
"""
import re
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, SecretStr, field_validator

from storefront import config
from storefront.cart import CartEngine, CartState, LineItem
from storefront.errors import ERROR_CART_EMPTY, EmptyCartError
from storefront.logging import get_logger
from storefront.services.money import add, format_money, percent, round_money, to_decimal

logger = get_logger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_EXPIRY_RE = re.compile(r"^(0[1-9]|1[0-2])/\d{2}$")


def _required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("field is required")
    return value


class ShippingAddress(BaseModel):
    """Shipping step of the checkout form."""
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: str
    city: str
    state: str
    zip_code: str
    country: str = "United States"

    @field_validator("first_name", "last_name", "address", "city", "state", "zip_code", "country")
    @classmethod
    def check_required(cls, v):
        return _required(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        v = v.strip()
        if not _EMAIL_RE.match(v):
            raise ValueError("invalid email address")
        return v


class PaymentDetails(BaseModel):
    """Payment step of the checkout form. Card data never reaches logs."""
    card_number: SecretStr
    expiry_date: str
    cvv: SecretStr
    card_name: str
    billing_address: str = "same"

    @field_validator("card_number")
    @classmethod
    def check_card_number(cls, v):
        digits = v.get_secret_value().replace(" ", "")
        if not digits.isdigit() or not 12 <= len(digits) <= 19:
            raise ValueError("card number must be 12-19 digits")
        return SecretStr(digits)

    @field_validator("expiry_date")
    @classmethod
    def check_expiry(cls, v):
        v = v.strip()
        if not _EXPIRY_RE.match(v):
            raise ValueError("expiry date must be MM/YY")
        return v

    @field_validator("cvv")
    @classmethod
    def check_cvv(cls, v):
        code = v.get_secret_value()
        if not code.isdigit() or len(code) not in (3, 4):
            raise ValueError("CVV must be 3 or 4 digits")
        return v

    @field_validator("card_name")
    @classmethod
    def check_card_name(cls, v):
        return _required(v)

    @property
    def last4(self) -> str:
        return self.card_number.get_secret_value()[-4:]


@dataclass(frozen=True)
class CheckoutSummary:
    """Order totals as shown on the cart and checkout pages."""
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    @classmethod
    def from_cart(
        cls,
        state: CartState,
        shipping: Decimal = to_decimal(config.SHIPPING_FLAT_RATE),
        tax_percent: Decimal = to_decimal(config.SALES_TAX_PERCENT),
    ) -> "CheckoutSummary":
        """
        Compute totals for a cart.

        Tax applies to the subtotal only. The total is summed from the exact
        figures and every figure is rounded to cents for display only.
        """
        subtotal = state.subtotal()
        tax = percent(subtotal, tax_percent)
        return cls(
            subtotal=round_money(subtotal),
            shipping=round_money(shipping),
            tax=round_money(tax),
            total=round_money(add(add(subtotal, shipping), tax)),
        )


@dataclass(frozen=True)
class OrderConfirmation:
    """What the customer sees after placing an order."""
    order_number: str
    email: str
    summary: CheckoutSummary
    items: tuple[LineItem, ...]
    card_last4: str
    placed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class CheckoutService:
    """
    Simulated checkout over a cart engine.

    Usage:
        checkout = CheckoutService(engine)
        summary = checkout.get_summary()
        confirmation = await checkout.place_order(address, payment)
    """

    def __init__(self, engine: CartEngine):
        self.engine = engine

    def get_summary(self) -> CheckoutSummary:
        return CheckoutSummary.from_cart(self.engine.state)

    async def place_order(self, address: ShippingAddress, payment: PaymentDetails) -> OrderConfirmation:
        """
        Place an order for the current cart and clear it.

        Raises:
            EmptyCartError: Cart has no items
        """
        state = self.engine.state
        if state.is_empty():
            raise EmptyCartError(ERROR_CART_EMPTY)

        confirmation = OrderConfirmation(
            order_number=f"ORD-{uuid.uuid4().hex[:10].upper()}",
            email=address.email,
            summary=CheckoutSummary.from_cart(state),
            items=state.items,
            card_last4=payment.last4,
        )
        logger.info(
            f"Order {confirmation.order_number} placed: "
            f"{state.item_count()} units, total {format_money(confirmation.summary.total)}"
        )

        self.engine.clear()
        # Make sure the emptied cart is stored before the customer navigates away
        await self.engine.flush()
        return confirmation
