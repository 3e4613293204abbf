"""Money values: safe parsing, totals, shipping fee and formatting.

Every price shown or sent by the storefront goes through this module so the
cart summary and the checkout round and fall back to zero the same way.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from storefront.core.config import ShippingConfig
from storefront.core.constants import DEFAULT_CURRENCY_SYMBOL

ZERO = Decimal("0")
CENT = Decimal("0.01")

_DEFAULT_SHIPPING = ShippingConfig()


def parse_amount(value: Any) -> Decimal:
    """Parse any price-like value; unparseable input becomes ``0``."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        raw = str(value).strip().replace(",", "")
        if not raw:
            return ZERO
        try:
            amount = Decimal(raw)
        except (InvalidOperation, ValueError):
            return ZERO
    if not amount.is_finite():
        return ZERO
    return amount


def quantize(amount: Any) -> Decimal:
    return parse_amount(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price: Any, quantity: Any) -> Decimal:
    try:
        qty = int(quantity or 0)
    except (TypeError, ValueError):
        qty = 0
    return quantize(parse_amount(price) * qty)


def calc_shipping_fee(subtotal: Any, shipping: ShippingConfig | None = None) -> Decimal:
    """Free shipping at or above the threshold, flat fee below it."""
    rule = shipping or _DEFAULT_SHIPPING
    if parse_amount(subtotal) >= rule.free_threshold:
        return quantize(ZERO)
    return quantize(rule.flat_fee)


@dataclass(frozen=True, slots=True)
class OrderTotals:
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    @property
    def free_shipping(self) -> bool:
        return self.shipping_amount == ZERO


def calc_order_totals(subtotal: Any, shipping: ShippingConfig | None = None) -> OrderTotals:
    sub = quantize(subtotal)
    fee = calc_shipping_fee(sub, shipping)
    tax = quantize(ZERO)
    return OrderTotals(
        subtotal=sub,
        shipping_amount=fee,
        tax_amount=tax,
        total_amount=quantize(sub + fee + tax),
    )


def format_currency(
    amount: Any,
    symbol: str = DEFAULT_CURRENCY_SYMBOL,
    decimals: int = 0,
) -> str:
    """Format an amount for display, e.g. ``₹1,250``."""
    exponent = Decimal(1).scaleb(-decimals) if decimals > 0 else Decimal(1)
    value = parse_amount(amount).quantize(exponent, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.{decimals}f}"
