"""Totals engine.

Pure functions over (line items, discount, tax). Nothing here is rounded;
rounding to cents happens only when an amount is formatted for display.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .formatting import ZERO
from .models import DISCOUNT_FIXED, DISCOUNT_PERCENTAGE, Discount, LineItem, Tax

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    discount: Decimal
    subtotal_after_discount: Decimal
    tax: Decimal
    total: Decimal


def compute_subtotal(line_items: Iterable[LineItem]) -> Decimal:
    return sum((item.quantity * item.price for item in line_items), ZERO)


def compute_discount_amount(subtotal, discount: Discount) -> Decimal:
    """Effective discount.

    A fixed discount is not clamped to the subtotal, so the discounted
    subtotal may go negative.
    """
    if discount.type == DISCOUNT_PERCENTAGE:
        return subtotal * discount.value / HUNDRED
    if discount.type == DISCOUNT_FIXED:
        return discount.value
    return ZERO


def compute_tax_amount(subtotal_after_discount, tax: Tax) -> Decimal:
    if not tax.enabled:
        return ZERO
    return subtotal_after_discount * tax.rate / HUNDRED


def compute_totals(line_items: Iterable[LineItem], discount: Discount, tax: Tax) -> Totals:
    subtotal = compute_subtotal(line_items)
    discount_amount = compute_discount_amount(subtotal, discount)
    after_discount = subtotal - discount_amount
    tax_amount = compute_tax_amount(after_discount, tax)
    return Totals(
        subtotal=subtotal,
        discount=discount_amount,
        subtotal_after_discount=after_discount,
        tax=tax_amount,
        total=after_discount + tax_amount,
    )


def compute_total(line_items: Iterable[LineItem], discount: Discount, tax: Tax) -> Decimal:
    return compute_totals(line_items, discount, tax).total
