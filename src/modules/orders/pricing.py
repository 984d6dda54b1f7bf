"""Order pricing.

Pure functions; ``OrderService`` calls them after every item or discount
change and on an explicit recalculation, never on read.

    item total  = quantity * unit price - item discount
    order total = sum of item totals
    final       = order total - order discount

Amounts are rounded to cents (half-up).  A negative item total or final
amount is inconsistent input and raises ``PricingError`` instead of being
floored at zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from modules.core.quantities import ZERO_MONEY, quantize_money, to_decimal
from modules.orders.exceptions import PricingError


@dataclass(frozen=True)
class OrderTotals:
    total: Decimal
    discount: Decimal
    final: Decimal


def item_total(quantity: Any, unit_price: Any, discount: Any = ZERO_MONEY) -> Decimal:
    discount = to_decimal(discount or ZERO_MONEY)
    if discount < 0:
        raise PricingError(f"Item discount cannot be negative, got {discount}.")
    total = quantize_money(to_decimal(quantity) * to_decimal(unit_price) - discount)
    if total < 0:
        raise PricingError(
            f"Item total is negative: {quantity} x {unit_price} - {discount} = {total}."
        )
    return total


def order_totals(item_totals: Iterable[Any], discount: Any = ZERO_MONEY) -> OrderTotals:
    discount = quantize_money(to_decimal(discount or ZERO_MONEY))
    if discount < 0:
        raise PricingError(f"Order discount cannot be negative, got {discount}.")
    total = quantize_money(sum((to_decimal(t) for t in item_totals), ZERO_MONEY))
    final = total - discount
    if final < 0:
        raise PricingError(
            f"Final amount is negative: total {total} - discount {discount}."
        )
    return OrderTotals(total=total, discount=discount, final=final)
