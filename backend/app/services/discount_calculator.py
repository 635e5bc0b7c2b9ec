"""Pure discount arithmetic for storefront coupons."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.models.coupon import DiscountType

CENT = Decimal("0.01")


@dataclass(frozen=True)
class DiscountResult:
    """Result of a coupon discount calculation."""

    discount_amount: Decimal
    final_amount: Decimal


def calculate_discount(
    discount_type: DiscountType | str,
    discount_value: Decimal,
    order_amount: Decimal,
    max_discount: Decimal | None = None,
) -> DiscountResult:
    """Calculate the discount a coupon grants on ``order_amount``.

    Percentage discounts are capped at ``max_discount`` when one is set; fixed
    discounts never exceed the order amount. Always pass the undiscounted order
    amount: feeding a previously discounted amount back in discounts twice.

    Raises:
        ValueError: If ``order_amount`` is not positive.
    """
    order_amount = Decimal(str(order_amount))
    if order_amount <= 0:
        raise ValueError("order_amount must be positive")

    value = Decimal(str(discount_value))
    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        discount = (order_amount * value / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
        if max_discount is not None:
            discount = min(discount, Decimal(str(max_discount)))
    else:
        discount = min(value, order_amount)

    final = max(Decimal("0"), order_amount - discount)
    return DiscountResult(discount_amount=discount, final_amount=final)
