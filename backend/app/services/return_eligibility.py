"""Return eligibility: which lines of an order can still be returned, and until when."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from app.core.config import settings
from app.models.order import Order, OrderStatus
from app.models.order_item import ItemReturnStatus, OrderItem
from app.models.shared import ensure_utc, utc_now


@dataclass
class LineAvailability:
    order_item_id: UUID
    name: str
    size: str
    image: str
    price: Decimal
    quantity: int
    return_quantity: int
    return_status: str
    available_for_return: int


@dataclass
class ReturnEligibility:
    is_eligible: bool
    within_return_window: bool
    order_status: str
    order_delivered: bool
    return_window_expires_at: datetime | None = None
    delivered_at: datetime | None = None
    returnable_items: list[LineAvailability] = field(default_factory=list)
    items: list[LineAvailability] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)


def is_order_delivered(order: Order) -> bool:
    return bool(order.is_delivered) or order.status == OrderStatus.DELIVERED.value


def return_window_end(order: Order, window_days: int | None = None) -> datetime | None:
    """End of the return window: delivery date (or creation date) plus the policy days."""
    days = settings.RETURN_WINDOW_DAYS if window_days is None else window_days
    reference = order.delivered_at or order.created_at
    if reference is None:
        return None
    return ensure_utc(reference) + timedelta(days=days)


def line_availability(item: OrderItem) -> LineAvailability:
    return_quantity = int(item.return_quantity or 0)
    return LineAvailability(
        order_item_id=item.id,  # type: ignore[arg-type]
        name=str(item.name),
        size=str(item.size),
        image=str(item.image or ""),
        price=Decimal(str(item.price)),
        quantity=int(item.quantity),
        return_quantity=return_quantity,
        return_status=str(item.return_status or ItemReturnStatus.NONE.value),
        available_for_return=int(item.quantity) - return_quantity,
    )


def is_line_returnable(item: OrderItem) -> bool:
    status = item.return_status or ItemReturnStatus.NONE.value
    return status == ItemReturnStatus.NONE.value and item.quantity > (item.return_quantity or 0)


def evaluate_return_eligibility(
    order: Order,
    now: datetime | None = None,
    window_days: int | None = None,
) -> ReturnEligibility:
    """Evaluate an order against the return policy.

    ``reasons`` lists every failed precondition, not only the first one.
    """
    now = now or utc_now()
    delivered = is_order_delivered(order)
    window_end = return_window_end(order, window_days)
    within_window = (
        window_end is not None and now <= window_end and bool(order.is_return_eligible)
    )

    items = [line_availability(item) for item in order.items]
    returnable = [line for line, item in zip(items, order.items) if is_line_returnable(item)]
    fully_returned = order.status == OrderStatus.FULLY_RETURNED.value

    reasons = []
    if not delivered:
        reasons.append("Order not yet delivered")
    if not order.is_return_eligible:
        reasons.append("Order is not eligible for returns")
    elif not within_window:
        reasons.append("Return window expired")
    if not returnable:
        reasons.append("No items available for return")
    if fully_returned:
        reasons.append("Order already fully returned")

    return ReturnEligibility(
        is_eligible=within_window and bool(returnable) and delivered and not fully_returned,
        within_return_window=within_window,
        order_status=str(order.status),
        order_delivered=delivered,
        return_window_expires_at=window_end,
        delivered_at=ensure_utc(order.delivered_at) if order.delivered_at else None,
        returnable_items=returnable,
        items=items,
        reasons=reasons,
    )
