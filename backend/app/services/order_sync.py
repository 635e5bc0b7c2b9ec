"""Reconciles an order's derived return fields from its line items and returns."""

import logging

from sqlalchemy.orm import Session

from app.models.order import RETURNED_ORDER_STATUSES, Order, OrderStatus
from app.models.order_item import ItemReturnStatus
from app.models.return_request import ReturnRequest, ReturnStatus
from app.repositories.order_repository import OrderRepository
from app.repositories.return_repository import ReturnRepository
from app.services.return_eligibility import return_window_end

logger = logging.getLogger(__name__)

# Returns whose refund counts towards the order's total_return_amount.
REFUNDED_RETURN_STATUSES = (ReturnStatus.REFUND_PROCESSED, ReturnStatus.COMPLETED)


def derive_order_status(current_status: str, ordered_quantity: int, returned_quantity: int) -> str:
    """Order status as a function of returned vs. ordered units."""
    if ordered_quantity > 0 and returned_quantity >= ordered_quantity:
        return OrderStatus.FULLY_RETURNED.value
    if returned_quantity > 0:
        return OrderStatus.PARTIALLY_RETURNED.value
    if current_status in {s.value for s in RETURNED_ORDER_STATUSES}:
        return OrderStatus.DELIVERED.value
    return current_status


class OrderAggregateSync:
    """Keeps an order's return aggregates consistent with its returns.

    Every method recomputes from current stored state rather than adjusting
    the previous values, and none of them commit.
    """

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.return_repo = ReturnRepository(db)

    def recompute(self, order: Order) -> Order:
        """Re-derive status, has_returns, total_return_amount and the window end."""
        self.db.flush()
        locked = self.order_repo.lock(order.id)  # type: ignore[arg-type]
        if locked is None:
            raise LookupError(f"Order {order.id} disappeared during recompute")
        order = locked
        for item in order.items:
            self.db.refresh(item)

        ordered = sum(int(item.quantity) for item in order.items)
        returned = sum(int(item.return_quantity or 0) for item in order.items)

        previous_status = order.status
        new_status = derive_order_status(str(order.status), ordered, returned)
        order.status = new_status  # type: ignore[assignment]
        order.has_returns = returned > 0  # type: ignore[assignment]
        refunded = self.return_repo.sum_refunds_for_order(
            order.id, REFUNDED_RETURN_STATUSES  # type: ignore[arg-type]
        )
        order.total_return_amount = refunded  # type: ignore[assignment]
        order.return_window_expires_at = return_window_end(order)  # type: ignore[assignment]
        self.db.flush()

        if previous_status != order.status:
            logger.info(
                "Order %s status %s -> %s (%d/%d units returned)",
                order.order_id,
                previous_status,
                order.status,
                returned,
                ordered,
            )
        return order

    def apply_refund(self, return_request: ReturnRequest) -> Order:
        """Mark the return's lines as returned and refresh the order totals."""
        order = self._load_order(return_request)
        self.order_repo.set_item_return_status(
            [item.order_item_id for item in return_request.items], ItemReturnStatus.RETURNED
        )
        return self.recompute(order)

    def release(self, return_request: ReturnRequest) -> Order:
        """Give back the units a rejected or cancelled return had reserved."""
        order = self._load_order(return_request)
        for item in return_request.items:
            released = self.order_repo.release_return_quantity(
                item.order_item_id,  # type: ignore[arg-type]
                int(item.quantity),
            )
            if not released:
                logger.error(
                    "Return %s could not release %d units of order item %s",
                    return_request.return_id,
                    item.quantity,
                    item.order_item_id,
                )
        return self.recompute(order)

    def _load_order(self, return_request: ReturnRequest) -> Order:
        order = self.order_repo.get_by_id(return_request.order_id)  # type: ignore[arg-type]
        if order is None:
            raise LookupError(f"Order {return_request.order_id} not found for return")
        return order
