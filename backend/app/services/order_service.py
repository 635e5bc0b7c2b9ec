"""Checkout intake and administrative order updates."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.models.order import Order, OrderStatus
from app.models.shared import utc_now
from app.repositories.customer_repository import CustomerRepository
from app.repositories.order_repository import OrderRepository
from app.schemas.order import OrderCreate, OrderUpdate
from app.services.order_sync import OrderAggregateSync
from app.services.results import ServiceErrorCode, ServiceResult
from app.services.return_eligibility import return_window_end

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, db: Session):
        self.db = db
        self.customer_repo = CustomerRepository(db)
        self.order_repo = OrderRepository(db)

    def place_order(self, data: OrderCreate) -> Order:
        """Create the order, registering the customer by email on first purchase."""
        customer = self.customer_repo.get_or_create(data.customer)
        order = self.order_repo.create(data, customer.id)  # type: ignore[arg-type]
        logger.info(
            "Placed order %s for %s: total %s", order.order_id, customer.email, order.total_price
        )
        return order

    def update_order(
        self, order_id: str, data: OrderUpdate, now: datetime | None = None
    ) -> ServiceResult[Order]:
        """Apply an admin update; marking an order delivered stamps ``delivered_at``.

        The return window is re-derived from the delivery date afterwards.
        """
        now = now or utc_now()
        order = self.order_repo.get_by_order_id(order_id)
        if not order:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Order not found")

        if data.status in (OrderStatus.PARTIALLY_RETURNED, OrderStatus.FULLY_RETURNED):
            return ServiceResult.fail(
                ServiceErrorCode.VALIDATION, "Return statuses are managed by return processing"
            )

        changes = data.model_copy()
        delivering = data.status == OrderStatus.DELIVERED or data.is_delivered is True
        if delivering:
            changes.is_delivered = True
            if changes.status is None:
                changes.status = OrderStatus.DELIVERED
            if changes.delivered_at is None and order.delivered_at is None:
                changes.delivered_at = now
        if data.is_paid and data.paid_at is None and order.paid_at is None:
            changes.paid_at = now

        order = self.order_repo.update(
            order, OrderUpdate(**changes.model_dump(exclude_unset=False, exclude_none=True))
        )
        if order.has_returns:
            OrderAggregateSync(self.db).recompute(order)
        else:
            order.return_window_expires_at = return_window_end(order)  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(order)

        logger.info("Updated order %s: status %s", order.order_id, order.status)
        return ServiceResult.ok(order, "Order updated successfully")
