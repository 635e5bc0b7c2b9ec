"""Return request creation and the return status state machine."""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.models.return_item import ReturnItem
from app.models.return_request import ReturnMethod, ReturnRequest, ReturnStatus
from app.models.return_timeline_entry import ReturnTimelineEntry
from app.models.shared import utc_now
from app.repositories.order_repository import OrderRepository
from app.repositories.return_repository import ReturnRepository
from app.schemas.return_request import ReturnCreate
from app.services.order_sync import REFUNDED_RETURN_STATUSES, OrderAggregateSync
from app.services.results import ServiceErrorCode, ServiceResult
from app.services.return_eligibility import (
    ReturnEligibility,
    evaluate_return_eligibility,
    is_order_delivered,
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset(
    {ReturnStatus.REJECTED, ReturnStatus.COMPLETED, ReturnStatus.CANCELLED}
)

_FORWARD_TRANSITIONS: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    ReturnStatus.REQUESTED: frozenset({ReturnStatus.APPROVED, ReturnStatus.REJECTED}),
    ReturnStatus.APPROVED: frozenset({ReturnStatus.PICKUP_SCHEDULED}),
    ReturnStatus.PICKUP_SCHEDULED: frozenset({ReturnStatus.ITEMS_RECEIVED}),
    ReturnStatus.ITEMS_RECEIVED: frozenset({ReturnStatus.ITEMS_INSPECTED}),
    ReturnStatus.ITEMS_INSPECTED: frozenset({ReturnStatus.REFUND_PROCESSED}),
    ReturnStatus.REFUND_PROCESSED: frozenset({ReturnStatus.COMPLETED}),
}

# Any non-terminal status may also be cancelled.
ALLOWED_TRANSITIONS: dict[ReturnStatus, frozenset[ReturnStatus]] = {
    status: _FORWARD_TRANSITIONS.get(status, frozenset()) | {ReturnStatus.CANCELLED}
    for status in ReturnStatus
    if status not in TERMINAL_STATUSES
}

STATUS_MESSAGES: dict[ReturnStatus, str] = {
    ReturnStatus.REQUESTED: "Return request submitted",
    ReturnStatus.APPROVED: "Return request approved",
    ReturnStatus.REJECTED: "Return request rejected",
    ReturnStatus.PICKUP_SCHEDULED: "Pickup scheduled",
    ReturnStatus.ITEMS_RECEIVED: "Items received at warehouse",
    ReturnStatus.ITEMS_INSPECTED: "Items inspected and approved",
    ReturnStatus.REFUND_PROCESSED: "Refund processed",
    ReturnStatus.COMPLETED: "Return completed successfully",
    ReturnStatus.CANCELLED: "Return cancelled",
}

MILESTONE_FIELDS: dict[ReturnStatus, str] = {
    ReturnStatus.APPROVED: "approved_at",
    ReturnStatus.PICKUP_SCHEDULED: "pickup_scheduled_at",
    ReturnStatus.ITEMS_RECEIVED: "items_received_at",
    ReturnStatus.REFUND_PROCESSED: "refund_processed_at",
    ReturnStatus.COMPLETED: "completed_at",
}

# Statuses in which an admin may set the refund amount.
REFUND_EDITABLE_STATUSES = frozenset({ReturnStatus.ITEMS_INSPECTED, ReturnStatus.REFUND_PROCESSED})

# Statuses that hand reserved units back to the order.
RELEASING_STATUSES = frozenset({ReturnStatus.REJECTED, ReturnStatus.CANCELLED})

_missing_messages = set(ReturnStatus) - STATUS_MESSAGES.keys()
if _missing_messages:
    raise RuntimeError(f"Missing timeline messages for return statuses: {_missing_messages}")


class ReturnService:
    """Service for the return lifecycle."""

    def __init__(self, db: Session):
        self.db = db
        self.order_repo = OrderRepository(db)
        self.return_repo = ReturnRepository(db)
        self.order_sync = OrderAggregateSync(db)

    def create_return(
        self, data: ReturnCreate, now: datetime | None = None
    ) -> ServiceResult[ReturnRequest]:
        """Validate a return submission and reserve the requested units.

        The requested quantities are checked against the order's current
        ``return_quantity`` and reserved with guarded increments in the same
        transaction that stores the return, so concurrent submissions cannot
        both claim the same units.

        Args:
            data: The return submission.
            now: Submission time, defaults to the current UTC time.

        Returns:
            ServiceResult carrying the created return, or the failure reason.
        """
        now = now or utc_now()

        order = self.order_repo.get_by_id(data.order_id)
        if not order:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Order not found")

        if order.customer_id != data.customer_id:
            return ServiceResult.fail(ServiceErrorCode.UNAUTHORIZED, "Unauthorized access to order")

        if not is_order_delivered(order):
            return ServiceResult.fail(
                ServiceErrorCode.REJECTED, "Order must be delivered before initiating return"
            )

        eligibility = evaluate_return_eligibility(order, now=now)
        if not eligibility.within_return_window:
            message = (
                "Return window expired"
                if order.is_return_eligible
                else "Order is not eligible for returns"
            )
            return ServiceResult.fail(ServiceErrorCode.REJECTED, message)

        lines = {item.id: item for item in order.items}
        requested: dict[UUID, int] = {}
        for entry in data.items:
            if entry.order_item_id not in lines:
                return ServiceResult.fail(
                    ServiceErrorCode.NOT_FOUND, f"Order item {entry.order_item_id} not found"
                )
            requested[entry.order_item_id] = requested.get(entry.order_item_id, 0) + entry.quantity

        return_amount = Decimal("0")
        for order_item_id, quantity in requested.items():
            line = lines[order_item_id]
            available = int(line.quantity) - int(line.return_quantity or 0)
            if quantity > available:
                return ServiceResult.fail(
                    ServiceErrorCode.REJECTED,
                    f"Cannot return {quantity} of {line.name}. "
                    f"Only {available} available for return.",
                )
            return_amount += Decimal(str(line.price)) * quantity

        return_request = ReturnRequest(
            order_id=order.id,
            customer_id=data.customer_id,
            return_reason=data.return_reason.value,
            return_description=data.return_description,
            return_method=data.return_method.value,
            refund_method=data.refund_method.value,
            status=ReturnStatus.REQUESTED.value,
            return_amount=return_amount,
            pickup_address=(
                data.pickup_address.model_dump()
                if data.return_method == ReturnMethod.PICKUP and data.pickup_address
                else None
            ),
            requested_at=now,
            is_within_return_window=True,
            return_window_expires_at=eligibility.return_window_expires_at,
        )
        return_request.items = [
            ReturnItem(
                position=position,
                order_item_id=entry.order_item_id,
                name=lines[entry.order_item_id].name,
                size=lines[entry.order_item_id].size,
                image=lines[entry.order_item_id].image,
                price=lines[entry.order_item_id].price,
                quantity=entry.quantity,
                reason=entry.reason.value,
                reason_description=entry.reason_description,
                images=list(entry.images),
            )
            for position, entry in enumerate(data.items)
        ]
        return_request.timeline = [
            ReturnTimelineEntry(
                sequence=1,
                status=ReturnStatus.REQUESTED.value,
                message=STATUS_MESSAGES[ReturnStatus.REQUESTED],
                timestamp=now,
            )
        ]

        order_pk = order.id
        self.return_repo.add(return_request)
        for order_item_id, quantity in requested.items():
            if not self.order_repo.reserve_return_quantity(order_item_id, quantity):
                self.db.rollback()
                return self._reservation_lost(order_pk, order_item_id)  # type: ignore[arg-type]

        self.order_sync.recompute(order)
        self.db.commit()
        self.db.refresh(return_request)

        logger.info(
            "Created return %s for order %s: %d units, amount %s",
            return_request.return_id,
            order.order_id,
            sum(requested.values()),
            return_amount,
        )
        return ServiceResult.ok(return_request, "Return request created successfully")

    def transition_return(
        self,
        return_id: str,
        new_status: ReturnStatus,
        admin_notes: str | None = None,
        refund_amount: Decimal | None = None,
        now: datetime | None = None,
    ) -> ServiceResult[ReturnRequest]:
        """Move a return to ``new_status`` and append the matching timeline entry.

        The status change, milestone timestamp, timeline entry and any order
        reconciliation commit together. A concurrent transition on the same
        return is detected through its version column and reported as a
        conflict.
        """
        now = now or utc_now()

        return_request = self.return_repo.get_by_return_id(return_id)
        if not return_request:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Return request not found")

        current = ReturnStatus(str(return_request.status))
        if new_status == current:
            return ServiceResult.fail(
                ServiceErrorCode.REJECTED, f"Return is already {current.value}"
            )
        if new_status not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            return ServiceResult.fail(
                ServiceErrorCode.REJECTED,
                f"Cannot change return status from {current.value} to {new_status.value}",
            )

        if refund_amount is not None:
            if new_status not in REFUND_EDITABLE_STATUSES:
                return ServiceResult.fail(
                    ServiceErrorCode.REJECTED,
                    "Refund amount can only be set while the refund is being processed",
                )
            if refund_amount > Decimal(str(return_request.return_amount)):
                return ServiceResult.fail(
                    ServiceErrorCode.REJECTED,
                    f"Refund amount cannot exceed the return amount of "
                    f"{return_request.return_amount}",
                )

        return_request.status = new_status.value  # type: ignore[assignment]
        if admin_notes:
            return_request.admin_notes = admin_notes  # type: ignore[assignment]
        if refund_amount is not None:
            return_request.refund_amount = refund_amount  # type: ignore[assignment]
        milestone = MILESTONE_FIELDS.get(new_status)
        if milestone:
            setattr(return_request, milestone, now)
        self.return_repo.append_timeline(
            return_request,
            status=new_status.value,
            message=admin_notes or STATUS_MESSAGES[new_status],
            timestamp=now,
        )

        try:
            self.db.flush()
            if new_status in REFUNDED_RETURN_STATUSES:
                self.order_sync.apply_refund(return_request)
            elif new_status in RELEASING_STATUSES:
                self.order_sync.release(return_request)
            self.db.commit()
        except (StaleDataError, IntegrityError):
            self.db.rollback()
            logger.warning("Concurrent update lost on return %s -> %s", return_id, new_status.value)
            return ServiceResult.fail(
                ServiceErrorCode.CONFLICT,
                "Return was updated concurrently; reload it and retry",
            )

        self.db.refresh(return_request)
        logger.info("Return %s moved %s -> %s", return_id, current.value, new_status.value)
        return ServiceResult.ok(return_request, "Return status updated successfully")

    def get_return_eligibility(
        self, order_ref: str, now: datetime | None = None
    ) -> ServiceResult[ReturnEligibility]:
        """Eligibility for an order given either its UUID or its ``ORD-...`` id."""
        try:
            order = self.order_repo.get_by_id(UUID(order_ref))
        except ValueError:
            order = self.order_repo.get_by_order_id(order_ref)
        if not order:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Order not found")
        eligibility = evaluate_return_eligibility(order, now=now)
        return ServiceResult.ok(eligibility, "; ".join(eligibility.reasons) or "Order is eligible")

    def get_return(self, return_id: str) -> ReturnRequest | None:
        return self.return_repo.get_by_return_id(return_id)

    def list_customer_returns(self, customer_id: UUID) -> list[ReturnRequest]:
        return self.return_repo.get_by_customer_id(customer_id)

    def list_returns(
        self, skip: int = 0, limit: int = 100, status: ReturnStatus | None = None
    ) -> list[ReturnRequest]:
        return self.return_repo.get_all(skip=skip, limit=limit, status=status)

    def _reservation_lost(
        self, order_id: UUID, order_item_id: UUID
    ) -> ServiceResult[ReturnRequest]:
        """Report the availability another submission left behind."""
        order = self.order_repo.get_by_id(order_id)
        lines = order.items if order else []
        line = next((item for item in lines if item.id == order_item_id), None)
        if line is None:
            return ServiceResult.fail(
                ServiceErrorCode.NOT_FOUND, f"Order item {order_item_id} not found"
            )
        available = int(line.quantity) - int(line.return_quantity or 0)
        logger.warning("Return reservation lost on order item %s", order_item_id)
        return ServiceResult.fail(
            ServiceErrorCode.REJECTED,
            f"Cannot return more of {line.name}. Only {available} available for return.",
        )
