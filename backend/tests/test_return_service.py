"""Tests for return creation, the status state machine and order reconciliation."""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core import database as db_module
from app.models.order import OrderStatus
from app.models.return_request import ReturnMethod, ReturnReason, ReturnStatus
from app.schemas.return_request import PickupAddress, ReturnCreate, ReturnItemCreate
from app.services.results import ServiceErrorCode
from app.services.return_service import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, ReturnService
from tests.factories import NOW, deliver, make_order

SOON = NOW + timedelta(days=3)

FULL_LIFECYCLE = [
    ReturnStatus.APPROVED,
    ReturnStatus.PICKUP_SCHEDULED,
    ReturnStatus.ITEMS_RECEIVED,
    ReturnStatus.ITEMS_INSPECTED,
    ReturnStatus.REFUND_PROCESSED,
    ReturnStatus.COMPLETED,
]


@pytest.fixture
def service(db_session):
    return ReturnService(db_session)


@pytest.fixture
def order(db_session):
    return deliver(db_session, make_order(db_session))


def return_data(order, lines, **overrides) -> ReturnCreate:
    """Build a return submission; ``lines`` is a list of (order item, quantity)."""
    values = {
        "order_id": order.id,
        "customer_id": order.customer_id,
        "items": [
            ReturnItemCreate(order_item_id=item.id, quantity=qty, reason=ReturnReason.WRONG_SIZE)
            for item, qty in lines
        ],
        "return_reason": ReturnReason.WRONG_SIZE,
        "pickup_address": PickupAddress(address="1 Market Street", city="Springfield"),
    }
    values.update(overrides)
    return ReturnCreate(**values)


def walk(service, return_id, statuses, **kwargs):
    for status in statuses:
        result = service.transition_return(return_id, status, now=SOON, **kwargs)
        assert result.success, result.message
    return result


class TestCreateReturn:
    def test_creates_request_and_reserves_units(self, service, order, db_session):
        tee = order.items[0]

        result = service.create_return(return_data(order, [(tee, 2)]), now=SOON)

        assert result.success is True
        assert result.message == "Return request created successfully"
        rr = result.data
        assert rr.return_id.startswith("RET-")
        assert rr.status == ReturnStatus.REQUESTED.value
        assert rr.return_amount == Decimal("50.00")
        assert rr.items[0].name == "Classic Tee"
        assert [(e.sequence, e.status) for e in rr.timeline] == [(1, "requested")]
        assert rr.pickup_address["city"] == "Springfield"

        db_session.refresh(order)
        assert order.items[0].return_quantity == 2
        assert order.items[0].return_status == "requested"
        assert order.status == OrderStatus.PARTIALLY_RETURNED.value
        assert order.has_returns is True

    def test_second_request_cannot_overclaim(self, service, order):
        tee = order.items[0]
        assert service.create_return(return_data(order, [(tee, 2)]), now=SOON).success

        result = service.create_return(return_data(order, [(tee, 2)]), now=SOON)

        assert result.success is False
        assert result.error == ServiceErrorCode.REJECTED
        assert result.message == "Cannot return 2 of Classic Tee. Only 1 available for return."

    def test_remaining_units_can_still_be_returned(self, service, order):
        tee = order.items[0]
        assert service.create_return(return_data(order, [(tee, 2)]), now=SOON).success
        assert service.create_return(return_data(order, [(tee, 1)]), now=SOON).success

    def test_repeated_lines_are_summed(self, service, order):
        tee = order.items[0]
        result = service.create_return(return_data(order, [(tee, 2), (tee, 2)]), now=SOON)
        assert result.success is False
        assert "Only 3 available" in result.message

    def test_order_not_found(self, service, order):
        data = return_data(order, [(order.items[0], 1)], order_id=uuid4())
        result = service.create_return(data, now=SOON)
        assert result.error == ServiceErrorCode.NOT_FOUND

    def test_other_customer_is_unauthorized(self, service, order):
        data = return_data(order, [(order.items[0], 1)], customer_id=uuid4())
        result = service.create_return(data, now=SOON)
        assert result.error == ServiceErrorCode.UNAUTHORIZED
        assert result.message == "Unauthorized access to order"

    def test_undelivered_order_is_rejected(self, service, db_session):
        pending = make_order(db_session)
        result = service.create_return(return_data(pending, [(pending.items[0], 1)]))
        assert result.error == ServiceErrorCode.REJECTED
        assert result.message == "Order must be delivered before initiating return"

    def test_expired_window_is_rejected(self, service, order):
        result = service.create_return(
            return_data(order, [(order.items[0], 1)]), now=NOW + timedelta(days=31)
        )
        assert result.error == ServiceErrorCode.REJECTED
        assert result.message == "Return window expired"

    def test_unknown_item(self, service, order, db_session):
        other = make_order(db_session, email="other@example.com")
        result = service.create_return(return_data(order, [(other.items[0], 1)]), now=SOON)
        assert result.error == ServiceErrorCode.NOT_FOUND

    def test_pickup_address_dropped_for_other_methods(self, service, order):
        data = return_data(order, [(order.items[1], 1)], return_method=ReturnMethod.MAIL)
        result = service.create_return(data, now=SOON)
        assert result.data.pickup_address is None
        assert result.data.return_method == "mail"


class TestTransitionReturn:
    def test_full_return_walks_to_completion(self, service, order, db_session):
        tee, jeans = order.items
        rr = service.create_return(return_data(order, [(tee, 3), (jeans, 1)]), now=SOON).data

        result = walk(service, rr.return_id, FULL_LIFECYCLE)

        completed = result.data
        assert completed.status == ReturnStatus.COMPLETED.value
        assert [e.status for e in completed.timeline] == ["requested"] + [
            s.value for s in FULL_LIFECYCLE
        ]
        assert [e.sequence for e in completed.timeline] == list(range(1, 8))
        assert completed.completed_at is not None
        assert completed.refund_processed_at is not None

        db_session.refresh(order)
        assert order.status == OrderStatus.FULLY_RETURNED.value
        assert order.total_return_amount == Decimal("155.00")
        assert {item.return_status for item in order.items} == {"returned"}

    def test_adjusted_refund_counts_towards_order_total(self, service, order, db_session):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        walk(service, rr.return_id, FULL_LIFECYCLE[:3])
        assert service.transition_return(
            rr.return_id, ReturnStatus.ITEMS_INSPECTED, refund_amount=Decimal("60.00"), now=SOON
        ).success

        walk(service, rr.return_id, FULL_LIFECYCLE[4:])

        db_session.refresh(order)
        assert order.total_return_amount == Decimal("60.00")
        assert order.status == OrderStatus.PARTIALLY_RETURNED.value

    def test_totals_sum_over_several_returns(self, service, order, db_session):
        tee, jeans = order.items
        first = service.create_return(return_data(order, [(tee, 1)]), now=SOON).data
        second = service.create_return(return_data(order, [(jeans, 1)]), now=SOON).data
        walk(service, first.return_id, FULL_LIFECYCLE[:5])
        walk(service, second.return_id, FULL_LIFECYCLE)

        db_session.refresh(order)
        assert order.total_return_amount == Decimal("105.00")

    def test_refund_amount_outside_inspection_is_rejected(self, service, order):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        result = service.transition_return(
            rr.return_id, ReturnStatus.APPROVED, refund_amount=Decimal("10")
        )
        assert result.error == ServiceErrorCode.REJECTED

    def test_refund_amount_cannot_exceed_return_amount(self, service, order):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        walk(service, rr.return_id, FULL_LIFECYCLE[:3])

        result = service.transition_return(
            rr.return_id, ReturnStatus.ITEMS_INSPECTED, refund_amount=Decimal("80.01")
        )

        assert result.error == ServiceErrorCode.REJECTED
        assert "cannot exceed" in result.message

    def test_skipping_a_step_is_rejected(self, service, order):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data

        result = service.transition_return(rr.return_id, ReturnStatus.COMPLETED)

        assert result.error == ServiceErrorCode.REJECTED
        assert result.message == "Cannot change return status from requested to completed"

    def test_same_status_is_rejected(self, service, order):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        result = service.transition_return(rr.return_id, ReturnStatus.REQUESTED)
        assert result.message == "Return is already requested"

    def test_terminal_status_is_final(self, service, order):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        walk(service, rr.return_id, [ReturnStatus.REJECTED])

        result = service.transition_return(rr.return_id, ReturnStatus.APPROVED)

        assert result.error == ServiceErrorCode.REJECTED

    def test_unknown_return(self, service):
        result = service.transition_return("RET-MISSING", ReturnStatus.APPROVED)
        assert result.error == ServiceErrorCode.NOT_FOUND

    def test_admin_notes_become_timeline_message(self, service, order):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data

        result = service.transition_return(
            rr.return_id, ReturnStatus.APPROVED, admin_notes="Approved by support", now=SOON
        )

        assert result.data.admin_notes == "Approved by support"
        assert result.data.timeline[-1].message == "Approved by support"
        assert result.data.approved_at is not None

    @pytest.mark.parametrize("closing", [ReturnStatus.REJECTED, ReturnStatus.CANCELLED])
    def test_closing_releases_reserved_units(self, service, order, db_session, closing):
        tee, jeans = order.items
        rr = service.create_return(return_data(order, [(tee, 3), (jeans, 1)]), now=SOON).data
        db_session.refresh(order)
        assert order.status == OrderStatus.FULLY_RETURNED.value

        walk(service, rr.return_id, [closing])

        db_session.refresh(order)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.has_returns is False
        assert [item.return_quantity for item in order.items] == [0, 0]
        assert service.create_return(return_data(order, [(tee, 3)]), now=SOON).success

    def test_cancel_after_refund_reverses_the_order(self, service, order, db_session):
        tee, jeans = order.items
        rr = service.create_return(return_data(order, [(tee, 3), (jeans, 1)]), now=SOON).data
        walk(service, rr.return_id, FULL_LIFECYCLE[:5])
        db_session.refresh(order)
        assert order.status == OrderStatus.FULLY_RETURNED.value
        assert order.total_return_amount == Decimal("155.00")

        walk(service, rr.return_id, [ReturnStatus.CANCELLED])

        db_session.refresh(order)
        assert order.status == OrderStatus.DELIVERED.value
        assert order.total_return_amount == Decimal("0")
        assert order.has_returns is False
        assert [(item.return_status, item.return_quantity) for item in order.items] == [
            ("none", 0),
            ("none", 0),
        ]

    def test_stale_transition_is_a_conflict(self, service, order, db_session):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        return_id = rr.return_id
        other = db_module.SessionLocal()
        try:
            other_service = ReturnService(other)
            # Holds version 1 while the first session moves the return on.
            assert other_service.get_return(return_id).status == "requested"
            assert service.transition_return(return_id, ReturnStatus.APPROVED, now=SOON).success

            result = other_service.transition_return(return_id, ReturnStatus.REJECTED, now=SOON)
        finally:
            other.close()

        assert result.success is False
        assert result.error == ServiceErrorCode.CONFLICT
        db_session.expire_all()
        current = service.get_return(return_id)
        assert current.status == ReturnStatus.APPROVED.value
        assert [e.status for e in current.timeline] == ["requested", "approved"]

    def test_cancel_after_pickup_scheduled(self, service, order):
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        walk(service, rr.return_id, FULL_LIFECYCLE[:2])

        result = service.transition_return(rr.return_id, ReturnStatus.CANCELLED, now=SOON)

        assert result.success
        assert result.data.timeline[-1].message == "Return cancelled"


def test_every_open_status_can_be_cancelled():
    for status, targets in ALLOWED_TRANSITIONS.items():
        assert status not in TERMINAL_STATUSES
        assert ReturnStatus.CANCELLED in targets


class TestReturnQueries:
    def test_eligibility_by_public_or_internal_id(self, service, order):
        by_public = service.get_return_eligibility(order.order_id, now=SOON)
        by_uuid = service.get_return_eligibility(str(order.id), now=SOON)

        assert by_public.success and by_uuid.success
        assert by_public.data.is_eligible is True
        assert by_uuid.data.items == by_public.data.items

    def test_eligibility_for_unknown_order(self, service):
        assert service.get_return_eligibility("ORD-NOPE").error == ServiceErrorCode.NOT_FOUND

    def test_listing(self, service, order):
        service.create_return(return_data(order, [(order.items[0], 1)]), now=SOON)
        rr = service.create_return(return_data(order, [(order.items[1], 1)]), now=SOON).data
        walk(service, rr.return_id, [ReturnStatus.APPROVED])

        assert len(service.list_customer_returns(order.customer_id)) == 2
        assert service.list_customer_returns(uuid4()) == []
        approved = service.list_returns(status=ReturnStatus.APPROVED)
        assert [r.return_id for r in approved] == [rr.return_id]
        assert service.get_return(rr.return_id).id == rr.id
