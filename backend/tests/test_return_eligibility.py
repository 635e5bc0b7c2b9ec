from datetime import timedelta

from app.models.order import OrderStatus
from app.services.return_eligibility import (
    evaluate_return_eligibility,
    is_order_delivered,
    return_window_end,
)
from tests.factories import NOW, deliver, make_order


class TestReturnWindow:
    def test_window_ends_thirty_days_after_delivery(self, db_session):
        order = deliver(db_session, make_order(db_session))
        assert return_window_end(order) == NOW + timedelta(days=30)

    def test_custom_window(self, db_session):
        order = deliver(db_session, make_order(db_session))
        assert return_window_end(order, window_days=7) == NOW + timedelta(days=7)

    def test_undelivered_order_falls_back_to_creation_date(self, db_session):
        order = make_order(db_session)
        assert return_window_end(order) is not None


class TestEvaluateReturnEligibility:
    def test_eligible_inside_window(self, db_session):
        order = deliver(db_session, make_order(db_session))

        result = evaluate_return_eligibility(order, now=NOW + timedelta(days=29))

        assert result.is_eligible is True
        assert result.within_return_window is True
        assert result.order_delivered is True
        assert result.reasons == []
        assert [line.available_for_return for line in result.returnable_items] == [3, 1]

    def test_last_day_of_window_is_inclusive(self, db_session):
        order = deliver(db_session, make_order(db_session))
        result = evaluate_return_eligibility(order, now=NOW + timedelta(days=30))
        assert result.is_eligible is True

    def test_expired_window(self, db_session):
        order = deliver(db_session, make_order(db_session))

        result = evaluate_return_eligibility(order, now=NOW + timedelta(days=31))

        assert result.is_eligible is False
        assert result.within_return_window is False
        assert result.reasons == ["Return window expired"]
        assert result.return_window_expires_at == NOW + timedelta(days=30)

    def test_not_delivered(self, db_session):
        order = make_order(db_session)

        result = evaluate_return_eligibility(order)

        assert is_order_delivered(order) is False
        assert result.is_eligible is False
        assert result.order_delivered is False
        assert "Order not yet delivered" in result.reasons

    def test_status_alone_counts_as_delivered(self, db_session):
        order = make_order(db_session)
        order.status = OrderStatus.DELIVERED.value
        assert is_order_delivered(order) is True

    def test_order_flagged_not_returnable(self, db_session):
        order = deliver(db_session, make_order(db_session))
        order.is_return_eligible = False
        db_session.commit()

        result = evaluate_return_eligibility(order, now=NOW + timedelta(days=1))

        assert result.is_eligible is False
        assert result.within_return_window is False
        assert result.reasons == ["Order is not eligible for returns"]

    def test_reports_every_failed_check(self, db_session):
        order = make_order(db_session)
        order.is_return_eligible = False
        for item in order.items:
            item.return_quantity = item.quantity
            item.return_status = "returned"
        db_session.commit()

        result = evaluate_return_eligibility(order)

        assert result.reasons == [
            "Order not yet delivered",
            "Order is not eligible for returns",
            "No items available for return",
        ]

    def test_lines_with_open_returns_are_not_returnable(self, db_session):
        order = deliver(db_session, make_order(db_session))
        tee = order.items[0]
        tee.return_quantity = 1
        tee.return_status = "requested"
        db_session.commit()

        result = evaluate_return_eligibility(order, now=NOW + timedelta(days=1))

        assert [line.name for line in result.returnable_items] == ["Slim Jeans"]
        all_lines = {line.name: line for line in result.items}
        assert all_lines["Classic Tee"].available_for_return == 2
        assert all_lines["Classic Tee"].return_status == "requested"
