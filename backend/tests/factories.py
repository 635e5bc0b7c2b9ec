"""Builders for the customers, coupons and orders used across tests."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.coupon import Coupon, CouponType, DiscountType
from app.models.order import Order, OrderStatus
from app.repositories.coupon_repository import CouponRepository
from app.schemas.coupon import CouponCreate
from app.schemas.customer import CustomerCreate
from app.schemas.order import OrderCreate, OrderItemCreate, ShippingAddress
from app.services.order_service import OrderService

# Fixed clock used by time-dependent tests
NOW = datetime(2026, 6, 15, 12, 0, tzinfo=UTC)


def coupon_data(**overrides) -> CouponCreate:
    """Build a coupon payload; defaults mirror the SAVE10 storefront coupon."""
    values = {
        "code": "SAVE10",
        "coupon_type": CouponType.MINIMUM_AMOUNT,
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": Decimal("10"),
        "minimum_amount": Decimal("100"),
        "max_discount": Decimal("50"),
        "usage_limit": 100,
        "description": "10% off orders over 100",
    }
    values.update(overrides)
    return CouponCreate(**values)


def make_coupon(db: Session, **overrides) -> Coupon:
    return CouponRepository(db).create(coupon_data(**overrides))


def order_data(email: str = "shopper@example.com", items=None, **overrides) -> OrderCreate:
    if items is None:
        items = [
            OrderItemCreate(
                product_id="TSHIRT-1",
                name="Classic Tee",
                size="M",
                quantity=3,
                price=Decimal("25.00"),
            ),
            OrderItemCreate(
                product_id="JEANS-2",
                name="Slim Jeans",
                size="32",
                quantity=1,
                price=Decimal("80.00"),
            ),
        ]
    values = {
        "customer": CustomerCreate(email=email, name="Sam Shopper"),
        "items": items,
        "shipping_address": ShippingAddress(
            address="1 Market Street", city="Springfield", postal_code="12345", country="US"
        ),
    }
    values.update(overrides)
    return OrderCreate(**values)


def make_order(db: Session, email: str = "shopper@example.com", **overrides) -> Order:
    return OrderService(db).place_order(order_data(email=email, **overrides))


def deliver(db: Session, order: Order, delivered_at: datetime = NOW) -> Order:
    """Mark an order delivered at ``delivered_at``."""
    order.status = OrderStatus.DELIVERED.value  # type: ignore[assignment]
    order.is_delivered = True  # type: ignore[assignment]
    order.delivered_at = delivered_at  # type: ignore[assignment]
    order.return_window_expires_at = delivered_at + timedelta(days=30)  # type: ignore[assignment]
    db.commit()
    db.refresh(order)
    return order
