from app.models.coupon import Coupon, CouponType, DiscountType
from app.models.coupon_redemption import CouponRedemption
from app.models.customer import Customer
from app.models.idempotency_record import IdempotencyRecord
from app.models.order import Order, OrderStatus
from app.models.order_item import ItemReturnStatus, OrderItem
from app.models.rate_limit_counter import RateLimitCounter
from app.models.return_item import ReturnItem
from app.models.return_request import (
    RefundMethod,
    ReturnMethod,
    ReturnReason,
    ReturnRequest,
    ReturnStatus,
)
from app.models.return_timeline_entry import ReturnTimelineEntry

__all__ = [
    "Coupon",
    "CouponRedemption",
    "CouponType",
    "Customer",
    "DiscountType",
    "IdempotencyRecord",
    "ItemReturnStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "RateLimitCounter",
    "RefundMethod",
    "ReturnItem",
    "ReturnMethod",
    "ReturnReason",
    "ReturnRequest",
    "ReturnStatus",
    "ReturnTimelineEntry",
]
