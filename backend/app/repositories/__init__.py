from app.repositories.coupon_redemption_repository import CouponRedemptionRepository
from app.repositories.coupon_repository import CouponRepository
from app.repositories.customer_repository import CustomerRepository
from app.repositories.idempotency_repository import IdempotencyRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.rate_limit_repository import RateLimitRepository
from app.repositories.return_repository import ReturnRepository

__all__ = [
    "CouponRedemptionRepository",
    "CouponRepository",
    "CustomerRepository",
    "IdempotencyRepository",
    "OrderRepository",
    "RateLimitRepository",
    "ReturnRepository",
]
