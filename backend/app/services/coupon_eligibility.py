"""Stateless coupon eligibility rules."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.coupon import Coupon, CouponType
from app.models.customer import Customer
from app.models.shared import ensure_utc, utc_now
from app.repositories.coupon_repository import CouponRepository
from app.repositories.customer_repository import CustomerRepository
from app.repositories.order_repository import OrderRepository
from app.services.discount_calculator import DiscountResult, calculate_discount
from app.services.results import ServiceErrorCode

USAGE_LIMIT_EXCEEDED = "Coupon usage limit exceeded"


def is_coupon_expired(coupon: Coupon, now: datetime) -> bool:
    return coupon.expiry_date is not None and ensure_utc(coupon.expiry_date) < now


def is_usage_limit_reached(coupon: Coupon) -> bool:
    return coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit


def is_coupon_available(coupon: Coupon, now: datetime) -> bool:
    return bool(coupon.is_active) and not is_coupon_expired(coupon, now) and not (
        is_usage_limit_reached(coupon)
    )


def unavailability_reason(coupon: Coupon, now: datetime) -> str | None:
    """Name the specific reason an unavailable coupon cannot be used."""
    if is_coupon_available(coupon, now):
        return None
    if is_coupon_expired(coupon, now):
        return "Coupon has expired"
    if is_usage_limit_reached(coupon):
        return USAGE_LIMIT_EXCEEDED
    if not coupon.is_active:
        return "Coupon is inactive"
    return "Coupon is not available"


@dataclass
class CouponEvaluation:
    is_valid: bool
    message: str
    error: ServiceErrorCode | None = None
    coupon: Coupon | None = None
    customer: Customer | None = None
    discount: DiscountResult | None = None
    order_amount: Decimal | None = None


class CouponEligibilityEvaluator:
    """Runs the coupon rule checks in order, stopping at the first failure."""

    def __init__(self, db: Session):
        self.coupon_repo = CouponRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.order_repo = OrderRepository(db)

    def evaluate(
        self,
        code: str,
        order_amount: Decimal,
        email: str,
        now: datetime | None = None,
        exclude_order_id: UUID | None = None,
    ) -> CouponEvaluation:
        """Check whether ``email`` may use coupon ``code`` on ``order_amount``.

        Args:
            code: Coupon code, any case.
            order_amount: The current, undiscounted order amount.
            email: Customer email; unknown customers have no history to check.
            now: Evaluation time, defaults to the current UTC time.
            exclude_order_id: Order being redeemed against, left out of the
                customer's order history.

        Returns:
            CouponEvaluation with the discount breakdown on success, or the
            specific failure reason.
        """
        now = now or utc_now()

        coupon = self.coupon_repo.get_by_code(code)
        if not coupon:
            return CouponEvaluation(
                is_valid=False, message="Coupon not found", error=ServiceErrorCode.NOT_FOUND
            )

        reason = unavailability_reason(coupon, now)
        if reason:
            return CouponEvaluation(
                is_valid=False, message=reason, error=ServiceErrorCode.REJECTED, coupon=coupon
            )

        customer = self.customer_repo.get_by_email(email)
        if customer:
            customer_id = customer.id  # type: ignore[assignment]
            already_used = self.order_repo.find_existing_redemption(
                customer_id, str(coupon.code), exclude_order_id=exclude_order_id
            )
            if already_used:
                return CouponEvaluation(
                    is_valid=False,
                    message="You have already used this coupon",
                    error=ServiceErrorCode.REJECTED,
                    coupon=coupon,
                    customer=customer,
                )

            if coupon.coupon_type == CouponType.FIRST_ORDER.value:
                prior_orders = self.order_repo.count_by_customer(
                    customer_id, exclude_order_id=exclude_order_id
                )
                if prior_orders > 0:
                    return CouponEvaluation(
                        is_valid=False,
                        message="This coupon is only valid for first-time customers",
                        error=ServiceErrorCode.REJECTED,
                        coupon=coupon,
                        customer=customer,
                    )

        minimum_amount = Decimal(str(coupon.minimum_amount or 0))
        if coupon.coupon_type == CouponType.MINIMUM_AMOUNT.value and order_amount < minimum_amount:
            return CouponEvaluation(
                is_valid=False,
                message=f"Order amount must be at least {minimum_amount} to use this coupon",
                error=ServiceErrorCode.REJECTED,
                coupon=coupon,
                customer=customer,
            )

        discount = calculate_discount(
            str(coupon.discount_type),
            coupon.discount_value,  # type: ignore[arg-type]
            order_amount,
            max_discount=coupon.max_discount,  # type: ignore[arg-type]
        )
        return CouponEvaluation(
            is_valid=True,
            message="Coupon is valid",
            coupon=coupon,
            customer=customer,
            discount=discount,
            order_amount=order_amount,
        )
