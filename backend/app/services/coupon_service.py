"""Coupon service: validation, redemption, history and catalog management."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.coupon import Coupon, DiscountType
from app.models.order import Order
from app.models.shared import ensure_utc, utc_now
from app.repositories.coupon_redemption_repository import CouponRedemptionRepository
from app.repositories.coupon_repository import CouponRepository
from app.repositories.customer_repository import CustomerRepository
from app.repositories.order_repository import OrderRepository
from app.schemas.coupon import (
    CouponAnalyticsEntry,
    CouponCreate,
    CouponHistoryOrder,
    CouponHistoryResponse,
    CouponUpdate,
    normalize_coupon_code,
)
from app.services.coupon_eligibility import (
    USAGE_LIMIT_EXCEEDED,
    CouponEligibilityEvaluator,
    CouponEvaluation,
    unavailability_reason,
)
from app.services.results import ServiceErrorCode, ServiceResult

logger = logging.getLogger(__name__)

ORDER_ALREADY_DISCOUNTED = "Order already has a coupon applied"


@dataclass
class AppliedCoupon:
    """Pricing stamped on an order by a redemption."""

    order_id: str
    coupon_code: str
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    applied_at: datetime
    replayed: bool = False


class CouponService:
    """Service for coupon validation, redemption and catalog management."""

    def __init__(self, db: Session):
        self.db = db
        self.coupon_repo = CouponRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.order_repo = OrderRepository(db)
        self.redemption_repo = CouponRedemptionRepository(db)
        self.evaluator = CouponEligibilityEvaluator(db)

    def validate_coupon(
        self,
        code: str,
        order_amount: Decimal,
        email: str,
        now: datetime | None = None,
    ) -> CouponEvaluation:
        """Read-only eligibility check; safe to call any number of times."""
        return self.evaluator.evaluate(code, order_amount, email, now=now)

    def apply_coupon(
        self,
        code: str,
        order_amount: Decimal,
        order_id: str,
        email: str,
        now: datetime | None = None,
    ) -> ServiceResult[AppliedCoupon]:
        """Redeem a coupon against an order exactly once.

        Validation is re-run here rather than trusted from an earlier call.
        The usage increment, the one-time order pricing write and the ledger
        row are committed together; a repeated call for the same order and
        code replays the stored pricing without consuming another use.
        The customer is not created here: every order already has an owner,
        so an email that does not own the order is rejected as unauthorized.

        Args:
            code: Coupon code, any case.
            order_amount: The undiscounted order amount.
            order_id: Human-readable order identifier (``ORD-...``).
            email: Email of the customer redeeming the coupon.

        Returns:
            ServiceResult carrying the applied pricing, or the failure reason.
        """
        code = normalize_coupon_code(code)
        email = email.strip().lower()

        order = self.order_repo.get_by_order_id(order_id)
        if not order:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Order not found")

        if order.coupon_code:
            if order.coupon_code == code:
                return ServiceResult.ok(self._replay(order), "Coupon already applied to this order")
            return ServiceResult.fail(ServiceErrorCode.CONFLICT, ORDER_ALREADY_DISCOUNTED)

        customer = self.customer_repo.get_by_email(email)
        if customer is None or customer.id != order.customer_id:
            return ServiceResult.fail(
                ServiceErrorCode.UNAUTHORIZED, "Order does not belong to this customer"
            )

        evaluation = self.evaluator.evaluate(
            code, order_amount, email, now=now, exclude_order_id=order.id  # type: ignore[arg-type]
        )
        if not evaluation.is_valid:
            return ServiceResult.fail(
                evaluation.error or ServiceErrorCode.REJECTED, evaluation.message
            )

        coupon = evaluation.coupon
        discount = evaluation.discount
        assert coupon is not None and discount is not None

        coupon_id = coupon.id
        order_pk = order.id
        order_public_id = str(order.order_id)
        customer_id = customer.id

        try:
            if not self.coupon_repo.increment_usage(coupon_id):  # type: ignore[arg-type]
                self.db.rollback()
                message = self._lost_quota_reason(code, now)
                logger.warning(
                    "Coupon %s redemption on %s lost: %s", code, order_public_id, message
                )
                return ServiceResult.fail(ServiceErrorCode.REJECTED, message)

            if not self.order_repo.write_pricing_once(
                order_pk,  # type: ignore[arg-type]
                code,
                original_amount=order_amount,
                discount_amount=discount.discount_amount,
                final_amount=discount.final_amount,
            ):
                self.db.rollback()
                return self._resolve_existing_pricing(order_public_id, code)

            self.redemption_repo.add(
                order_public_id=order_public_id,
                order_id=order_pk,  # type: ignore[arg-type]
                coupon_id=coupon_id,  # type: ignore[arg-type]
                coupon_code=code,
                customer_id=customer_id,  # type: ignore[arg-type]
                original_amount=order_amount,
                discount_amount=discount.discount_amount,
                final_amount=discount.final_amount,
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.redemption_repo.get_by_order_id(order_pk)  # type: ignore[arg-type]
            if existing is not None:
                return self._resolve_existing_pricing(order_public_id, code)
            logger.warning("Coupon %s already redeemed by customer %s", code, customer_id)
            return ServiceResult.fail(
                ServiceErrorCode.REJECTED, "You have already used this coupon"
            )

        logger.info(
            "Applied coupon %s to order %s: %s off %s",
            code,
            order_public_id,
            discount.discount_amount,
            order_amount,
        )
        applied = self.order_repo.get_by_order_id(order_public_id)
        assert applied is not None
        return ServiceResult.ok(
            self._replay(applied, replayed=False), "Coupon applied successfully"
        )

    def get_coupon_history(self, email: str) -> CouponHistoryResponse:
        """Orders on which the customer redeemed a coupon, and the total saved."""
        customer = self.customer_repo.get_by_email(email)
        if not customer:
            return CouponHistoryResponse(orders=[], total_saved=Decimal("0"), coupons_used=0)

        orders = self.order_repo.get_coupon_orders(customer.id)  # type: ignore[arg-type]
        total_saved = sum(
            (Decimal(str(order.coupon_discount or 0)) for order in orders), Decimal("0")
        )
        return CouponHistoryResponse(
            orders=[CouponHistoryOrder.model_validate(order) for order in orders],
            total_saved=total_saved,
            coupons_used=len(orders),
        )

    # Catalog management

    def create_coupon(
        self, data: CouponCreate, now: datetime | None = None
    ) -> ServiceResult[Coupon]:
        now = now or utc_now()
        if self.coupon_repo.get_by_code(data.code):
            return ServiceResult.fail(ServiceErrorCode.CONFLICT, "Coupon code already exists")
        if data.expiry_date is not None and ensure_utc(data.expiry_date) <= now:
            return ServiceResult.fail(
                ServiceErrorCode.VALIDATION, "Expiry date must be in the future"
            )
        coupon = self.coupon_repo.create(data)
        logger.info("Created coupon %s", coupon.code)
        return ServiceResult.ok(coupon, "Coupon created successfully")

    def update_coupon(self, code: str, data: CouponUpdate) -> ServiceResult[Coupon]:
        coupon = self.coupon_repo.get_by_code(code)
        if not coupon:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Coupon not found")

        changes = data.model_dump(exclude_unset=True)
        discount_type = changes.get("discount_type") or DiscountType(str(coupon.discount_type))
        discount_value = changes.get("discount_value") or coupon.discount_value
        if discount_type == DiscountType.PERCENTAGE and discount_value > 100:
            return ServiceResult.fail(
                ServiceErrorCode.VALIDATION, "Percentage discount cannot exceed 100%"
            )

        # Zero is a valid minimum; only clearing the value is refused.
        if changes.get("minimum_amount", coupon.minimum_amount) is None:
            return ServiceResult.fail(
                ServiceErrorCode.VALIDATION, "minimum_amount cannot be cleared"
            )

        usage_limit = changes.get("usage_limit")
        if usage_limit is not None and usage_limit < coupon.used_count:
            return ServiceResult.fail(
                ServiceErrorCode.VALIDATION,
                f"Usage limit cannot be lower than the current usage ({coupon.used_count})",
            )

        updated = self.coupon_repo.update(code, data)
        assert updated is not None
        return ServiceResult.ok(updated, "Coupon updated successfully")

    def delete_coupon(self, code: str) -> ServiceResult[None]:
        coupon = self.coupon_repo.get_by_code(code)
        if not coupon:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Coupon not found")
        if coupon.used_count > 0:
            return ServiceResult.fail(
                ServiceErrorCode.REJECTED,
                "Cannot delete a coupon that has been used. Deactivate it instead.",
            )
        self.coupon_repo.delete(code)
        logger.info("Deleted coupon %s", code)
        return ServiceResult(success=True, message="Coupon deleted successfully")

    def toggle_coupon_status(self, code: str) -> ServiceResult[Coupon]:
        coupon = self.coupon_repo.get_by_code(code)
        if not coupon:
            return ServiceResult.fail(ServiceErrorCode.NOT_FOUND, "Coupon not found")
        updated = self.coupon_repo.set_active(code, not coupon.is_active)
        assert updated is not None
        state = "activated" if updated.is_active else "deactivated"
        return ServiceResult.ok(updated, f"Coupon {state} successfully")

    def get_coupon_analytics(self, code: str | None = None) -> list[CouponAnalyticsEntry]:
        if code:
            coupon = self.coupon_repo.get_by_code(code)
            coupons = [coupon] if coupon else []
        else:
            coupons = self.coupon_repo.get_all(limit=1000)

        entries = []
        for coupon in coupons:
            usage_percentage = None
            if coupon.usage_limit:
                usage_percentage = round(coupon.used_count / coupon.usage_limit * 100, 2)
            entries.append(
                CouponAnalyticsEntry(
                    code=str(coupon.code),
                    coupon_type=str(coupon.coupon_type),
                    discount_type=str(coupon.discount_type),
                    discount_value=coupon.discount_value,  # type: ignore[arg-type]
                    used_count=coupon.used_count,  # type: ignore[arg-type]
                    usage_limit=coupon.usage_limit,  # type: ignore[arg-type]
                    is_active=bool(coupon.is_active),
                    usage_percentage=usage_percentage,
                    created_at=coupon.created_at,  # type: ignore[arg-type]
                )
            )
        return entries

    def _lost_quota_reason(self, code: str, now: datetime | None) -> str:
        """Explain why the guarded increment refused, after another writer won."""
        coupon = self.coupon_repo.get_by_code(code)
        if coupon is None:
            return "Coupon not found"
        return unavailability_reason(coupon, now or utc_now()) or USAGE_LIMIT_EXCEEDED

    def _resolve_existing_pricing(
        self, order_public_id: str, code: str
    ) -> ServiceResult[AppliedCoupon]:
        order = self.order_repo.get_by_order_id(order_public_id)
        if order is not None and order.coupon_code == code:
            return ServiceResult.ok(self._replay(order), "Coupon already applied to this order")
        return ServiceResult.fail(ServiceErrorCode.CONFLICT, ORDER_ALREADY_DISCOUNTED)

    def _replay(self, order: Order, replayed: bool = True) -> AppliedCoupon:
        redemption = self.redemption_repo.get_by_order_id(order.id)  # type: ignore[arg-type]
        applied_at = redemption.created_at if redemption is not None else order.updated_at
        return AppliedCoupon(
            order_id=str(order.order_id),
            coupon_code=str(order.coupon_code),
            original_amount=Decimal(str(order.original_amount)),
            discount_amount=Decimal(str(order.coupon_discount)),
            final_amount=Decimal(str(order.total_price)),
            applied_at=applied_at or utc_now(),  # type: ignore[arg-type]
            replayed=replayed,
        )
