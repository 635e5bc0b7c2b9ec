from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.coupon_redemption import CouponRedemption, redemption_key


class CouponRedemptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_key(self, order_public_id: str, coupon_code: str) -> CouponRedemption | None:
        return (
            self.db.query(CouponRedemption)
            .filter(
                CouponRedemption.idempotency_key == redemption_key(order_public_id, coupon_code)
            )
            .first()
        )

    def get_by_order_id(self, order_id: UUID) -> CouponRedemption | None:
        return self.db.query(CouponRedemption).filter(CouponRedemption.order_id == order_id).first()

    def add(
        self,
        *,
        order_public_id: str,
        order_id: UUID,
        coupon_id: UUID,
        coupon_code: str,
        customer_id: UUID,
        original_amount: Decimal,
        discount_amount: Decimal,
        final_amount: Decimal,
    ) -> CouponRedemption:
        """Stage a redemption row and flush it so unique violations surface here.

        Does not commit.
        """
        redemption = CouponRedemption(
            idempotency_key=redemption_key(order_public_id, coupon_code),
            order_id=order_id,
            coupon_id=coupon_id,
            coupon_code=coupon_code.upper(),
            customer_id=customer_id,
            original_amount=original_amount,
            discount_amount=discount_amount,
            final_amount=final_amount,
        )
        self.db.add(redemption)
        self.db.flush()
        return redemption
