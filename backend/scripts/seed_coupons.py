"""Create the example coupons used by the storefront, skipping codes that exist."""

import logging
from decimal import Decimal

from app.core.database import SessionLocal, init_db
from app.models import CouponType, DiscountType
from app.schemas.coupon import CouponCreate
from app.services.coupon_service import CouponService

logger = logging.getLogger(__name__)

SEED_COUPONS = [
    CouponCreate(
        code="SAVE10",
        description="10% off orders of 100 or more, up to 50 off",
        coupon_type=CouponType.MINIMUM_AMOUNT,
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        minimum_amount=Decimal("100"),
        max_discount=Decimal("50"),
        usage_limit=1000,
    ),
    CouponCreate(
        code="WELCOME15",
        description="15% off your first order",
        coupon_type=CouponType.FIRST_ORDER,
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("15"),
        max_discount=Decimal("30"),
    ),
]


def seed_coupons() -> int:
    db = SessionLocal()
    try:
        service = CouponService(db)
        created = 0
        for data in SEED_COUPONS:
            result = service.create_coupon(data)
            if result.success:
                created += 1
            else:
                logger.info("Skipped coupon %s: %s", data.code, result.message)
        return created
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    print(f"Created {seed_coupons()} coupons")
