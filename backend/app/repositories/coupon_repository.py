"""Coupon repository for data access."""

from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.coupon import Coupon
from app.schemas.coupon import CouponCreate, CouponUpdate, normalize_coupon_code


class CouponRepository:
    """Repository for Coupon model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
    ) -> list[Coupon]:
        """Get all coupons, newest first, with an optional active filter."""
        query = self.db.query(Coupon)

        if is_active is not None:
            query = query.filter(Coupon.is_active == is_active)

        return query.order_by(Coupon.created_at.desc()).offset(skip).limit(limit).all()

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        """Get a coupon by ID."""
        return self.db.query(Coupon).filter(Coupon.id == coupon_id).first()

    def get_by_code(self, code: str) -> Coupon | None:
        """Get a coupon by code, case-insensitively."""
        return self.db.query(Coupon).filter(Coupon.code == normalize_coupon_code(code)).first()

    def create(self, data: CouponCreate) -> Coupon:
        """Create a new coupon."""
        coupon = Coupon(
            code=normalize_coupon_code(data.code),
            coupon_type=data.coupon_type.value,
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            minimum_amount=data.minimum_amount if data.minimum_amount is not None else 0,
            max_discount=data.max_discount,
            expiry_date=data.expiry_date,
            usage_limit=data.usage_limit,
            is_active=data.is_active,
            description=data.description,
            used_count=0,
        )
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def update(self, code: str, data: CouponUpdate) -> Coupon | None:
        """Update a coupon by code."""
        coupon = self.get_by_code(code)
        if not coupon:
            return None

        update_data = data.model_dump(exclude_unset=True)

        for enum_field in ("coupon_type", "discount_type"):
            if update_data.get(enum_field):
                update_data[enum_field] = update_data[enum_field].value

        for key, value in update_data.items():
            setattr(coupon, key, value)

        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def set_active(self, code: str, is_active: bool) -> Coupon | None:
        """Activate or deactivate a coupon by code."""
        coupon = self.get_by_code(code)
        if not coupon:
            return None

        coupon.is_active = is_active  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete(self, code: str) -> bool:
        """Delete a coupon by code."""
        coupon = self.get_by_code(code)
        if not coupon:
            return False

        self.db.delete(coupon)
        self.db.commit()
        return True

    def increment_usage(self, coupon_id: UUID) -> bool:
        """Atomically consume one use of an active coupon with quota left.

        Issued as a single guarded ``UPDATE``; returns False when the guard
        rejects the row (inactive, or ``used_count`` already at ``usage_limit``).
        Does not commit: the caller owns the transaction.
        """
        updated = (
            self.db.query(Coupon)
            .filter(
                Coupon.id == coupon_id,
                Coupon.is_active.is_(True),
                or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
            )
            .update(
                {Coupon.used_count: Coupon.used_count + 1},
                synchronize_session=False,
            )
        )
        return bool(updated)
