"""Coupon validation, redemption, history and catalog endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import EmailStr
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import raise_for_result
from app.core.idempotency import IdempotencyResult, check_idempotency, record_idempotency_response
from app.core.rate_limiter import RateLimiter
from app.models.coupon import Coupon
from app.repositories.coupon_repository import CouponRepository
from app.schemas.coupon import (
    CouponAnalyticsEntry,
    CouponApplyRequest,
    CouponApplyResponse,
    CouponCreate,
    CouponHistoryResponse,
    CouponResponse,
    CouponSummary,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidationResponse,
    DiscountDetails,
    OrderPricing,
)
from app.services.coupon_service import CouponService

logger = logging.getLogger(__name__)

router = APIRouter()

# Attempts per email, shared across instances through the database
validation_rate_limiter = RateLimiter(
    scope="coupon_validation",
    max_requests=settings.COUPON_VALIDATION_ATTEMPTS_PER_MINUTE,
    window_seconds=60,
)


def _check_validation_rate_limit(email: str, db: Session) -> None:
    if not validation_rate_limiter.is_allowed(db, email.strip().lower()):
        logger.warning("Coupon validation rate limit hit for %s", email)
        raise HTTPException(
            status_code=429,
            detail="Too many coupon attempts. Maximum "
            f"{settings.COUPON_VALIDATION_ATTEMPTS_PER_MINUTE} per minute.",
            headers={"Retry-After": str(validation_rate_limiter.window_seconds)},
        )


@router.post(
    "/validate",
    response_model=CouponValidationResponse,
    summary="Validate coupon",
    responses={
        400: {"description": "Coupon cannot be used for this order"},
        404: {"description": "Coupon not found"},
        429: {"description": "Too many validation attempts"},
    },
)
async def validate_coupon(
    data: CouponValidateRequest,
    db: Session = Depends(get_db),
) -> CouponValidationResponse:
    """Check a coupon against an order amount without consuming it."""
    _check_validation_rate_limit(data.email, db)

    evaluation = CouponService(db).validate_coupon(data.code, data.order_amount, data.email)
    if not evaluation.is_valid:
        status_code = 404 if evaluation.coupon is None else 400
        raise HTTPException(status_code=status_code, detail=evaluation.message)

    coupon = evaluation.coupon
    discount = evaluation.discount
    assert coupon is not None and discount is not None
    return CouponValidationResponse(
        message=evaluation.message,
        coupon=CouponSummary(
            id=coupon.id,  # type: ignore[arg-type]
            code=str(coupon.code),
            coupon_type=str(coupon.coupon_type),
            description=str(coupon.description or ""),
        ),
        discount=DiscountDetails(
            discount_type=str(coupon.discount_type),
            value=coupon.discount_value,  # type: ignore[arg-type]
            amount=discount.discount_amount,
            max_discount=coupon.max_discount,  # type: ignore[arg-type]
        ),
        order=OrderPricing(
            original_amount=data.order_amount,
            discount_amount=discount.discount_amount,
            final_amount=discount.final_amount,
        ),
    )


@router.post(
    "/apply",
    response_model=CouponApplyResponse,
    summary="Apply coupon to order",
    responses={
        400: {"description": "Coupon cannot be used for this order"},
        403: {"description": "Order does not belong to this customer"},
        404: {"description": "Coupon or order not found"},
        409: {"description": "Order already has a different coupon"},
    },
)
async def apply_coupon(
    data: CouponApplyRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> CouponApplyResponse | JSONResponse:
    """Redeem a coupon against an order.

    Repeating the call for the same order and code returns the stored
    pricing without consuming another use.
    """
    idempotency = check_idempotency(request, db, payload=data.model_dump(mode="json"))
    if isinstance(idempotency, JSONResponse):
        return idempotency

    result = CouponService(db).apply_coupon(
        data.code, data.order_amount, data.order_id, data.email
    )
    raise_for_result(result)
    applied = result.data
    assert applied is not None

    response = CouponApplyResponse(
        message=result.message,
        order_id=applied.order_id,
        coupon_code=applied.coupon_code,
        original_amount=applied.original_amount,
        discount_amount=applied.discount_amount,
        final_amount=applied.final_amount,
        applied_at=applied.applied_at,
        replayed=applied.replayed,
    )
    if isinstance(idempotency, IdempotencyResult):
        record_idempotency_response(db, idempotency, 200, response.model_dump(mode="json"))
    return response


@router.get(
    "/history",
    response_model=CouponHistoryResponse,
    summary="Customer coupon history",
)
async def get_coupon_history(
    email: EmailStr = Query(...),
    db: Session = Depends(get_db),
) -> CouponHistoryResponse:
    """Orders on which the customer used a coupon, and the total saved."""
    return CouponService(db).get_coupon_history(str(email))


@router.get(
    "/analytics",
    response_model=list[CouponAnalyticsEntry],
    summary="Coupon usage analytics",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Unauthorized"}},
)
async def get_coupon_analytics(
    code: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[CouponAnalyticsEntry]:
    return CouponService(db).get_coupon_analytics(code)


@router.post(
    "/",
    response_model=CouponResponse,
    status_code=201,
    summary="Create coupon",
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized"},
        409: {"description": "Coupon with this code already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_coupon(
    data: CouponCreate,
    db: Session = Depends(get_db),
) -> Coupon:
    """Create a new coupon."""
    result = CouponService(db).create_coupon(data)
    raise_for_result(result)
    return result.data  # type: ignore[return-value]


@router.get(
    "/",
    response_model=list[CouponResponse],
    summary="List coupons",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Unauthorized"}},
)
async def list_coupons(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    is_active: bool | None = None,
    db: Session = Depends(get_db),
) -> list[Coupon]:
    """List coupons with an optional active filter."""
    return CouponRepository(db).get_all(skip=skip, limit=limit, is_active=is_active)


@router.get(
    "/{code}",
    response_model=CouponResponse,
    summary="Get coupon",
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
async def get_coupon(
    code: str,
    db: Session = Depends(get_db),
) -> Coupon:
    """Get a coupon by code."""
    coupon = CouponRepository(db).get_by_code(code)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.put(
    "/{code}",
    response_model=CouponResponse,
    summary="Update coupon",
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
        422: {"description": "Validation error"},
    },
)
async def update_coupon(
    code: str,
    data: CouponUpdate,
    db: Session = Depends(get_db),
) -> Coupon:
    """Update a coupon by code."""
    result = CouponService(db).update_coupon(code, data)
    raise_for_result(result)
    return result.data  # type: ignore[return-value]


@router.patch(
    "/{code}/toggle",
    response_model=CouponResponse,
    summary="Toggle coupon active state",
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
async def toggle_coupon(
    code: str,
    db: Session = Depends(get_db),
) -> Coupon:
    result = CouponService(db).toggle_coupon_status(code)
    raise_for_result(result)
    return result.data  # type: ignore[return-value]


@router.delete(
    "/{code}",
    status_code=204,
    summary="Delete coupon",
    dependencies=[Depends(require_admin)],
    responses={
        400: {"description": "Coupon has been used"},
        401: {"description": "Unauthorized"},
        404: {"description": "Coupon not found"},
    },
)
async def delete_coupon(
    code: str,
    db: Session = Depends(get_db),
) -> Response:
    """Delete a coupon that has never been redeemed."""
    result = CouponService(db).delete_coupon(code)
    raise_for_result(result)
    return Response(status_code=204)
