from app.schemas.coupon import (
    CouponAnalyticsEntry,
    CouponApplyRequest,
    CouponApplyResponse,
    CouponCreate,
    CouponHistoryResponse,
    CouponResponse,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidationResponse,
)
from app.schemas.customer import CustomerCreate, CustomerResponse
from app.schemas.order import OrderCreate, OrderItemCreate, OrderResponse, OrderUpdate
from app.schemas.return_request import (
    ReturnCreate,
    ReturnEligibilityResponse,
    ReturnItemCreate,
    ReturnResponse,
    ReturnStatusUpdate,
)

__all__ = [
    "CouponAnalyticsEntry",
    "CouponApplyRequest",
    "CouponApplyResponse",
    "CouponCreate",
    "CouponHistoryResponse",
    "CouponResponse",
    "CouponUpdate",
    "CouponValidateRequest",
    "CouponValidationResponse",
    "CustomerCreate",
    "CustomerResponse",
    "OrderCreate",
    "OrderItemCreate",
    "OrderResponse",
    "OrderUpdate",
    "ReturnCreate",
    "ReturnEligibilityResponse",
    "ReturnItemCreate",
    "ReturnResponse",
    "ReturnStatusUpdate",
]
