from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import EmailStr
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.core.database import get_db
from app.core.errors import raise_for_result
from app.core.idempotency import IdempotencyResult, check_idempotency, record_idempotency_response
from app.models.order import Order
from app.repositories.customer_repository import CustomerRepository
from app.repositories.order_repository import OrderRepository
from app.schemas.order import OrderCreate, OrderResponse, OrderUpdate
from app.services.order_service import OrderService

router = APIRouter()


@router.post(
    "/",
    response_model=OrderResponse,
    status_code=201,
    summary="Place order",
    responses={422: {"description": "Validation error"}},
)
async def create_order(
    data: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> Order | JSONResponse:
    """Place an order at checkout, registering the customer on first purchase."""
    idempotency = check_idempotency(request, db, payload=data.model_dump(mode="json"))
    if isinstance(idempotency, JSONResponse):
        return idempotency

    order = OrderService(db).place_order(data)

    if isinstance(idempotency, IdempotencyResult):
        body = OrderResponse.model_validate(order).model_dump(mode="json")
        record_idempotency_response(db, idempotency, 201, body)

    return order


@router.get(
    "/",
    response_model=list[OrderResponse],
    summary="List a customer's orders",
)
async def list_orders(
    email: EmailStr = Query(...),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Order]:
    customer = CustomerRepository(db).get_by_email(str(email))
    if not customer:
        return []
    return OrderRepository(db).get_by_customer_id(
        customer.id, skip=skip, limit=limit  # type: ignore[arg-type]
    )


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
    responses={404: {"description": "Order not found"}},
)
async def get_order(
    order_id: str,
    db: Session = Depends(get_db),
) -> Order:
    """Get an order by its ``ORD-...`` identifier."""
    order = OrderRepository(db).get_by_order_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.patch(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Update order",
    dependencies=[Depends(require_admin)],
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Order not found"},
        422: {"description": "Validation error"},
    },
)
async def update_order(
    order_id: str,
    data: OrderUpdate,
    db: Session = Depends(get_db),
) -> Order:
    """Update fulfilment fields; delivering an order opens its return window."""
    result = OrderService(db).update_order(order_id, data)
    raise_for_result(result)
    return result.data  # type: ignore[return-value]
