"""Return eligibility, submission, tracking and admin processing endpoints."""

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import require_admin
from app.core.database import get_db
from app.core.errors import raise_for_result
from app.core.idempotency import IdempotencyResult, check_idempotency, record_idempotency_response
from app.models.return_request import ReturnRequest, ReturnStatus
from app.schemas.return_request import (
    ReturnCreate,
    ReturnEligibilityResponse,
    ReturnResponse,
    ReturnStatusUpdate,
)
from app.services.return_service import ReturnService

router = APIRouter()


@router.get(
    "/eligibility/{order_id}",
    response_model=ReturnEligibilityResponse,
    summary="Check return eligibility",
    responses={404: {"description": "Order not found"}},
)
async def get_return_eligibility(
    order_id: str,
    db: Session = Depends(get_db),
) -> ReturnEligibilityResponse:
    """Report which lines of an order can be returned and until when."""
    result = ReturnService(db).get_return_eligibility(order_id)
    raise_for_result(result)
    return ReturnEligibilityResponse.model_validate(asdict(result.data))  # type: ignore[arg-type]


@router.post(
    "/",
    response_model=ReturnResponse,
    status_code=201,
    summary="Create return request",
    responses={
        400: {"description": "Order or items not eligible for return"},
        403: {"description": "Order belongs to another customer"},
        404: {"description": "Order or order item not found"},
        422: {"description": "Validation error"},
    },
)
async def create_return(
    data: ReturnCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> ReturnRequest | JSONResponse:
    """Submit a return and reserve the requested units on the order."""
    idempotency = check_idempotency(request, db, payload=data.model_dump(mode="json"))
    if isinstance(idempotency, JSONResponse):
        return idempotency

    result = ReturnService(db).create_return(data)
    raise_for_result(result)
    return_request = result.data
    assert return_request is not None

    if isinstance(idempotency, IdempotencyResult):
        body = ReturnResponse.model_validate(return_request).model_dump(mode="json")
        record_idempotency_response(db, idempotency, 201, body)

    return return_request


@router.get(
    "/",
    response_model=list[ReturnResponse],
    summary="List a customer's returns",
)
async def list_customer_returns(
    customer_id: UUID = Query(...),
    db: Session = Depends(get_db),
) -> list[ReturnRequest]:
    return ReturnService(db).list_customer_returns(customer_id)


@router.get(
    "/admin/all",
    response_model=list[ReturnResponse],
    summary="List all returns",
    dependencies=[Depends(require_admin)],
    responses={401: {"description": "Unauthorized"}},
)
async def list_all_returns(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: ReturnStatus | None = None,
    db: Session = Depends(get_db),
) -> list[ReturnRequest]:
    """List returns across all customers, newest first."""
    return ReturnService(db).list_returns(skip=skip, limit=limit, status=status)


@router.get(
    "/{return_id}",
    response_model=ReturnResponse,
    summary="Get return",
    responses={404: {"description": "Return request not found"}},
)
async def get_return(
    return_id: str,
    db: Session = Depends(get_db),
) -> ReturnRequest:
    """Get a return with its timeline."""
    return_request = ReturnService(db).get_return(return_id)
    if not return_request:
        raise HTTPException(status_code=404, detail="Return request not found")
    return return_request


@router.put(
    "/{return_id}",
    response_model=ReturnResponse,
    summary="Update return status",
    dependencies=[Depends(require_admin)],
    responses={
        400: {"description": "Transition not allowed"},
        401: {"description": "Unauthorized"},
        404: {"description": "Return request not found"},
        409: {"description": "Return was modified concurrently"},
    },
)
async def update_return_status(
    return_id: str,
    data: ReturnStatusUpdate,
    db: Session = Depends(get_db),
) -> ReturnRequest:
    """Move a return along its lifecycle and record the timeline entry."""
    result = ReturnService(db).transition_return(
        return_id,
        data.status,
        admin_notes=data.admin_notes,
        refund_amount=data.refund_amount,
    )
    raise_for_result(result)
    return result.data  # type: ignore[return-value]
