from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.customer import Customer
from app.repositories.customer_repository import CustomerRepository
from app.schemas.customer import CustomerCreate, CustomerResponse

router = APIRouter()


@router.post(
    "/",
    response_model=CustomerResponse,
    summary="Find or create customer",
    responses={422: {"description": "Validation error"}},
)
async def find_or_create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
) -> Customer:
    """Return the customer registered under this email, creating it if needed."""
    return CustomerRepository(db).get_or_create(data)


@router.get(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Get customer",
    responses={404: {"description": "Customer not found"}},
)
async def get_customer(
    customer_id: UUID,
    db: Session = Depends(get_db),
) -> Customer:
    customer = CustomerRepository(db).get_by_id(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer
