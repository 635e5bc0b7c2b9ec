from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.customer import Customer
from app.schemas.customer import CustomerCreate


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def get_by_email(self, email: str) -> Customer | None:
        return self.db.query(Customer).filter(Customer.email == email.strip().lower()).first()

    def create(self, data: CustomerCreate) -> Customer:
        customer = Customer(**data.model_dump())
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def get_or_create(self, data: CustomerCreate) -> Customer:
        """Return the customer for ``data.email``, creating it on first sight.

        A concurrent insert of the same email loses on the unique constraint and
        falls back to reading the winner's row.
        """
        existing = self.get_by_email(data.email)
        if existing:
            return existing
        try:
            return self.create(data)
        except IntegrityError:
            self.db.rollback()
            customer = self.get_by_email(data.email)
            if customer is None:
                raise
            return customer
