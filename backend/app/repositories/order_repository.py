"""Order repository: order store plus the guarded per-item return counters."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models.order import Order
from app.models.order_item import ItemReturnStatus, OrderItem
from app.schemas.order import OrderCreate, OrderUpdate


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, order_id: UUID) -> Order | None:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def lock(self, order_id: UUID) -> Order | None:
        """Reload an order under a row lock held until the transaction ends.

        Writers that re-derive the order's aggregates take this lock first, so
        they run one at a time and each sees the others' committed lines.
        """
        return (
            self.db.query(Order)
            .filter(Order.id == order_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_order_id(self, order_id: str) -> Order | None:
        """Get an order by its human-readable ``ORD-...`` identifier."""
        return self.db.query(Order).filter(Order.order_id == order_id).first()

    def get_by_customer_id(self, customer_id: UUID, skip: int = 0, limit: int = 100) -> list[Order]:
        return (
            self.db.query(Order)
            .filter(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def create(self, data: OrderCreate, customer_id: UUID) -> Order:
        subtotal = data.subtotal
        if subtotal is None:
            subtotal = sum((item.price * item.quantity for item in data.items), Decimal("0"))
        total = subtotal + data.shipping + data.tax

        order = Order(
            customer_id=customer_id,
            shipping_address=data.shipping_address.model_dump(),
            payment_method=data.payment_method,
            subtotal=subtotal,
            shipping=data.shipping,
            tax=data.tax,
            original_amount=total,
            total_price=total,
        )
        order.items = [
            OrderItem(position=position, **item.model_dump())
            for position, item in enumerate(data.items)
        ]
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def update(self, order: Order, data: OrderUpdate) -> Order:
        for key, value in data.model_dump(exclude_unset=True).items():
            if key == "status" and value is not None:
                value = value.value
            setattr(order, key, value)
        self.db.commit()
        self.db.refresh(order)
        return order

    def count_by_customer(self, customer_id: UUID, exclude_order_id: UUID | None = None) -> int:
        query = self.db.query(func.count(Order.id)).filter(Order.customer_id == customer_id)
        if exclude_order_id is not None:
            query = query.filter(Order.id != exclude_order_id)
        return int(query.scalar() or 0)

    def find_existing_redemption(
        self,
        customer_id: UUID,
        coupon_code: str,
        exclude_order_id: UUID | None = None,
    ) -> Order | None:
        """Find an order of this customer that already carries ``coupon_code``."""
        query = self.db.query(Order).filter(
            Order.customer_id == customer_id,
            Order.coupon_code == coupon_code.upper(),
        )
        if exclude_order_id is not None:
            query = query.filter(Order.id != exclude_order_id)
        return query.first()

    def get_coupon_orders(self, customer_id: UUID) -> list[Order]:
        return (
            self.db.query(Order)
            .filter(Order.customer_id == customer_id, Order.coupon_code.isnot(None))
            .order_by(Order.created_at.desc())
            .all()
        )

    def write_pricing_once(
        self,
        order_id: UUID,
        coupon_code: str,
        original_amount: Decimal,
        discount_amount: Decimal,
        final_amount: Decimal,
    ) -> bool:
        """Stamp coupon pricing on an order that has none yet.

        Returns False if the order already carries a coupon. Does not commit.
        """
        updated = (
            self.db.query(Order)
            .filter(Order.id == order_id, Order.coupon_code.is_(None))
            .update(
                {
                    Order.coupon_code: coupon_code,
                    Order.original_amount: original_amount,
                    Order.coupon_discount: discount_amount,
                    Order.total_price: final_amount,
                },
                synchronize_session=False,
            )
        )
        return bool(updated)

    def reserve_return_quantity(self, order_item_id: UUID, quantity: int) -> bool:
        """Atomically add ``quantity`` to an item's returned units if enough remain.

        Does not commit.
        """
        updated = (
            self.db.query(OrderItem)
            .filter(
                OrderItem.id == order_item_id,
                OrderItem.quantity - OrderItem.return_quantity >= quantity,
            )
            .update(
                {
                    OrderItem.return_quantity: OrderItem.return_quantity + quantity,
                    OrderItem.return_status: ItemReturnStatus.REQUESTED.value,
                },
                synchronize_session=False,
            )
        )
        return bool(updated)

    def release_return_quantity(self, order_item_id: UUID, quantity: int) -> bool:
        """Atomically give back ``quantity`` previously reserved units.

        The item's return status reverts to ``none`` once nothing remains
        reserved. Does not commit.
        """
        remaining = OrderItem.return_quantity - quantity
        updated = (
            self.db.query(OrderItem)
            .filter(OrderItem.id == order_item_id, OrderItem.return_quantity >= quantity)
            .update(
                {
                    OrderItem.return_quantity: remaining,
                    OrderItem.return_status: case(
                        (remaining == 0, ItemReturnStatus.NONE.value),
                        else_=OrderItem.return_status,
                    ),
                },
                synchronize_session=False,
            )
        )
        return bool(updated)

    def set_item_return_status(self, order_item_ids: list[UUID], status: ItemReturnStatus) -> int:
        """Does not commit."""
        if not order_item_ids:
            return 0
        return int(
            self.db.query(OrderItem)
            .filter(OrderItem.id.in_(order_item_ids))
            .update({OrderItem.return_status: status.value}, synchronize_session=False)
        )
