"""Persistence for orders.

Status transitions are unguarded: any of the five statuses may
replace any other, including moves backwards out of ``delivered``. Concurrent
updates to the same order are last-write-wins.
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.core.enums import OrderStatus
from storefront.db.models import Order, OrderItem
from storefront.security.utils import now_utc

logger = logging.getLogger(__name__)


class OrderStoreError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class OrderNotFound(OrderStoreError):
    def __init__(self, order_id: int):
        super().__init__("Order not found")
        self.order_id = order_id


class AmountMismatch(OrderStoreError):
    def __init__(self, submitted: float, computed: float):
        super().__init__(f"Order amount {submitted} does not match item total {computed}")
        self.submitted = submitted
        self.computed = computed


def create_order(db: Session, user_id: int, payload, verify_amount: bool = False) -> Order:
    """Persist a new ``pending`` order from a validated ``OrderCreate``.

    The submitted amount is stored as-is unless ``verify_amount`` is set, in
    which case it must equal the sum of price * quantity over the items.
    """
    if verify_amount:
        computed = payload.items_total()
        if round(payload.amount, 2) != computed:
            raise AmountMismatch(payload.amount, computed)

    ts = now_utc()
    order = Order(
        user_id=user_id,
        amount=payload.amount,
        address=payload.address.model_dump(),
        payment_method=payload.payment_method,
        status=OrderStatus.PENDING,
        created_at=ts,
        updated_at=ts,
    )
    for it in payload.items:
        order.items.append(
            OrderItem(
                product_id=it.product_id,
                name=it.name,
                image=it.image,
                price=it.price,
                quantity=it.quantity,
            )
        )
    db.add(order); db.commit(); db.refresh(order)
    logger.info("order %s created for user %s (amount=%s, items=%d)", order.id, user_id, order.amount, len(order.items))
    return order


def list_for_user(db: Session, user_id: int) -> List[Order]:
    stmt = (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def list_all(db: Session) -> List[Order]:
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    return list(db.execute(stmt).scalars().all())


def find_order(db: Session, order_id: int) -> Optional[Order]:
    return db.get(Order, order_id)


def get_order(db: Session, order_id: int) -> Order:
    order = find_order(db, order_id)
    if not order:
        raise OrderNotFound(order_id)
    return order


def update_status(db: Session, order_id: int, status: OrderStatus) -> Order:
    order = get_order(db, order_id)
    previous = order.status
    order.status = status
    order.updated_at = now_utc()
    db.add(order); db.commit(); db.refresh(order)
    logger.info("order %s status %s -> %s", order.id, getattr(previous, "value", previous), order.status.value)
    return order


def delete_order(db: Session, order: Order) -> None:
    order_id = order.id
    db.delete(order); db.commit()
    logger.info("order %s deleted", order_id)
