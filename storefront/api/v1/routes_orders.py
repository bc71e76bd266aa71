from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.api.v1.schemas import (
    MessageOut,
    OrderCreate,
    OrderEnvelope,
    OrderList,
    OrderOut,
    StatusUpdate,
)
from storefront.core.auth import can_manage_order, get_current_identity, require_admin
from storefront.core.config import settings
from storefront.store import order_store
from storefront.store.order_store import AmountMismatch, OrderNotFound

router = APIRouter()  # main.py mounts at /api/v1/orders


def _out(orders) -> List[OrderOut]:
    return [OrderOut.model_validate(o) for o in orders]


def _owned_order(order_id: int, identity: dict, db: Session):
    try:
        order = order_store.get_order(db, order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    if not can_manage_order(identity, order):
        raise HTTPException(status_code=403, detail="Not allowed to access this order")
    return order


@router.post("", response_model=OrderEnvelope, status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, identity: dict = Depends(get_current_identity), db: Session = Depends(get_db)):
    try:
        order = order_store.create_order(db, identity["uid"], payload, verify_amount=settings.VERIFY_ORDER_AMOUNT)
    except AmountMismatch as e:
        raise HTTPException(status_code=400, detail=e.message)
    return OrderEnvelope(success=True, message="Order created successfully", order=OrderOut.model_validate(order))


@router.get("/user", response_model=OrderList)
def get_user_orders(identity: dict = Depends(get_current_identity), db: Session = Depends(get_db)):
    orders = order_store.list_for_user(db, identity["uid"])
    return OrderList(message="Orders retrieved successfully", orders=_out(orders))


@router.get("", response_model=OrderList)
@router.get("/admin", response_model=OrderList)
def get_orders(_: dict = Depends(require_admin), db: Session = Depends(get_db)):
    return OrderList(message="Orders fetched successfully", orders=_out(order_store.list_all(db)))


@router.get("/{order_id}", response_model=OrderEnvelope)
def get_order(order_id: int, identity: dict = Depends(get_current_identity), db: Session = Depends(get_db)):
    order = _owned_order(order_id, identity, db)
    return OrderEnvelope(success=True, order=OrderOut.model_validate(order))


@router.patch("/{order_id}/status", response_model=OrderEnvelope)
def update_order_status(order_id: int, payload: StatusUpdate, _: dict = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        order = order_store.update_status(db, order_id, payload.status)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    return OrderEnvelope(
        success=True,
        message=f"Order status updated to {order.status.value}",
        order=OrderOut.model_validate(order),
    )


@router.delete("/{order_id}", response_model=MessageOut)
def delete_order(order_id: int, identity: dict = Depends(get_current_identity), db: Session = Depends(get_db)):
    order = _owned_order(order_id, identity, db)
    order_store.delete_order(db, order)
    return MessageOut(message="Order deleted successfully")
