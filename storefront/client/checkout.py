"""Turns the cart into an order.

Nothing is sent when the local checks fail. The cart is cleared only after the
server has confirmed the order; on any failure it is left as it was so the
user can simply try again. There is no automatic retry and no idempotency key,
so submitting twice can create two orders.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from storefront.client.cart import CartStore
from storefront.client.http import ApiError
from storefront.client.orders import OrdersApi, OrderState
from storefront.core.enums import PaymentMethod

logger = logging.getLogger(__name__)

REQUIRED_ADDRESS_FIELDS = ("street", "city", "zip", "country")


class CheckoutValidationError(Exception):
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


@dataclass
class CheckoutResult:
    success: bool
    order: Optional[dict] = None
    message: Optional[str] = None
    cancelled: bool = False


def validate_address(address: Optional[dict]) -> dict:
    address = address or {}
    for field in REQUIRED_ADDRESS_FIELDS:
        value = address.get(field)
        if not isinstance(value, str) or not value.strip():
            raise CheckoutValidationError(field, f"{field} required")
    cleaned = {f: address[f].strip() for f in REQUIRED_ADDRESS_FIELDS}
    cleaned["state"] = (address.get("state") or "").strip()
    return cleaned


def validate_payment_method(method: str) -> str:
    if method not in {m.value for m in PaymentMethod}:
        raise CheckoutValidationError("paymentMethod", f"Unsupported payment method: {method}")
    return method


class CheckoutFlow:
    def __init__(self, cart: CartStore, orders_api: OrdersApi, state: Optional[OrderState] = None):
        self.cart = cart
        self.orders_api = orders_api
        self.state = state or OrderState()
        self._listeners: List[Callable[[CheckoutResult], None]] = []

    def on_result(self, listener: Callable[[CheckoutResult], None]) -> None:
        self._listeners.append(listener)

    def build_order(self, address: dict, payment_method: str) -> dict:
        if self.cart.is_empty():
            raise CheckoutValidationError("items", "Your cart is empty")
        return {
            "items": self.cart.to_order_items(),
            "amount": float(self.cart.total()),
            "address": validate_address(address),
            "paymentMethod": validate_payment_method(payment_method),
        }

    def submit(
        self,
        address: dict,
        payment_method: str = PaymentMethod.CASH.value,
        cancel: Optional[threading.Event] = None,
    ) -> CheckoutResult:
        """Create the order. Raises ``CheckoutValidationError`` before any request."""
        order = self.build_order(address, payment_method)

        self.state.is_loading = True
        self.state.success = False
        self.state.error = None
        try:
            data = self.orders_api.create(order)
        except ApiError as e:
            logger.info("checkout rejected: %s", e.message)
            self.state.error = e.message
            result = CheckoutResult(success=False, message=e.message)
        else:
            self.cart.clear()
            self.state.current_order = data.get("order")
            self.state.success = True
            result = CheckoutResult(success=True, order=data.get("order"), message=data.get("message"))
        finally:
            self.state.is_loading = False

        if cancel is not None and cancel.is_set():
            # the initiating screen is gone; keep state consistent but don't notify
            result.cancelled = True
            return result
        for listener in list(self._listeners):
            listener(result)
        return result
