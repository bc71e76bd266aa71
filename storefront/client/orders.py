import logging
from typing import List, Optional

from storefront.client.http import ApiClient, ApiError

logger = logging.getLogger(__name__)

ORDERS = "/api/v1/orders"


class OrdersApi:
    """Order endpoints as seen from the app."""

    def __init__(self, api: ApiClient):
        self.api = api

    def create(self, order: dict) -> dict:
        return self.api.post(ORDERS, order, default_error="Failed to create order")

    def user_orders(self) -> List[dict]:
        return self.api.get(f"{ORDERS}/user", default_error="Failed to fetch orders").get("orders", [])

    def all_orders(self) -> List[dict]:
        return self.api.get(f"{ORDERS}/admin", default_error="Failed to fetch orders").get("orders", [])

    def get(self, order_id: int) -> dict:
        return self.api.get(f"{ORDERS}/{order_id}", default_error="Failed to fetch order")["order"]

    def update_status(self, order_id: int, status: str) -> dict:
        data = self.api.patch(f"{ORDERS}/{order_id}/status", {"status": status}, default_error="Failed to update order status")
        return data["order"]

    def delete(self, order_id: int) -> str:
        return self.api.delete(f"{ORDERS}/{order_id}", default_error="Failed to delete order")["message"]


class OrderState:
    def __init__(self):
        self.orders: List[dict] = []
        self.current_order: Optional[dict] = None
        self.is_loading = False
        self.success = False
        self.error: Optional[str] = None

    def clear_success(self) -> None:
        self.success = False

    def clear_error(self) -> None:
        self.error = None


class OrderHistory:
    """Loads the signed-in user's orders into an ``OrderState``."""

    def __init__(self, orders_api: OrdersApi, state: Optional[OrderState] = None):
        self.orders_api = orders_api
        self.state = state or OrderState()

    def refresh(self) -> List[dict]:
        self.state.is_loading = True
        self.state.error = None
        try:
            self.state.orders = self.orders_api.user_orders()
        except ApiError as e:
            self.state.error = e.message
            logger.info("order history refresh failed: %s", e.message)
        finally:
            self.state.is_loading = False
        return self.state.orders
