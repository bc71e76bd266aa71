#!/usr/bin/env python3
"""
run_demo.py - End-to-end demo against a running storefront API
- Registers/logs in admin & customer (admin e-mail must be listed in ADMIN_EMAILS)
- Customer fills a cart and checks out
- Admin walks the order through processing -> shipped -> delivered
- Prints the customer's order history
"""

import os
from decimal import Decimal
from typing import Optional

from storefront.client.cart import CartStore, Product
from storefront.client.checkout import CheckoutFlow, CheckoutValidationError
from storefront.client.credentials import InMemoryCredentialStore
from storefront.client.http import ApiClient, ApiError
from storefront.client.orders import OrderHistory, OrdersApi

class DemoRunner:
    def __init__(self):
        self.base_url = os.getenv("API_BASE_URL", "http://localhost:5000")

        self.admin_email = os.getenv("DEMO_ADMIN_EMAIL", "admin@example.com")
        self.admin_pass = "P@ssw0rd!"
        self.cust_email = "cust@example.com"
        self.cust_pass = "P@ssw0rd!"

        self.admin = ApiClient(InMemoryCredentialStore(), base_url=self.base_url)
        self.customer = ApiClient(InMemoryCredentialStore(), base_url=self.base_url)

    # ---------- helpers ----------
    def show_step(self, title: str):
        print(f"\n=== {title} ===")

    def mask_token(self, token: Optional[str]) -> str:
        if not token:
            return "<none>"
        return token if len(token) <= 12 else f"{token[:8]}...{token[-6:]}"

    def register_and_login(self, api: ApiClient, username: str, email: str, password: str):
        try:
            api.post("/api/v1/auth/register", {"username": username, "email": email, "password": password})
        except ApiError as e:
            print(f"  register: {e.message}")
        api.login(email, password)
        print(f"  token: {self.mask_token(api.credentials.get_token())}")

    # ---------- flow ----------
    def run_demo(self):
        print("Starting Storefront Demo")
        print("=" * 50)

        self.show_step("Admin: register + login")
        self.register_and_login(self.admin, "admin", self.admin_email, self.admin_pass)

        self.show_step("Customer: register + login")
        self.register_and_login(self.customer, "customer", self.cust_email, self.cust_pass)

        self.show_step("Customer: fill cart")
        cart = CartStore()
        cart.add_item(Product(id=1, name="Grilled Chicken", price=Decimal("15.99"), image="chicken.png"), 2)
        cart.add_item(Product(id=2, name="Coke", price=Decimal("2.50"), image="coke.png"), 3)
        for it in cart.items:
            print(f"  {it.quantity} x {it.name} @ {it.price}")
        print(f"  total: {cart.total()}")

        self.show_step("Customer: checkout")
        flow = CheckoutFlow(cart, OrdersApi(self.customer))
        try:
            result = flow.submit(
                {"street": "1 Demo Street", "city": "Dublin", "state": "", "zip": "D01XYZ", "country": "IE"},
                "cash",
            )
        except CheckoutValidationError as e:
            print(f"  rejected locally ({e.field}): {e.message}")
            return
        if not result.success:
            print(f"  \033[91m{result.message}\033[0m")
            return
        order_id = result.order["_id"]
        print(f"  order {order_id} status={result.order['status']} amount={result.order['amount']}")

        self.show_step("Admin: advance order status")
        admin_orders = OrdersApi(self.admin)
        for status in ("processing", "shipped", "delivered"):
            try:
                order = admin_orders.update_status(order_id, status)
                print(f"  -> {order['status']}")
            except ApiError as e:
                print(f"  \033[93m{e.message}\033[0m")
                break

        self.show_step("Customer: order history")
        history = OrderHistory(OrdersApi(self.customer))
        for o in history.refresh():
            print(f"  #{o['_id']} {o['status']} {o['amount']} ({o['createdAt']})")
        if history.state.error:
            print(f"  \033[91m{history.state.error}\033[0m")

        print("\n\033[92m=== DEMO COMPLETE ===\033[0m")


if __name__ == "__main__":
    DemoRunner().run_demo()
