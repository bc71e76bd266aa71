"""Tests for the client-side checkout flow and API wrapper."""

import json
import threading
from decimal import Decimal

import httpx
import pytest

from storefront.client.cart import CartStore, Product
from storefront.client.checkout import CheckoutFlow, CheckoutValidationError
from storefront.client.credentials import InMemoryCredentialStore
from storefront.client.http import NETWORK_ERROR, UNEXPECTED_RESPONSE, ApiClient, ApiError, SessionExpired
from storefront.client.orders import OrderHistory, OrdersApi
from storefront.security.utils import create_access_token

ADDRESS = {"street": "1 Main St", "city": "Dublin", "zip": "D01", "country": "IE"}


def mock_api(handler, token="tok"):
    calls = []

    def _record(request):
        calls.append(request)
        return handler(request)

    http = httpx.Client(transport=httpx.MockTransport(_record), base_url="http://test")
    creds = InMemoryCredentialStore(token=token)
    return ApiClient(creds, http=http), creds, calls


def created(request):
    return httpx.Response(201, json={"success": True, "message": "Order created successfully", "order": {"_id": 7}})


@pytest.fixture
def cart():
    c = CartStore()
    c.add_item(Product(id=1, name="Beef Burger", price=Decimal("10.99"), image="b.png"), 2)
    return c


class TestLocalValidation:
    def test_empty_cart_makes_no_request(self):
        api, _, calls = mock_api(created)
        flow = CheckoutFlow(CartStore(), OrdersApi(api))
        with pytest.raises(CheckoutValidationError) as exc:
            flow.submit(ADDRESS)
        assert exc.value.field == "items"
        assert calls == []

    def test_missing_street(self, cart):
        api, _, calls = mock_api(created)
        flow = CheckoutFlow(cart, OrdersApi(api))
        with pytest.raises(CheckoutValidationError) as exc:
            flow.submit({"street": "", "city": "X", "zip": "1", "country": "Y"})
        assert exc.value.field == "street"
        assert exc.value.message == "street required"
        assert calls == []

    @pytest.mark.parametrize("field", ["city", "zip", "country"])
    def test_each_required_field(self, cart, field):
        api, _, calls = mock_api(created)
        address = dict(ADDRESS, **{field: "   "})
        with pytest.raises(CheckoutValidationError) as exc:
            CheckoutFlow(cart, OrdersApi(api)).submit(address)
        assert exc.value.message == f"{field} required"
        assert calls == []

    def test_state_is_optional(self, cart):
        api, _, calls = mock_api(created)
        assert CheckoutFlow(cart, OrdersApi(api)).submit(ADDRESS).success
        assert len(calls) == 1

    def test_unknown_payment_method(self, cart):
        api, _, calls = mock_api(created)
        with pytest.raises(CheckoutValidationError) as exc:
            CheckoutFlow(cart, OrdersApi(api)).submit(ADDRESS, "barter")
        assert exc.value.field == "paymentMethod"
        assert calls == []


class TestSubmitWithMockServer:
    def test_success_clears_cart(self, cart):
        api, _, calls = mock_api(created)
        flow = CheckoutFlow(cart, OrdersApi(api))
        results = []
        flow.on_result(results.append)

        result = flow.submit(ADDRESS, "paypal")

        assert result.success and result.order == {"_id": 7}
        assert cart.is_empty()
        assert flow.state.success and flow.state.current_order == {"_id": 7}
        assert results == [result]
        sent = calls[0]
        assert sent.headers["Authorization"] == "Bearer tok"
        body = json.loads(sent.content)
        assert body["amount"] == 21.98
        assert body["paymentMethod"] == "paypal"
        assert body["items"][0]["quantity"] == 2

    def test_server_rejection_keeps_cart(self, cart):
        api, _, _ = mock_api(lambda r: httpx.Response(400, json={"message": "Invalid order amount"}))
        flow = CheckoutFlow(cart, OrdersApi(api))
        result = flow.submit(ADDRESS)
        assert not result.success
        assert result.message == "Invalid order amount"
        assert flow.state.error == "Invalid order amount"
        assert cart.count() == 2

    def test_server_error_without_body(self, cart):
        api, _, _ = mock_api(lambda r: httpx.Response(500, text="boom"))
        result = CheckoutFlow(cart, OrdersApi(api)).submit(ADDRESS)
        assert result.message == "Failed to create order"
        assert not cart.is_empty()

    def test_non_json_success_body_becomes_failed_result(self, cart):
        api, _, _ = mock_api(lambda r: httpx.Response(201, text="<html>ok</html>"))
        flow = CheckoutFlow(cart, OrdersApi(api))
        result = flow.submit(ADDRESS)
        assert not result.success
        assert result.message == UNEXPECTED_RESPONSE
        assert flow.state.error == UNEXPECTED_RESPONSE
        assert not flow.state.is_loading
        assert cart.count() == 2

    def test_network_failure_keeps_cart(self, cart):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        api, _, _ = mock_api(refuse)
        result = CheckoutFlow(cart, OrdersApi(api)).submit(ADDRESS)
        assert not result.success
        assert result.message == NETWORK_ERROR
        assert cart.count() == 2

    def test_unauthorized_clears_credentials(self, cart):
        api, creds, _ = mock_api(lambda r: httpx.Response(401, json={"message": "Token expired"}))
        result = CheckoutFlow(cart, OrdersApi(api)).submit(ADDRESS)
        assert result.message == "Token expired"
        assert creds.get_token() is None
        assert not cart.is_empty()

    def test_no_automatic_retry(self, cart):
        api, _, calls = mock_api(lambda r: httpx.Response(503, json={"message": "down"}))
        CheckoutFlow(cart, OrdersApi(api)).submit(ADDRESS)
        assert len(calls) == 1

    def test_cancelled_result_not_delivered(self, cart):
        api, _, _ = mock_api(created)
        flow = CheckoutFlow(cart, OrdersApi(api))
        results = []
        flow.on_result(results.append)
        cancel = threading.Event()
        cancel.set()

        result = flow.submit(ADDRESS, cancel=cancel)

        assert result.cancelled and result.success
        assert results == []
        assert cart.is_empty()


class TestApiClient:
    def test_session_expired_raised(self):
        api, creds, _ = mock_api(lambda r: httpx.Response(401, json={"message": "Invalid token"}))
        with pytest.raises(SessionExpired):
            api.get("/api/v1/orders/user")
        assert creds.get_token() is None

    def test_detail_is_used_as_message(self):
        api, _, _ = mock_api(lambda r: httpx.Response(404, json={"detail": "Order not found"}))
        with pytest.raises(ApiError) as exc:
            OrdersApi(api).get(1)
        assert exc.value.message == "Order not found"
        assert exc.value.status_code == 404

    def test_no_token_no_header(self):
        api, _, calls = mock_api(lambda r: httpx.Response(200, json={"orders": []}), token=None)
        OrdersApi(api).user_orders()
        assert "Authorization" not in calls[0].headers


class TestEndToEnd:
    """Client flows driven against the real app through the test client."""

    def api_for(self, client, user):
        token, _ = create_access_token(user.email, user.id, user.role)
        return ApiClient(InMemoryCredentialStore(token=token), http=client)

    def test_checkout_then_history_then_admin(self, client, customer, admin, cart):
        orders = OrdersApi(self.api_for(client, customer))
        result = CheckoutFlow(cart, orders).submit(dict(ADDRESS, state="Leinster"), "cash")
        assert result.success
        assert result.order["status"] == "pending"
        assert result.order["amount"] == 21.98
        assert cart.is_empty()

        history = OrderHistory(orders)
        assert [o["_id"] for o in history.refresh()] == [result.order["_id"]]
        assert history.state.error is None and not history.state.is_loading

        admin_orders = OrdersApi(self.api_for(client, admin))
        assert len(admin_orders.all_orders()) == 1
        updated = admin_orders.update_status(result.order["_id"], "shipped")
        assert updated["status"] == "shipped"
        assert orders.get(result.order["_id"])["status"] == "shipped"

        with pytest.raises(ApiError) as exc:
            admin_orders.update_status(result.order["_id"], "archived")
        assert exc.value.status_code == 400
        assert exc.value.message == "Invalid status value"

        assert orders.delete(result.order["_id"]) == "Order deleted successfully"
        assert history.refresh() == []

    def test_history_error_is_recorded(self, client):
        history = OrderHistory(OrdersApi(ApiClient(InMemoryCredentialStore(), http=client)))
        assert history.refresh() == []
        assert history.state.error == "Not authenticated"

    def test_login_saves_credentials(self, client):
        client.post(
            "/api/v1/auth/register",
            json={"username": "dave", "email": "dave@example.com", "password": "s3cretpass"},
        )
        creds = InMemoryCredentialStore()
        ApiClient(creds, http=client).login("dave@example.com", "s3cretpass")
        assert creds.get_token()
        assert creds.user["username"] == "dave"
