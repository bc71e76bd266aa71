"""Thin httpx wrapper shared by the client-side flows.

Every failure, whether it came back from the server or never reached it, is
raised as an ``ApiError`` whose ``message`` is ready to show to the user.
"""
import logging
from typing import Any, Optional

import httpx

from storefront.client.credentials import CredentialStore
from storefront.core.config import settings

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network error, please try again"
TIMEOUT_ERROR = "Request timed out, please try again"
UNEXPECTED_RESPONSE = "Unexpected response from server"


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SessionExpired(ApiError):
    """401 from the server; cached credentials have already been cleared."""


def error_message(resp: httpx.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        msg = body.get("message") or body.get("detail")
        if isinstance(msg, str) and msg:
            return msg
    return default


class ApiClient:
    def __init__(
        self,
        credentials: CredentialStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.credentials = credentials
        self._owns_http = http is None
        self._http = http or httpx.Client(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout or settings.API_TIMEOUT_SECONDS,
            headers={"Content-Type": "application/json"},
        )

    def _headers(self) -> dict:
        token = self.credentials.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def request(self, method: str, path: str, json: Any = None, default_error: str = "Request failed") -> Any:
        try:
            resp = self._http.request(method, path, json=json, headers=self._headers())
        except httpx.TimeoutException:
            logger.warning("%s %s timed out", method, path)
            raise ApiError(TIMEOUT_ERROR)
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(NETWORK_ERROR)

        if resp.status_code == 401:
            self.credentials.clear()
            raise SessionExpired(error_message(resp, "Session expired, please log in again"), 401)
        if resp.status_code >= 400:
            raise ApiError(error_message(resp, default_error), resp.status_code)
        try:
            return resp.json()
        except ValueError:
            logger.warning("%s %s returned a non-JSON body (status %s)", method, path, resp.status_code)
            raise ApiError(UNEXPECTED_RESPONSE, resp.status_code)

    def get(self, path: str, **kw) -> Any:
        return self.request("GET", path, **kw)

    def post(self, path: str, json: Any = None, **kw) -> Any:
        return self.request("POST", path, json=json, **kw)

    def patch(self, path: str, json: Any = None, **kw) -> Any:
        return self.request("PATCH", path, json=json, **kw)

    def delete(self, path: str, **kw) -> Any:
        return self.request("DELETE", path, **kw)

    def login(self, email: str, password: str) -> dict:
        data = self.post("/api/v1/auth/login", {"email": email, "password": password}, default_error="Login failed")
        self.credentials.save(data["token"], data.get("data"))
        return data

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
