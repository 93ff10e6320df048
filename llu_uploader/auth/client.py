"""Async API client for LibreLink Up.

The client logs in with account credentials, lists the account's
connections and fetches the glucose graph of one connection. Session state
lives in a `SessionCache` owned by the caller; the client only reads it to
build authenticated headers. One httpx client, and with it one cookie jar,
is shared by every request.
"""
from __future__ import annotations

import logging
import ssl
import time
from typing import Any, Dict, List, Optional

import httpx

from llu_uploader.auth.session import SessionCache
from llu_uploader.metrics import (
    llu_api_call_latency_seconds,
    llu_api_call_total,
    llu_login_total,
)
from llu_uploader.models.librelink import (
    Connection,
    ConnectionsResponse,
    GraphData,
    GraphResponse,
    LoginData,
    LoginResponse,
)
from llu_uploader.utils.config import Settings
from llu_uploader.utils.error_handling import (
    AuthenticationError,
    FetchError,
    RegionMismatchError,
)
from llu_uploader.utils.logging_utils import redact_sensitive_data

logger = logging.getLogger(__name__)

__all__ = [
    "LibreLinkUpClient",
    "stealth_ssl_context",
    "USER_AGENT",
]

USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU OS 17_4.1 like Mac OS X) AppleWebKit/536.26 "
    "(KHTML, like Gecko) Version/17.4.1 Mobile/10A5355d Safari/8536.25"
)

LOGIN_ENDPOINT = "/llu/auth/login"
CONNECTIONS_ENDPOINT = "/llu/connections"
GRAPH_ENDPOINT = "/llu/connections/{patient_id}/graph"


def stealth_ssl_context() -> ssl.SSLContext:
    """Default TLS context with the 2nd and 3rd TLS 1.2 ciphers swapped.

    Cloudflare in front of LibreLink Up fingerprints the cipher order of
    stock HTTP clients.
    """
    context = ssl.create_default_context()
    ciphers = [c["name"] for c in context.get_ciphers() if c.get("protocol") != "TLSv1.3"]
    if len(ciphers) > 2:
        ciphers[1], ciphers[2] = ciphers[2], ciphers[1]
        context.set_ciphers(":".join(ciphers))
    return context


def _error_body(response: httpx.Response) -> Any:
    """Redacted JSON body of an error response, or its leading text when not JSON."""
    try:
        return redact_sensitive_data(response.json())
    except ValueError:
        return response.text[:500]


class LibreLinkUpClient:
    """High-level async client for the LibreLink Up follower API."""

    def __init__(
        self,
        settings: Settings,
        session: SessionCache,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings
        self.session = session
        self.base_url = f"https://{settings.link_up_host}"
        self.http_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.request_timeout_seconds,
            verify=stealth_ssl_context(),
        )

    # ---------------------- async context manager helpers ------------------
    async def __aenter__(self) -> "LibreLinkUpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    async def close(self) -> None:
        """Close underlying HTTPX client."""
        await self.http_client.aclose()

    # ---------------------- headers ---------------------------------------
    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json;charset=UTF-8",
            "version": self.settings.link_up_version,
            "product": self.settings.link_up_product,
        }

    def _auth_headers(self) -> Dict[str, str]:
        token = self.session.token
        if not token:
            raise FetchError("No valid LibreLink Up session")
        headers = self._headers()
        headers["Authorization"] = f"Bearer {token}"
        headers["account-id"] = self.session.account_id_hash
        logger.debug("Authenticated headers", extra={"headers": redact_sensitive_data(headers)})
        return headers

    # ---------------------- HTTP request helper ---------------------------
    async def _send(self, method: str, url: str, *, endpoint: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.

        Raises httpx.HTTPError for transport and status errors and ValueError
        for bodies that are not JSON.
        """
        status = "error"
        start_time = time.monotonic()
        try:
            response = await self.http_client.request(method, url, **kwargs)
            if response.status_code >= 400:
                logger.error(
                    "LibreLink Up API error response",
                    extra={
                        "log_type": "response",
                        "method": method,
                        "endpoint": endpoint,
                        "status_code": response.status_code,
                        "body": _error_body(response),
                    }
                )
            response.raise_for_status()
            body = response.json()
            status = "success"
            return body
        finally:
            latency = time.monotonic() - start_time
            llu_api_call_latency_seconds.labels(method=method, endpoint=endpoint).observe(latency)
            llu_api_call_total.labels(method=method, endpoint=endpoint, status=status).inc()

    # ---------------------- API operations --------------------------------
    async def login(self) -> LoginData:
        """Log in with the configured credentials.

        Returns the login data holding the auth ticket and the user id. The
        session cache is left untouched; storing the result is up to the caller.

        Raises:
            RegionMismatchError: The account lives in another region
            AuthenticationError: Any other login failure
        """
        payload = {
            "email": self.settings.link_up_username,
            "password": self.settings.link_up_password.get_secret_value(),
        }
        try:
            body = await self._send(
                "POST", LOGIN_ENDPOINT, endpoint=LOGIN_ENDPOINT, json=payload, headers=self._headers()
            )
            login = LoginResponse.model_validate(body)
        except httpx.HTTPStatusError as e:
            llu_login_total.labels(outcome="failure").inc()
            raise AuthenticationError("Invalid credentials", status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            llu_login_total.labels(outcome="failure").inc()
            raise AuthenticationError(f"Login request failed: {e}") from e

        if login.status != 0:
            llu_login_total.labels(outcome="failure").inc()
            raise AuthenticationError(f"Non-zero status code: {redact_sensitive_data(body)}")

        data = login.data
        if data is not None and data.redirect and data.region:
            llu_login_total.labels(outcome="wrong_region").inc()
            raise RegionMismatchError(data.region)

        if data is None or data.auth_ticket is None or data.user is None:
            llu_login_total.labels(outcome="failure").inc()
            raise AuthenticationError("No AuthTicket received. Please check your credentials.")

        llu_login_total.labels(outcome="success").inc()
        logger.info("Logged in to LibreLink Up")
        return data

    async def get_connections(self) -> List[Connection]:
        """List the patients shared with this account."""
        try:
            body = await self._send(
                "GET", CONNECTIONS_ENDPOINT, endpoint=CONNECTIONS_ENDPOINT, headers=self._auth_headers()
            )
            return ConnectionsResponse.model_validate(body).data
        except httpx.HTTPStatusError as e:
            raise FetchError("Error getting LibreLink Up connections", status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"Error getting LibreLink Up connections: {e}") from e

    async def get_graph(self, patient_id: str) -> GraphData:
        """Fetch the current reading and recent history for *patient_id*."""
        try:
            body = await self._send(
                "GET",
                GRAPH_ENDPOINT.format(patient_id=patient_id),
                endpoint=GRAPH_ENDPOINT,
                headers=self._auth_headers(),
            )
            return GraphResponse.model_validate(body).data
        except httpx.HTTPStatusError as e:
            raise FetchError("Error getting glucose measurements", status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            raise FetchError(f"Error getting glucose measurements: {e}") from e
