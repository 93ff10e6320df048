"""
Nightscout clients.

Both protocol variants expose the same two operations, reading the newest
stored entry and uploading new ones. The variant is chosen once at startup
by `create_nightscout_client`.
"""
import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx

from llu_uploader.metrics import entries_uploaded_total, nightscout_request_total
from llu_uploader.models.nightscout import Entry
from llu_uploader.utils.config import Settings
from llu_uploader.utils.error_handling import UploadError

logger = logging.getLogger(__name__)

NIGHTSCOUT_USER_AGENT = "nightscout-librelink-up"


class NightscoutClient(ABC):
    """Base class for Nightscout protocol clients."""

    api_version: str = ""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = settings.nightscout_base_url
        self.device_name = settings.nightscout_device_name
        self._api_token = settings.nightscout_api_token.get_secret_value()
        self.http_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.request_timeout_seconds,
        )

    async def close(self) -> None:
        await self.http_client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": NIGHTSCOUT_USER_AGENT,
            "Content-Type": "application/json",
        }

    async def _send(self, method: str, url: str, *, operation: str, **kwargs: Any) -> httpx.Response:
        status = "error"
        try:
            response = await self.http_client.request(method, url, headers=self._headers(), **kwargs)
            response.raise_for_status()
            status = "success"
            return response
        finally:
            nightscout_request_total.labels(api_version=self.api_version, operation=operation, status=status).inc()

    async def last_entry(self) -> Optional[Entry]:
        """
        Return the newest entry stored in Nightscout, or None if there is none.

        Raises:
            UploadError: If Nightscout cannot be queried
        """
        try:
            documents = await self._fetch_last_documents()
            if not documents:
                return None
            return Entry.from_nightscout_document(documents[0])
        except httpx.HTTPStatusError as e:
            raise UploadError("Error reading last Nightscout entry", status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise UploadError(f"Error reading last Nightscout entry: {e}") from e

    async def upload_entries(self, entries: Sequence[Entry]) -> int:
        """
        Upload *entries* and return how many were sent. An empty batch makes no request.

        Raises:
            UploadError: If Nightscout rejects the upload or cannot be reached
        """
        if not entries:
            return 0
        try:
            await self._post_entries(entries)
        except httpx.HTTPStatusError as e:
            raise UploadError("Upload to Nightscout failed", status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            raise UploadError(f"Upload to Nightscout failed: {e}") from e
        return len(entries)

    @abstractmethod
    async def _fetch_last_documents(self) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def _post_entries(self, entries: Sequence[Entry]) -> None:
        """Post *entries*, counting each accepted document in `entries_uploaded_total`."""


class NightscoutApiV1Client(NightscoutClient):
    """Nightscout API v1: SHA-1 hashed API secret header, batch uploads."""

    api_version = "v1"

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["api-secret"] = hashlib.sha1(self._api_token.encode("utf-8")).hexdigest()
        return headers

    async def _fetch_last_documents(self) -> List[Dict[str, Any]]:
        response = await self._send("GET", "/api/v1/entries", operation="last_entry", params={"count": 1})
        return response.json()

    async def _post_entries(self, entries: Sequence[Entry]) -> None:
        documents = [entry.to_nightscout_document(self.device_name) for entry in entries]
        await self._send("POST", "/api/v1/entries", operation="upload", json=documents)
        entries_uploaded_total.inc(len(documents))


class NightscoutApiV3Client(NightscoutClient):
    """Nightscout API v3: access token query parameter, one document per request."""

    api_version = "v3"
    app_name = "nightscout-librelink-up"

    def _params(self, **extra: Any) -> Dict[str, Any]:
        return {"token": self._api_token, **extra}

    async def _fetch_last_documents(self) -> List[Dict[str, Any]]:
        params = self._params(**{"limit": 1, "sort$desc": "date", "fields": "date"})
        response = await self._send("GET", "/api/v3/entries", operation="last_entry", params=params)
        body = response.json()
        if isinstance(body, dict):
            return body.get("result") or []
        return body

    async def _post_entries(self, entries: Sequence[Entry]) -> None:
        for entry in entries:
            document = entry.to_nightscout_document(self.device_name)
            document["app"] = self.app_name
            document["utcOffset"] = 0
            await self._send("POST", "/api/v3/entries", operation="upload", params=self._params(), json=document)
            entries_uploaded_total.inc()


def create_nightscout_client(settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> NightscoutClient:
    """Build the Nightscout client for the configured protocol version."""
    client_cls = NightscoutApiV3Client if settings.nightscout_api_v3 else NightscoutApiV1Client
    logger.info(f"Using Nightscout API {client_cls.api_version}", extra={"nightscout_url": settings.nightscout_base_url})
    return client_cls(settings, http_client=http_client)
