"""
In-memory LibreLink Up session state.

The session holds the current auth ticket and the account identifier from
the login response. Both are cleared together; nothing is persisted, so a
restart always forces a fresh login.
"""
import hashlib
import logging
import time
from typing import Optional

from llu_uploader.models.librelink import AuthTicket

logger = logging.getLogger(__name__)


class SessionCache:
    """Auth ticket and account id for the logged-in LibreLink Up account."""

    def __init__(self) -> None:
        self._ticket: Optional[AuthTicket] = None
        self._account_id: str = ""

    @property
    def ticket(self) -> Optional[AuthTicket]:
        return self._ticket

    @property
    def account_id(self) -> str:
        return self._account_id

    def is_valid(self, now: Optional[float] = None) -> bool:
        """Return True iff a ticket is cached and the current time is before its expiry."""
        if self._ticket is None or not self._ticket.token:
            return False
        current_time = int(now if now is not None else time.time())
        return current_time < self._ticket.expires

    def set(self, ticket: AuthTicket, account_id: str) -> None:
        self._ticket = ticket
        self._account_id = account_id

    def clear(self) -> None:
        self._ticket = None
        self._account_id = ""

    @property
    def token(self) -> Optional[str]:
        if self._ticket and self._ticket.token:
            return self._ticket.token
        logger.warning("No auth ticket token found")
        return None

    @property
    def account_id_hash(self) -> str:
        """SHA-256 hex digest of the account id, as sent in the `account-id` header."""
        if not self._account_id:
            return ""
        return hashlib.sha256(self._account_id.encode("utf-8")).hexdigest()
