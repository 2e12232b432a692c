"""
Process-wide holder for the backend authorization token.

The token is obtained through a credential exchange the first time it is
needed (normally at startup) and kept in memory. When the backend reports
it as expired or invalid, the adapter invalidates it and the next get()
performs a fresh exchange.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """User id and token returned by the credential exchange."""
    user_id: str
    token: str


class TokenHolder:
    """Caches one set of credentials, refreshed under a lock."""

    def __init__(
        self,
        authorize: Callable[[], Awaitable[Credentials]],
        credentials: Optional[Credentials] = None,
    ):
        """
        Args:
            authorize: Coroutine function performing the credential exchange
            credentials: Optional credentials to start with (skips the first exchange)
        """
        self._authorize = authorize
        self._credentials = credentials
        self._lock = asyncio.Lock()

    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    async def get(self) -> Credentials:
        """Return the cached credentials, exchanging for new ones when empty."""
        if self._credentials is not None:
            return self._credentials
        async with self._lock:
            # another request may have refreshed while we waited
            if self._credentials is None:
                self._credentials = await self._authorize()
                logger.info("obtained authorization token for user %s", self._credentials.user_id)
            return self._credentials

    def invalidate(self, stale: Credentials) -> None:
        """
        Drop stale credentials so the next get() re-authorizes.

        Credentials already replaced by a concurrent refresh are kept.
        """
        if self._credentials == stale:
            logger.info("authorization token for user %s rejected, dropping it", stale.user_id)
            self._credentials = None
