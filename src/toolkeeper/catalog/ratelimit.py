"""Rate-limit monitor.

Polls the remote API's rate-limit status for display. The status is advisory:
nothing in the catalog waits on it, and a failed check is only logged.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..logger import get_logger
from .client import CatalogBackend
from .models import RateLimitStatus
from .policy import passive

log = get_logger(__name__)


class RateLimitMonitor:
    def __init__(self, backend: CatalogBackend, on_change: Optional[Callable[[str], None]] = None):
        self._backend = backend
        self._on_change = on_change
        self.status: Optional[RateLimitStatus] = None
        self.error: Optional[str] = None

    @passive("error", "rate limit check")
    async def check(self) -> RateLimitStatus:
        status = await self._backend.get_rate_limit()
        self.status = status
        if status.is_exhausted:
            log.warning("rate_limit_exhausted", limit=status.limit, reset_at=status.reset_at)
        else:
            log.debug("rate_limit_checked", remaining=status.remaining, limit=status.limit)
        self._notify("rate_limit_info")
        return status

    def _notify(self, field_name: str) -> None:
        if self._on_change:
            self._on_change(field_name)
