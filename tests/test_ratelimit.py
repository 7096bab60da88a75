"""Tests for the rate-limit monitor."""

from unittest.mock import Mock

import pytest

from toolkeeper.catalog.client import BackendUnavailableError
from toolkeeper.catalog.models import RateLimitStatus
from toolkeeper.catalog.ratelimit import RateLimitMonitor


class TestRateLimitMonitor:
    @pytest.mark.asyncio
    async def test_check_stores_status(self, backend):
        on_change = Mock()
        backend.get_rate_limit.return_value = RateLimitStatus(limit=60, remaining=42, reset_at="2024-01-01T00:00:00Z")
        monitor = RateLimitMonitor(backend, on_change=on_change)

        status = await monitor.check()

        assert status.remaining == 42
        assert monitor.status is status
        assert monitor.error is None
        on_change.assert_called_with("rate_limit_info")

    @pytest.mark.asyncio
    async def test_exhausted(self, backend):
        backend.get_rate_limit.return_value = RateLimitStatus(limit=60, remaining=0, reset_at="2024-01-01T00:00:00Z")
        monitor = RateLimitMonitor(backend)

        status = await monitor.check()

        assert status.is_exhausted

    @pytest.mark.asyncio
    async def test_failure_keeps_last_status(self, backend):
        """Test a failed check is recorded and the previous status stays."""
        previous = RateLimitStatus(limit=60, remaining=5, reset_at="2024-01-01T00:00:00Z")
        backend.get_rate_limit.side_effect = [previous, BackendUnavailableError("down")]
        monitor = RateLimitMonitor(backend)

        await monitor.check()
        assert await monitor.check() is None

        assert monitor.status is previous
        assert monitor.error == "down"
