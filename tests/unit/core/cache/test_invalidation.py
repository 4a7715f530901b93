"""
CacheInvalidator 테스트

로컬 리스너 payload와 알림 채널 메시지 모두 같은 규칙으로 무효화.
"""

import pytest

from adapters.mock.clock import FixedClock
from adapters.mock.notification_bus import InMemoryNotificationBus
from adapters.models import NotificationMessage
from core.cache.invalidation import CacheInvalidator
from core.cache.ttl_cache import MISS, TTLCache
from core.constants import CacheKeys, Collections, Topics


@pytest.fixture
def warm_cache() -> TTLCache:
    cache = TTLCache(clock=FixedClock())
    for kind, key in [
        ("day", "2025-01-15"),
        ("day", "2025-01-16"),
        ("week", "2025-W03"),
        ("month", "2025-01"),
        ("year", "2025"),
        ("year", "2024"),
    ]:
        cache.put(CacheKeys.summary(kind, key), object())
    cache.put(CacheKeys.ACCOUNTS, [])
    return cache


class TestInvalidateDocument:
    """문서 변경 → 캐시 키"""

    def test_ledger_day_invalidates_enclosing_periods(self, warm_cache: TTLCache) -> None:
        invalidator = CacheInvalidator(warm_cache)

        removed = invalidator.invalidate_document(Collections.LEDGER_DAYS, "2025-01-15")

        assert removed == 4
        assert warm_cache.get(CacheKeys.summary("week", "2025-W03")) is MISS
        assert warm_cache.get(CacheKeys.summary("day", "2025-01-16")) is not MISS
        assert warm_cache.get(CacheKeys.summary("year", "2024")) is not MISS
        assert warm_cache.get(CacheKeys.ACCOUNTS) is not MISS
        assert invalidator.invalidation_count == 4

    def test_account_invalidates_list(self, warm_cache: TTLCache) -> None:
        invalidator = CacheInvalidator(warm_cache)

        assert invalidator.invalidate_document(Collections.ACCOUNTS, "acc-531-abc123") == 1
        assert warm_cache.get(CacheKeys.ACCOUNTS) is MISS

    def test_invalid_day_key_ignored(self, warm_cache: TTLCache) -> None:
        invalidator = CacheInvalidator(warm_cache)

        assert invalidator.invalidate_document(Collections.LEDGER_DAYS, "garbage") == 0


class TestSignals:
    """리스너 / 채널 메시지"""

    @pytest.mark.asyncio
    async def test_on_change(self, warm_cache: TTLCache) -> None:
        invalidator = CacheInvalidator(warm_cache)

        await invalidator.on_change({"collection": Collections.ACCOUNTS, "key": "acc-1"})

        assert warm_cache.get(CacheKeys.ACCOUNTS) is MISS

    @pytest.mark.asyncio
    async def test_on_change_incomplete_payload(self, warm_cache: TTLCache) -> None:
        invalidator = CacheInvalidator(warm_cache)

        await invalidator.on_change({"collection": Collections.ACCOUNTS})

        assert invalidator.invalidation_count == 0

    @pytest.mark.asyncio
    async def test_subscribed_to_channel(self, warm_cache: TTLCache) -> None:
        """다른 프로세스 변경 알림 → 무효화"""
        bus = InMemoryNotificationBus()
        invalidator = CacheInvalidator(warm_cache)
        bus.subscribe(Topics.DOCUMENT_CHANGED, invalidator.on_message)

        await bus.publish(
            Topics.DOCUMENT_CHANGED,
            {"collection": Collections.LEDGER_DAYS, "key": "2025-01-16", "revision": 3},
        )

        assert warm_cache.get(CacheKeys.summary("day", "2025-01-16")) is MISS
        assert warm_cache.get(CacheKeys.summary("month", "2025-01")) is MISS

    @pytest.mark.asyncio
    async def test_on_message(self, warm_cache: TTLCache) -> None:
        invalidator = CacheInvalidator(warm_cache)

        await invalidator.on_message(
            NotificationMessage(
                topic=Topics.DOCUMENT_CHANGED,
                payload={"collection": Collections.LEDGER_DAYS, "key": "2025-01-15"},
            )
        )

        assert warm_cache.get(CacheKeys.summary("day", "2025-01-15")) is MISS
