"""
캐시 무효화

문서 변경 신호(로컬 큐 리스너, 알림 채널 메시지)를 받아
해당 문서에 의존하는 캐시 키를 무효화한다.

- ledger_days/<date>: 해당 일을 포함하는 일/주/월/연 집계
- accounts/<id>: 계정 목록
"""

import logging
from typing import Any

from adapters.models import NotificationMessage
from core.cache.ttl_cache import TTLCache
from core.constants import CacheKeys, Collections
from core.ledger.periods import enclosing_periods

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """변경 신호 → 캐시 무효화

    Args:
        cache: 대상 캐시
    """

    def __init__(self, cache: TTLCache):
        self.cache = cache
        self._invalidation_count = 0

    def invalidate_document(self, collection: str, key: str) -> int:
        """문서 변경에 따른 캐시 키 무효화

        Returns:
            무효화된 키 수
        """
        removed = 0
        if collection == Collections.LEDGER_DAYS:
            try:
                periods = enclosing_periods(key)
            except ValueError:
                logger.warning(f"Invalid day key in change signal: {key!r}")
                return 0
            for kind, period_key in periods:
                if self.cache.invalidate(CacheKeys.summary(kind.value, period_key)):
                    removed += 1
        elif collection == Collections.ACCOUNTS:
            if self.cache.invalidate(CacheKeys.ACCOUNTS):
                removed += 1

        self._invalidation_count += removed
        return removed

    async def on_change(self, payload: dict[str, Any]) -> None:
        """큐 변경 리스너 / 채널 payload 처리"""
        collection = payload.get("collection")
        key = payload.get("key")
        if not collection or not key:
            return
        self.invalidate_document(collection, key)

    async def on_message(self, message: NotificationMessage) -> None:
        """알림 채널 구독 핸들러"""
        await self.on_change(message.payload)

    @property
    def invalidation_count(self) -> int:
        return self._invalidation_count
