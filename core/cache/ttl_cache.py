"""
TTL 캐시

키별 만료 시각을 가진 인메모리 캐시.
- 조회 실패는 None이 아닌 MISS sentinel로 표현 (None도 캐시 가능)
- ttl=None이면 만료 없음 (종료된 기간 집계용)
- 무효화는 로컬 변경 신호 또는 알림 채널을 통해 best-effort로 수행
- 계산 중 무효화가 있었으면 put_if_current()가 저장을 건너뜀
"""

import logging
from typing import Any

from adapters.clock import SystemClock
from adapters.interfaces import IClock
from core.constants import Defaults

logger = logging.getLogger(__name__)


class _Miss:
    """캐시 미스 sentinel"""

    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS = _Miss()

# 기본 TTL 사용 표시 (ttl=None은 "만료 없음"이므로 별도 sentinel 필요)
_DEFAULT_TTL: Any = object()


class TTLCache:
    """TTL 기반 캐시

    Args:
        default_ttl_sec: 기본 TTL (초)
        clock: 시간 소스 (테스트에서 FixedClock 주입)
        sweep_interval_sec: 만료 항목 일괄 정리 주기 (put 시 확인)

    사용 예시:
    ```python
    cache = TTLCache(default_ttl_sec=300)

    value = cache.get("summary:day:2025-01-01")
    if value is MISS:
        version = cache.version
        value = await compute()
        cache.put_if_current("summary:day:2025-01-01", value, version)
    ```
    """

    def __init__(
        self,
        default_ttl_sec: float = Defaults.CACHE_TTL_SEC,
        clock: IClock | None = None,
        sweep_interval_sec: float | None = None,
    ):
        self.default_ttl_sec = default_ttl_sec
        self.sweep_interval_sec = (
            sweep_interval_sec if sweep_interval_sec is not None else default_ttl_sec
        )
        self._clock = clock or SystemClock()
        # key -> (만료 timestamp 또는 None, value)
        self._entries: dict[str, tuple[float | None, Any]] = {}
        self._version = 0
        self._next_sweep_at: float | None = None
        self._hits = 0
        self._misses = 0
        self._skipped_puts = 0

    def _now(self) -> float:
        return self._clock.now().timestamp()

    @property
    def version(self) -> int:
        """무효화 세대 (invalidate/invalidate_prefix/clear마다 증가)"""
        return self._version

    def get(self, key: str) -> Any:
        """값 조회

        Returns:
            저장된 값 또는 MISS (없거나 만료됨)
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return MISS

        expires_at, value = entry
        if expires_at is not None and self._now() >= expires_at:
            del self._entries[key]
            self._misses += 1
            return MISS

        self._hits += 1
        return value

    def put(self, key: str, value: Any, ttl: float | None = _DEFAULT_TTL) -> None:
        """값 저장

        Args:
            key: 캐시 키
            value: 저장할 값
            ttl: 초 단위 TTL. 생략 시 기본값, None이면 만료 없음
        """
        if ttl is _DEFAULT_TTL:
            ttl = self.default_ttl_sec
        now = self._now()
        self._maybe_sweep(now)
        expires_at = None if ttl is None else now + ttl
        self._entries[key] = (expires_at, value)

    def put_if_current(
        self,
        key: str,
        value: Any,
        version: int,
        ttl: float | None = _DEFAULT_TTL,
    ) -> bool:
        """계산 시작 시점 이후 무효화가 없었을 때만 저장

        Args:
            version: 계산 전에 읽은 self.version

        Returns:
            저장 여부
        """
        if version != self._version:
            self._skipped_puts += 1
            logger.debug(f"Stale cache put skipped: {key}")
            return False
        self.put(key, value, ttl)
        return True

    def invalidate(self, key: str) -> bool:
        """단일 키 무효화

        Returns:
            삭제 여부
        """
        self._version += 1
        removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug(f"Cache invalidated: {key}")
        return removed

    def invalidate_prefix(self, prefix: str) -> int:
        """접두사 일치 키 무효화

        Returns:
            삭제된 키 수
        """
        self._version += 1
        keys = [k for k in self._entries if k.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        if keys:
            logger.debug(f"Cache invalidated {len(keys)} keys with prefix {prefix}")
        return len(keys)

    def clear(self) -> None:
        """전체 초기화"""
        self._version += 1
        self._entries.clear()
        logger.debug("Cache cleared")

    def purge_expired(self) -> int:
        """만료된 항목 일괄 삭제

        Returns:
            삭제된 키 수
        """
        now = self._now()
        expired = [
            key
            for key, (expires_at, _) in self._entries.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Cache purged {len(expired)} expired keys")
        return len(expired)

    def _maybe_sweep(self, now: float) -> None:
        if not self.sweep_interval_sec or self.sweep_interval_sec <= 0:
            return
        if self._next_sweep_at is not None and now < self._next_sweep_at:
            return
        self.purge_expired()
        self._next_sweep_at = now + self.sweep_interval_sec

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISS

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict[str, int]:
        """캐시 통계"""
        return {
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "skipped_puts": self._skipped_puts,
        }
