"""
캐시 패키지

기간 집계/계정 목록 조회 결과를 TTL 기반으로 보관
"""

from core.cache.invalidation import CacheInvalidator
from core.cache.ttl_cache import MISS, TTLCache

__all__ = [
    "CacheInvalidator",
    "MISS",
    "TTLCache",
]
