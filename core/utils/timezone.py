"""
타임존 유틸리티

내부 저장: UTC | 일자 분류: 영업 타임존 원칙 준수를 위한 헬퍼 함수
"""

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


def get_zone(name: str) -> tzinfo:
    """타임존 이름 → tzinfo

    Args:
        name: IANA 타임존 이름 (예: "Africa/Abidjan", "UTC")
    """
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def ensure_utc(dt: datetime) -> datetime:
    """datetime을 UTC aware로 정규화 (naive면 UTC로 간주)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_business(dt: datetime, zone: tzinfo) -> datetime:
    """UTC datetime을 영업 타임존으로 변환

    Example:
        >>> to_business(datetime(2025, 1, 1, 23, 30, tzinfo=timezone.utc), ZoneInfo("Africa/Lagos")).day
        2  # 다음날 00:30
    """
    return ensure_utc(dt).astimezone(zone)


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)"""
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """UTC ISO 문자열 (저장용)"""
    return ensure_utc(dt).isoformat()


def parse_iso(value: str) -> datetime:
    """저장된 ISO 문자열 → UTC aware datetime"""
    return ensure_utc(datetime.fromisoformat(value))
