"""
기간 키 유틸리티

- 일: YYYY-MM-DD
- 주: YYYY-Www (ISO 주, 월요일~일요일)
- 월: YYYY-MM
- 연: YYYY

모든 키는 영업 타임존 기준 달력 날짜로 계산.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo

from core.types import PeriodKind
from core.utils.timezone import to_business

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_WEEK_RE = re.compile(r"^(\d{4})-W(\d{2})$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_YEAR_RE = re.compile(r"^\d{4}$")


@dataclass(frozen=True)
class PeriodRange:
    """기간 범위 (양 끝 포함)"""

    kind: PeriodKind
    period_key: str
    start: date
    end: date

    @property
    def start_key(self) -> str:
        return day_key(self.start)

    @property
    def end_key(self) -> str:
        return day_key(self.end)

    def days(self) -> list[str]:
        """범위 내 모든 일 키"""
        count = (self.end - self.start).days + 1
        return [day_key(self.start + timedelta(days=i)) for i in range(count)]

    def contains(self, date_key: str) -> bool:
        return self.start_key <= date_key <= self.end_key


def day_key(value: date) -> str:
    """date → YYYY-MM-DD"""
    return value.isoformat()


def day_key_of(dt: datetime, zone: tzinfo) -> str:
    """timestamp가 속한 영업일 키

    Args:
        dt: 발생 시각 (naive면 UTC로 간주)
        zone: 영업 타임존
    """
    return to_business(dt, zone).date().isoformat()


def parse_day_key(key: str) -> date:
    """YYYY-MM-DD → date

    Raises:
        ValueError: 형식 오류
    """
    if not _DAY_RE.match(key):
        raise ValueError(f"잘못된 일 키: {key!r} (YYYY-MM-DD)")
    return date.fromisoformat(key)


def week_key_of(date_key: str) -> str:
    """일 키 → ISO 주 키"""
    iso = parse_day_key(date_key).isocalendar()
    return f"{iso[0]:04d}-W{iso[1]:02d}"


def month_key_of(date_key: str) -> str:
    """일 키 → 월 키"""
    return date_key[:7]


def year_key_of(date_key: str) -> str:
    """일 키 → 연 키"""
    return date_key[:4]


def week_range(week_key: str) -> PeriodRange:
    """YYYY-Www → 월요일~일요일 범위"""
    match = _WEEK_RE.match(week_key)
    if not match:
        raise ValueError(f"잘못된 주 키: {week_key!r} (YYYY-Www)")
    year, week = int(match.group(1)), int(match.group(2))
    start = date.fromisocalendar(year, week, 1)
    return PeriodRange(PeriodKind.WEEK, week_key, start, start + timedelta(days=6))


def month_range(month_key: str) -> PeriodRange:
    """YYYY-MM → 1일~말일 범위"""
    match = _MONTH_RE.match(month_key)
    if not match:
        raise ValueError(f"잘못된 월 키: {month_key!r} (YYYY-MM)")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        raise ValueError(f"잘못된 월: {month_key!r}")
    last_day = calendar.monthrange(year, month)[1]
    return PeriodRange(
        PeriodKind.MONTH, month_key, date(year, month, 1), date(year, month, last_day)
    )


def year_range(year_key: str) -> PeriodRange:
    """YYYY → 1월 1일~12월 31일 범위"""
    if not _YEAR_RE.match(year_key):
        raise ValueError(f"잘못된 연 키: {year_key!r} (YYYY)")
    year = int(year_key)
    return PeriodRange(PeriodKind.YEAR, year_key, date(year, 1, 1), date(year, 12, 31))


def day_range(date_key: str) -> PeriodRange:
    """YYYY-MM-DD → 하루 범위"""
    value = parse_day_key(date_key)
    return PeriodRange(PeriodKind.DAY, date_key, value, value)


def enclosing_periods(date_key: str) -> list[tuple[PeriodKind, str]]:
    """해당 일을 포함하는 모든 기간 (캐시 무효화용)"""
    return [
        (PeriodKind.DAY, date_key),
        (PeriodKind.WEEK, week_key_of(date_key)),
        (PeriodKind.MONTH, month_key_of(date_key)),
        (PeriodKind.YEAR, year_key_of(date_key)),
    ]


def previous_day_key(date_key: str) -> str:
    """전날 키"""
    return day_key(parse_day_key(date_key) - timedelta(days=1))
