"""
Mock 시계

테스트용 고정 시계. advance()로 시간을 진행시켜 TTL 만료 등을 검증.
"""

from datetime import datetime, timedelta, timezone


class FixedClock:
    """고정 시계 (IClock Protocol 구현)"""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        """시간 진행"""
        self._now = self._now + timedelta(seconds=seconds)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value
