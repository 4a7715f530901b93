"""
시스템 시계

IClock Protocol 구현. 테스트에서는 adapters.mock.clock.FixedClock으로 교체.
"""

from datetime import datetime

from core.utils.timezone import now_utc


class SystemClock:
    """실제 시스템 시간"""

    def now(self) -> datetime:
        return now_utc()
