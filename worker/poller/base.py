"""
BasePoller

모든 Poller의 베이스 클래스.
공통 폴링 로직과 마지막 폴링 시간 관리 제공.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from adapters.clock import SystemClock
from adapters.interfaces import IClock

logger = logging.getLogger(__name__)


class BasePoller(ABC):
    """Poller 베이스 클래스

    Args:
        poll_interval_seconds: 폴링 간격 (초)
        clock: 시간 소스 (테스트에서 FixedClock 주입)
    """

    def __init__(self, poll_interval_seconds: float, clock: IClock | None = None):
        self.poll_interval_seconds = poll_interval_seconds
        self.clock = clock or SystemClock()

        self._last_poll_time: datetime | None = None
        self._is_running: bool = False
        self._poll_count = 0
        self._error_count = 0

    @property
    @abstractmethod
    def poller_name(self) -> str:
        """Poller 이름 (로깅용)"""
        ...

    async def initialize(self) -> None:
        """초기화 (필요 시 하위 클래스에서 확장)"""
        self._last_poll_time = None
        logger.info(f"{self.poller_name} Poller 초기화")

    def should_poll(self) -> bool:
        """마지막 폴링 이후 poll_interval_seconds가 경과했는지 확인"""
        if self._is_running:
            return False

        if self._last_poll_time is None:
            return True

        elapsed = (self.clock.now() - self._last_poll_time).total_seconds()
        return elapsed >= self.poll_interval_seconds

    async def poll(self) -> dict[str, Any]:
        """폴링 실행

        Returns:
            폴링 결과:
            {
                "items": int,
                "poll_time": datetime,
                "duration_ms": float,
            }
        """
        if self._is_running:
            logger.warning(f"{self.poller_name} Poller가 이미 실행 중입니다")
            return {"items": 0, "skipped": True}

        self._is_running = True
        start_time = self.clock.now()

        try:
            items = await self._do_poll()

            self._last_poll_time = start_time
            self._poll_count += 1
            duration_ms = (self.clock.now() - start_time).total_seconds() * 1000

            if items > 0:
                logger.debug(
                    f"{self.poller_name} Poller 완료",
                    extra={"items": items, "duration_ms": duration_ms},
                )

            return {
                "items": items,
                "poll_time": start_time,
                "duration_ms": duration_ms,
            }

        except Exception as e:
            self._error_count += 1
            self._last_poll_time = start_time
            logger.error(
                f"{self.poller_name} Poller 실패",
                extra={"error": str(e)},
                exc_info=True,
            )
            return {"items": 0, "error": str(e)}

        finally:
            self._is_running = False

    @abstractmethod
    async def _do_poll(self) -> int:
        """실제 폴링 로직 구현

        Returns:
            처리한 항목 수
        """
        ...

    def get_stats(self) -> dict[str, Any]:
        return {
            "name": self.poller_name,
            "polls": self._poll_count,
            "errors": self._error_count,
            "last_poll_time": self._last_poll_time.isoformat() if self._last_poll_time else None,
        }

    async def stop(self) -> None:
        """Poller 정지"""
        logger.info(f"{self.poller_name} Poller 정지")
