"""
Notification Poller

notification_log 테이블의 새 메시지를 읽어 구독자에게 전달.
다른 프로세스(Web)에서 발생한 document.changed를 받아
이 프로세스의 캐시를 무효화하는 경로로 사용된다.
"""

import logging

from adapters.interfaces import IClock
from core.storage.notification_log import SQLiteNotificationChannel
from worker.poller.base import BasePoller

logger = logging.getLogger(__name__)


class NotificationPoller(BasePoller):
    """알림 로그 Poller

    한 번의 폴링에서 밀린 메시지를 모두 읽는다 (batch 단위 반복).

    Args:
        channel: SQLite 알림 채널
        poll_interval_seconds: 폴링 간격 (초)
        from_latest: True면 시작 시 과거 메시지를 건너뜀
        max_batches: 1회 폴링 최대 batch 수
    """

    def __init__(
        self,
        channel: SQLiteNotificationChannel,
        poll_interval_seconds: float,
        clock: IClock | None = None,
        from_latest: bool = True,
        max_batches: int = 10,
    ):
        super().__init__(poll_interval_seconds, clock)
        self.channel = channel
        self.from_latest = from_latest
        self.max_batches = max_batches

    @property
    def poller_name(self) -> str:
        return "Notification"

    async def initialize(self) -> None:
        await super().initialize()
        if self.from_latest:
            cursor = await self.channel.start_from_latest()
            logger.info(f"알림 커서 초기화: seq={cursor}")

    async def _do_poll(self) -> int:
        total = 0
        for _ in range(self.max_batches):
            count = await self.channel.poll_once()
            total += count
            if count < self.channel.batch_size:
                break
        return total
