"""
인메모리 알림 버스

단일 프로세스/테스트용 INotificationChannel 구현.
publish 시 구독자 핸들러를 즉시 호출한다.
"""

import logging
from collections import defaultdict
from typing import Any

from adapters.interfaces import NotificationHandler, Unsubscribe
from adapters.models import NotificationMessage
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


class InMemoryNotificationBus:
    """인메모리 알림 버스

    INotificationChannel Protocol 구현.
    발행된 모든 메시지를 published에 기록하여 테스트에서 검증 가능.
    """

    def __init__(self, should_fail: bool = False):
        """
        Args:
            should_fail: True면 publish 시 ConnectionError (채널 장애 시나리오)
        """
        self.should_fail = should_fail
        self.published: list[NotificationMessage] = []
        self._handlers: dict[str, list[NotificationHandler]] = defaultdict(list)
        self._seq = 0

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        if self.should_fail:
            raise ConnectionError("notification bus unavailable")

        self._seq += 1
        message = NotificationMessage(
            topic=topic,
            payload=dict(payload),
            seq=self._seq,
            published_at=now_utc(),
        )
        self.published.append(message)

        for handler in list(self._handlers.get(topic, [])):
            try:
                await handler(message)
            except Exception as e:
                # 한 구독자 실패가 다른 구독자 전달을 막지 않음
                logger.error(
                    f"Notification handler failed: {e}",
                    extra={"topic": topic},
                    exc_info=True,
                )

    def subscribe(self, topic: str, handler: NotificationHandler) -> Unsubscribe:
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[topic]:
                self._handlers[topic].remove(handler)

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, []))

    def get_by_topic(self, topic: str) -> list[NotificationMessage]:
        return [m for m in self.published if m.topic == topic]
