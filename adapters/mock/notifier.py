"""
Mock 알림 서비스

테스트용 Mock Notifier.
INotifier Protocol 준수.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from core.utils.timezone import now_utc


@dataclass
class NotificationRecord:
    """알림 기록"""

    message: str
    level: str
    extra: dict[str, Any] | None
    timestamp: datetime
    sent: bool


class MockNotifier:
    """Mock 알림 서비스

    INotifier Protocol 구현.
    발송된 모든 알림을 기록하여 테스트에서 검증 가능.

    사용 예시:
    ```python
    notifier = MockNotifier()

    await notifier.send_dead_letter_alert("COP-1", "ledger_days/2025-01-01", 6, "conflict")

    assert notifier.get_errors()[0].extra["operation_id"] == "COP-1"
    ```
    """

    def __init__(self, should_fail: bool = False):
        """
        Args:
            should_fail: True면 모든 발송 실패 (에러 시나리오 테스트용)
        """
        self.should_fail = should_fail
        self.notifications: list[NotificationRecord] = []

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        self.notifications.append(
            NotificationRecord(
                message=message,
                level=level,
                extra=extra,
                timestamp=now_utc(),
                sent=not self.should_fail,
            )
        )
        return not self.should_fail

    async def send_dead_letter_alert(
        self,
        operation_id: str,
        target: str,
        attempts: int,
        last_error: str,
    ) -> bool:
        return await self.send(
            message=f"Operation {operation_id} dead-lettered on {target}",
            level="ERROR",
            extra={
                "operation_id": operation_id,
                "target": target,
                "attempts": attempts,
                "last_error": last_error,
            },
        )

    # -------------------------------------------------------------------------
    # 테스트 헬퍼 메서드
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        self.notifications.clear()

    def get_by_level(self, level: str) -> list[NotificationRecord]:
        return [n for n in self.notifications if n.level == level]

    def get_errors(self) -> list[NotificationRecord]:
        return self.get_by_level("ERROR")

    @property
    def last_notification(self) -> NotificationRecord | None:
        return self.notifications[-1] if self.notifications else None

    @property
    def message_count(self) -> int:
        return len(self.notifications)
