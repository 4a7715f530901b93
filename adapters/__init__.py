"""
어댑터 레이어

외부 서비스(문서 저장소, 알림 채널, 알림 등)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.clock import SystemClock
from adapters.interfaces import (
    IClock,
    IDocumentStore,
    INotificationChannel,
    INotifier,
)
from adapters.models import (
    DeadLetter,
    NotificationMessage,
    VersionedDocument,
)

__all__ = [
    # Interfaces
    "IClock",
    "IDocumentStore",
    "INotificationChannel",
    "INotifier",
    # Models
    "DeadLetter",
    "NotificationMessage",
    "VersionedDocument",
    # Implementations
    "SystemClock",
]
