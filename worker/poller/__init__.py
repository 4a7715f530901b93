"""
Poller 모듈

주기적으로 호출되어 프로세스 간 알림 등을 수집하는 Poller.
"""

from worker.poller.base import BasePoller
from worker.poller.notification_poller import NotificationPoller

__all__ = [
    "BasePoller",
    "NotificationPoller",
]
