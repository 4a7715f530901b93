"""
Mock 어댑터

테스트용 Mock 구현체 제공.
Protocol 준수하여 실제 구현체와 교체 가능.
"""

from adapters.mock.clock import FixedClock
from adapters.mock.document_store import InMemoryDocumentStore
from adapters.mock.notification_bus import InMemoryNotificationBus
from adapters.mock.notifier import MockNotifier

__all__ = [
    "FixedClock",
    "InMemoryDocumentStore",
    "InMemoryNotificationBus",
    "MockNotifier",
]
