"""
스토리지 모듈

Document Store, Operation 저널, Dead Letter, 알림 로그 등 SQLite 저장소 제공
"""

from core.storage.dead_letter_store import DeadLetterStore
from core.storage.document_store import SQLiteDocumentStore
from core.storage.notification_log import SQLiteNotificationChannel
from core.storage.operation_store import OperationStore

__all__ = [
    "DeadLetterStore",
    "SQLiteDocumentStore",
    "SQLiteNotificationChannel",
    "OperationStore",
]
