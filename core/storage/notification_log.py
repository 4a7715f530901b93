"""
Notification Log

notification_log 테이블 기반 프로세스 간 알림 채널.
publish는 행을 추가만 하고, 구독자 전달은 poll_once()가
마지막으로 읽은 seq 이후 행을 읽어 수행한다 (NotificationPoller).

at-least-once: 핸들러 실패는 기록만 하고 커서는 전진한다.
"""

import json
import logging
from collections import defaultdict
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import NotificationHandler, Unsubscribe
from adapters.models import NotificationMessage
from core.utils.timezone import now_utc, parse_iso

logger = logging.getLogger(__name__)


class SQLiteNotificationChannel:
    """SQLite 알림 채널

    INotificationChannel Protocol 구현.

    Args:
        adapter: SQLite 어댑터
        batch_size: poll_once 1회 최대 처리 행 수

    사용 예시:
    ```python
    channel = SQLiteNotificationChannel(adapter)
    await channel.start_from_latest()

    channel.subscribe("document.changed", on_changed)
    await channel.publish("document.changed", {"collection": "ledger_days", "key": "2025-01-01"})

    dispatched = await channel.poll_once()
    ```
    """

    def __init__(self, adapter: SQLiteAdapter, batch_size: int = 200):
        self.adapter = adapter
        self.batch_size = batch_size
        self._handlers: dict[str, list[NotificationHandler]] = defaultdict(list)
        self._cursor = 0

    @property
    def cursor(self) -> int:
        """마지막으로 전달한 seq"""
        return self._cursor

    async def start_from_latest(self) -> int:
        """커서를 현재 마지막 seq로 이동 (이전 메시지 무시)"""
        row = await self.adapter.fetchone("SELECT COALESCE(MAX(seq), 0) FROM notification_log")
        self._cursor = row[0] if row else 0
        return self._cursor

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        await self.adapter.execute(
            """
            INSERT INTO notification_log (topic, payload_json, published_at)
            VALUES (?, ?, ?)
            """,
            (topic, json.dumps(payload, ensure_ascii=False), now_utc().isoformat()),
        )
        await self.adapter.commit()

    def subscribe(self, topic: str, handler: NotificationHandler) -> Unsubscribe:
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[topic]:
                self._handlers[topic].remove(handler)

        return unsubscribe

    async def poll_once(self) -> int:
        """커서 이후 메시지를 읽어 구독자에게 전달

        Returns:
            읽은 메시지 수
        """
        rows = await self.adapter.fetchall(
            """
            SELECT seq, topic, payload_json, published_at
            FROM notification_log
            WHERE seq > ?
            ORDER BY seq ASC
            LIMIT ?
            """,
            (self._cursor, self.batch_size),
        )

        for seq, topic, payload_json, published_at in rows:
            message = NotificationMessage(
                topic=topic,
                payload=json.loads(payload_json),
                seq=seq,
                published_at=parse_iso(published_at),
            )
            await self._dispatch(message)
            self._cursor = seq

        return len(rows)

    async def _dispatch(self, message: NotificationMessage) -> None:
        for handler in list(self._handlers.get(message.topic, [])):
            try:
                await handler(message)
            except Exception as e:
                logger.error(
                    f"Notification handler failed: {e}",
                    extra={"topic": message.topic, "seq": message.seq},
                    exc_info=True,
                )

    async def prune(self, keep_last: int = 10000) -> int:
        """오래된 로그 정리

        Returns:
            삭제된 행 수
        """
        cursor = await self.adapter.execute(
            """
            DELETE FROM notification_log
            WHERE seq <= (SELECT COALESCE(MAX(seq), 0) FROM notification_log) - ?
            """,
            (keep_last,),
        )
        await self.adapter.commit()
        return cursor.rowcount
