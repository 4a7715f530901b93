"""
Operation Store

operation_queue 테이블 기반 Operation 저널.
적용 전 Operation을 보관하여 프로세스 재시작 시 복원한다.

저널에는 PENDING / PROCESSING만 존재:
- 적용 성공, 비즈니스 거부, 취소 → 삭제
- 재시도 소진 → dead_letter로 이동
"""

import json
import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.operations import Operation
from core.types import OperationStatus
from core.utils.timezone import format_iso, now_utc, parse_iso

logger = logging.getLogger(__name__)


class OperationStore:
    """Operation 저널

    Args:
        adapter: SQLite 어댑터

    사용 예시:
    ```python
    store = OperationStore(adapter)

    await store.insert(operation)
    await store.mark_processing(operation.operation_id, attempts=1)
    await store.delete(operation.operation_id)

    # 재시작 시 복원
    pending = await store.load_all()
    ```
    """

    def __init__(self, adapter: SQLiteAdapter):
        self.adapter = adapter

    async def insert(self, operation: Operation) -> bool:
        """Operation 저장

        operation_id가 이미 존재하면 무시 (INSERT OR IGNORE).

        Returns:
            True: 새로 저장됨
            False: 이미 존재 (중복)
        """
        cursor = await self.adapter.execute(
            """
            INSERT OR IGNORE INTO operation_queue (
                operation_id, kind, target_collection, target_key,
                payload_json, actor, enqueued_at, status, attempts, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                operation.operation_id,
                operation.kind,
                operation.target_collection,
                operation.target_key,
                json.dumps(operation.payload, ensure_ascii=False),
                operation.actor,
                format_iso(operation.enqueued_at),
                OperationStatus.PENDING.value,
                operation.attempts,
                now_utc().isoformat(),
            ),
        )
        await self.adapter.commit()

        inserted = cursor.rowcount > 0
        if not inserted:
            logger.debug(f"Duplicate operation ignored: {operation.operation_id}")
        return inserted

    async def mark_processing(self, operation_id: str, attempts: int) -> bool:
        """PROCESSING 표시 + 시도 횟수 갱신"""
        return await self._update(operation_id, OperationStatus.PROCESSING, attempts, None)

    async def mark_retry(self, operation_id: str, attempts: int, error: str) -> bool:
        """충돌 후 재시도 대기 표시"""
        return await self._update(operation_id, OperationStatus.PROCESSING, attempts, error)

    async def _update(
        self,
        operation_id: str,
        status: OperationStatus,
        attempts: int,
        error: str | None,
    ) -> bool:
        cursor = await self.adapter.execute(
            """
            UPDATE operation_queue
            SET status = ?, attempts = ?, last_error = COALESCE(?, last_error), updated_at = ?
            WHERE operation_id = ?
            """,
            (status.value, attempts, error, now_utc().isoformat(), operation_id),
        )
        await self.adapter.commit()
        return cursor.rowcount > 0

    async def delete(self, operation_id: str) -> bool:
        """저널에서 삭제 (성공/거부)"""
        cursor = await self.adapter.execute(
            "DELETE FROM operation_queue WHERE operation_id = ?",
            (operation_id,),
        )
        await self.adapter.commit()
        return cursor.rowcount > 0

    async def move_to_dead_letter(
        self,
        operation: Operation,
        attempts: int,
        last_error: str,
    ) -> None:
        """재시도 소진 Operation을 dead_letter로 이동 (단일 트랜잭션)"""
        failed_at = now_utc().isoformat()
        operation_json = json.dumps(
            operation.with_attempts(attempts).to_dict(), ensure_ascii=False
        )

        async with self.adapter.transaction() as conn:
            await conn.execute(
                """
                INSERT OR REPLACE INTO dead_letter (
                    operation_id, target_collection, target_key,
                    operation_json, attempts, last_error, failed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    operation.operation_id,
                    operation.target_collection,
                    operation.target_key,
                    operation_json,
                    attempts,
                    last_error,
                    failed_at,
                ),
            )
            await conn.execute(
                "DELETE FROM operation_queue WHERE operation_id = ?",
                (operation.operation_id,),
            )

        logger.warning(
            "Operation moved to dead letter",
            extra={
                "operation_id": operation.operation_id,
                "attempts": attempts,
                "last_error": last_error,
            },
        )

    async def load_all(self) -> list[Operation]:
        """저널 전체 조회 (적재 순서)"""
        rows = await self.adapter.fetchall(
            """
            SELECT operation_id, kind, target_collection, target_key,
                   payload_json, actor, enqueued_at, attempts
            FROM operation_queue
            ORDER BY seq ASC
            """
        )
        return [self._row_to_operation(row) for row in rows]

    async def get_status(self, operation_id: str) -> str | None:
        row = await self.adapter.fetchone(
            "SELECT status FROM operation_queue WHERE operation_id = ?",
            (operation_id,),
        )
        return row[0] if row else None

    async def count(self) -> int:
        row = await self.adapter.fetchone("SELECT COUNT(*) FROM operation_queue")
        return row[0] if row else 0

    async def count_by_status(self) -> dict[str, int]:
        rows = await self.adapter.fetchall(
            "SELECT status, COUNT(*) FROM operation_queue GROUP BY status"
        )
        return {status: cnt for status, cnt in rows}

    def _row_to_operation(self, row: tuple[Any, ...]) -> Operation:
        """DB 행 → Operation 변환"""
        (
            operation_id, kind, target_collection, target_key,
            payload_json, actor, enqueued_at, attempts,
        ) = row

        return Operation(
            operation_id=operation_id,
            kind=kind,
            target_collection=target_collection,
            target_key=target_key,
            payload=json.loads(payload_json) if payload_json else {},
            enqueued_at=parse_iso(enqueued_at),
            attempts=attempts,
            actor=actor,
        )
