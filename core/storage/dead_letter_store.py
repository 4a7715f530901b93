"""
Dead Letter Store

재시도 소진으로 적용되지 못한 Operation 조회/정리.
기록은 OperationStore.move_to_dead_letter()가 저널 삭제와 함께 수행.
"""

import json
import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import DeadLetter
from core.utils.timezone import parse_iso

logger = logging.getLogger(__name__)


class DeadLetterStore:
    """Dead letter 저장소

    Args:
        adapter: SQLite 어댑터
    """

    def __init__(self, adapter: SQLiteAdapter):
        self.adapter = adapter

    async def list(self, limit: int = 100) -> list[DeadLetter]:
        """최근 실패 순 조회"""
        rows = await self.adapter.fetchall(
            """
            SELECT operation_id, operation_json, attempts, last_error, failed_at
            FROM dead_letter
            ORDER BY seq DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [self._row_to_dead_letter(row) for row in rows]

    async def get(self, operation_id: str) -> DeadLetter | None:
        row = await self.adapter.fetchone(
            """
            SELECT operation_id, operation_json, attempts, last_error, failed_at
            FROM dead_letter
            WHERE operation_id = ?
            """,
            (operation_id,),
        )
        return self._row_to_dead_letter(row) if row else None

    async def delete(self, operation_id: str) -> bool:
        cursor = await self.adapter.execute(
            "DELETE FROM dead_letter WHERE operation_id = ?",
            (operation_id,),
        )
        await self.adapter.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Dead letter removed: {operation_id}")
        return deleted

    async def count(self) -> int:
        row = await self.adapter.fetchone("SELECT COUNT(*) FROM dead_letter")
        return row[0] if row else 0

    def _row_to_dead_letter(self, row: tuple[Any, ...]) -> DeadLetter:
        operation_id, operation_json, attempts, last_error, failed_at = row
        return DeadLetter(
            operation_id=operation_id,
            operation=json.loads(operation_json),
            attempts=attempts,
            last_error=last_error,
            failed_at=parse_iso(failed_at),
        )
