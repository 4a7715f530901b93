"""
Document Store

documents 테이블 기반 문서 저장소.
revision 컬럼으로 compare-and-swap 쓰기를 제공한다.

- 새 문서: expected_revision=None → INSERT (이미 있으면 충돌)
- 기존 문서: UPDATE ... WHERE revision = expected_revision (0행이면 충돌)

문서 본문은 저장/조회 시 태그 기반 형식 검증을 거친다.
"""

import json
import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import VersionedDocument
from core.domain.documents import parse_document
from core.errors import ConflictError
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SQLiteDocumentStore:
    """SQLite 문서 저장소

    IDocumentStore Protocol 구현.

    Args:
        adapter: SQLite 어댑터

    사용 예시:
    ```python
    store = SQLiteDocumentStore(adapter)

    doc = await store.get("ledger_days", "2025-01-01")
    await store.put("ledger_days", "2025-01-01", data, doc.revision if doc else None)
    ```
    """

    def __init__(self, adapter: SQLiteAdapter):
        self.adapter = adapter

    async def get(self, collection: str, key: str) -> VersionedDocument | None:
        row = await self.adapter.fetchone(
            """
            SELECT collection, doc_key, data_json, revision
            FROM documents
            WHERE collection = ? AND doc_key = ?
            """,
            (collection, key),
        )
        return self._row_to_document(row) if row else None

    async def put(
        self,
        collection: str,
        key: str,
        data: dict[str, Any],
        expected_revision: int | None,
    ) -> VersionedDocument:
        """CAS 쓰기

        Raises:
            SchemaViolationError: 알 수 없는 문서 형식
            ConflictError: revision 불일치
        """
        parse_document(data)

        data_json = json.dumps(data, ensure_ascii=False, sort_keys=True)
        now = now_utc().isoformat()

        if expected_revision is None:
            cursor = await self.adapter.execute(
                """
                INSERT OR IGNORE INTO documents (collection, doc_key, data_json, revision, updated_at)
                VALUES (?, ?, ?, 1, ?)
                """,
                (collection, key, data_json, now),
            )
            new_revision = 1
        else:
            cursor = await self.adapter.execute(
                """
                UPDATE documents
                SET data_json = ?, revision = revision + 1, updated_at = ?
                WHERE collection = ? AND doc_key = ? AND revision = ?
                """,
                (data_json, now, collection, key, expected_revision),
            )
            new_revision = expected_revision + 1

        await self.adapter.commit()

        if cursor.rowcount == 0:
            row = await self.adapter.fetchone(
                "SELECT revision FROM documents WHERE collection = ? AND doc_key = ?",
                (collection, key),
            )
            actual = row[0] if row else None
            logger.debug(
                "Document revision conflict",
                extra={
                    "collection": collection,
                    "key": key,
                    "expected": expected_revision,
                    "actual": actual,
                },
            )
            raise ConflictError(collection, key, expected_revision, actual)

        return VersionedDocument(
            collection=collection,
            key=key,
            data=data,
            revision=new_revision,
        )

    async def query_range(
        self,
        collection: str,
        start_key: str,
        end_key: str,
    ) -> list[VersionedDocument]:
        rows = await self.adapter.fetchall(
            """
            SELECT collection, doc_key, data_json, revision
            FROM documents
            WHERE collection = ? AND doc_key >= ? AND doc_key <= ?
            ORDER BY doc_key ASC
            """,
            (collection, start_key, end_key),
        )
        return [self._row_to_document(row) for row in rows]

    async def list_collection(self, collection: str) -> list[VersionedDocument]:
        rows = await self.adapter.fetchall(
            """
            SELECT collection, doc_key, data_json, revision
            FROM documents
            WHERE collection = ?
            ORDER BY doc_key ASC
            """,
            (collection,),
        )
        return [self._row_to_document(row) for row in rows]

    async def count(self, collection: str) -> int:
        row = await self.adapter.fetchone(
            "SELECT COUNT(*) FROM documents WHERE collection = ?",
            (collection,),
        )
        return row[0] if row else 0

    def _row_to_document(self, row: tuple[Any, ...]) -> VersionedDocument:
        """DB 행 → VersionedDocument 변환"""
        collection, key, data_json, revision = row
        data = json.loads(data_json)
        parse_document(data)
        return VersionedDocument(
            collection=collection,
            key=key,
            data=data,
            revision=revision,
        )
