"""
Mock 문서 저장소

테스트용 인메모리 Document Store.
IDocumentStore Protocol 준수.
"""

import asyncio
import copy
from collections import defaultdict
from typing import Any

from adapters.models import VersionedDocument
from core.domain.documents import parse_document
from core.errors import ConflictError


class InMemoryDocumentStore:
    """인메모리 문서 저장소

    IDocumentStore Protocol 구현.
    충돌 주입과 지연 시뮬레이션으로 큐의 재시도/타임아웃 시나리오 검증.

    사용 예시:
    ```python
    store = InMemoryDocumentStore()

    # 다음 put 2회를 충돌로 실패시킴
    store.inject_conflicts("ledger_days", "2025-01-01", count=2)

    # 모든 put에 지연 추가 (타임아웃 테스트)
    store.put_delay_sec = 1.0
    ```
    """

    def __init__(self, latency_sec: float = 0.0):
        """
        Args:
            latency_sec: 모든 읽기/쓰기 전에 대기할 시간 (동시성 테스트용)
        """
        self.latency_sec = latency_sec
        self.put_delay_sec = 0.0
        self._docs: dict[tuple[str, str], VersionedDocument] = {}
        self._pending_conflicts: dict[tuple[str, str], int] = defaultdict(int)

        # 검증용 기록
        self.put_count = 0
        self.conflict_count = 0
        self._in_flight: dict[tuple[str, str], int] = defaultdict(int)
        self.max_in_flight: dict[tuple[str, str], int] = defaultdict(int)

    # -------------------------------------------------------------------------
    # IDocumentStore
    # -------------------------------------------------------------------------

    async def get(self, collection: str, key: str) -> VersionedDocument | None:
        await asyncio.sleep(self.latency_sec)
        doc = self._docs.get((collection, key))
        return copy.deepcopy(doc) if doc else None

    async def put(
        self,
        collection: str,
        key: str,
        data: dict[str, Any],
        expected_revision: int | None,
    ) -> VersionedDocument:
        parse_document(data)

        target = (collection, key)
        self._in_flight[target] += 1
        self.max_in_flight[target] = max(self.max_in_flight[target], self._in_flight[target])
        try:
            await asyncio.sleep(self.latency_sec + self.put_delay_sec)
            self.put_count += 1

            current = self._docs.get(target)
            actual_revision = current.revision if current else None

            if self._pending_conflicts[target] > 0:
                self._pending_conflicts[target] -= 1
                self.conflict_count += 1
                raise ConflictError(collection, key, expected_revision, actual_revision)

            if actual_revision != expected_revision:
                self.conflict_count += 1
                raise ConflictError(collection, key, expected_revision, actual_revision)

            doc = VersionedDocument(
                collection=collection,
                key=key,
                data=copy.deepcopy(data),
                revision=(actual_revision or 0) + 1,
            )
            self._docs[target] = doc
            return copy.deepcopy(doc)
        finally:
            self._in_flight[target] -= 1

    async def query_range(
        self,
        collection: str,
        start_key: str,
        end_key: str,
    ) -> list[VersionedDocument]:
        await asyncio.sleep(self.latency_sec)
        return [
            copy.deepcopy(doc)
            for (coll, key), doc in sorted(self._docs.items())
            if coll == collection and start_key <= key <= end_key
        ]

    async def list_collection(self, collection: str) -> list[VersionedDocument]:
        await asyncio.sleep(self.latency_sec)
        return [
            copy.deepcopy(doc)
            for (coll, _), doc in sorted(self._docs.items())
            if coll == collection
        ]

    # -------------------------------------------------------------------------
    # 상태 조작 메서드 (테스트용)
    # -------------------------------------------------------------------------

    def inject_conflicts(self, collection: str, key: str, count: int = 1) -> None:
        """다음 put count회를 ConflictError로 실패시킴"""
        self._pending_conflicts[(collection, key)] += count

    def seed(self, collection: str, key: str, data: dict[str, Any]) -> VersionedDocument:
        """CAS 없이 문서 직접 저장 (초기 상태 구성용)"""
        current = self._docs.get((collection, key))
        doc = VersionedDocument(
            collection=collection,
            key=key,
            data=copy.deepcopy(data),
            revision=(current.revision if current else 0) + 1,
        )
        self._docs[(collection, key)] = doc
        return doc

    def raw(self, collection: str, key: str) -> dict[str, Any] | None:
        """저장된 문서 본문 (검증용)"""
        doc = self._docs.get((collection, key))
        return copy.deepcopy(doc.data) if doc else None
