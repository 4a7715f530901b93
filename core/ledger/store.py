"""
Ledger 저장소

거래 기록/조회 및 일/주/월/연 집계.
모든 쓰기는 Operation Queue를 통해 일자 문서에 CAS로 적용되며,
집계는 지연 계산 후 캐시된다 (종료된 기간은 만료 없이 캐시).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo
from typing import TYPE_CHECKING, Callable

from adapters.clock import SystemClock
from adapters.interfaces import IClock, IDocumentStore
from core.cache.ttl_cache import MISS, TTLCache
from core.constants import CacheKeys, Collections
from core.domain.documents import Account, LedgerDay, Transaction
from core.domain.operations import LedgerActions, Operation
from core.errors import InvalidOperationError, PeriodClosedError
from core.ledger.accounts import load_active_account
from core.ledger.aggregation import PeriodBilan, PeriodSummary, compute_bilan, summarize
from core.ledger.periods import (
    PeriodRange,
    day_key_of,
    day_range,
    month_range,
    parse_day_key,
    week_range,
    year_range,
)
from core.types import ClosingState, OperationKind
from core.utils.timezone import format_iso

if TYPE_CHECKING:
    from worker.queue.queue import OperationQueue

logger = logging.getLogger(__name__)

# 반대 거래 motif 접두사
REVERSAL_MOTIF_PREFIX = "Annulation: "


class LedgerStore:
    """Ledger 저장소

    Args:
        queue: Operation Queue (모든 쓰기 경로)
        document_store: 읽기용 문서 저장소
        cache: 집계 캐시
        zone: 영업 타임존 (일자 분류 기준)
        clock: 시간 소스

    사용 예시:
    ```python
    ledger = LedgerStore(queue, document_store, cache)

    txn = await ledger.record_transaction(
        account_id="acc-701-a1b2c3",
        amount=500,
        motif="Vente sandwichs",
        created_by="user:awa",
    )

    summary = await ledger.get_day_summary("2025-01-01")
    ```
    """

    def __init__(
        self,
        queue: OperationQueue,
        document_store: IDocumentStore,
        cache: TTLCache,
        zone: tzinfo = timezone.utc,
        clock: IClock | None = None,
    ):
        self.queue = queue
        self.document_store = document_store
        self.cache = cache
        self.zone = zone
        self.clock = clock or SystemClock()

    def today_key(self) -> str:
        """영업 타임존 기준 오늘 키"""
        return day_key_of(self.clock.now(), self.zone)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_day(self, date_key: str) -> LedgerDay:
        """일자 문서 조회 (없으면 빈 OPEN 일자)"""
        _validate_day_key(date_key)
        doc = await self.document_store.get(Collections.LEDGER_DAYS, date_key)
        if doc is None:
            return LedgerDay.empty(date_key)
        return LedgerDay.from_dict(doc.data)

    async def list_transactions(self, date_key: str) -> list[Transaction]:
        """일자의 거래 목록 (기록 순)"""
        day = await self.get_day(date_key)
        return list(day.transactions)

    # -------------------------------------------------------------------------
    # 기록
    # -------------------------------------------------------------------------

    async def record_transaction(
        self,
        account_id: str,
        amount: int,
        motif: str,
        occurred_at: datetime | None = None,
        created_by: str = "system",
        reverses: str | None = None,
    ) -> Transaction:
        """거래 기록

        Args:
            account_id: 계정 ID
            amount: 부호 있는 금액 (최소 화폐 단위)
            motif: 사유
            occurred_at: 발생 시각 (없으면 현재). 영업 타임존 기준 일자로 분류
            created_by: 기록자

        Returns:
            기록된 거래

        Raises:
            InvalidOperationError: 금액이 정수가 아님
            AccountNotFoundError: 없거나 비활성 계정
            PeriodClosedError: 해당 일자가 OPEN이 아님
            OperationFailed: 재시도 소진
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidOperationError(f"amount는 정수여야 합니다: {amount!r}")

        occurred_at = occurred_at or self.clock.now()
        date_key = day_key_of(occurred_at, self.zone)

        # 빠른 실패 (최종 판정은 큐의 CAS 적용 시 다시 수행)
        await load_active_account(self.document_store, account_id)
        day = await self.get_day(date_key)
        if not day.is_open:
            raise PeriodClosedError(date_key, day.state)

        operation = Operation.create(
            kind=OperationKind.CREATE,
            target_collection=Collections.LEDGER_DAYS,
            target_key=date_key,
            payload={
                "action": LedgerActions.RECORD_TRANSACTION,
                "transaction": {
                    "account_id": account_id,
                    "amount": amount,
                    "motif": motif,
                    "occurred_at": format_iso(occurred_at),
                    "created_by": created_by,
                    "reverses": reverses,
                },
            },
            actor=created_by,
        )

        transaction: Transaction = await self.queue.submit(operation)

        logger.info(
            "Transaction recorded",
            extra={
                "transaction_id": transaction.id,
                "date_key": date_key,
                "account_id": account_id,
                "amount": amount,
            },
        )
        return transaction

    async def reverse_transaction(
        self,
        date_key: str,
        transaction_id: str,
        created_by: str = "system",
        occurred_at: datetime | None = None,
    ) -> Transaction:
        """반대 거래 기록 (거래는 수정/삭제 불가)

        원 거래와 같은 계정에 부호가 반대인 금액을 현재 일자에 기록한다.

        Raises:
            InvalidOperationError: 원 거래 없음, 이미 반대 거래가 있음
        """
        original_day = await self.get_day(date_key)
        original = original_day.find_transaction(transaction_id)
        if original is None:
            raise InvalidOperationError(f"거래를 찾을 수 없습니다: {date_key}/{transaction_id}")
        if original.reverses is not None:
            raise InvalidOperationError(f"반대 거래는 다시 취소할 수 없습니다: {transaction_id}")

        occurred_at = occurred_at or self.clock.now()
        reversal_key = day_key_of(occurred_at, self.zone)
        if await self._find_reversal(transaction_id, date_key, reversal_key):
            raise InvalidOperationError(f"이미 취소된 거래입니다: {transaction_id}")

        return await self.record_transaction(
            account_id=original.account_id,
            amount=-original.amount,
            motif=f"{REVERSAL_MOTIF_PREFIX}{original.motif}",
            occurred_at=occurred_at,
            created_by=created_by,
            reverses=original.id,
        )

    async def _find_reversal(self, transaction_id: str, start_key: str, end_key: str) -> bool:
        if end_key < start_key:
            start_key, end_key = end_key, start_key
        docs = await self.document_store.query_range(Collections.LEDGER_DAYS, start_key, end_key)
        for doc in docs:
            day = LedgerDay.from_dict(doc.data)
            if any(t.reverses == transaction_id for t in day.transactions):
                return True
        return False

    # -------------------------------------------------------------------------
    # 집계
    # -------------------------------------------------------------------------

    async def get_day_summary(self, date_key: str) -> PeriodSummary:
        return await self._get_summary(_period(day_range, date_key))

    async def get_week_summary(self, week_key: str) -> PeriodSummary:
        """ISO 주 집계 (YYYY-Www)"""
        return await self._get_summary(_period(week_range, week_key))

    async def get_month_summary(self, month_key: str) -> PeriodSummary:
        return await self._get_summary(_period(month_range, month_key))

    async def get_year_summary(self, year_key: str) -> PeriodSummary:
        return await self._get_summary(_period(year_range, year_key))

    async def _get_summary(self, period: PeriodRange) -> PeriodSummary:
        cache_key = CacheKeys.summary(period.kind.value, period.period_key)

        cached = self.cache.get(cache_key)
        if cached is not MISS:
            return cached

        version = self.cache.version
        docs = await self.document_store.query_range(
            Collections.LEDGER_DAYS, period.start_key, period.end_key
        )
        days = [LedgerDay.from_dict(doc.data) for doc in docs]

        # 범위 내 모든 일자가 문서로 존재하고 CLOSED여야 종료된 기간
        closed = len(days) == len(period.days()) and all(d.is_closed for d in days)
        summary = summarize(period.period_key, days, closed=closed)

        # 종료된 기간은 더 이상 바뀌지 않으므로 만료 없이 보관
        if closed:
            self.cache.put_if_current(cache_key, summary, version, ttl=None)
        else:
            self.cache.put_if_current(cache_key, summary, version)

        logger.debug(
            "Summary computed",
            extra={"period": cache_key, "transactions": summary.transaction_count},
        )
        return summary

    # -------------------------------------------------------------------------
    # bilan
    # -------------------------------------------------------------------------

    async def get_day_bilan(self, date_key: str) -> PeriodBilan:
        return await self._get_bilan(_period(day_range, date_key))

    async def get_week_bilan(self, week_key: str) -> PeriodBilan:
        return await self._get_bilan(_period(week_range, week_key))

    async def get_month_bilan(self, month_key: str) -> PeriodBilan:
        return await self._get_bilan(_period(month_range, month_key))

    async def get_year_bilan(self, year_key: str) -> PeriodBilan:
        return await self._get_bilan(_period(year_range, year_key))

    async def _get_bilan(self, period: PeriodRange) -> PeriodBilan:
        summary = await self._get_summary(period)
        # 과거 거래가 비활성 계정을 참조할 수 있으므로 전체 계정 사용
        docs = await self.document_store.list_collection(Collections.ACCOUNTS)
        accounts = {doc.key: Account.from_dict(doc.data) for doc in docs}
        return compute_bilan(summary, accounts)

    async def find_open_days(self, start_key: str, end_key: str) -> list[LedgerDay]:
        """범위 내 CLOSED가 아닌 일자 문서"""
        docs = await self.document_store.query_range(Collections.LEDGER_DAYS, start_key, end_key)
        days = [LedgerDay.from_dict(doc.data) for doc in docs]
        return [d for d in days if d.state != ClosingState.CLOSED.value]


def _validate_day_key(date_key: str) -> None:
    try:
        parse_day_key(date_key)
    except ValueError as e:
        raise InvalidOperationError(str(e)) from e


def _period(builder: Callable[[str], PeriodRange], key: str) -> PeriodRange:
    try:
        return builder(key)
    except ValueError as e:
        raise InvalidOperationError(str(e)) from e
