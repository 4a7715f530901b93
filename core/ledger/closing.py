"""
Clôture (일마감) 워크플로우

    OPEN ──begin──▶ RECONCILING ──finalize──▶ CLOSED
      ▲                  │
      └─────cancel───────┘

모든 전이는 일자 문서 대상 Operation으로 큐에 적재되므로
같은 일자의 거래 기록과 직렬화된다. begin 이후에는
RECONCILING 상태라 새 거래가 PeriodClosedError로 거부된다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core.constants import Collections
from core.domain.documents import ClosingRecord, LedgerDay
from core.domain.operations import LedgerActions, Operation
from core.errors import InvalidOperationError
from core.ledger.periods import parse_day_key
from core.ledger.store import LedgerStore
from core.types import ClosingState, OperationKind
from core.utils.timezone import format_iso

if TYPE_CHECKING:
    from worker.queue.queue import OperationQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClosingStatus:
    """일자 마감 상태 요약"""

    date_key: str
    state: str
    transaction_count: int
    closing: ClosingRecord | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date_key": self.date_key,
            "state": self.state,
            "transaction_count": self.transaction_count,
            "closing": self.closing.to_dict() if self.closing else None,
        }


class ClosingWorkflow:
    """Clôture 워크플로우

    Args:
        queue: Operation Queue
        ledger: Ledger 저장소 (일자 조회, 시간/타임존)

    사용 예시:
    ```python
    closing = ClosingWorkflow(queue, ledger)

    await closing.begin_closing("2025-01-01", actor="user:awa")
    summary = await ledger.get_day_summary("2025-01-01")
    record = await closing.finalize_closing(
        "2025-01-01",
        final_balances=summary.per_account_totals,
        closed_by="user:awa",
    )
    ```
    """

    def __init__(self, queue: OperationQueue, ledger: LedgerStore):
        self.queue = queue
        self.ledger = ledger

    def _operation(self, date_key: str, payload: dict[str, Any], actor: str) -> Operation:
        try:
            parse_day_key(date_key)
        except ValueError as e:
            raise InvalidOperationError(str(e)) from e

        return Operation.create(
            kind=OperationKind.UPDATE,
            target_collection=Collections.LEDGER_DAYS,
            target_key=date_key,
            payload=payload,
            actor=actor,
        )

    async def begin_closing(self, date_key: str, actor: str = "system") -> LedgerDay:
        """OPEN → RECONCILING

        Raises:
            AlreadyClosingError: OPEN이 아님
        """
        operation = self._operation(
            date_key, {"action": LedgerActions.BEGIN_CLOSING}, actor
        )
        day: LedgerDay = await self.queue.submit(operation)

        logger.info(
            "Closing started",
            extra={"date_key": date_key, "actor": actor, "transactions": len(day.transactions)},
        )
        return day

    async def finalize_closing(
        self,
        date_key: str,
        final_balances: dict[str, int],
        closed_by: str,
    ) -> ClosingRecord:
        """RECONCILING → CLOSED

        제출된 계정별 잔액이 실시간 일 집계와 정확히 일치해야 한다.
        한쪽에만 있는 계정은 0으로 간주.

        Raises:
            ClosingStateError: RECONCILING이 아님
            ReconciliationMismatchError: 잔액 불일치 (differences 포함)
            InvalidOperationError: 잔액 값이 정수가 아님
        """
        for account_id, amount in final_balances.items():
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise InvalidOperationError(
                    f"final_balances[{account_id!r}]는 정수여야 합니다: {amount!r}"
                )

        operation = self._operation(
            date_key,
            {
                "action": LedgerActions.FINALIZE_CLOSING,
                "final_balances": dict(final_balances),
                "closed_by": closed_by,
                "closed_at": format_iso(self.ledger.clock.now()),
            },
            closed_by,
        )
        day: LedgerDay = await self.queue.submit(operation)

        logger.info(
            "Closing finalized",
            extra={"date_key": date_key, "closed_by": closed_by},
        )
        return day.closing

    async def cancel_closing(self, date_key: str, actor: str = "system") -> LedgerDay:
        """RECONCILING → OPEN

        Raises:
            ClosingStateError: RECONCILING이 아님
        """
        operation = self._operation(
            date_key, {"action": LedgerActions.CANCEL_CLOSING}, actor
        )
        day: LedgerDay = await self.queue.submit(operation)

        logger.info("Closing cancelled", extra={"date_key": date_key, "actor": actor})
        return day

    async def get_closing_status(self, date_key: str) -> ClosingStatus:
        day = await self.ledger.get_day(date_key)
        return ClosingStatus(
            date_key=day.date_key,
            state=day.state,
            transaction_count=len(day.transactions),
            closing=day.closing,
        )

    async def list_closings(self, start_key: str, end_key: str) -> list[ClosingRecord]:
        """범위 내 마감 기록 (일자 순)"""
        for key in (start_key, end_key):
            try:
                parse_day_key(key)
            except ValueError as e:
                raise InvalidOperationError(str(e)) from e

        docs = await self.ledger.document_store.query_range(
            Collections.LEDGER_DAYS, start_key, end_key
        )
        records = []
        for doc in docs:
            day = LedgerDay.from_dict(doc.data)
            if day.is_closed and day.closing is not None:
                records.append(day.closing)
        return records

    async def find_days_requiring_closing(
        self,
        before_date_key: str | None = None,
    ) -> list[str]:
        """마감이 필요한 일자

        기준일(기본: 오늘) 이전에 거래가 있으면서 CLOSED가 아닌 일자.
        RECONCILING 상태로 남은 일자도 포함된다.

        Returns:
            일자 키 목록 (오래된 순)
        """
        before = before_date_key or self.ledger.today_key()
        try:
            parse_day_key(before)
        except ValueError as e:
            raise InvalidOperationError(str(e)) from e

        docs = await self.ledger.document_store.query_range(
            Collections.LEDGER_DAYS, "0000-01-01", before
        )
        required = []
        for doc in docs:
            day = LedgerDay.from_dict(doc.data)
            if day.date_key >= before:
                continue
            if day.state != ClosingState.CLOSED.value and day.transactions:
                required.append(day.date_key)
        return required
