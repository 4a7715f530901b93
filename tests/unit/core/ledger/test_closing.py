"""
ClosingWorkflow 단위 테스트

OPEN → RECONCILING → CLOSED 전이, 잔액 대조, 마감 필요 일자 점검.
"""

from datetime import datetime

import pytest

from core.errors import (
    AlreadyClosingError,
    ClosingStateError,
    InvalidOperationError,
    PeriodClosedError,
    ReconciliationMismatchError,
)
from core.ledger.closing import ClosingWorkflow
from core.ledger.store import LedgerStore
from core.types import ClosingState


DAY = "2025-01-15"


def at(day: str) -> datetime:
    return datetime.fromisoformat(f"{day}T10:00:00+00:00")


class TestClosingRoundTrip:
    """정상 마감 흐름"""

    @pytest.mark.asyncio
    async def test_begin_finalize(
        self, ledger: LedgerStore, closing: ClosingWorkflow, seeded_accounts
    ) -> None:
        cash = seeded_accounts["cash"].id
        bank = seeded_accounts["bank"].id
        await ledger.record_transaction(cash, 500, "Vente")
        await ledger.record_transaction(cash, -200, "Achat")
        await ledger.record_transaction(bank, 1000, "Virement")

        day = await closing.begin_closing(DAY, actor="user:gerant")
        assert day.state == ClosingState.RECONCILING.value

        status = await closing.get_closing_status(DAY)
        assert status.state == "RECONCILING"
        assert status.transaction_count == 3
        assert status.closing is None

        record = await closing.finalize_closing(
            DAY, {cash: 300, bank: 1000}, closed_by="user:gerant"
        )
        assert record.date_key == DAY
        assert record.final_balances == {cash: 300, bank: 1000}
        assert record.closed_by == "user:gerant"
        assert record.closed_at == datetime.fromisoformat("2025-01-15T12:00:00+00:00")

        status = await closing.get_closing_status(DAY)
        assert status.state == "CLOSED"
        assert status.closing == record
        assert status.to_dict()["closing"]["final_balances"] == {cash: 300, bank: 1000}

        assert await closing.list_closings("2025-01-01", "2025-01-31") == [record]

    @pytest.mark.asyncio
    async def test_empty_day_can_be_closed(self, closing: ClosingWorkflow) -> None:
        await closing.begin_closing(DAY)

        record = await closing.finalize_closing(DAY, {}, closed_by="user:gerant")

        assert record.final_balances == {}

    @pytest.mark.asyncio
    async def test_closed_day_rejects_transactions(
        self, ledger: LedgerStore, closing: ClosingWorkflow, seeded_accounts
    ) -> None:
        cash = seeded_accounts["cash"].id
        await ledger.record_transaction(cash, 500, "Vente")
        await closing.begin_closing(DAY)
        await closing.finalize_closing(DAY, {cash: 500}, closed_by="user:gerant")

        with pytest.raises(PeriodClosedError) as exc_info:
            await ledger.record_transaction(cash, 1, "Vente")

        assert exc_info.value.state == ClosingState.CLOSED.value


class TestClosingErrors:
    """전이 오류 테스트"""

    @pytest.mark.asyncio
    async def test_mismatch_keeps_reconciling(
        self, ledger: LedgerStore, closing: ClosingWorkflow, seeded_accounts
    ) -> None:
        """잔액 불일치 → 422 대상 오류, 상태 유지 후 취소 가능"""
        cash = seeded_accounts["cash"].id
        await ledger.record_transaction(cash, 500, "Vente")
        await closing.begin_closing(DAY)

        with pytest.raises(ReconciliationMismatchError) as exc_info:
            await closing.finalize_closing(DAY, {cash: 450}, closed_by="user:gerant")

        assert exc_info.value.differences == {cash: {"expected": 500, "submitted": 450}}
        assert (await closing.get_closing_status(DAY)).state == "RECONCILING"

        day = await closing.cancel_closing(DAY, actor="user:gerant")
        assert day.is_open

        transaction = await ledger.record_transaction(cash, -50, "Rendu monnaie")
        assert transaction.amount == -50

    @pytest.mark.asyncio
    async def test_begin_twice(self, closing: ClosingWorkflow) -> None:
        await closing.begin_closing(DAY)

        with pytest.raises(AlreadyClosingError) as exc_info:
            await closing.begin_closing(DAY)

        assert exc_info.value.state == "RECONCILING"

    @pytest.mark.asyncio
    async def test_begin_after_close(self, closing: ClosingWorkflow) -> None:
        await closing.begin_closing(DAY)
        await closing.finalize_closing(DAY, {}, closed_by="user:gerant")

        with pytest.raises(AlreadyClosingError):
            await closing.begin_closing(DAY)

    @pytest.mark.asyncio
    async def test_finalize_without_begin(self, closing: ClosingWorkflow) -> None:
        with pytest.raises(ClosingStateError) as exc_info:
            await closing.finalize_closing(DAY, {}, closed_by="user:gerant")

        assert exc_info.value.action == "finalize"
        assert exc_info.value.state == "OPEN"

    @pytest.mark.asyncio
    async def test_cancel_open_day(self, closing: ClosingWorkflow) -> None:
        with pytest.raises(ClosingStateError):
            await closing.cancel_closing(DAY)

    @pytest.mark.asyncio
    async def test_cancel_closed_day(self, closing: ClosingWorkflow) -> None:
        await closing.begin_closing(DAY)
        await closing.finalize_closing(DAY, {}, closed_by="user:gerant")

        with pytest.raises(ClosingStateError):
            await closing.cancel_closing(DAY)

    @pytest.mark.asyncio
    async def test_non_integer_balance(self, closing: ClosingWorkflow) -> None:
        await closing.begin_closing(DAY)

        with pytest.raises(InvalidOperationError):
            await closing.finalize_closing(DAY, {"acc": 10.0}, closed_by="user:gerant")

    @pytest.mark.asyncio
    async def test_invalid_date_key(self, closing: ClosingWorkflow) -> None:
        with pytest.raises(InvalidOperationError):
            await closing.begin_closing("2025/01/15")

        with pytest.raises(InvalidOperationError):
            await closing.list_closings("2025-01-01", "janvier")


class TestDaysRequiringClosing:
    """마감 필요 일자 점검"""

    @pytest.mark.asyncio
    async def test_find_days_requiring_closing(
        self, ledger: LedgerStore, closing: ClosingWorkflow, seeded_accounts
    ) -> None:
        cash = seeded_accounts["cash"].id
        for day in ("2025-01-12", "2025-01-13", "2025-01-14", "2025-01-15"):
            await ledger.record_transaction(cash, 10, "x", occurred_at=at(day))
        await closing.begin_closing("2025-01-12")
        await closing.finalize_closing("2025-01-12", {cash: 10}, closed_by="user:gerant")
        await closing.begin_closing("2025-01-13")

        # 기본 기준일: 오늘 (2025-01-15, 제외)
        assert await closing.find_days_requiring_closing() == ["2025-01-13", "2025-01-14"]
        assert await closing.find_days_requiring_closing("2025-01-14") == ["2025-01-13"]

    @pytest.mark.asyncio
    async def test_days_without_transactions_ignored(self, closing: ClosingWorkflow) -> None:
        await closing.begin_closing("2025-01-10")

        assert await closing.find_days_requiring_closing() == []
