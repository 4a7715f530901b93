"""
Worker 통합 테스트

CaisseWorker 시작 시 저널 복원, 마감 필요 일자 경고, tick 처리.
"""

import asyncio
from datetime import datetime, timezone

import pytest

from adapters.mock.clock import FixedClock
from adapters.mock.notifier import MockNotifier
from core.config.loader import Settings
from core.constants import Collections
from core.context import CaisseContext
from core.domain.operations import Operation
from core.types import OperationKind
from worker.bootstrap import CaisseWorker


def clock_at(day: int) -> FixedClock:
    return FixedClock(datetime(2025, 1, day, 12, tzinfo=timezone.utc))


class TestCaisseWorker:
    """CaisseWorker 테스트"""

    @pytest.mark.asyncio
    async def test_start_warns_unclosed_days(self, fast_settings: Settings) -> None:
        async with CaisseContext(fast_settings, clock=clock_at(14)) as ctx:
            cash = await ctx.accounts.create_account("531", "Caisse", "ENTRY", "TRESORERIE")
            await ctx.ledger.record_transaction(cash.id, 500, "Vente")

        notifier = MockNotifier()
        async with CaisseContext(fast_settings, clock=clock_at(15), notifier=notifier) as ctx:
            worker = CaisseWorker(ctx, fast_settings)
            await worker.start()
            await worker.stop()

        warnings = notifier.get_by_level("WARNING")
        assert len(warnings) == 1
        assert "2025-01-14" in warnings[0].message

    @pytest.mark.asyncio
    async def test_seed_default_accounts(self, fast_settings: Settings) -> None:
        settings = Settings(
            db_path=fast_settings.db_path,
            queue=fast_settings.queue,
            seed_default_accounts=True,
        )

        async with CaisseContext(settings, clock=clock_at(15)) as ctx:
            worker = CaisseWorker(ctx, settings)
            await worker.start()

            accounts = await ctx.accounts.list_accounts()

        assert accounts
        assert worker.poller is not None

    @pytest.mark.asyncio
    async def test_tick_drains_enqueued(self, fast_settings: Settings) -> None:
        async with CaisseContext(fast_settings, clock=clock_at(15)) as ctx:
            worker = CaisseWorker(ctx, fast_settings)
            await worker.start()
            cash = await ctx.accounts.create_account("531", "Caisse", "ENTRY", "TRESORERIE")

            await ctx.queue.enqueue(
                Operation.create(OperationKind.DELETE, Collections.ACCOUNTS, cash.id)
            )
            assert await worker.tick() == 1
            assert await worker.tick() == 0

            account = await ctx.accounts.get_account(cash.id)
            stats = ctx.get_stats()

        assert account.is_active is False
        assert stats["queue"]["applied"] == 2

    @pytest.mark.asyncio
    async def test_main_loop_stops_on_event(self, fast_settings: Settings) -> None:
        async with CaisseContext(fast_settings, clock=clock_at(15)) as ctx:
            worker = CaisseWorker(ctx, fast_settings)
            await worker.start()

            shutdown_event = asyncio.Event()
            task = asyncio.create_task(worker.run_main_loop(shutdown_event))
            await asyncio.sleep(0.05)
            shutdown_event.set()
            await asyncio.wait_for(task, timeout=1.0)
            await worker.stop()

        assert worker._tick_count >= 1
