"""
Worker Bootstrap

설정 로드, 컨텍스트 구성, 메인 루프 관리.

- 시작: 저널 복원 → 기본 계정표 → 마감 필요 일자 점검
- 루프: Operation drain, 알림 Poller, heartbeat
- 종료: 진행 중 Operation은 저널에 남겨 다음 시작 시 복원
"""

import asyncio
import logging
import signal
import sys
from typing import Any

from core.config.loader import Settings, SettingsLoadError, get_settings
from core.context import CaisseContext
from core.logging import setup_logging
from core.storage.notification_log import SQLiteNotificationChannel
from worker.poller.notification_poller import NotificationPoller

logger = logging.getLogger("worker")

# 알림 로그 보관 행 수
NOTIFICATION_LOG_KEEP = 10000


class CaisseWorker:
    """Worker 엔진

    Args:
        context: 초기화된 CaisseContext
        settings: 설정 객체
    """

    def __init__(self, context: CaisseContext, settings: Settings):
        self.context = context
        self.settings = settings
        self.tick_interval = settings.drain_interval_sec

        self.poller: NotificationPoller | None = None
        if isinstance(context.channel, SQLiteNotificationChannel):
            self.poller = NotificationPoller(
                context.channel,
                poll_interval_seconds=settings.poll_interval_sec,
                clock=context.clock,
            )

        # 통계
        self._tick_count = 0
        self._drained_count = 0

    async def start(self) -> None:
        """엔진 시작"""
        ctx = self.context.require()

        restored = await ctx.queue.restore()
        if restored:
            drained = await ctx.queue.drain()
            self._drained_count += drained
            logger.info(f"복원된 Operation 처리: {drained}건")

        if self.settings.seed_default_accounts:
            await ctx.accounts.initialize_default_accounts()

        if isinstance(ctx.channel, SQLiteNotificationChannel):
            pruned = await ctx.channel.prune(keep_last=NOTIFICATION_LOG_KEEP)
            if pruned:
                logger.info(f"알림 로그 정리: {pruned}건")

        if self.poller:
            await self.poller.initialize()

        await self._check_days_requiring_closing()

        logger.info("Worker RUNNING")

    async def _check_days_requiring_closing(self) -> list[str]:
        days = await self.context.closing.find_days_requiring_closing()
        if days:
            logger.warning(
                f"마감되지 않은 일자 {len(days)}건",
                extra={"days": days},
            )
            if self.context.notifier is not None:
                await self.context.notifier.send(
                    f"마감되지 않은 일자: {', '.join(days)}",
                    level="WARNING",
                )
        return days

    async def stop(self) -> None:
        """엔진 종료"""
        logger.info("Worker 종료 중...")
        if self.poller:
            await self.poller.stop()
        logger.info(f"Worker 종료 (ticks: {self._tick_count}, drained: {self._drained_count})")

    async def tick(self) -> int:
        """1회 처리: drain + 알림 폴링

        Returns:
            처리된 Operation 수
        """
        self._tick_count += 1
        drained = 0

        if self.context.queue.pending_count():
            drained = await self.context.queue.drain()
            self._drained_count += drained

        if self.poller and self.poller.should_poll():
            await self.poller.poll()

        return drained

    async def run_main_loop(self, shutdown_event: asyncio.Event) -> None:
        """메인 루프

        tick 단위 예외는 기록 후 계속 진행한다.
        """
        logger.info("메인 루프 시작")

        while not shutdown_event.is_set():
            try:
                await self.tick()

                # Heartbeat 로그 (60 tick마다)
                if self._tick_count % 60 == 0:
                    self._log_heartbeat()

            except Exception as e:
                logger.error(f"메인 루프 에러: {e}", exc_info=True)

            try:
                await asyncio.wait_for(shutdown_event.wait(), timeout=self.tick_interval)
            except asyncio.TimeoutError:
                pass

    def _log_heartbeat(self) -> None:
        stats: dict[str, Any] = self.context.get_stats()
        if self.poller:
            stats["poller"] = self.poller.get_stats()
        logger.info("Heartbeat", extra=stats)


def _install_signal_handlers(shutdown_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows: KeyboardInterrupt로 종료
            pass


async def main() -> None:
    """Worker 메인 함수"""
    # 1. 설정 로드
    try:
        settings = get_settings()
    except SettingsLoadError as e:
        setup_logging("worker")
        logger.error(f"설정 로드 실패: {e}")
        sys.exit(1)

    setup_logging("worker", console_level=settings.log_level, file_level=settings.log_level)

    logger.info("=" * 60)
    logger.info("Caisse Worker 시작")
    logger.info("=" * 60)
    logger.info(f"DB: {settings.db_path}")
    logger.info(f"Timezone: {settings.timezone}")

    # 2. 컨텍스트 구성
    async with CaisseContext(settings) as context:
        worker = CaisseWorker(context, settings)

        shutdown_event = asyncio.Event()
        _install_signal_handlers(shutdown_event)

        logger.info("Worker 메인 루프 시작 (종료: Ctrl+C)")

        try:
            await worker.start()
            await worker.run_main_loop(shutdown_event)
        except asyncio.CancelledError:
            logger.info("메인 루프 취소됨")
        except KeyboardInterrupt:
            logger.info("Ctrl+C 감지")
        finally:
            await worker.stop()

    logger.info("=" * 60)
    logger.info("Caisse Worker 정상 종료")
    logger.info("=" * 60)
