"""
FastAPI 애플리케이션

라우터 등록, 예외 → HTTP 상태 매핑, 컨텍스트 생명주기 관리.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.context import CaisseContext, ContextNotInitializedError
from core.errors import (
    AccountNotFoundError,
    AlreadyClosingError,
    CaisseError,
    ClosingStateError,
    ConflictError,
    DuplicateAccountError,
    InvalidOperationError,
    OperationCancelledError,
    OperationFailed,
    PeriodClosedError,
    ReconciliationMismatchError,
)
from core.storage.notification_log import SQLiteNotificationChannel
from web.routes import accounts, bilans, closings, health, queue, summaries, transactions
from worker.poller.notification_poller import NotificationPoller

logger = logging.getLogger(__name__)


# 예외 → HTTP 상태 (먼저 일치하는 항목 적용)
ERROR_STATUS: list[tuple[type[Exception], int]] = [
    (AccountNotFoundError, 404),
    (DuplicateAccountError, 409),
    (PeriodClosedError, 409),
    (AlreadyClosingError, 409),
    (ClosingStateError, 409),
    (OperationCancelledError, 409),
    (ReconciliationMismatchError, 422),
    (InvalidOperationError, 400),
    (OperationFailed, 503),
    (ConflictError, 503),
]


def status_for(exc: Exception) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 400


def _error_context(exc: Exception) -> dict[str, Any]:
    return {k: v for k, v in vars(exc).items() if not k.startswith("_")}


async def _caisse_error_handler(request: Request, exc: CaisseError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(f"{type(exc).__name__}: {exc}", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status,
        content={
            "error": type(exc).__name__,
            "detail": str(exc),
            "context": _error_context(exc),
        },
    )


async def _context_error_handler(request: Request, exc: ContextNotInitializedError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"error": type(exc).__name__, "detail": str(exc), "context": {}},
    )


async def _poll_notifications(poller: NotificationPoller) -> None:
    """다른 프로세스(Worker)의 변경 알림 → 캐시 무효화"""
    try:
        await poller.initialize()
    except Exception as e:
        logger.error(f"Notification poller 초기화 실패: {e}", exc_info=True)
        return

    while True:
        if poller.should_poll():
            await poller.poll()
        await asyncio.sleep(poller.poll_interval_seconds)


def create_app(context: CaisseContext | None = None) -> FastAPI:
    """FastAPI 앱 생성

    Args:
        context: 미리 구성한 컨텍스트 (테스트용). None이면 lifespan에서
            settings.yaml 기준으로 생성/종료한다. 주입된 컨텍스트의
            init()/shutdown()도 lifespan에서 호출된다.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ctx = app.state.context
        if ctx is None:
            ctx = CaisseContext(get_settings())
            app.state.context = ctx
        await ctx.init()

        poll_task: asyncio.Task | None = None
        if isinstance(ctx.channel, SQLiteNotificationChannel):
            poller = NotificationPoller(
                ctx.channel,
                poll_interval_seconds=ctx.settings.poll_interval_sec,
                clock=ctx.clock,
            )
            poll_task = asyncio.create_task(_poll_notifications(poller))

        logger.info("Web: CaisseContext 준비 완료")

        yield

        if poll_task is not None:
            poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await poll_task

        await ctx.shutdown()

    app = FastAPI(
        title="Caisse Engine API",
        description="현금 출납부 (거래 기록, 기간 집계, clôture) API",
        version=health.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.context = context

    # CORS 설정 (개발용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CaisseError, _caisse_error_handler)
    app.add_exception_handler(ContextNotInitializedError, _context_error_handler)

    # =========================================================================
    # API 라우터 등록
    # =========================================================================

    app.include_router(health.router)
    app.include_router(accounts.router)
    app.include_router(transactions.router)
    app.include_router(summaries.router)
    app.include_router(bilans.router)
    app.include_router(closings.router)
    app.include_router(queue.router)

    return app


app = create_app()
