"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
CaisseContext는 lifespan에서 생성되어 app.state에 보관된다.
"""

from fastapi import Request

from core.config.loader import Settings
from core.context import CaisseContext
from core.ledger.accounts import AccountRegistry
from core.ledger.closing import ClosingWorkflow
from core.ledger.store import LedgerStore
from worker.queue.queue import OperationQueue


def get_context(request: Request) -> CaisseContext:
    """초기화된 컨텍스트 반환

    Raises:
        ContextNotInitializedError: lifespan 이전 (503으로 변환됨)
    """
    context: CaisseContext = request.app.state.context
    return context.require()


def get_app_settings(request: Request) -> Settings:
    """애플리케이션 설정 반환"""
    return get_context(request).settings


def get_ledger(request: Request) -> LedgerStore:
    return get_context(request).ledger


def get_accounts(request: Request) -> AccountRegistry:
    return get_context(request).accounts


def get_closing(request: Request) -> ClosingWorkflow:
    return get_context(request).closing


def get_queue(request: Request) -> OperationQueue:
    return get_context(request).queue
