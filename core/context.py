"""
CaisseContext

런타임 구성요소(저장소, 큐, 캐시, ledger, 알림)를 한 곳에서 생성/종료한다.
모듈 전역 싱글턴 대신 Worker/Web이 각자 하나의 컨텍스트를 소유한다.

사용 예시:
```python
settings = get_settings()

async with CaisseContext(settings) as ctx:
    await ctx.queue.restore()
    await ctx.accounts.initialize_default_accounts()
    await ctx.ledger.record_transaction(...)

# 테스트/단일 프로세스: SQLite 없이 메모리 구성
ctx = await CaisseContext.in_memory(clock=FixedClock()).init()
```
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from adapters.clock import SystemClock
from adapters.db.sqlite_adapter import SQLiteAdapter, get_db_path, init_schema
from adapters.interfaces import IClock, IDocumentStore, INotificationChannel, INotifier
from adapters.mock.document_store import InMemoryDocumentStore
from adapters.mock.notification_bus import InMemoryNotificationBus
from adapters.slack.notifier import SlackNotifier
from core.cache.invalidation import CacheInvalidator
from core.cache.ttl_cache import TTLCache
from core.config.loader import Settings
from core.constants import Topics
from core.ledger.accounts import AccountRegistry
from core.ledger.closing import ClosingWorkflow
from core.ledger.store import LedgerStore
from core.storage.dead_letter_store import DeadLetterStore
from core.storage.document_store import SQLiteDocumentStore
from core.storage.notification_log import SQLiteNotificationChannel
from core.storage.operation_store import OperationStore
from worker.queue.queue import OperationQueue

logger = logging.getLogger(__name__)


class ContextNotInitializedError(RuntimeError):
    """init() 전에 구성요소 접근"""

    pass


class CaisseContext:
    """런타임 컨텍스트

    Args:
        settings: 애플리케이션 설정
        clock: 시간 소스 (기본: SystemClock)
        notifier: 운영자 알림 (None이면 settings.slack 기준으로 생성)
        memory: True면 SQLite 대신 메모리 저장소/버스 사용 (저널 없음)
    """

    def __init__(
        self,
        settings: Settings,
        clock: IClock | None = None,
        notifier: INotifier | None = None,
        memory: bool = False,
    ):
        self.settings = settings
        self.clock = clock or SystemClock()
        self.memory = memory

        self.adapter: SQLiteAdapter | None = None
        self.document_store: IDocumentStore | None = None
        self.operation_store: OperationStore | None = None
        self.dead_letter_store: DeadLetterStore | None = None
        self.channel: INotificationChannel | None = None
        self.notifier: INotifier | None = notifier
        self.cache: TTLCache | None = None
        self.invalidator: CacheInvalidator | None = None
        self.queue: OperationQueue | None = None
        self.ledger: LedgerStore | None = None
        self.accounts: AccountRegistry | None = None
        self.closing: ClosingWorkflow | None = None

        self._owns_notifier = False
        self._unsubscribers: list[Callable[[], None]] = []
        self._initialized = False

    @classmethod
    def in_memory(
        cls,
        settings: Settings | None = None,
        clock: IClock | None = None,
        notifier: INotifier | None = None,
    ) -> CaisseContext:
        return cls(settings or Settings(), clock=clock, notifier=notifier, memory=True)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def init(self) -> CaisseContext:
        """구성요소 생성 및 연결 (이미 초기화됐으면 그대로 반환)"""
        if self._initialized:
            return self

        settings = self.settings

        if self.memory:
            self.document_store = InMemoryDocumentStore()
            self.channel = InMemoryNotificationBus()
        else:
            db_path = get_db_path(settings.db_path)
            self.adapter = SQLiteAdapter(db_path)
            await self.adapter.connect()
            await init_schema(self.adapter)

            self.document_store = SQLiteDocumentStore(self.adapter)
            self.operation_store = OperationStore(self.adapter)
            self.dead_letter_store = DeadLetterStore(self.adapter)
            self.channel = SQLiteNotificationChannel(self.adapter)

        if self.notifier is None and settings.slack is not None:
            self.notifier = SlackNotifier(
                webhook_url=settings.slack.webhook_url,
                channel=settings.slack.channel,
                timeout=settings.slack.timeout,
                zone=settings.zone,
            )
            self._owns_notifier = True

        self.cache = TTLCache(default_ttl_sec=settings.cache.ttl_sec, clock=self.clock)

        self.queue = OperationQueue(
            document_store=self.document_store,
            operation_store=self.operation_store,
            dead_letter_store=self.dead_letter_store,
            channel=self.channel,
            notifier=self.notifier,
            max_retries=settings.queue.max_retries,
            backoff_base_sec=settings.queue.backoff_base_sec,
            backoff_max_sec=settings.queue.backoff_max_sec,
            apply_timeout_sec=settings.queue.apply_timeout_sec,
        )

        # 로컬 변경은 즉시, 다른 프로세스 변경은 알림 채널로 무효화
        self.invalidator = CacheInvalidator(self.cache)
        self._unsubscribers = [
            self.queue.add_listener(self.invalidator.on_change),
            self.channel.subscribe(Topics.DOCUMENT_CHANGED, self.invalidator.on_message),
        ]

        self.ledger = LedgerStore(
            self.queue,
            self.document_store,
            self.cache,
            zone=settings.zone,
            clock=self.clock,
        )
        self.accounts = AccountRegistry(self.queue, self.document_store, self.cache)
        self.closing = ClosingWorkflow(self.queue, self.ledger)

        self._initialized = True
        logger.info(
            "CaisseContext 초기화 완료",
            extra={
                "memory": self.memory,
                "db_path": str(self.adapter.db_path) if self.adapter else None,
                "timezone": settings.timezone,
                "notifier": type(self.notifier).__name__ if self.notifier else None,
            },
        )
        return self

    async def shutdown(self) -> None:
        """구성요소 종료

        대기 중인 Operation은 저널에 남아 다음 시작 시 restore()로 복원된다.
        """
        if not self._initialized:
            return

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

        if self.queue is not None and self.queue.pending_count():
            logger.warning(f"종료 시 대기 Operation {self.queue.pending_count()}건 (저널 보존)")

        if self._owns_notifier and isinstance(self.notifier, SlackNotifier):
            await self.notifier.close()
            self.notifier = None
            self._owns_notifier = False

        if self.adapter is not None:
            await self.adapter.close()

        self._initialized = False
        logger.info("CaisseContext 종료")

    def require(self) -> CaisseContext:
        """초기화 여부 확인

        Raises:
            ContextNotInitializedError: init() 전
        """
        if not self._initialized:
            raise ContextNotInitializedError("CaisseContext.init()이 호출되지 않았습니다")
        return self

    def get_stats(self) -> dict[str, Any]:
        self.require()
        return {
            "queue": self.queue.get_stats(),
            "cache": self.cache.get_stats(),
            "invalidations": self.invalidator.invalidation_count,
        }

    async def __aenter__(self) -> CaisseContext:
        return await self.init()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.shutdown()
