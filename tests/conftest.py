"""
pytest 공통 fixture 정의

메모리 저장소 기반 큐/ledger 구성과 SQLite 임시 DB fixture.
"""

import random
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.mock.clock import FixedClock
from adapters.mock.document_store import InMemoryDocumentStore
from adapters.mock.notification_bus import InMemoryNotificationBus
from adapters.mock.notifier import MockNotifier
from core.cache.invalidation import CacheInvalidator
from core.cache.ttl_cache import TTLCache
from core.config.loader import QueueSettings, Settings
from core.constants import Collections
from core.domain.documents import Account
from core.ledger.accounts import AccountRegistry
from core.ledger.closing import ClosingWorkflow
from core.ledger.store import LedgerStore
from worker.queue.queue import OperationQueue


# 2025-01-15 (수) 12:00 UTC
TEST_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fixed_clock() -> FixedClock:
    return FixedClock(TEST_NOW)


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def bus() -> InMemoryNotificationBus:
    return InMemoryNotificationBus()


@pytest.fixture
def notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def queue(
    document_store: InMemoryDocumentStore,
    bus: InMemoryNotificationBus,
    notifier: MockNotifier,
) -> OperationQueue:
    """backoff를 짧게 하고 난수를 고정한 큐"""
    return OperationQueue(
        document_store=document_store,
        channel=bus,
        notifier=notifier,
        max_retries=3,
        backoff_base_sec=0.001,
        backoff_max_sec=0.005,
        apply_timeout_sec=1.0,
        rng=random.Random(42),
    )


@pytest.fixture
def cache(fixed_clock: FixedClock) -> TTLCache:
    return TTLCache(default_ttl_sec=300, clock=fixed_clock)


@pytest.fixture
def invalidator(cache: TTLCache, queue: OperationQueue) -> CacheInvalidator:
    invalidator = CacheInvalidator(cache)
    queue.add_listener(invalidator.on_change)
    return invalidator


@pytest.fixture
def ledger(
    queue: OperationQueue,
    document_store: InMemoryDocumentStore,
    cache: TTLCache,
    fixed_clock: FixedClock,
    invalidator: CacheInvalidator,
) -> LedgerStore:
    return LedgerStore(queue, document_store, cache, clock=fixed_clock)


@pytest.fixture
def accounts(
    queue: OperationQueue,
    document_store: InMemoryDocumentStore,
    cache: TTLCache,
    invalidator: CacheInvalidator,
) -> AccountRegistry:
    return AccountRegistry(queue, document_store, cache)


@pytest.fixture
def closing(queue: OperationQueue, ledger: LedgerStore) -> ClosingWorkflow:
    return ClosingWorkflow(queue, ledger)


def seed_account(
    store: InMemoryDocumentStore,
    account_id: str,
    code: str,
    is_active: bool = True,
) -> Account:
    """계정 문서 직접 저장"""
    account = Account(
        id=account_id,
        code=code,
        denomination=f"Compte {code}",
        category="ENTRY",
        type="TRESORERIE",
        is_active=is_active,
    )
    store.seed(Collections.ACCOUNTS, account_id, account.to_dict())
    return account


@pytest.fixture
def account_factory(document_store: InMemoryDocumentStore):
    """seed_account(document_store, ...) 바인딩"""

    def factory(account_id: str, code: str, is_active: bool = True) -> Account:
        return seed_account(document_store, account_id, code, is_active)

    return factory


@pytest.fixture
def seeded_accounts(document_store: InMemoryDocumentStore) -> dict[str, Account]:
    """Caisse / Banque / Ventes 계정"""
    return {
        "cash": seed_account(document_store, "acc-531-test01", "531"),
        "bank": seed_account(document_store, "acc-511-test02", "511"),
        "sales": seed_account(document_store, "acc-701-test03", "701"),
    }


@pytest.fixture
def fast_settings(temp_dir: Path) -> Settings:
    """임시 DB + 짧은 backoff 설정"""
    return Settings(
        db_path=temp_dir / "caisse.db",
        queue=QueueSettings(
            max_retries=2,
            backoff_base_sec=0.001,
            backoff_max_sec=0.005,
            apply_timeout_sec=1.0,
        ),
        drain_interval_sec=0.01,
        poll_interval_sec=0.0,
        seed_default_accounts=False,
    )


@pytest_asyncio.fixture
async def sqlite_adapter(temp_dir: Path) -> SQLiteAdapter:
    """스키마가 초기화된 임시 SQLite DB"""
    adapter = SQLiteAdapter(temp_dir / "test.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest.fixture
def settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    content = """# 테스트용 settings.yaml
db_path: data/test.db
timezone: Africa/Abidjan
log_level: debug

queue:
  max_retries: 3
  backoff_base_sec: 0.01
  backoff_max_sec: 0.5
  apply_timeout_sec: 5

cache:
  ttl_sec: 60

worker:
  drain_interval_sec: 0.5
  poll_interval_sec: 1
  seed_default_accounts: false

web:
  host: 0.0.0.0
  port: 8080

slack:
  webhook_url: "https://hooks.slack.com/services/T000/B000/XXXX"
  channel: "#caisse"
"""
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path

