"""
어댑터 인터페이스 테스트

구현체가 Protocol을 준수하는지 확인.
"""

from pathlib import Path

from adapters.clock import SystemClock
from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.interfaces import IClock, IDocumentStore, INotificationChannel, INotifier
from adapters.mock.clock import FixedClock
from adapters.mock.document_store import InMemoryDocumentStore
from adapters.mock.notification_bus import InMemoryNotificationBus
from adapters.mock.notifier import MockNotifier
from adapters.slack.notifier import SlackNotifier
from core.storage.document_store import SQLiteDocumentStore
from core.storage.notification_log import SQLiteNotificationChannel


class TestDocumentStoreProtocol:
    """IDocumentStore 준수"""

    def test_in_memory(self) -> None:
        assert isinstance(InMemoryDocumentStore(), IDocumentStore)

    def test_sqlite(self, tmp_path: Path) -> None:
        store = SQLiteDocumentStore(SQLiteAdapter(tmp_path / "test.db"))
        assert isinstance(store, IDocumentStore)

    def test_non_conforming(self) -> None:
        assert not isinstance(object(), IDocumentStore)


class TestNotificationChannelProtocol:
    """INotificationChannel 준수"""

    def test_in_memory(self) -> None:
        assert isinstance(InMemoryNotificationBus(), INotificationChannel)

    def test_sqlite(self, tmp_path: Path) -> None:
        channel = SQLiteNotificationChannel(SQLiteAdapter(tmp_path / "test.db"))
        assert isinstance(channel, INotificationChannel)


class TestClockProtocol:
    """IClock 준수"""

    def test_system_clock(self) -> None:
        clock = SystemClock()

        assert isinstance(clock, IClock)
        assert clock.now().tzinfo is not None

    def test_fixed_clock(self) -> None:
        assert isinstance(FixedClock(), IClock)


class TestNotifierProtocol:
    """INotifier 준수"""

    def test_mock(self) -> None:
        assert isinstance(MockNotifier(), INotifier)

    def test_slack(self) -> None:
        assert isinstance(SlackNotifier(webhook_url="https://hooks.slack.com/test"), INotifier)
