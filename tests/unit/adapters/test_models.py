"""
공통 모델 테스트

VersionedDocument, NotificationMessage, DeadLetter 모델 테스트.
"""

from datetime import datetime, timezone

import pytest

from adapters.models import DeadLetter, NotificationMessage, VersionedDocument


class TestVersionedDocument:
    """VersionedDocument 테스트"""

    def test_create(self) -> None:
        doc = VersionedDocument(
            collection="ledger_days",
            key="2025-01-15",
            data={"kind": "ledger_day"},
            revision=3,
        )

        assert doc.collection == "ledger_days"
        assert doc.revision == 3

    def test_is_frozen(self) -> None:
        doc = VersionedDocument(collection="accounts", key="a", data={}, revision=1)

        with pytest.raises(Exception):
            doc.revision = 2  # type: ignore


class TestNotificationMessage:
    """NotificationMessage 테스트"""

    def test_defaults(self) -> None:
        message = NotificationMessage(topic="document.changed")

        assert message.payload == {}
        assert message.seq is None
        assert message.published_at is None

    def test_payload_not_shared(self) -> None:
        first = NotificationMessage(topic="a")
        second = NotificationMessage(topic="b")

        assert first.payload is not second.payload


class TestDeadLetter:
    """DeadLetter 테스트"""

    def test_create(self) -> None:
        failed_at = datetime(2025, 1, 15, 18, tzinfo=timezone.utc)
        letter = DeadLetter(
            operation_id="COP-1a2b3c4d5e6f",
            operation={"operation_id": "COP-1a2b3c4d5e6f"},
            attempts=6,
            last_error="conflict",
            failed_at=failed_at,
        )

        assert letter.attempts == 6
        assert letter.failed_at == failed_at
