"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from adapters.models import NotificationMessage, VersionedDocument


@runtime_checkable
class IDocumentStore(Protocol):
    """문서 저장소 인터페이스

    revision 기반 compare-and-swap 쓰기를 제공.
    Operation Queue만 이 인터페이스로 원장 문서를 변경한다.
    """

    async def get(self, collection: str, key: str) -> VersionedDocument | None:
        """문서 조회

        Returns:
            문서 또는 None (없음)
        """
        ...

    async def put(
        self,
        collection: str,
        key: str,
        data: dict[str, Any],
        expected_revision: int | None,
    ) -> VersionedDocument:
        """CAS 쓰기

        Args:
            expected_revision: 읽었던 revision (None이면 문서가 없어야 함)

        Returns:
            새 revision이 붙은 문서

        Raises:
            ConflictError: 현재 revision이 expected_revision과 다름
        """
        ...

    async def query_range(
        self,
        collection: str,
        start_key: str,
        end_key: str,
    ) -> list[VersionedDocument]:
        """키 범위 조회 (양 끝 포함, 키 오름차순)"""
        ...

    async def list_collection(self, collection: str) -> list[VersionedDocument]:
        """컬렉션 전체 조회 (키 오름차순)"""
        ...


# 알림 핸들러 타입 정의
NotificationHandler = Callable[[NotificationMessage], Awaitable[None]]
Unsubscribe = Callable[[], None]


@runtime_checkable
class INotificationChannel(Protocol):
    """알림 채널 인터페이스

    at-least-once, 순서 보장 없음.
    """

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """메시지 발행"""
        ...

    def subscribe(self, topic: str, handler: NotificationHandler) -> Unsubscribe:
        """구독

        Returns:
            구독 해제 함수
        """
        ...


@runtime_checkable
class IClock(Protocol):
    """시간 소스 인터페이스"""

    def now(self) -> datetime:
        """현재 시각 (UTC aware)"""
        ...


@runtime_checkable
class INotifier(Protocol):
    """운영자 알림 서비스 인터페이스

    dead-letter 발생 등 사람이 개입해야 하는 상황을 외부 서비스로 전송.
    """

    async def send(
        self,
        message: str,
        level: str = "INFO",
        extra: dict[str, Any] | None = None,
    ) -> bool:
        """알림 전송

        Args:
            message: 알림 메시지
            level: 알림 레벨 (INFO, WARNING, ERROR, CRITICAL)
            extra: 추가 데이터 (선택)

        Returns:
            전송 성공 여부
        """
        ...

    async def send_dead_letter_alert(
        self,
        operation_id: str,
        target: str,
        attempts: int,
        last_error: str,
    ) -> bool:
        """dead-letter 알림 전송 (포맷팅된 메시지)"""
        ...
