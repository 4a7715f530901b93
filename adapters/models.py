"""
어댑터 공통 데이터 모델

Document Store, 알림 채널, dead-letter 로그가 주고받는 값 객체.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class VersionedDocument:
    """revision 토큰이 붙은 문서

    Attributes:
        collection: 컬렉션 이름
        key: 문서 키
        data: 문서 본문 (JSON 호환 dict)
        revision: 쓰기마다 1씩 증가. CAS 쓰기의 expected_revision으로 사용
    """

    collection: str
    key: str
    data: dict[str, Any]
    revision: int


@dataclass(frozen=True)
class NotificationMessage:
    """알림 채널 메시지

    Attributes:
        topic: 토픽 (예: document.changed)
        payload: 메시지 본문
        seq: 채널 내 순번 (SQLite 채널에서만 의미 있음)
        published_at: 발행 시각
    """

    topic: str
    payload: dict[str, Any] = field(default_factory=dict)
    seq: int | None = None
    published_at: datetime | None = None


@dataclass(frozen=True)
class DeadLetter:
    """재시도 소진으로 적용되지 않은 Operation 기록

    Attributes:
        operation_id: 원 Operation ID
        operation: Operation 직렬화 dict
        attempts: 시도 횟수
        last_error: 마지막 오류 메시지
        failed_at: 실패 시각
    """

    operation_id: str
    operation: dict[str, Any]
    attempts: int
    last_error: str
    failed_at: datetime
