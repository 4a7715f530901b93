"""
Operation 도메인 모델

모든 쓰기 의도(create/update/delete)는 Operation으로 표현되어
큐를 통해 대상 문서별로 직렬 적용된다.
Operation은 적재 이후 attempts를 제외하고 불변.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from core.constants import Collections
from core.errors import InvalidOperationError
from core.types import OperationKind
from core.utils.idempotency import new_operation_id
from core.utils.timezone import format_iso, now_utc, parse_iso


class LedgerActions:
    """ledger_days 대상 Operation의 payload action 값"""

    RECORD_TRANSACTION = "record_transaction"
    BEGIN_CLOSING = "begin_closing"
    FINALIZE_CLOSING = "finalize_closing"
    CANCEL_CLOSING = "cancel_closing"

    UPDATE_ACTIONS = (BEGIN_CLOSING, FINALIZE_CLOSING, CANCEL_CLOSING)


# 컬렉션별 허용 Operation 종류
# ledger_days: 거래는 불변이므로 DELETE 불가
# accounts: DELETE는 비활성화로 처리
ALLOWED_KINDS: dict[str, tuple[str, ...]] = {
    Collections.LEDGER_DAYS: (OperationKind.CREATE.value, OperationKind.UPDATE.value),
    Collections.ACCOUNTS: (
        OperationKind.CREATE.value,
        OperationKind.UPDATE.value,
        OperationKind.DELETE.value,
    ),
}


@dataclass(frozen=True)
class Operation:
    """큐 항목

    Attributes:
        operation_id: COP-xxxx
        kind: CREATE / UPDATE / DELETE
        target_collection: 대상 컬렉션
        target_key: 대상 문서 키 (같은 키끼리 직렬 처리)
        payload: 의도 상세 데이터
        enqueued_at: 적재 시각 (UTC)
        attempts: 적용 시도 횟수
        actor: 발행자 ID
    """

    operation_id: str
    kind: str
    target_collection: str
    target_key: str
    payload: dict[str, Any]
    enqueued_at: datetime
    attempts: int = 0
    actor: str = "system"

    @staticmethod
    def create(
        kind: str | OperationKind,
        target_collection: str,
        target_key: str,
        payload: dict[str, Any] | None = None,
        actor: str = "system",
        enqueued_at: datetime | None = None,
        operation_id: str | None = None,
    ) -> "Operation":
        """새 Operation 생성

        Args:
            kind: Operation 종류
            target_collection: 대상 컬렉션
            target_key: 대상 문서 키
            payload: 의도 상세 데이터
            actor: 발행자
            enqueued_at: 적재 시각 (없으면 현재)
            operation_id: 지정 ID (재처리 시, 없으면 자동 생성)
        """
        return Operation(
            operation_id=operation_id or new_operation_id(),
            kind=kind.value if isinstance(kind, OperationKind) else kind,
            target_collection=target_collection,
            target_key=target_key,
            payload=payload or {},
            enqueued_at=enqueued_at or now_utc(),
            attempts=0,
            actor=actor,
        )

    @property
    def target(self) -> str:
        """대상 문서 식별자 (collection/key)"""
        return f"{self.target_collection}/{self.target_key}"

    @property
    def action(self) -> str | None:
        return self.payload.get("action")

    def with_attempts(self, attempts: int) -> "Operation":
        """시도 횟수만 변경된 새 Operation 반환"""
        return replace(self, attempts=attempts)

    def validate(self) -> None:
        """적재 전 형식 검증

        Raises:
            InvalidOperationError: 필수 필드 누락 또는 허용되지 않은 조합
        """
        if not self.target_collection:
            raise InvalidOperationError("target_collection이 없습니다")
        if not self.kind:
            raise InvalidOperationError("kind가 없습니다")
        if not self.target_key:
            raise InvalidOperationError("target_key가 없습니다")

        valid_kinds = [k.value for k in OperationKind]
        if self.kind not in valid_kinds:
            raise InvalidOperationError(
                f"유효하지 않은 kind: {self.kind!r}. 유효한 값: {valid_kinds}"
            )

        allowed = ALLOWED_KINDS.get(self.target_collection)
        if allowed is None:
            raise InvalidOperationError(
                f"알 수 없는 target_collection: {self.target_collection!r}. "
                f"유효한 값: {Collections.all()}"
            )
        if self.kind not in allowed:
            raise InvalidOperationError(
                f"{self.target_collection}에는 {self.kind}를 적용할 수 없습니다"
            )
        if not isinstance(self.payload, dict):
            raise InvalidOperationError("payload는 객체여야 합니다")

        if self.target_collection == Collections.LEDGER_DAYS:
            self._validate_ledger_action()

    def _validate_ledger_action(self) -> None:
        action = self.action
        if self.kind == OperationKind.CREATE.value:
            if action != LedgerActions.RECORD_TRANSACTION:
                raise InvalidOperationError(
                    f"ledger_days CREATE action은 {LedgerActions.RECORD_TRANSACTION}이어야 합니다"
                )
            if not isinstance(self.payload.get("transaction"), dict):
                raise InvalidOperationError("record_transaction에 transaction이 없습니다")
        elif action not in LedgerActions.UPDATE_ACTIONS:
            raise InvalidOperationError(
                f"유효하지 않은 ledger_days UPDATE action: {action!r}. "
                f"유효한 값: {list(LedgerActions.UPDATE_ACTIONS)}"
            )

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (직렬화용)"""
        return {
            "operation_id": self.operation_id,
            "kind": self.kind,
            "target_collection": self.target_collection,
            "target_key": self.target_key,
            "payload": self.payload,
            "enqueued_at": format_iso(self.enqueued_at),
            "attempts": self.attempts,
            "actor": self.actor,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Operation":
        """딕셔너리에서 생성 (역직렬화용)"""
        enqueued_at = data["enqueued_at"]
        if isinstance(enqueued_at, str):
            enqueued_at = parse_iso(enqueued_at)

        return Operation(
            operation_id=data["operation_id"],
            kind=data["kind"],
            target_collection=data["target_collection"],
            target_key=data["target_key"],
            payload=data.get("payload") or {},
            enqueued_at=enqueued_at,
            attempts=data.get("attempts", 0),
            actor=data.get("actor", "system"),
        )
