"""
예외 정의

- 일시적 오류(ConflictError)는 큐 내부에서 재시도되어 호출자에게 보이지 않음
- 재시도 소진 시 OperationFailed (dead-letter 기록)
- 비즈니스 규칙 위반은 재시도 없이 즉시 호출자에게 전달
"""

from typing import Any


class CaisseError(Exception):
    """모든 도메인 예외의 베이스"""

    pass


class InvalidOperationError(CaisseError):
    """잘못된 enqueue 요청 (동기 거부, 재시도 없음)"""

    pass


class SchemaViolationError(InvalidOperationError):
    """스토어 경계에서 문서 형식 검증 실패"""

    def __init__(self, variant: str, reason: str):
        super().__init__(f"{variant} 문서 형식 오류: {reason}")
        self.variant = variant
        self.reason = reason


class ConflictError(CaisseError):
    """CAS 충돌 (읽은 이후 문서가 변경됨) - 일시적 오류"""

    def __init__(
        self,
        collection: str,
        key: str,
        expected_revision: int | None,
        actual_revision: int | None,
    ):
        super().__init__(
            f"Revision conflict on {collection}/{key}: "
            f"expected={expected_revision}, actual={actual_revision}"
        )
        self.collection = collection
        self.key = key
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision


class OperationFailed(CaisseError):
    """재시도 소진 - dead-letter로 이동됨"""

    def __init__(self, operation_id: str, attempts: int, last_error: str):
        super().__init__(
            f"Operation {operation_id} failed after {attempts} attempts: {last_error}"
        )
        self.operation_id = operation_id
        self.attempts = attempts
        self.last_error = last_error


class OperationCancelledError(CaisseError):
    """적용 전에 취소된 Operation"""

    def __init__(self, operation_id: str):
        super().__init__(f"Operation {operation_id} cancelled")
        self.operation_id = operation_id


class AccountNotFoundError(CaisseError):
    """존재하지 않거나 비활성화된 계정"""

    def __init__(self, account_id: str, inactive: bool = False):
        reason = "inactive" if inactive else "not found"
        super().__init__(f"Account {account_id} {reason}")
        self.account_id = account_id
        self.inactive = inactive


class DuplicateAccountError(CaisseError):
    """이미 사용 중인 계정 코드"""

    def __init__(self, code: str):
        super().__init__(f"Account code {code} already exists")
        self.code = code


class PeriodClosedError(CaisseError):
    """clôture 진행 중이거나 완료된 일자에 거래 기록 시도"""

    def __init__(self, date_key: str, state: str):
        super().__init__(f"Day {date_key} is not open (state={state})")
        self.date_key = date_key
        self.state = state


class AlreadyClosingError(CaisseError):
    """OPEN 상태가 아닌 일자에 clôture 시작 시도"""

    def __init__(self, date_key: str, state: str):
        super().__init__(f"Day {date_key} cannot begin closing (state={state})")
        self.date_key = date_key
        self.state = state


class ClosingStateError(CaisseError):
    """RECONCILING 상태가 아닌 일자에 finalize/cancel 시도"""

    def __init__(self, date_key: str, state: str, action: str):
        super().__init__(f"Cannot {action} day {date_key} (state={state})")
        self.date_key = date_key
        self.state = state
        self.action = action


class ReconciliationMismatchError(CaisseError):
    """제출된 최종 잔액이 실시간 일 집계와 불일치"""

    def __init__(self, date_key: str, differences: dict[str, dict[str, Any]]):
        accounts = ", ".join(sorted(differences))
        super().__init__(f"Reconciliation mismatch on {date_key}: {accounts}")
        self.date_key = date_key
        self.differences = differences


# 비즈니스 규칙 위반 (재시도 금지)
BUSINESS_ERRORS: tuple[type[CaisseError], ...] = (
    InvalidOperationError,
    AccountNotFoundError,
    DuplicateAccountError,
    PeriodClosedError,
    AlreadyClosingError,
    ClosingStateError,
    ReconciliationMismatchError,
)
