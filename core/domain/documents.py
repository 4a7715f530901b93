"""
문서 도메인 모델

Document Store에 저장되는 문서의 태그된 변형(tagged variant) 정의.
모든 문서는 "kind" 필드로 종류를 식별하며, 스토어 경계에서
from_dict()로 검증된다. 알 수 없는 형식은 SchemaViolationError.

- account: 계정 (soft-delete만 허용)
- ledger_day: 일자별 거래 목록 + clôture 상태 + ClosingRecord
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from core.errors import SchemaViolationError
from core.types import AccountCategory, AccountType, ClosingState
from core.utils.timezone import format_iso, parse_iso


ACCOUNT_KIND = "account"
LEDGER_DAY_KIND = "ledger_day"


def _require(data: dict[str, Any], variant: str, name: str) -> Any:
    if name not in data or data[name] is None:
        raise SchemaViolationError(variant, f"'{name}' 필드가 없습니다")
    return data[name]


def _require_str(data: dict[str, Any], variant: str, name: str) -> str:
    value = _require(data, variant, name)
    if not isinstance(value, str) or not value:
        raise SchemaViolationError(variant, f"'{name}'는 비어 있지 않은 문자열이어야 합니다")
    return value


def _require_int(data: dict[str, Any], variant: str, name: str) -> int:
    value = _require(data, variant, name)
    # bool은 int의 하위 타입이므로 명시적으로 제외
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaViolationError(variant, f"'{name}'는 정수여야 합니다 (최소 화폐 단위)")
    return value


def _parse_datetime(data: dict[str, Any], variant: str, name: str) -> datetime:
    value = _require(data, variant, name)
    if isinstance(value, datetime):
        return value
    try:
        return parse_iso(value)
    except (TypeError, ValueError) as e:
        raise SchemaViolationError(variant, f"'{name}' 시각 형식 오류: {value!r}") from e


def _parse_enum(data: dict[str, Any], variant: str, name: str, enum_cls: Any) -> str:
    value = _require(data, variant, name)
    try:
        return enum_cls(value).value
    except ValueError as e:
        valid = [m.value for m in enum_cls]
        raise SchemaViolationError(
            variant, f"'{name}' 값 {value!r}이 유효하지 않습니다. 유효한 값: {valid}"
        ) from e


@dataclass(frozen=True)
class Account:
    """계정

    삭제되지 않으며 is_active=False로 비활성화만 가능.
    과거 거래의 참조 무결성을 유지하기 위함.
    """

    id: str
    code: str
    denomination: str
    category: str
    type: str
    is_active: bool = True
    description: str | None = None

    def deactivated(self) -> "Account":
        return replace(self, is_active=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": ACCOUNT_KIND,
            "id": self.id,
            "code": self.code,
            "denomination": self.denomination,
            "category": self.category,
            "type": self.type,
            "is_active": self.is_active,
            "description": self.description,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Account":
        variant = "Account"
        if data.get("kind", ACCOUNT_KIND) != ACCOUNT_KIND:
            raise SchemaViolationError(variant, f"kind={data.get('kind')!r}")
        is_active = data.get("is_active", True)
        if not isinstance(is_active, bool):
            raise SchemaViolationError(variant, "'is_active'는 bool이어야 합니다")
        return Account(
            id=_require_str(data, variant, "id"),
            code=_require_str(data, variant, "code"),
            denomination=_require_str(data, variant, "denomination"),
            category=_parse_enum(data, variant, "category", AccountCategory),
            type=_parse_enum(data, variant, "type", AccountType),
            is_active=is_active,
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Transaction:
    """거래 (불변)

    금액은 부호 있는 정수 (최소 화폐 단위).
    수정은 항상 반대 거래(reverses)로 기록한다.
    """

    id: str
    account_id: str
    amount: int
    motif: str
    occurred_at: datetime
    created_by: str
    reverses: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "amount": self.amount,
            "motif": self.motif,
            "occurred_at": format_iso(self.occurred_at),
            "created_by": self.created_by,
            "reverses": self.reverses,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Transaction":
        variant = "Transaction"
        motif = data.get("motif", "")
        if not isinstance(motif, str):
            raise SchemaViolationError(variant, "'motif'는 문자열이어야 합니다")
        return Transaction(
            id=_require_str(data, variant, "id"),
            account_id=_require_str(data, variant, "account_id"),
            amount=_require_int(data, variant, "amount"),
            motif=motif,
            occurred_at=_parse_datetime(data, variant, "occurred_at"),
            created_by=_require_str(data, variant, "created_by"),
            reverses=data.get("reverses"),
        )


@dataclass(frozen=True)
class ClosingRecord:
    """clôture 기록 (일자별 1회, 종료 상태)"""

    date_key: str
    closed_at: datetime
    closed_by: str
    final_balances: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date_key": self.date_key,
            "closed_at": format_iso(self.closed_at),
            "closed_by": self.closed_by,
            "final_balances": dict(self.final_balances),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ClosingRecord":
        variant = "ClosingRecord"
        balances = _require(data, variant, "final_balances")
        if not isinstance(balances, dict):
            raise SchemaViolationError(variant, "'final_balances'는 객체여야 합니다")
        for account_id, amount in balances.items():
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise SchemaViolationError(
                    variant, f"final_balances[{account_id!r}]는 정수여야 합니다"
                )
        return ClosingRecord(
            date_key=_require_str(data, variant, "date_key"),
            closed_at=_parse_datetime(data, variant, "closed_at"),
            closed_by=_require_str(data, variant, "closed_by"),
            final_balances=dict(balances),
        )


@dataclass(frozen=True)
class LedgerDay:
    """일자 문서

    하루치 거래와 clôture 상태를 하나의 문서에 보관하여
    거래 추가와 상태 전이가 같은 CAS 대상에서 직렬화되도록 한다.
    """

    date_key: str
    state: str = ClosingState.OPEN.value
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    closing: ClosingRecord | None = None
    # 이미 반영된 상태 전이 operation_id (재전달 시 중복 전이 방지)
    applied_operations: tuple[str, ...] = field(default_factory=tuple)

    @staticmethod
    def empty(date_key: str) -> "LedgerDay":
        return LedgerDay(date_key=date_key)

    @property
    def is_open(self) -> bool:
        return self.state == ClosingState.OPEN.value

    @property
    def is_closed(self) -> bool:
        return self.state == ClosingState.CLOSED.value

    def has_transaction(self, transaction_id: str) -> bool:
        return any(t.id == transaction_id for t in self.transactions)

    def find_transaction(self, transaction_id: str) -> Transaction | None:
        for transaction in self.transactions:
            if transaction.id == transaction_id:
                return transaction
        return None

    def with_transaction(self, transaction: Transaction) -> "LedgerDay":
        return replace(self, transactions=self.transactions + (transaction,))

    def with_state(self, state: ClosingState, closing: ClosingRecord | None = None) -> "LedgerDay":
        return replace(self, state=state.value, closing=closing)

    def has_applied(self, operation_id: str) -> bool:
        return operation_id in self.applied_operations

    def with_applied(self, operation_id: str) -> "LedgerDay":
        return replace(self, applied_operations=self.applied_operations + (operation_id,))

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": LEDGER_DAY_KIND,
            "date_key": self.date_key,
            "state": self.state,
            "transactions": [t.to_dict() for t in self.transactions],
            "closing": self.closing.to_dict() if self.closing else None,
            "applied_operations": list(self.applied_operations),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "LedgerDay":
        variant = "LedgerDay"
        if data.get("kind", LEDGER_DAY_KIND) != LEDGER_DAY_KIND:
            raise SchemaViolationError(variant, f"kind={data.get('kind')!r}")
        raw_transactions = data.get("transactions", [])
        if not isinstance(raw_transactions, list):
            raise SchemaViolationError(variant, "'transactions'는 배열이어야 합니다")
        applied = data.get("applied_operations", [])
        if not isinstance(applied, list) or not all(isinstance(a, str) for a in applied):
            raise SchemaViolationError(variant, "'applied_operations'는 문자열 배열이어야 합니다")
        closing_data = data.get("closing")
        return LedgerDay(
            date_key=_require_str(data, variant, "date_key"),
            state=_parse_enum(data, variant, "state", ClosingState),
            transactions=tuple(Transaction.from_dict(t) for t in raw_transactions),
            closing=ClosingRecord.from_dict(closing_data) if closing_data else None,
            applied_operations=tuple(applied),
        )


_PARSERS = {
    ACCOUNT_KIND: Account.from_dict,
    LEDGER_DAY_KIND: LedgerDay.from_dict,
}


def parse_document(data: Any) -> Account | LedgerDay:
    """태그 기반 문서 파싱

    Raises:
        SchemaViolationError: 객체가 아니거나 알 수 없는 kind
    """
    if not isinstance(data, dict):
        raise SchemaViolationError("Document", f"객체가 아닙니다: {type(data).__name__}")
    kind = data.get("kind")
    parser = _PARSERS.get(kind)
    if parser is None:
        raise SchemaViolationError("Document", f"알 수 없는 kind: {kind!r}")
    return parser(data)
