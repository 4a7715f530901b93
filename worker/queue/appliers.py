"""
Operation Applier

컬렉션별로 Operation을 현재 문서에 적용하여 다음 문서 상태를 계산.
큐가 읽기 → apply → CAS 쓰기를 수행하므로 applier는 쓰기를 직접 하지 않는다.

적용은 "결과 상태 설정" 방식이라 같은 Operation을 재적용해도 안전:
- 거래 ID = txn-{operation_id}, 이미 있으면 변경 없음
- 계정 생성은 ID가 이미 있으면 변경 없음
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from adapters.interfaces import IDocumentStore
from adapters.models import VersionedDocument
from core.constants import Collections
from core.domain.documents import Account, ClosingRecord, LedgerDay, Transaction
from core.domain.operations import LedgerActions, Operation
from core.domain.state_machines import ClosingStateMachine
from core.errors import (
    AccountNotFoundError,
    InvalidOperationError,
    PeriodClosedError,
    ReconciliationMismatchError,
)
from core.ledger.accounts import load_active_account
from core.ledger.aggregation import diff_balances, summarize
from core.types import ClosingState, OperationKind
from core.utils.idempotency import make_transaction_id
from core.utils.timezone import format_iso, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyOutcome:
    """apply 결과

    Attributes:
        result: 호출자에게 돌려줄 값 (Transaction, Account, LedgerDay 등)
        data: 새 문서 본문 (None이면 변경 없음, 쓰기 생략)
        revision: 쓰기 후 revision (큐가 채움)
    """

    result: Any
    data: dict[str, Any] | None = None
    revision: int | None = None

    @property
    def changed(self) -> bool:
        return self.data is not None


class OperationApplier(ABC):
    """Applier 추상 클래스

    컬렉션별로 이 클래스를 상속하여 구현.
    비즈니스 규칙 위반은 core.errors의 예외로 즉시 발생시킨다 (재시도 없음).
    """

    @property
    @abstractmethod
    def collection(self) -> str:
        """처리하는 컬렉션"""
        pass

    @abstractmethod
    async def apply(
        self,
        operation: Operation,
        current: VersionedDocument | None,
        store: IDocumentStore,
    ) -> ApplyOutcome:
        """Operation 적용

        Args:
            operation: 적용할 Operation
            current: 현재 문서 (없으면 None)
            store: 다른 문서 참조용 (읽기 전용으로 사용)
        """
        pass


class LedgerDayApplier(OperationApplier):
    """ledger_days 문서 applier

    거래 추가와 clôture 상태 전이가 같은 일자 문서에서 수행되므로
    큐의 대상별 직렬화로 둘 사이의 경쟁이 제거된다.
    """

    @property
    def collection(self) -> str:
        return Collections.LEDGER_DAYS

    async def apply(
        self,
        operation: Operation,
        current: VersionedDocument | None,
        store: IDocumentStore,
    ) -> ApplyOutcome:
        day = (
            LedgerDay.from_dict(current.data)
            if current is not None
            else LedgerDay.empty(operation.target_key)
        )

        action = operation.action
        if action == LedgerActions.RECORD_TRANSACTION:
            return await self._record(operation, day, store)
        if action == LedgerActions.BEGIN_CLOSING:
            return self._begin(operation, day)
        if action == LedgerActions.FINALIZE_CLOSING:
            return self._finalize(operation, day)
        if action == LedgerActions.CANCEL_CLOSING:
            return self._cancel(operation, day)

        raise InvalidOperationError(f"알 수 없는 ledger_days action: {action!r}")

    async def _record(
        self,
        operation: Operation,
        day: LedgerDay,
        store: IDocumentStore,
    ) -> ApplyOutcome:
        transaction_id = make_transaction_id(operation.operation_id)

        existing = day.find_transaction(transaction_id)
        if existing is not None:
            logger.debug(
                "Transaction already applied",
                extra={"transaction_id": transaction_id, "date_key": day.date_key},
            )
            return ApplyOutcome(result=existing)

        if not day.is_open:
            raise PeriodClosedError(day.date_key, day.state)

        fields = dict(operation.payload["transaction"])
        fields["id"] = transaction_id
        transaction = Transaction.from_dict(fields)

        await load_active_account(store, transaction.account_id)

        updated = day.with_transaction(transaction)
        return ApplyOutcome(result=transaction, data=updated.to_dict())

    def _already_applied(self, operation: Operation, day: LedgerDay) -> ApplyOutcome | None:
        if not day.has_applied(operation.operation_id):
            return None
        logger.debug(
            "Closing transition already applied",
            extra={"operation_id": operation.operation_id, "date_key": day.date_key},
        )
        return ApplyOutcome(result=day)

    def _begin(self, operation: Operation, day: LedgerDay) -> ApplyOutcome:
        applied = self._already_applied(operation, day)
        if applied is not None:
            return applied

        machine = ClosingStateMachine(day.date_key, day.state)
        machine.begin()
        updated = day.with_state(ClosingState.RECONCILING).with_applied(operation.operation_id)
        return ApplyOutcome(result=updated, data=updated.to_dict())

    def _finalize(self, operation: Operation, day: LedgerDay) -> ApplyOutcome:
        applied = self._already_applied(operation, day)
        if applied is not None:
            return applied

        machine = ClosingStateMachine(day.date_key, day.state)
        machine.finalize()

        submitted = operation.payload.get("final_balances")
        if not isinstance(submitted, dict):
            raise InvalidOperationError("finalize_closing에 final_balances가 없습니다")

        live = summarize(day.date_key, [day], closed=False)
        differences = diff_balances(live.per_account_totals, submitted)
        if differences:
            raise ReconciliationMismatchError(day.date_key, differences)

        record = ClosingRecord.from_dict({
            "date_key": day.date_key,
            "closed_at": operation.payload.get("closed_at") or format_iso(now_utc()),
            "closed_by": operation.payload.get("closed_by") or operation.actor,
            # 거래가 있는 모든 계정의 실제 합계 (합이 0인 계정 포함)
            "final_balances": live.per_account_totals,
        })
        updated = day.with_state(ClosingState.CLOSED, closing=record).with_applied(
            operation.operation_id
        )
        return ApplyOutcome(result=updated, data=updated.to_dict())

    def _cancel(self, operation: Operation, day: LedgerDay) -> ApplyOutcome:
        applied = self._already_applied(operation, day)
        if applied is not None:
            return applied

        machine = ClosingStateMachine(day.date_key, day.state)
        machine.cancel()
        updated = day.with_state(ClosingState.OPEN).with_applied(operation.operation_id)
        return ApplyOutcome(result=updated, data=updated.to_dict())


class AccountApplier(OperationApplier):
    """accounts 문서 applier

    DELETE는 비활성화(soft-delete)로 처리.
    """

    UPDATABLE_FIELDS = ("denomination", "description")

    @property
    def collection(self) -> str:
        return Collections.ACCOUNTS

    async def apply(
        self,
        operation: Operation,
        current: VersionedDocument | None,
        store: IDocumentStore,
    ) -> ApplyOutcome:
        if operation.kind == OperationKind.CREATE.value:
            return self._create(operation, current)

        if current is None:
            raise AccountNotFoundError(operation.target_key)
        account = Account.from_dict(current.data)

        if operation.kind == OperationKind.UPDATE.value:
            return self._update(operation, account)
        return self._deactivate(account)

    def _create(self, operation: Operation, current: VersionedDocument | None) -> ApplyOutcome:
        if current is not None:
            # 재전달: 이미 생성됨
            return ApplyOutcome(result=Account.from_dict(current.data))

        fields = operation.payload.get("account")
        if not isinstance(fields, dict):
            raise InvalidOperationError("accounts CREATE에 account가 없습니다")
        account = Account.from_dict({**fields, "id": operation.target_key})
        return ApplyOutcome(result=account, data=account.to_dict())

    def _update(self, operation: Operation, account: Account) -> ApplyOutcome:
        if not account.is_active:
            raise AccountNotFoundError(account.id, inactive=True)

        changes = operation.payload.get("changes") or {}
        unknown = set(changes) - set(self.UPDATABLE_FIELDS)
        if unknown:
            raise InvalidOperationError(
                f"수정할 수 없는 필드: {sorted(unknown)}. 허용: {list(self.UPDATABLE_FIELDS)}"
            )

        updated = Account.from_dict({**account.to_dict(), **changes})
        if updated == account:
            return ApplyOutcome(result=account)
        return ApplyOutcome(result=updated, data=updated.to_dict())

    def _deactivate(self, account: Account) -> ApplyOutcome:
        if not account.is_active:
            return ApplyOutcome(result=account)
        updated = account.deactivated()
        return ApplyOutcome(result=updated, data=updated.to_dict())


def default_appliers() -> list[OperationApplier]:
    """기본 applier 목록"""
    return [LedgerDayApplier(), AccountApplier()]
