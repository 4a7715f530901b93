"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from adapters.models import DeadLetter
from core.domain.documents import Account, ClosingRecord, LedgerDay, Transaction
from core.ledger.aggregation import PeriodBilan, PeriodSummary
from core.ledger.closing import ClosingStatus


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="버전")
    timezone: str = Field(..., description="영업 타임존")
    today: str = Field(..., description="영업 타임존 기준 오늘")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class ErrorResponse(BaseModel):
    """오류 응답"""

    error: str = Field(..., description="예외 타입")
    detail: str = Field(..., description="메시지")
    context: dict[str, Any] = Field(default_factory=dict, description="구조화된 추가 정보")


class AccountResponse(BaseModel):
    """계정 응답"""

    id: str
    code: str
    denomination: str
    category: str
    type: str
    is_active: bool
    description: str | None = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            code=account.code,
            denomination=account.denomination,
            category=account.category,
            type=account.type,
            is_active=account.is_active,
            description=account.description,
        )


class AccountListResponse(BaseModel):
    """계정 목록 응답"""

    accounts: list[AccountResponse]
    total: int


class TransactionResponse(BaseModel):
    """거래 응답"""

    id: str
    account_id: str
    amount: int
    motif: str
    occurred_at: datetime
    created_by: str
    reverses: str | None = None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            account_id=transaction.account_id,
            amount=transaction.amount,
            motif=transaction.motif,
            occurred_at=transaction.occurred_at,
            created_by=transaction.created_by,
            reverses=transaction.reverses,
        )


class ClosingRecordResponse(BaseModel):
    """clôture 기록 응답"""

    date_key: str
    closed_at: datetime
    closed_by: str
    final_balances: dict[str, int]

    @classmethod
    def from_record(cls, record: ClosingRecord) -> "ClosingRecordResponse":
        return cls(
            date_key=record.date_key,
            closed_at=record.closed_at,
            closed_by=record.closed_by,
            final_balances=dict(record.final_balances),
        )


class LedgerDayResponse(BaseModel):
    """일자 응답"""

    date_key: str
    state: str
    transactions: list[TransactionResponse]
    closing: ClosingRecordResponse | None = None

    @classmethod
    def from_day(cls, day: LedgerDay) -> "LedgerDayResponse":
        return cls(
            date_key=day.date_key,
            state=day.state,
            transactions=[TransactionResponse.from_transaction(t) for t in day.transactions],
            closing=ClosingRecordResponse.from_record(day.closing) if day.closing else None,
        )


class SummaryResponse(BaseModel):
    """기간 집계 응답"""

    period: str = Field(..., description="day / week / month / year")
    period_key: str
    per_account_totals: dict[str, int]
    grand_total: int
    transaction_count: int
    closed: bool

    @classmethod
    def from_summary(cls, period: str, summary: PeriodSummary) -> "SummaryResponse":
        return cls(period=period, **summary.to_dict())


class AccountStatisticResponse(BaseModel):
    """계정별 기간 합계"""

    account_id: str
    code: str
    denomination: str
    category: str
    total: int


class BilanResponse(BaseModel):
    """기간 bilan 응답"""

    period: str = Field(..., description="day / week / month / year")
    period_key: str
    total_entrees: int
    total_sorties: int
    resultat: int
    statut: str = Field(..., description="positif / negatif / equilibre")
    tresorerie_entrees: int
    tresorerie_sorties: int
    solde_tresorerie: int
    transaction_count: int
    closed: bool
    comptes: list[AccountStatisticResponse]
    tresorerie: list[AccountStatisticResponse]

    @classmethod
    def from_bilan(cls, period: str, bilan: PeriodBilan) -> "BilanResponse":
        return cls(period=period, **bilan.to_dict())


class ClosingStatusResponse(BaseModel):
    """일자 마감 상태 응답"""

    date_key: str
    state: str
    transaction_count: int
    closing: ClosingRecordResponse | None = None

    @classmethod
    def from_status(cls, status: ClosingStatus) -> "ClosingStatusResponse":
        return cls(
            date_key=status.date_key,
            state=status.state,
            transaction_count=status.transaction_count,
            closing=ClosingRecordResponse.from_record(status.closing) if status.closing else None,
        )


class ClosingListResponse(BaseModel):
    """마감 기록 목록 응답"""

    closings: list[ClosingRecordResponse]
    total: int


class DaysRequiringClosingResponse(BaseModel):
    """마감 필요 일자 응답"""

    before: str
    days: list[str]
    required: bool


class QueueStatsResponse(BaseModel):
    """큐 통계 응답"""

    pending: int
    in_flight: int
    targets: int
    enqueued: int
    applied: int
    rejected: int
    conflicts: int
    timeouts: int
    dead_lettered: int
    cancelled: int
    dead_letters: int = Field(..., description="보관 중인 dead-letter 수")


class DeadLetterResponse(BaseModel):
    """dead-letter 응답"""

    operation_id: str
    operation: dict[str, Any]
    attempts: int
    last_error: str
    failed_at: datetime

    @classmethod
    def from_dead_letter(cls, letter: DeadLetter) -> "DeadLetterResponse":
        return cls(
            operation_id=letter.operation_id,
            operation=dict(letter.operation),
            attempts=letter.attempts,
            last_error=letter.last_error,
            failed_at=letter.failed_at,
        )


class DeadLetterListResponse(BaseModel):
    """dead-letter 목록 응답"""

    dead_letters: list[DeadLetterResponse]
    total: int


class RequeueResponse(BaseModel):
    """dead-letter 재처리 응답"""

    operation_id: str = Field(..., description="원 Operation ID")
    new_operation_id: str = Field(..., description="새로 적재된 Operation ID")
    message: str
