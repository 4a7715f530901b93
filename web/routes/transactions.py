"""
Transactions 라우트

거래 기록/조회/반대 거래 API
"""

from fastapi import APIRouter, Depends, Path

from core.ledger.store import LedgerStore
from web.dependencies import get_ledger
from web.models.requests import ReversalRequest, TransactionCreateRequest
from web.models.responses import LedgerDayResponse, TransactionResponse

router = APIRouter(prefix="/api", tags=["Transactions"])


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
async def record_transaction(
    request: TransactionCreateRequest,
    ledger: LedgerStore = Depends(get_ledger),
) -> TransactionResponse:
    """거래 기록

    발생 시각의 영업 일자가 OPEN이 아니면 409 (PeriodClosedError).
    """
    transaction = await ledger.record_transaction(
        account_id=request.account_id,
        amount=request.amount,
        motif=request.motif,
        occurred_at=request.occurred_at,
        created_by=request.created_by,
    )
    return TransactionResponse.from_transaction(transaction)


@router.get("/days/{date_key}", response_model=LedgerDayResponse)
async def get_day(
    date_key: str = Path(..., description="일자 (YYYY-MM-DD)"),
    ledger: LedgerStore = Depends(get_ledger),
) -> LedgerDayResponse:
    """일자 문서 (상태, 거래, 마감 기록)"""
    day = await ledger.get_day(date_key)
    return LedgerDayResponse.from_day(day)


@router.get("/days/{date_key}/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    date_key: str = Path(..., description="일자 (YYYY-MM-DD)"),
    ledger: LedgerStore = Depends(get_ledger),
) -> list[TransactionResponse]:
    transactions = await ledger.list_transactions(date_key)
    return [TransactionResponse.from_transaction(t) for t in transactions]


@router.post(
    "/days/{date_key}/transactions/{transaction_id}/reverse",
    response_model=TransactionResponse,
    status_code=201,
)
async def reverse_transaction(
    request: ReversalRequest,
    date_key: str = Path(..., description="원 거래 일자"),
    transaction_id: str = Path(..., description="원 거래 ID"),
    ledger: LedgerStore = Depends(get_ledger),
) -> TransactionResponse:
    """반대 거래 기록 (거래는 수정/삭제 불가)"""
    transaction = await ledger.reverse_transaction(
        date_key,
        transaction_id,
        created_by=request.created_by,
        occurred_at=request.occurred_at,
    )
    return TransactionResponse.from_transaction(transaction)
