"""
Closings 라우트

clôture 워크플로우 API

    POST /api/closings/{date}/begin     OPEN → RECONCILING
    POST /api/closings/{date}/finalize  RECONCILING → CLOSED
    POST /api/closings/{date}/cancel    RECONCILING → OPEN
"""

from fastapi import APIRouter, Depends, Path, Query

from core.ledger.closing import ClosingWorkflow
from web.dependencies import get_closing
from web.models.requests import ClosingActionRequest, FinalizeClosingRequest
from web.models.responses import (
    ClosingListResponse,
    ClosingRecordResponse,
    ClosingStatusResponse,
    DaysRequiringClosingResponse,
    LedgerDayResponse,
)

router = APIRouter(prefix="/api/closings", tags=["Closings"])


@router.get("", response_model=ClosingListResponse)
async def list_closings(
    start: str = Query(..., description="시작 일자 (YYYY-MM-DD)"),
    end: str = Query(..., description="종료 일자 (YYYY-MM-DD, 포함)"),
    closing: ClosingWorkflow = Depends(get_closing),
) -> ClosingListResponse:
    records = await closing.list_closings(start, end)
    return ClosingListResponse(
        closings=[ClosingRecordResponse.from_record(r) for r in records],
        total=len(records),
    )


@router.get("/required", response_model=DaysRequiringClosingResponse)
async def find_days_requiring_closing(
    before: str | None = Query(default=None, description="기준 일자 (기본: 오늘)"),
    closing: ClosingWorkflow = Depends(get_closing),
) -> DaysRequiringClosingResponse:
    """기준일 이전에 거래가 있으면서 마감되지 않은 일자"""
    before_key = before or closing.ledger.today_key()
    days = await closing.find_days_requiring_closing(before_key)
    return DaysRequiringClosingResponse(before=before_key, days=days, required=bool(days))


@router.get("/{date_key}", response_model=ClosingStatusResponse)
async def get_closing_status(
    date_key: str = Path(..., description="일자 (YYYY-MM-DD)"),
    closing: ClosingWorkflow = Depends(get_closing),
) -> ClosingStatusResponse:
    status = await closing.get_closing_status(date_key)
    return ClosingStatusResponse.from_status(status)


@router.post("/{date_key}/begin", response_model=LedgerDayResponse)
async def begin_closing(
    request: ClosingActionRequest,
    date_key: str = Path(..., description="일자 (YYYY-MM-DD)"),
    closing: ClosingWorkflow = Depends(get_closing),
) -> LedgerDayResponse:
    """clôture 시작 (OPEN이 아니면 409)"""
    day = await closing.begin_closing(date_key, actor=request.actor)
    return LedgerDayResponse.from_day(day)


@router.post("/{date_key}/finalize", response_model=ClosingRecordResponse)
async def finalize_closing(
    request: FinalizeClosingRequest,
    date_key: str = Path(..., description="일자 (YYYY-MM-DD)"),
    closing: ClosingWorkflow = Depends(get_closing),
) -> ClosingRecordResponse:
    """clôture 완료

    잔액 불일치 시 422 (context.differences에 계정별 차이).
    """
    record = await closing.finalize_closing(
        date_key,
        final_balances=request.final_balances,
        closed_by=request.closed_by,
    )
    return ClosingRecordResponse.from_record(record)


@router.post("/{date_key}/cancel", response_model=LedgerDayResponse)
async def cancel_closing(
    request: ClosingActionRequest,
    date_key: str = Path(..., description="일자 (YYYY-MM-DD)"),
    closing: ClosingWorkflow = Depends(get_closing),
) -> LedgerDayResponse:
    """clôture 취소 (RECONCILING이 아니면 409)"""
    day = await closing.cancel_closing(date_key, actor=request.actor)
    return LedgerDayResponse.from_day(day)
