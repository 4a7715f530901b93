"""
Summaries 라우트

일/주/월/연 집계 API
"""

from fastapi import APIRouter, Depends, Path

from core.ledger.store import LedgerStore
from web.dependencies import get_ledger
from web.models.responses import SummaryResponse

router = APIRouter(prefix="/api/summaries", tags=["Summaries"])


@router.get("/day/{date_key}", response_model=SummaryResponse)
async def get_day_summary(
    date_key: str = Path(..., description="YYYY-MM-DD"),
    ledger: LedgerStore = Depends(get_ledger),
) -> SummaryResponse:
    summary = await ledger.get_day_summary(date_key)
    return SummaryResponse.from_summary("day", summary)


@router.get("/week/{week_key}", response_model=SummaryResponse)
async def get_week_summary(
    week_key: str = Path(..., description="ISO 주 (YYYY-Www)"),
    ledger: LedgerStore = Depends(get_ledger),
) -> SummaryResponse:
    summary = await ledger.get_week_summary(week_key)
    return SummaryResponse.from_summary("week", summary)


@router.get("/month/{month_key}", response_model=SummaryResponse)
async def get_month_summary(
    month_key: str = Path(..., description="YYYY-MM"),
    ledger: LedgerStore = Depends(get_ledger),
) -> SummaryResponse:
    summary = await ledger.get_month_summary(month_key)
    return SummaryResponse.from_summary("month", summary)


@router.get("/year/{year_key}", response_model=SummaryResponse)
async def get_year_summary(
    year_key: str = Path(..., description="YYYY"),
    ledger: LedgerStore = Depends(get_ledger),
) -> SummaryResponse:
    summary = await ledger.get_year_summary(year_key)
    return SummaryResponse.from_summary("year", summary)
