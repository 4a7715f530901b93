"""
Bilans 라우트

일/주/월/연 bilan API (entrées/sorties 결과, trésorerie 잔액)
"""

from fastapi import APIRouter, Depends, Path

from core.ledger.store import LedgerStore
from web.dependencies import get_ledger
from web.models.responses import BilanResponse

router = APIRouter(prefix="/api/bilans", tags=["Bilans"])


@router.get("/day/{date_key}", response_model=BilanResponse)
async def get_day_bilan(
    date_key: str = Path(..., description="YYYY-MM-DD"),
    ledger: LedgerStore = Depends(get_ledger),
) -> BilanResponse:
    bilan = await ledger.get_day_bilan(date_key)
    return BilanResponse.from_bilan("day", bilan)


@router.get("/week/{week_key}", response_model=BilanResponse)
async def get_week_bilan(
    week_key: str = Path(..., description="ISO 주 (YYYY-Www)"),
    ledger: LedgerStore = Depends(get_ledger),
) -> BilanResponse:
    bilan = await ledger.get_week_bilan(week_key)
    return BilanResponse.from_bilan("week", bilan)


@router.get("/month/{month_key}", response_model=BilanResponse)
async def get_month_bilan(
    month_key: str = Path(..., description="YYYY-MM"),
    ledger: LedgerStore = Depends(get_ledger),
) -> BilanResponse:
    bilan = await ledger.get_month_bilan(month_key)
    return BilanResponse.from_bilan("month", bilan)


@router.get("/year/{year_key}", response_model=BilanResponse)
async def get_year_bilan(
    year_key: str = Path(..., description="YYYY"),
    ledger: LedgerStore = Depends(get_ledger),
) -> BilanResponse:
    bilan = await ledger.get_year_bilan(year_key)
    return BilanResponse.from_bilan("year", bilan)
