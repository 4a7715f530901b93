"""
헬스 체크 엔드포인트

GET /health - 서버 상태 확인
"""

from fastapi import APIRouter, Depends

from core.context import CaisseContext
from core.utils.timezone import now_utc
from web.dependencies import get_context
from web.models.responses import HealthResponse

router = APIRouter(tags=["health"])

VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(context: CaisseContext = Depends(get_context)) -> HealthResponse:
    """서버 상태 확인

    Returns:
        HealthResponse: status, version, 영업 타임존 기준 오늘
    """
    return HealthResponse(
        status="ok",
        version=VERSION,
        timezone=context.settings.timezone,
        today=context.ledger.today_key(),
        timestamp=now_utc(),
    )
