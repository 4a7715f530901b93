"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AccountCreateRequest,
    AccountUpdateRequest,
    ClosingActionRequest,
    DeadLetterRequeueRequest,
    FinalizeClosingRequest,
    ReversalRequest,
    TransactionCreateRequest,
)
from web.models.responses import (
    AccountListResponse,
    AccountResponse,
    ClosingListResponse,
    ClosingRecordResponse,
    ClosingStatusResponse,
    DaysRequiringClosingResponse,
    DeadLetterListResponse,
    DeadLetterResponse,
    ErrorResponse,
    HealthResponse,
    LedgerDayResponse,
    QueueStatsResponse,
    RequeueResponse,
    SummaryResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "AccountCreateRequest",
    "AccountUpdateRequest",
    "TransactionCreateRequest",
    "ReversalRequest",
    "ClosingActionRequest",
    "FinalizeClosingRequest",
    "DeadLetterRequeueRequest",
    # Responses
    "HealthResponse",
    "ErrorResponse",
    "AccountResponse",
    "AccountListResponse",
    "TransactionResponse",
    "LedgerDayResponse",
    "SummaryResponse",
    "ClosingRecordResponse",
    "ClosingStatusResponse",
    "ClosingListResponse",
    "DaysRequiringClosingResponse",
    "QueueStatsResponse",
    "DeadLetterResponse",
    "DeadLetterListResponse",
    "RequeueResponse",
]
