"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
"""

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt

from core.types import AccountCategory, AccountType


class AccountCreateRequest(BaseModel):
    """계정 생성 요청"""

    code: str = Field(..., min_length=1, description="OHADA 계정 코드 (예: 531)")
    denomination: str = Field(..., min_length=1, description="계정명")
    category: AccountCategory = Field(..., description="ENTRY / EXIT")
    type: AccountType = Field(..., description="COMPTABLE / TRESORERIE")
    description: str | None = Field(default=None, description="설명")
    actor: str = Field(default="web:admin", description="행위자 ID")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "5122",
                    "denomination": "Wave",
                    "category": "ENTRY",
                    "type": "TRESORERIE",
                    "description": "Encaissements Wave",
                    "actor": "user:awa",
                },
            ]
        }
    }


class AccountUpdateRequest(BaseModel):
    """계정 수정 요청 (계정명/설명만)"""

    denomination: str | None = Field(default=None, min_length=1, description="계정명")
    description: str | None = Field(default=None, description="설명")
    actor: str = Field(default="web:admin", description="행위자 ID")


class TransactionCreateRequest(BaseModel):
    """거래 기록 요청"""

    account_id: str = Field(..., min_length=1, description="계정 ID")
    amount: StrictInt = Field(..., description="부호 있는 금액 (최소 화폐 단위)")
    motif: str = Field(default="", description="사유")
    occurred_at: datetime | None = Field(default=None, description="발생 시각 (없으면 현재)")
    created_by: str = Field(default="web:admin", description="기록자")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "account_id": "acc-701-a1b2c3",
                    "amount": 500,
                    "motif": "Vente sandwichs",
                    "created_by": "user:awa",
                },
            ]
        }
    }


class ReversalRequest(BaseModel):
    """반대 거래 요청"""

    created_by: str = Field(default="web:admin", description="기록자")
    occurred_at: datetime | None = Field(default=None, description="반대 거래 시각 (없으면 현재)")


class ClosingActionRequest(BaseModel):
    """clôture 시작/취소 요청"""

    actor: str = Field(default="web:admin", description="행위자 ID")


class FinalizeClosingRequest(BaseModel):
    """clôture 완료 요청"""

    final_balances: dict[str, StrictInt] = Field(
        ..., description="계정 ID → 최종 잔액 (실시간 일 집계와 정확히 일치해야 함)"
    )
    closed_by: str = Field(..., min_length=1, description="마감 수행자")


class DeadLetterRequeueRequest(BaseModel):
    """dead-letter 재처리 요청"""

    operator: str = Field(default="admin", min_length=1, description="운영자 ID")
