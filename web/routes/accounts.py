"""
Accounts 라우트

계정 레지스트리 API
"""

from fastapi import APIRouter, Depends, Path, Query

from core.ledger.accounts import AccountRegistry
from web.dependencies import get_accounts
from web.models.requests import AccountCreateRequest, AccountUpdateRequest
from web.models.responses import AccountListResponse, AccountResponse

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("", response_model=AccountListResponse)
async def list_accounts(
    include_inactive: bool = Query(default=False, description="비활성 계정 포함"),
    registry: AccountRegistry = Depends(get_accounts),
) -> AccountListResponse:
    """계정 목록 (코드 순)"""
    accounts = await registry.list_accounts(include_inactive=include_inactive)
    return AccountListResponse(
        accounts=[AccountResponse.from_account(a) for a in accounts],
        total=len(accounts),
    )


@router.post("", response_model=AccountResponse, status_code=201)
async def create_account(
    request: AccountCreateRequest,
    registry: AccountRegistry = Depends(get_accounts),
) -> AccountResponse:
    """계정 생성

    같은 코드의 활성 계정이 있으면 409.
    """
    account = await registry.create_account(
        code=request.code,
        denomination=request.denomination,
        category=request.category,
        type=request.type,
        description=request.description,
        actor=request.actor,
    )
    return AccountResponse.from_account(account)


@router.post("/defaults", response_model=AccountListResponse)
async def initialize_default_accounts(
    registry: AccountRegistry = Depends(get_accounts),
) -> AccountListResponse:
    """기본 계정표 생성 (이미 있는 코드는 건너뜀)

    Returns:
        새로 생성된 계정
    """
    created = await registry.initialize_default_accounts(actor="web:admin")
    return AccountListResponse(
        accounts=[AccountResponse.from_account(a) for a in created],
        total=len(created),
    )


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str = Path(..., description="계정 ID"),
    registry: AccountRegistry = Depends(get_accounts),
) -> AccountResponse:
    account = await registry.get_account(account_id)
    return AccountResponse.from_account(account)


@router.patch("/{account_id}", response_model=AccountResponse)
async def update_account(
    request: AccountUpdateRequest,
    account_id: str = Path(..., description="계정 ID"),
    registry: AccountRegistry = Depends(get_accounts),
) -> AccountResponse:
    """계정명/설명 수정 (비활성 계정은 404)"""
    account = await registry.update_account(
        account_id,
        denomination=request.denomination,
        description=request.description,
        actor=request.actor,
    )
    return AccountResponse.from_account(account)


@router.delete("/{account_id}", response_model=AccountResponse)
async def deactivate_account(
    account_id: str = Path(..., description="계정 ID"),
    actor: str = Query(default="web:admin", description="행위자 ID"),
    registry: AccountRegistry = Depends(get_accounts),
) -> AccountResponse:
    """계정 비활성화

    계정은 삭제되지 않으며 새 거래 기록만 막힌다.
    """
    account = await registry.deactivate_account(account_id, actor=actor)
    return AccountResponse.from_account(account)
