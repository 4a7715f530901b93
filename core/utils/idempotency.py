"""
Idempotency 유틸리티

Operation ID 생성 및 Operation에서 파생되는 결정적 문서 ID 제공.
규칙: 거래 ID = txn-{operation_id}

같은 Operation을 두 번 적용해도 같은 거래 ID가 생성되므로
재전달 시 중복 기록이 발생하지 않는다.
"""

from uuid import uuid4

# Operation ID 접두사
OPERATION_PREFIX: str = "COP"

# 거래 ID 접두사
TRANSACTION_PREFIX: str = "txn"

# 계정 ID 접두사
ACCOUNT_PREFIX: str = "acc"


def new_operation_id() -> str:
    """새 Operation ID 생성

    Returns:
        COP-{uuid4 hex 앞 12자리}
    """
    return f"{OPERATION_PREFIX}-{uuid4().hex[:12]}"


def make_transaction_id(operation_id: str) -> str:
    """결정적 거래 ID 생성

    Args:
        operation_id: 거래를 기록하는 Operation ID

    Returns:
        txn-{operation_id}

    Example:
        >>> make_transaction_id("COP-1a2b3c4d5e6f")
        'txn-COP-1a2b3c4d5e6f'
    """
    if not operation_id:
        raise ValueError("operation_id는 비어 있을 수 없습니다")

    return f"{TRANSACTION_PREFIX}-{operation_id}"


def parse_transaction_id(transaction_id: str) -> str | None:
    """거래 ID에서 operation_id 추출

    Returns:
        operation_id 또는 None (형식 불일치 시)
    """
    if not transaction_id:
        return None

    prefix = f"{TRANSACTION_PREFIX}-"

    if transaction_id.startswith(prefix):
        operation_id = transaction_id[len(prefix) :]
        return operation_id if operation_id else None

    return None


def make_account_id(code: str) -> str:
    """계정 코드 기반 계정 ID 생성

    Args:
        code: OHADA 계정 코드 (예: "571")

    Returns:
        acc-{code}-{uuid4 hex 앞 6자리}
    """
    if not code:
        raise ValueError("code는 비어 있을 수 없습니다")

    return f"{ACCOUNT_PREFIX}-{code}-{uuid4().hex[:6]}"
