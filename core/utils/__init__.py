"""
유틸리티 패키지

Operation/거래 ID 생성, 타임존 처리 등 공통 유틸리티
"""

from core.utils.idempotency import (
    make_account_id,
    make_transaction_id,
    new_operation_id,
    parse_transaction_id,
)
from core.utils.timezone import (
    ensure_utc,
    format_iso,
    get_zone,
    now_utc,
    parse_iso,
    to_business,
)

__all__ = [
    "make_account_id",
    "make_transaction_id",
    "new_operation_id",
    "parse_transaction_id",
    "ensure_utc",
    "format_iso",
    "get_zone",
    "now_utc",
    "parse_iso",
    "to_business",
]
