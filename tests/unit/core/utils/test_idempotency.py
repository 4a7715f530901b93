"""
Idempotency 유틸리티 테스트
"""

import re

import pytest

from core.utils.idempotency import (
    make_account_id,
    make_transaction_id,
    new_operation_id,
    parse_transaction_id,
)


class TestOperationId:
    """Operation ID 생성"""

    def test_format(self) -> None:
        assert re.fullmatch(r"COP-[0-9a-f]{12}", new_operation_id())

    def test_unique(self) -> None:
        ids = {new_operation_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestTransactionId:
    """거래 ID (결정적)"""

    def test_deterministic(self) -> None:
        assert make_transaction_id("COP-1a2b3c4d5e6f") == "txn-COP-1a2b3c4d5e6f"
        assert make_transaction_id("COP-x") == make_transaction_id("COP-x")

    def test_empty_operation_id(self) -> None:
        with pytest.raises(ValueError):
            make_transaction_id("")

    def test_parse(self) -> None:
        assert parse_transaction_id("txn-COP-1a2b3c4d5e6f") == "COP-1a2b3c4d5e6f"

    @pytest.mark.parametrize("value", ["", "txn-", "COP-1a2b", "acc-531-abc123"])
    def test_parse_invalid(self, value: str) -> None:
        assert parse_transaction_id(value) is None


class TestAccountId:
    """계정 ID"""

    def test_format(self) -> None:
        assert re.fullmatch(r"acc-531-[0-9a-f]{6}", make_account_id("531"))

    def test_empty_code(self) -> None:
        with pytest.raises(ValueError):
            make_account_id("")
