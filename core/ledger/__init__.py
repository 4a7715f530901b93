"""
Caisse Ledger

일자별 거래 기록, 기간 집계, clôture 워크플로우, 계정 레지스트리.
모든 쓰기는 Operation Queue를 거쳐 일자/계정 문서에 적용된다.

사용 예시:
```python
from core.ledger import AccountRegistry, ClosingWorkflow, LedgerStore

ledger = LedgerStore(queue, document_store, cache)
accounts = AccountRegistry(queue, document_store, cache)
closing = ClosingWorkflow(queue, ledger)

caisse = await accounts.find_by_code("531")
await ledger.record_transaction(caisse.id, 500, "Vente", created_by="user:awa")

await closing.begin_closing("2025-01-01")
summary = await ledger.get_day_summary("2025-01-01")
await closing.finalize_closing("2025-01-01", summary.per_account_totals, "user:awa")
```
"""

from core.ledger.accounts import DEFAULT_ACCOUNTS, AccountRegistry, load_active_account
from core.ledger.aggregation import PeriodSummary, diff_balances, summarize
from core.ledger.closing import ClosingStatus, ClosingWorkflow
from core.ledger.periods import (
    PeriodRange,
    day_range,
    enclosing_periods,
    month_range,
    week_range,
    year_range,
)
from core.ledger.store import REVERSAL_MOTIF_PREFIX, LedgerStore

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "AccountRegistry",
    "ClosingWorkflow",
    "ClosingStatus",
    # 집계
    "PeriodSummary",
    "summarize",
    "diff_balances",
    # 기간
    "PeriodRange",
    "day_range",
    "week_range",
    "month_range",
    "year_range",
    "enclosing_periods",
    # 상수/헬퍼
    "DEFAULT_ACCOUNTS",
    "REVERSAL_MOTIF_PREFIX",
    "load_active_account",
]
