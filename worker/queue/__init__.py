"""
Operation Queue 모듈

대상 문서별 FIFO 직렬 적용, CAS 재시도, dead-letter 처리
"""

from worker.queue.appliers import (
    AccountApplier,
    ApplyOutcome,
    LedgerDayApplier,
    OperationApplier,
    default_appliers,
)
from worker.queue.queue import OperationQueue

__all__ = [
    "OperationQueue",
    "OperationApplier",
    "ApplyOutcome",
    "LedgerDayApplier",
    "AccountApplier",
    "default_appliers",
]
