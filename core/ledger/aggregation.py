"""
기간 집계

거래를 계정별로 묶어 부호 있는 금액을 합산한다.
grand_total = 계정별 합계의 합. 복식부기 균형은 검사하지 않음.

bilan: 계정 유형/방향으로 집계를 분류한 기간 결과 (entrées, sorties, trésorerie).
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from core.domain.documents import Account, LedgerDay
from core.types import AccountCategory, AccountType, BilanStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodSummary:
    """기간 집계 결과 (파생 데이터, 직접 수정 금지)

    Attributes:
        period_key: 일/주/월/연 키
        per_account_totals: 계정 ID → 합계
        grand_total: 전체 합계
        transaction_count: 거래 수
        closed: 기간 내 모든 일자가 CLOSED 여부
    """

    period_key: str
    per_account_totals: dict[str, int] = field(default_factory=dict)
    grand_total: int = 0
    transaction_count: int = 0
    closed: bool = False

    def total_for(self, account_id: str) -> int:
        return self.per_account_totals.get(account_id, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_key": self.period_key,
            "per_account_totals": dict(self.per_account_totals),
            "grand_total": self.grand_total,
            "transaction_count": self.transaction_count,
            "closed": self.closed,
        }


def summarize(period_key: str, days: Iterable[LedgerDay], closed: bool) -> PeriodSummary:
    """일자 문서 목록 → 기간 집계

    Args:
        period_key: 결과 기간 키
        days: 기간 내 일자 문서 (없는 일자는 생략 가능)
        closed: 기간 종료 여부 (호출자가 판정)
    """
    totals: dict[str, int] = defaultdict(int)
    count = 0

    for day in days:
        for transaction in day.transactions:
            totals[transaction.account_id] += transaction.amount
            count += 1

    return PeriodSummary(
        period_key=period_key,
        per_account_totals=dict(totals),
        grand_total=sum(totals.values()),
        transaction_count=count,
        closed=closed,
    )


def diff_balances(
    expected: dict[str, int], submitted: dict[str, int]
) -> dict[str, dict[str, int]]:
    """제출 잔액과 실제 집계 비교

    양쪽 계정의 합집합을 비교하며, 한쪽에 없는 계정은 0으로 간주.

    Returns:
        불일치 계정 → {"expected", "submitted"} (일치 시 빈 dict)
    """
    differences: dict[str, dict[str, int]] = {}
    for account_id in sorted(set(expected) | set(submitted)):
        expected_amount = expected.get(account_id, 0)
        submitted_amount = submitted.get(account_id, 0)
        if expected_amount != submitted_amount:
            differences[account_id] = {
                "expected": expected_amount,
                "submitted": submitted_amount,
            }
    return differences


@dataclass(frozen=True)
class AccountStatistic:
    """계정별 기간 합계 (bilan 상세)"""

    account_id: str
    code: str
    denomination: str
    category: str
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "code": self.code,
            "denomination": self.denomination,
            "category": self.category,
            "total": self.total,
        }


@dataclass(frozen=True)
class PeriodBilan:
    """기간 bilan (entrées/sorties 결과 + 자금 계정 잔액)

    Attributes:
        total_entrees: ENTRY 회계 계정 합계
        total_sorties: EXIT 회계 계정 합계
        resultat: total_entrees - total_sorties
        statut: positif / negatif / equilibre
        tresorerie_entrees: 자금 계정 중 합계가 양수인 계정의 합
        tresorerie_sorties: 자금 계정 중 합계가 음수인 계정의 절대값 합
        solde_tresorerie: tresorerie_entrees - tresorerie_sorties
    """

    period_key: str
    total_entrees: int = 0
    total_sorties: int = 0
    resultat: int = 0
    statut: str = BilanStatus.EQUILIBRE.value
    tresorerie_entrees: int = 0
    tresorerie_sorties: int = 0
    solde_tresorerie: int = 0
    transaction_count: int = 0
    closed: bool = False
    comptes: tuple[AccountStatistic, ...] = ()
    tresorerie: tuple[AccountStatistic, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_key": self.period_key,
            "total_entrees": self.total_entrees,
            "total_sorties": self.total_sorties,
            "resultat": self.resultat,
            "statut": self.statut,
            "tresorerie_entrees": self.tresorerie_entrees,
            "tresorerie_sorties": self.tresorerie_sorties,
            "solde_tresorerie": self.solde_tresorerie,
            "transaction_count": self.transaction_count,
            "closed": self.closed,
            "comptes": [s.to_dict() for s in self.comptes],
            "tresorerie": [s.to_dict() for s in self.tresorerie],
        }


def bilan_status(resultat: int) -> str:
    if resultat > 0:
        return BilanStatus.POSITIF.value
    if resultat < 0:
        return BilanStatus.NEGATIF.value
    return BilanStatus.EQUILIBRE.value


def compute_bilan(summary: PeriodSummary, accounts: Mapping[str, Account]) -> PeriodBilan:
    """기간 집계 + 계정 정보 → bilan

    계정의 type/category로 합계를 분류한다.
    계정 목록에 없는 계정 ID는 경고 후 제외.

    Args:
        summary: 기간 집계
        accounts: 계정 ID → Account (비활성 포함)
    """
    comptes: list[AccountStatistic] = []
    tresorerie: list[AccountStatistic] = []

    for account_id, total in sorted(summary.per_account_totals.items()):
        account = accounts.get(account_id)
        if account is None:
            logger.warning(
                "Account missing from bilan",
                extra={"account_id": account_id, "period": summary.period_key},
            )
            continue

        statistic = AccountStatistic(
            account_id=account_id,
            code=account.code,
            denomination=account.denomination,
            category=account.category,
            total=total,
        )
        if account.type == AccountType.TRESORERIE.value:
            tresorerie.append(statistic)
        else:
            comptes.append(statistic)

    total_entrees = sum(s.total for s in comptes if s.category == AccountCategory.ENTRY.value)
    total_sorties = sum(s.total for s in comptes if s.category == AccountCategory.EXIT.value)
    tresorerie_entrees = sum(s.total for s in tresorerie if s.total > 0)
    tresorerie_sorties = sum(-s.total for s in tresorerie if s.total < 0)
    resultat = total_entrees - total_sorties

    return PeriodBilan(
        period_key=summary.period_key,
        total_entrees=total_entrees,
        total_sorties=total_sorties,
        resultat=resultat,
        statut=bilan_status(resultat),
        tresorerie_entrees=tresorerie_entrees,
        tresorerie_sorties=tresorerie_sorties,
        solde_tresorerie=tresorerie_entrees - tresorerie_sorties,
        transaction_count=summary.transaction_count,
        closed=summary.closed,
        comptes=tuple(comptes),
        tresorerie=tuple(tresorerie),
    )
