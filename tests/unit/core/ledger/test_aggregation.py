"""
기간 집계 테스트
"""

from datetime import datetime, timezone

import pytest

from core.domain.documents import Account, LedgerDay, Transaction
from core.ledger.aggregation import (
    PeriodSummary,
    bilan_status,
    compute_bilan,
    diff_balances,
    summarize,
)


def txn(txn_id: str, account_id: str, amount: int) -> Transaction:
    return Transaction(
        id=txn_id,
        account_id=account_id,
        amount=amount,
        motif="x",
        occurred_at=datetime(2025, 1, 15, 10, tzinfo=timezone.utc),
        created_by="user:awa",
    )


class TestSummarize:
    """summarize 테스트"""

    def test_signed_totals(self) -> None:
        days = [
            LedgerDay("2025-01-15", transactions=(txn("1", "cash", 500), txn("2", "cash", -200))),
            LedgerDay("2025-01-16", transactions=(txn("3", "bank", 1000), txn("4", "cash", -50))),
        ]

        summary = summarize("2025-W03", days, closed=False)

        assert summary.per_account_totals == {"cash": 250, "bank": 1000}
        assert summary.grand_total == 1250
        assert summary.transaction_count == 4
        assert summary.total_for("cash") == 250
        assert summary.total_for("other") == 0

    def test_empty(self) -> None:
        summary = summarize("2025-01", [], closed=True)

        assert summary == PeriodSummary(period_key="2025-01", closed=True)
        assert summary.to_dict() == {
            "period_key": "2025-01",
            "per_account_totals": {},
            "grand_total": 0,
            "transaction_count": 0,
            "closed": True,
        }

    def test_grand_total_is_sum_of_accounts(self) -> None:
        days = [LedgerDay("2025-01-15", transactions=tuple(txn(str(i), f"a{i % 3}", i) for i in range(10)))]

        summary = summarize("2025-01-15", days, closed=False)

        assert summary.grand_total == sum(summary.per_account_totals.values()) == 45


class TestDiffBalances:
    """diff_balances 테스트"""

    def test_match(self) -> None:
        assert diff_balances({"cash": 300}, {"cash": 300}) == {}

    def test_missing_counts_as_zero(self) -> None:
        assert diff_balances({"cash": 300, "bank": 0}, {"cash": 300}) == {}
        assert diff_balances({"cash": 300}, {"cash": 300, "bank": 0}) == {}

    def test_mismatch(self) -> None:
        assert diff_balances({"cash": 300}, {"cash": 250, "bank": 10}) == {
            "bank": {"expected": 0, "submitted": 10},
            "cash": {"expected": 300, "submitted": 250},
        }


def account(account_id: str, code: str, category: str, type_: str) -> Account:
    return Account(
        id=account_id,
        code=code,
        denomination=f"Compte {code}",
        category=category,
        type=type_,
    )


ACCOUNTS = {
    a.id: a
    for a in (
        account("sales", "701", "ENTRY", "COMPTABLE"),
        account("supplies", "601", "EXIT", "COMPTABLE"),
        account("rent", "613", "EXIT", "COMPTABLE"),
        account("cash", "531", "ENTRY", "TRESORERIE"),
        account("bank", "511", "ENTRY", "TRESORERIE"),
    )
}


class TestComputeBilan:
    """bilan 테스트"""

    def test_entries_exits_and_treasury(self) -> None:
        summary = PeriodSummary(
            period_key="2025-01-15",
            per_account_totals={
                "sales": 1500,
                "supplies": 400,
                "rent": 300,
                "cash": 1100,
                "bank": -300,
            },
            grand_total=2700,
            transaction_count=6,
        )

        bilan = compute_bilan(summary, ACCOUNTS)

        assert bilan.total_entrees == 1500
        assert bilan.total_sorties == 700
        assert bilan.resultat == 800
        assert bilan.statut == "positif"
        assert bilan.tresorerie_entrees == 1100
        assert bilan.tresorerie_sorties == 300
        assert bilan.solde_tresorerie == 800
        assert bilan.transaction_count == 6
        assert [s.account_id for s in bilan.comptes] == ["rent", "sales", "supplies"]
        assert [s.account_id for s in bilan.tresorerie] == ["bank", "cash"]

    def test_negative_result(self) -> None:
        summary = PeriodSummary("2025-01", per_account_totals={"sales": 100, "supplies": 250})

        bilan = compute_bilan(summary, ACCOUNTS)

        assert bilan.resultat == -150
        assert bilan.statut == "negatif"

    def test_empty_period(self) -> None:
        bilan = compute_bilan(PeriodSummary("2025-02", closed=True), ACCOUNTS)

        assert bilan.to_dict() == {
            "period_key": "2025-02",
            "total_entrees": 0,
            "total_sorties": 0,
            "resultat": 0,
            "statut": "equilibre",
            "tresorerie_entrees": 0,
            "tresorerie_sorties": 0,
            "solde_tresorerie": 0,
            "transaction_count": 0,
            "closed": True,
            "comptes": [],
            "tresorerie": [],
        }

    def test_unknown_account_skipped(self) -> None:
        summary = PeriodSummary("2025-01-15", per_account_totals={"sales": 100, "ghost": 999})

        bilan = compute_bilan(summary, ACCOUNTS)

        assert bilan.total_entrees == 100
        assert [s.account_id for s in bilan.comptes] == ["sales"]

    @pytest.mark.parametrize(
        "resultat,statut",
        [(1, "positif"), (0, "equilibre"), (-1, "negatif")],
    )
    def test_status(self, resultat: int, statut: str) -> None:
        assert bilan_status(resultat) == statut
