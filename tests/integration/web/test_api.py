"""
Web API 통합 테스트

메모리 컨텍스트 + FixedClock(2025-01-15 12:00 UTC)으로 라우트와 예외 → HTTP 상태 매핑 확인.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from adapters.mock.clock import FixedClock
from core.context import CaisseContext
from core.errors import OperationFailed, PeriodClosedError
from web.app import create_app, status_for


DAY = "2025-01-15"


@pytest.fixture
def client() -> TestClient:
    context = CaisseContext.in_memory(clock=FixedClock(datetime(2025, 1, 15, 12, tzinfo=timezone.utc)))
    with TestClient(create_app(context)) as test_client:
        yield test_client


@pytest.fixture
def cash_id(client: TestClient) -> str:
    response = client.post(
        "/api/accounts",
        json={"code": "531", "denomination": "Caisse", "category": "ENTRY", "type": "TRESORERIE"},
    )
    assert response.status_code == 201
    return response.json()["id"]


def record(client: TestClient, account_id: str, amount: int) -> dict:
    response = client.post(
        "/api/transactions",
        json={"account_id": account_id, "amount": amount, "motif": "Vente", "created_by": "user:awa"},
    )
    assert response.status_code == 201
    return response.json()


class TestHealth:
    """GET /health"""

    def test_health(self, client: TestClient) -> None:
        body = client.get("/health").json()

        assert body["status"] == "ok"
        assert body["today"] == DAY
        assert body["timezone"] == "UTC"


class TestAccounts:
    """계정 API"""

    def test_create_and_get(self, client: TestClient, cash_id: str) -> None:
        body = client.get(f"/api/accounts/{cash_id}").json()

        assert cash_id.startswith("acc-531-")
        assert body["denomination"] == "Caisse"
        assert client.get("/api/accounts").json()["total"] == 1

    def test_duplicate_code(self, client: TestClient, cash_id: str) -> None:
        response = client.post(
            "/api/accounts",
            json={"code": "531", "denomination": "Caisse 2", "category": "ENTRY", "type": "TRESORERIE"},
        )
        assert response.status_code == 409

    def test_invalid_type_rejected(self, client: TestClient) -> None:
        response = client.post(
            "/api/accounts",
            json={"code": "512", "denomination": "Banque", "category": "ENTRY", "type": "BANQUE"},
        )
        assert response.status_code == 422

    def test_unknown_account(self, client: TestClient) -> None:
        response = client.get("/api/accounts/acc-000-ffffff")

        assert response.status_code == 404
        assert response.json()["error"] == "AccountNotFoundError"

    def test_deactivate(self, client: TestClient, cash_id: str) -> None:
        response = client.delete(f"/api/accounts/{cash_id}")

        assert response.json()["is_active"] is False
        assert client.get("/api/accounts").json()["total"] == 0
        assert client.get("/api/accounts", params={"include_inactive": True}).json()["total"] == 1

    def test_defaults(self, client: TestClient) -> None:
        body = client.post("/api/accounts/defaults").json()

        assert body["total"] > 0
        assert client.post("/api/accounts/defaults").json()["total"] == 0


class TestTransactions:
    """거래 API"""

    def test_record_and_summarize(self, client: TestClient, cash_id: str) -> None:
        record(client, cash_id, 500)
        record(client, cash_id, -200)

        day = client.get(f"/api/days/{DAY}").json()
        summary = client.get(f"/api/summaries/day/{DAY}").json()

        assert day["state"] == "OPEN"
        assert [t["amount"] for t in day["transactions"]] == [500, -200]
        assert summary["per_account_totals"] == {cash_id: 300}
        assert summary["grand_total"] == 300
        assert summary["period"] == "day"

    def test_period_summaries(self, client: TestClient, cash_id: str) -> None:
        record(client, cash_id, 500)

        for period, key in (("week", "2025-W03"), ("month", "2025-01"), ("year", "2025")):
            body = client.get(f"/api/summaries/{period}/{key}").json()
            assert body["grand_total"] == 500

    def test_bilans(self, client: TestClient, cash_id: str) -> None:
        sales = client.post(
            "/api/accounts",
            json={"code": "701", "denomination": "Ventes", "category": "ENTRY", "type": "COMPTABLE"},
        ).json()["id"]
        record(client, sales, 500)
        record(client, cash_id, 500)

        body = client.get(f"/api/bilans/day/{DAY}").json()

        assert body["period"] == "day"
        assert body["total_entrees"] == 500
        assert body["resultat"] == 500
        assert body["statut"] == "positif"
        assert body["solde_tresorerie"] == 500
        assert [s["account_id"] for s in body["tresorerie"]] == [cash_id]

        for period, key in (("week", "2025-W03"), ("month", "2025-01"), ("year", "2025")):
            assert client.get(f"/api/bilans/{period}/{key}").json()["total_entrees"] == 500

        assert client.get("/api/bilans/month/2025-13").status_code == 400

    def test_float_amount_rejected(self, client: TestClient, cash_id: str) -> None:
        response = client.post(
            "/api/transactions", json={"account_id": cash_id, "amount": 10.5}
        )
        assert response.status_code == 422

    def test_unknown_account(self, client: TestClient) -> None:
        response = client.post(
            "/api/transactions", json={"account_id": "acc-000-ffffff", "amount": 100}
        )
        assert response.status_code == 404

    def test_invalid_date_key(self, client: TestClient) -> None:
        assert client.get("/api/days/15-01-2025").status_code == 400

    def test_reverse(self, client: TestClient, cash_id: str) -> None:
        original = record(client, cash_id, 500)

        response = client.post(
            f"/api/days/{DAY}/transactions/{original['id']}/reverse",
            json={"created_by": "user:gerant"},
        )

        assert response.status_code == 201
        reversal = response.json()
        assert reversal["amount"] == -500
        assert reversal["reverses"] == original["id"]
        assert reversal["motif"].startswith("Annulation: ")

        again = client.post(
            f"/api/days/{DAY}/transactions/{original['id']}/reverse", json={}
        )
        assert again.status_code == 400


class TestClosings:
    """clôture API"""

    def test_full_closing(self, client: TestClient, cash_id: str) -> None:
        record(client, cash_id, 500)
        record(client, cash_id, -200)

        begin = client.post(f"/api/closings/{DAY}/begin", json={"actor": "user:gerant"})
        assert begin.json()["state"] == "RECONCILING"

        finalize = client.post(
            f"/api/closings/{DAY}/finalize",
            json={"final_balances": {cash_id: 300}, "closed_by": "user:gerant"},
        )
        assert finalize.status_code == 200
        assert finalize.json()["final_balances"] == {cash_id: 300}

        status = client.get(f"/api/closings/{DAY}").json()
        closings = client.get("/api/closings", params={"start": "2025-01-01", "end": "2025-01-31"})
        assert status["state"] == "CLOSED"
        assert closings.json()["total"] == 1

        rejected = client.post(
            "/api/transactions", json={"account_id": cash_id, "amount": 100}
        )
        assert rejected.status_code == 409
        assert rejected.json()["error"] == "PeriodClosedError"
        assert rejected.json()["context"]["date_key"] == DAY

    def test_begin_twice(self, client: TestClient) -> None:
        assert client.post(f"/api/closings/{DAY}/begin", json={}).status_code == 200
        assert client.post(f"/api/closings/{DAY}/begin", json={}).status_code == 409

    def test_mismatch(self, client: TestClient, cash_id: str) -> None:
        record(client, cash_id, 500)
        client.post(f"/api/closings/{DAY}/begin", json={})

        response = client.post(
            f"/api/closings/{DAY}/finalize",
            json={"final_balances": {cash_id: 450}, "closed_by": "user:gerant"},
        )

        assert response.status_code == 422
        assert response.json()["context"]["differences"] == {
            cash_id: {"expected": 500, "submitted": 450}
        }
        assert client.get(f"/api/closings/{DAY}").json()["state"] == "RECONCILING"

        cancel = client.post(f"/api/closings/{DAY}/cancel", json={})
        assert cancel.json()["state"] == "OPEN"

    def test_cancel_open_day(self, client: TestClient) -> None:
        assert client.post(f"/api/closings/{DAY}/cancel", json={}).status_code == 409

    def test_days_requiring_closing(self, client: TestClient, cash_id: str) -> None:
        record(client, cash_id, 500)

        body = client.get("/api/closings/required", params={"before": "2025-01-16"}).json()

        assert body == {"before": "2025-01-16", "days": [DAY], "required": True}


class TestQueue:
    """큐 API"""

    def test_stats(self, client: TestClient, cash_id: str) -> None:
        body = client.get("/api/queue/stats").json()

        assert body["applied"] == 1
        assert body["pending"] == 0
        assert body["dead_letters"] == 0

    def test_unknown_dead_letter(self, client: TestClient) -> None:
        assert client.get("/api/queue/dead-letters/COP-000000000000").status_code == 404
        assert client.post(
            "/api/queue/dead-letters/COP-000000000000/requeue", json={}
        ).status_code == 404
        assert client.delete("/api/queue/dead-letters/COP-000000000000").status_code == 404


def test_status_mapping() -> None:
    assert status_for(PeriodClosedError(DAY, "CLOSED")) == 409
    assert status_for(OperationFailed("COP-1", 6, "conflict")) == 503
