"""Tests for the affiliate income HTTP API."""

import json
import pytest
import tempfile
from pathlib import Path
from fastapi.testclient import TestClient

from affiliate_income.api.config import reload_settings
from affiliate_income.api.main import create_app

LEDGER = {
    "affiliates": [
        {"id": "P", "name": "Parent", "email": "parent@example.com",
         "payoutAccountId": "acct_p", "payoutOnboardingCompleted": True},
        {"id": "C", "name": "Child", "parentAffiliateId": "P"},
    ],
    "commissions": [
        {"id": "p1", "affiliateId": "P", "amountCents": 500, "status": "AVAILABLE",
         "eventType": "SUBSCRIPTION", "createdAt": "2026-05-01T00:00:00Z"},
        {"id": "p2", "affiliateId": "P", "amountCents": 300, "status": "PAID",
         "eventType": "TRANSACTION", "createdAt": "2026-05-02T00:00:00Z"},
        {"id": "p3", "affiliateId": "P", "amountCents": -100, "status": "AVAILABLE",
         "eventType": "REFUND", "createdAt": "2026-05-03T00:00:00Z"},
        {"id": "c1", "affiliateId": "C", "amountCents": 200, "status": "PENDING",
         "eventType": "SUBSCRIPTION", "createdAt": "2026-05-04T00:00:00Z"},
    ],
}


@pytest.fixture
def temp_data_dir():
    """Create temporary ledger directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def client(temp_data_dir, monkeypatch):
    """API client reading the ledger from a temp directory."""
    monkeypatch.setenv("AFFILIATE_DATA_PATH", str(temp_data_dir))
    monkeypatch.setenv("AFFILIATE_CONFIG_PATH", str(temp_data_dir / "program_config.json"))
    monkeypatch.setenv("AFFILIATE_PUBLIC_ORIGIN", "https://example.com")
    reload_settings()
    yield TestClient(create_app())
    monkeypatch.undo()
    reload_settings()


def write_ledger(directory: Path):
    for name, rows in LEDGER.items():
        with open(directory / f"{name}.json", "w") as f:
            json.dump(rows, f)


class TestHealth:
    """Tests for health routes."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready(self, client):
        assert client.get("/ready").json()["status"] == "ready"


class TestIncomeRoutes:
    """Tests for the income report routes."""

    def test_post_income(self, client):
        response = client.post("/v1/affiliates/income", json=LEDGER)
        assert response.status_code == 200

        data = response.json()
        incomes = {i["affiliate_id"]: i for i in data["affiliate_incomes"]}
        assert incomes["P"]["total_income"] == 700
        assert incomes["C"]["total_income"] == 200
        assert data["rollups"][0]["total_with_subs"] == 900
        assert data["totals_display"]["total_income"] == "€9.00"

    def test_post_malformed_ledger(self, client):
        """Malformed rows are rejected with a per-record report."""
        payload = {"commissions": [{"id": "bad", "affiliateId": "P", "amountCents": "lots"}]}
        response = client.post("/v1/affiliates/income", json=payload)

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "ledger_validation_error"
        assert detail["errors"][0]["id"] == "bad"

    def test_post_orphan_reported(self, client):
        payload = {"affiliates": [{"id": "O", "parentAffiliateId": "missing"}]}
        data = client.post("/v1/affiliates/income", json=payload).json()
        assert data["affiliate_incomes"] == []
        assert data["inconsistencies"][0]["affiliate_id"] == "O"

    def test_get_stored_income_with_filters(self, client, temp_data_dir):
        write_ledger(temp_data_dir)

        response = client.get("/v1/affiliates/income", params={"type": "sub"})
        assert response.status_code == 200
        assert [i["affiliate_id"] for i in response.json()["affiliate_incomes"]] == ["C"]

        response = client.get("/v1/affiliates/income", params={"search": "parent@"})
        assert [i["affiliate_id"] for i in response.json()["affiliate_incomes"]] == ["P"]

    def test_filtered_top_performers_follow_filter(self, client, temp_data_dir):
        write_ledger(temp_data_dir)
        data = client.get("/v1/affiliates/income", params={"type": "sub"}).json()

        assert [i["affiliate_id"] for i in data["top_performers"]] == ["C"]
        assert len(data["top_performers"]) == min(10, len(data["affiliate_incomes"]))

    def test_get_stored_income_date_range(self, client, temp_data_dir):
        write_ledger(temp_data_dir)
        response = client.get(
            "/v1/affiliates/income",
            params={"date_from": "2026-05-02T00:00:00Z", "date_to": "2026-05-03T23:59:59Z"},
        )
        assert response.status_code == 200

        incomes = {i["affiliate_id"]: i for i in response.json()["affiliate_incomes"]}
        assert incomes["P"]["total_income"] == 200
        assert incomes["C"]["total_income"] == 0

    def test_get_reversed_date_range(self, client):
        response = client.get(
            "/v1/affiliates/income",
            params={"date_from": "2026-06-01T00:00:00Z", "date_to": "2026-05-01T00:00:00Z"},
        )
        assert response.status_code == 400

    def test_post_unknown_affiliate_reported(self, client):
        payload = dict(LEDGER)
        payload["commissions"] = LEDGER["commissions"] + [
            {"id": "g1", "affiliateId": "ghost", "amountCents": 999, "status": "PAID",
             "eventType": "TRANSACTION", "createdAt": "2026-05-05T00:00:00Z"},
        ]
        data = client.post("/v1/affiliates/income", json=payload).json()

        assert data["totals"]["total_income"] == 900
        assert data["unattributed_commissions"] == [
            {"id": "g1", "affiliate_id": "ghost", "amount_cents": 999},
        ]

    def test_get_invalid_filter(self, client):
        response = client.get("/v1/affiliates/income", params={"status": "deleted"})
        assert response.status_code == 400


class TestAdminRoutes:
    """Tests for referral code, payout and commission helpers."""

    def test_validate_code(self, client):
        response = client.post("/v1/affiliates/referral-code/validate", json={"code": "ref12345"})
        assert response.json() == {
            "valid": True,
            "code": "REF12345",
            "message": None,
            "referral_link": "https://example.com/welkom/REF12345",
        }

    def test_validate_invalid_code(self, client):
        data = client.post("/v1/affiliates/referral-code/validate", json={"code": "HAS-A-DASH1"}).json()
        assert data["valid"] is False
        assert "8 to 50" in data["message"]

    def test_payout_preview_from_storage(self, client, temp_data_dir):
        write_ledger(temp_data_dir)
        data = client.post("/v1/affiliates/payouts/preview").json()

        # Refund rows are never paid out; P has 500 payable, under the default minimum
        assert data["candidates"] == []
        assert data["skipped"][0] == {"affiliate_id": "P", "amount_cents": 500, "reason": "below_minimum"}

    def test_subscription_commission(self, client):
        response = client.get(
            "/v1/affiliates/commissions/subscription",
            params={"fee_cents": 10000, "discount_pct": 100},
        )
        data = response.json()
        assert data["discount_cents"] == 4000
        assert data["final_price_cents"] == 6000
        assert data["final_affiliate_commission_cents"] == 1000
        assert data["parent_commission_cents"] == 0

    def test_transaction_commission_sub_affiliate(self, client):
        response = client.get(
            "/v1/affiliates/commissions/transaction",
            params={"fee_cents": 1000, "buyer": True, "seller": True, "sub_affiliate": True},
        )
        assert response.json() == {"commission_cents": 400, "parent_commission_cents": 100}

    def test_commission_rejects_negative_fee(self, client):
        response = client.get("/v1/affiliates/commissions/transaction", params={"fee_cents": -5})
        assert response.status_code == 422
