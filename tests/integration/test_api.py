"""Integration tests for API endpoints"""

import uuid
from datetime import date, timedelta
from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "financial_guru_statements_processed_total" in response.text


def test_request_id_header_is_returned(client: TestClient):
    first = client.get("/health").headers["X-Request-ID"]
    second = client.get("/health").headers["X-Request-ID"]
    assert uuid.UUID(first) != uuid.UUID(second)


def test_request_latency_labelled_by_route_template(client: TestClient):
    client.get(f"/api/accounts/{uuid.uuid4()}")

    metrics = client.get("/metrics").text
    assert 'endpoint="/api/accounts/{account_id}"' in metrics


def test_create_credit_card_account(client: TestClient):
    """Test POST /api/accounts derives utilization and promo countdown"""
    promo_end = date.today() + timedelta(days=30)
    response = client.post(
        "/api/accounts",
        json={
            "name": "Sapphire Preferred",
            "type": "CREDIT_CARD",
            "institution": "CHASE",
            "creditLimit": 10000,
            "currentBalance": 5000,
            "apr": 22.49,
            "promoApr": 0,
            "promoAprEndDate": promo_end.isoformat(),
            "paymentDueDay": 12,
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Sapphire Preferred"
    assert data["isActive"] is True
    assert data["utilizationPercent"] == 50.0
    assert data["availableCredit"] == 5000.0
    assert data["daysUntilPromoAprExpiry"] == 30


def test_create_account_rejects_unknown_type(client: TestClient):
    response = client.post("/api/accounts", json={"name": "Brokerage", "type": "CRYPTO"})
    assert response.status_code == 422


def test_get_account_errors(client: TestClient):
    """Test GET /api/accounts/{id} with malformed and unknown ids"""
    response = client.get("/api/accounts/not-a-uuid")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid account ID format"

    response = client.get(f"/api/accounts/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Account not found"


def test_update_and_soft_delete_account(client: TestClient, checking):
    """Test PUT then DELETE /api/accounts/{id}"""
    response = client.put(f"/api/accounts/{checking.id}", json={"currentBalance": 3900.5})
    assert response.status_code == 200
    assert response.json()["currentBalance"] == 3900.5
    assert response.json()["name"] == "Everyday Checking"

    response = client.delete(f"/api/accounts/{checking.id}")
    assert response.status_code == 204

    listed = client.get("/api/accounts").json()
    assert all(a["id"] != str(checking.id) for a in listed)


def test_capture_balances_builds_history(client: TestClient, checking):
    response = client.post("/api/accounts/capture-balances")
    assert response.status_code == 204

    history = client.get(f"/api/accounts/{checking.id}/balance-history").json()
    assert len(history) == 1
    assert history[0]["balance"] == 4200.0
    assert history[0]["snapshotDate"] == date.today().isoformat()


def test_account_transactions_page(client: TestClient, credit_card, monthly_spending):
    response = client.get(f"/api/accounts/{credit_card.id}/transactions", params={"size": 4})
    assert response.status_code == 200
    data = response.json()
    assert data["totalElements"] == 9
    assert data["totalPages"] == 3
    assert data["number"] == 0
    assert data["size"] == 4
    assert len(data["content"]) == 4
    assert data["content"][0]["accountName"] == "Chase Freedom"


def test_list_transactions_filters(client: TestClient, monthly_spending):
    """Test GET /api/transactions with category and text filters"""
    response = client.get("/api/transactions", params={"category": "Groceries"})
    assert response.status_code == 200
    data = response.json()
    assert data["totalElements"] == 3
    assert {t["merchantName"] for t in data["content"]} == {"WHOLEFDS MKT"}

    response = client.get("/api/transactions", params={"search": "chipotle", "startDate": "2024-05-01"})
    data = response.json()
    assert data["totalElements"] == 2
    assert data["content"][0]["transactionDate"] == "2024-06-08"

    response = client.get("/api/transactions", params={"minAmount": 1000})
    assert response.json()["totalElements"] == 3


def test_list_transactions_rejects_bad_page(client: TestClient):
    response = client.get("/api/transactions", params={"page": -1})
    assert response.status_code == 400


def test_transaction_pages_stay_in_range(client: TestClient, credit_card, monthly_spending):
    """A page past the last one is rejected; the last page holds the remainder"""
    last = client.get("/api/transactions", params={"page": 2, "size": 4}).json()
    assert last["number"] == 2
    assert last["totalPages"] == 3
    assert len(last["content"]) == 1

    response = client.get("/api/transactions", params={"page": 5, "size": 4})
    assert response.status_code == 400
    assert response.json()["detail"] == "Page out of range"

    response = client.get(f"/api/accounts/{credit_card.id}/transactions", params={"page": 3, "size": 4})
    assert response.status_code == 400


def test_empty_transaction_page(client: TestClient):
    data = client.get("/api/transactions").json()
    assert data["totalElements"] == 0
    assert data["totalPages"] == 0
    assert data["content"] == []


def test_bulk_categorize_and_update(client: TestClient, monthly_spending):
    """Test POST /api/transactions/bulk-categorize then PUT /api/transactions/{id}"""
    target = monthly_spending[1]
    response = client.post(
        "/api/transactions/bulk-categorize",
        json=[{"id": str(target.id), "category": "Restaurants"}, {"id": str(uuid.uuid4()), "category": "Ignored"}],
    )
    assert response.status_code == 204
    assert client.get(f"/api/transactions/{target.id}").json()["category"] == "Restaurants"

    response = client.put(f"/api/transactions/{target.id}", json={"notes": "team lunch", "isFlagged": True})
    assert response.status_code == 200
    data = response.json()
    assert data["notes"] == "team lunch"
    assert data["isFlagged"] is True
    assert data["category"] == "Restaurants"

    flagged = client.get("/api/transactions/anomalies").json()
    assert [t["id"] for t in flagged] == [str(target.id)]


def test_get_transaction_errors(client: TestClient):
    assert client.get("/api/transactions/xyz").status_code == 400
    assert client.get(f"/api/transactions/{uuid.uuid4()}").status_code == 404
