"""Integration tests for budgets, goals, profile, net worth, alerts and subscriptions"""

import uuid
import pytest
from datetime import date, datetime, timezone
from fastapi.testclient import TestClient
from financial_guru.domain.models import AlertSeverity, AlertType, TransactionType
from financial_guru.infrastructure.database.models import SavingsGoal, Transaction
from financial_guru.services.alerts import AlertService
from financial_guru.utils.date_utils import add_months


@pytest.fixture
def dining_today(db, credit_card):
    txn = Transaction(
        account_id=credit_card.id,
        transaction_date=date.today(),
        description="NOBU MALIBU",
        merchant_name="NOBU MALIBU",
        category="Dining",
        amount=120.0,
        type=TransactionType.DEBIT.value,
    )
    db.add(txn)
    db.commit()
    return txn


def test_budgets_sorted_by_status(client: TestClient, dining_today):
    """Test GET /api/budgets puts exceeded budgets first"""
    assert client.post("/api/budgets", json={"category": "Groceries", "monthlyLimit": 500}).status_code == 200
    assert client.post("/api/budgets", json={"category": "Dining", "monthlyLimit": 100}).status_code == 200

    budgets = client.get("/api/budgets").json()

    assert [b["category"] for b in budgets] == ["Dining", "Groceries"]
    dining, groceries = budgets
    assert dining["status"] == "RED"
    assert dining["actualSpend"] == 120.0
    assert dining["percentUsed"] == 120.0
    assert groceries["status"] == "GREEN"
    assert groceries["actualSpend"] == 0.0


def test_budget_upsert_overwrites_limit(client: TestClient):
    first = client.post("/api/budgets", json={"category": "Travel", "monthlyLimit": 300}).json()
    second = client.post("/api/budgets", json={"category": "Travel", "monthlyLimit": 450}).json()

    assert second["id"] == first["id"]
    assert second["monthlyLimit"] == 450.0
    assert len(client.get("/api/budgets").json()) == 1


def test_budget_validation_and_conflicts(client: TestClient):
    assert client.post("/api/budgets", json={"category": "Travel", "monthlyLimit": 0}).status_code == 422

    travel = client.post("/api/budgets", json={"category": "Travel", "monthlyLimit": 300}).json()
    client.post("/api/budgets", json={"category": "Dining", "monthlyLimit": 200})

    response = client.put(f"/api/budgets/{travel['id']}", json={"category": "Dining", "monthlyLimit": 300})
    assert response.status_code == 409

    response = client.put(f"/api/budgets/{uuid.uuid4()}", json={"category": "Gas", "monthlyLimit": 80})
    assert response.status_code == 404

    assert client.delete(f"/api/budgets/{travel['id']}").status_code == 204
    assert [b["category"] for b in client.get("/api/budgets").json()] == ["Dining"]


def test_goal_lifecycle(client: TestClient):
    """Test POST /api/goals, progress, update and delete"""
    response = client.post(
        "/api/goals",
        json={"name": "Emergency fund", "category": "EMERGENCY_FUND", "targetAmount": 1000, "currentAmount": 400},
    )
    assert response.status_code == 201
    goal = response.json()
    assert goal["percentComplete"] == 40.0
    assert goal["isActive"] is True

    response = client.post(f"/api/goals/{goal['id']}/progress", json={"amount": 100})
    assert response.status_code == 200
    assert response.json()["currentAmount"] == 500.0
    assert response.json()["percentComplete"] == 50.0

    response = client.put(f"/api/goals/{goal['id']}", json={"name": "Rainy day fund"})
    assert response.json()["name"] == "Rainy day fund"
    assert response.json()["currentAmount"] == 500.0

    assert client.delete(f"/api/goals/{goal['id']}").status_code == 204
    assert client.get("/api/goals").json() == []


def test_goal_defaults_category_and_rejects_bad_target(client: TestClient):
    response = client.post("/api/goals", json={"name": "Bike", "targetAmount": 800})
    assert response.json()["category"] == "OTHER"
    assert response.json()["currentAmount"] == 0.0

    assert client.post("/api/goals", json={"name": "Nothing", "targetAmount": 0}).status_code == 422
    assert client.post(f"/api/goals/{uuid.uuid4()}/progress", json={"amount": 10}).status_code == 404


def test_goals_listed_newest_first_and_off_track_without_income(client: TestClient, db):
    db.add(SavingsGoal(name="Car", target_amount=9000, created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)))
    db.add(SavingsGoal(name="Trip", target_amount=3000, created_at=datetime(2024, 3, 1, tzinfo=timezone.utc)))
    db.commit()

    goals = client.get("/api/goals").json()
    assert [g["name"] for g in goals] == ["Trip", "Car"]

    goal = client.post(
        "/api/goals",
        json={"name": "Wedding", "targetAmount": 12000, "targetDate": add_months(date.today(), 12).isoformat()},
    ).json()
    assert goal["monthlyRequired"] == 1000.0
    assert goal["isOnTrack"] is False, "No income on file"


def test_profile_defaults_and_update(client: TestClient):
    """Test GET /api/profile creates the singleton on first read"""
    profile = client.get("/api/profile").json()
    assert profile["incomeSource"] == "MANUAL"
    assert profile["payFrequency"] == "MONTHLY"
    assert profile["emergencyFundTargetMonths"] == 6

    response = client.put("/api/profile", json={"monthlyIncome": 6500, "payFrequency": "BIWEEKLY", "age": 34})
    assert response.status_code == 200
    assert response.json()["monthlyIncome"] == 6500.0
    assert response.json()["payFrequency"] == "BIWEEKLY"
    assert client.get("/api/profile").json()["id"] == profile["id"]


def test_detect_income_uses_median_month(client: TestClient, db, checking):
    today = date.today()
    for months_back, amount in ((0, 4000.0), (1, 4200.0), (2, 5000.0)):
        db.add(
            Transaction(
                account_id=checking.id,
                transaction_date=add_months(today, -months_back),
                description="ACME CORP PAYROLL",
                merchant_name="ACME CORP PAYROLL",
                amount=amount,
                type=TransactionType.CREDIT.value,
            )
        )
    db.commit()

    response = client.post("/api/profile/detect-income")

    assert response.status_code == 200
    assert response.json()["monthlyIncome"] == 4200.0
    profile = client.get("/api/profile").json()
    assert profile["monthlyIncome"] == 4200.0
    assert profile["incomeSource"] == "DETECTED"


def test_net_worth_with_manual_entries(client: TestClient, checking, credit_card):
    """Test GET /api/networth combines balances, assets and liabilities"""
    response = client.post(
        "/api/networth/assets",
        json={"name": "Condo", "assetType": "ASSET", "assetClass": "real_estate", "currentValue": 300000},
    )
    assert response.status_code == 201
    assert response.json()["assetClass"] == "REAL_ESTATE"
    client.post("/api/networth/assets", json={"name": "Car loan", "assetType": "LIABILITY", "currentValue": 12000})

    data = client.get("/api/networth").json()

    assert data["liquidAssets"] == 4200.0
    assert data["creditCardDebt"] == 2500.0
    assert data["manualAssetsTotal"] == 300000.0
    assert data["manualLiabilities"] == 12000.0
    assert data["netWorth"] == 289700.0
    assert data["monthlyChange"] == 0.0
    assert len(data["assets"]) == 2


def test_net_worth_snapshot_upserts_today(client: TestClient, checking):
    first = client.post("/api/networth/snapshot").json()
    client.put(f"/api/accounts/{checking.id}", json={"currentBalance": 5000})
    second = client.post("/api/networth/snapshot").json()

    assert first["netWorth"] == 4200.0
    assert second["id"] == first["id"]
    assert second["netWorth"] == 5000.0
    history = client.get("/api/networth/history").json()
    assert len(history) == 1
    assert history[0]["snapshotDate"] == date.today().isoformat()


def test_asset_validation(client: TestClient):
    response = client.post("/api/networth/assets", json={"name": "Gold", "assetType": "TREASURE", "currentValue": 10})
    assert response.status_code == 400
    assert client.delete(f"/api/networth/assets/{uuid.uuid4()}").status_code == 404


def test_alert_read_and_resolve(client: TestClient, db, credit_card):
    """Test PUT /api/alerts/{id}/read and /resolve"""
    alert = AlertService(db).create_alert(
        AlertType.HIGH_UTILIZATION,
        AlertSeverity.MEDIUM,
        "High Credit Utilization",
        "Chase Freedom is at 50.0% utilization",
        account=credit_card,
    )
    db.commit()
    assert client.get("/api/alerts/unread-count").json()["count"] == 1

    response = client.put(f"/api/alerts/{alert.id}/read")
    assert response.status_code == 200
    assert response.json()["isRead"] is True
    assert response.json()["accountName"] == "Chase Freedom"
    assert client.get("/api/alerts/unread-count").json()["count"] == 0

    response = client.put(f"/api/alerts/{alert.id}/resolve")
    assert response.json()["isResolved"] is True
    assert response.json()["resolvedAt"] is not None
    assert client.get("/api/alerts").json() == []


def test_alert_not_found(client: TestClient):
    assert client.put(f"/api/alerts/{uuid.uuid4()}/read").status_code == 404
    assert client.put("/api/alerts/nope/resolve").status_code == 400


def test_alert_rule_crud(client: TestClient):
    """Test /api/alert-rules create, update and delete"""
    response = client.post(
        "/api/alert-rules",
        json={"name": "Big purchase", "ruleType": "TRANSACTION_AMOUNT", "thresholdAmount": 250},
    )
    assert response.status_code == 201
    rule = response.json()
    assert rule["conditionOperator"] == "GREATER_THAN"
    assert rule["isActive"] is True

    response = client.put(f"/api/alert-rules/{rule['id']}", json={"thresholdAmount": 300, "isActive": False})
    assert response.status_code == 200
    assert response.json()["thresholdAmount"] == 300.0
    assert client.get("/api/alert-rules").json() == []

    assert client.delete(f"/api/alert-rules/{rule['id']}").status_code == 204
    assert client.delete(f"/api/alert-rules/{rule['id']}").status_code == 404


def test_alert_rule_rejects_unknown_type(client: TestClient):
    response = client.post("/api/alert-rules", json={"name": "Odd", "ruleType": "MOON_PHASE"})
    assert response.status_code == 422


def test_detect_subscriptions_marks_cross_account_duplicates(client: TestClient, db, credit_card, checking):
    """Test POST /api/subscriptions/detect then GET /api/subscriptions/duplicates"""
    for account in (credit_card, checking):
        db.add(
            Transaction(
                account_id=account.id,
                transaction_date=date.today(),
                description="SPOTIFY",
                merchant_name="SPOTIFY",
                amount=10.99,
                type=TransactionType.DEBIT.value,
            )
        )
    db.commit()

    response = client.post("/api/subscriptions/detect")

    assert response.status_code == 200
    assert response.json()["detected"] == 2
    subscriptions = client.get("/api/subscriptions").json()
    assert len(subscriptions) == 2
    assert {s["annualCost"] for s in subscriptions} == {131.88}
    duplicates = client.get("/api/subscriptions/duplicates").json()
    assert len(duplicates) == 1
    assert duplicates[0]["duplicateOf"] is not None

    response = client.put(f"/api/subscriptions/{duplicates[0]['id']}", json={"isActive": False, "notes": "cancelled"})
    assert response.status_code == 200
    assert response.json()["isActive"] is False
    assert len(client.get("/api/subscriptions").json()) == 1
