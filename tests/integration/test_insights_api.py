"""Integration tests for dashboard, insights, chat, search, digest and exports"""

import pytest
from unittest.mock import AsyncMock, patch
from datetime import date
from fastapi.testclient import TestClient
from financial_guru.domain.exceptions import OllamaUnavailableError
from financial_guru.domain.models import TransactionType
from financial_guru.infrastructure.database.models import Transaction
from financial_guru.services.advisor import FALLBACK_RESPONSE
from financial_guru.services.annual_review import DEFAULT_RECOMMENDATIONS


@pytest.fixture
def coffee_today(db, credit_card):
    txn = Transaction(
        account_id=credit_card.id,
        transaction_date=date.today(),
        description="BLUE BOTTLE COFFEE",
        merchant_name="BLUE BOTTLE COFFEE",
        category="Dining",
        amount=18.75,
        type=TransactionType.DEBIT.value,
    )
    db.add(txn)
    db.commit()
    return txn


def test_dashboard_balances(client: TestClient, credit_card, checking):
    """Test GET /api/dashboard aggregates account balances"""
    response = client.get("/api/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["totalCreditCardBalance"] == 2500.0
    assert data["totalCreditLimit"] == 5000.0
    assert data["totalAvailableCredit"] == 2500.0
    assert data["overallUtilizationPercent"] == 50.0
    assert data["totalCheckingBalance"] == 4200.0
    assert data["totalSavingsBalance"] == 0.0
    assert len(data["accounts"]) == 2
    assert len(data["monthlySpendingTrend"]) == 6


def test_dashboard_empty(client: TestClient):
    data = client.get("/api/dashboard").json()
    assert data["totalCreditCardBalance"] == 0.0
    assert data["overallUtilizationPercent"] == 0.0
    assert data["accounts"] == []
    assert data["unreadAlertCount"] == 0


def test_debt_payoff_strategies(client: TestClient, credit_card):
    """Test GET /api/insights/debt-payoff"""
    response = client.get("/api/insights/debt-payoff", params={"extra": 200})

    assert response.status_code == 200
    data = response.json()
    assert data["extraPayment"] == 200.0
    assert data["totalCurrentDebt"] == 2500.0
    for strategy in ("avalanche", "snowball"):
        plan = data[strategy]
        assert plan["totalMonths"] > 0
        assert plan["totalPaid"] >= 2500.0
        assert plan["cardOrder"][0]["accountName"] == "Chase Freedom"


def test_debt_payoff_rejects_negative_extra(client: TestClient):
    assert client.get("/api/insights/debt-payoff", params={"extra": -5}).status_code == 422


def test_debt_payoff_what_if_is_monotonic(client: TestClient, credit_card):
    rows = client.get("/api/insights/debt-payoff/what-if").json()
    months = [row["avalancheMonths"] for row in rows]
    assert rows[0]["extraPayment"] == 0.0
    assert months == sorted(months, reverse=True)


def test_health_score(client: TestClient, credit_card, checking):
    response = client.get("/api/insights/health-score")

    assert response.status_code == 200
    data = response.json()
    assert 0 <= data["totalScore"] <= 100
    assert data["grade"] in ("A", "B", "C", "D", "F")
    assert data["utilizationPercent"] == 50.0
    assert sum(p["score"] for p in data["pillars"]) == data["totalScore"]


def test_credit_score_estimate(client: TestClient, credit_card):
    """Test GET /api/insights/credit-score at 50% utilization"""
    data = client.get("/api/insights/credit-score").json()

    assert data["estimatedScore"] == 690
    assert data["utilizationImpact"] == "FAIR"
    assert data["cards"][0]["recommendedPayment"] == 1000.0
    assert data["whatIfScenarios"][0]["newUtilizationPct"] == 30.0


def test_fire_calculator_query_overrides(client: TestClient):
    response = client.get(
        "/api/insights/fire-calculator",
        params={"age": 30, "targetRetirementAge": 45, "currentInvestments": 100000, "monthlyExpenses": 4000},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["fiNumber"] == 1200000.0
    assert data["annualExpenses"] == 48000.0
    assert data["currentSavings"] == 100000.0
    assert len(data["projections"]) > 0


def test_cash_flow_validates_month(client: TestClient):
    assert client.get("/api/insights/cash-flow", params={"month": 13}).status_code == 422

    response = client.get("/api/insights/cash-flow", params={"year": 2024, "month": 2})
    assert response.status_code == 200
    assert response.json()["year"] == 2024
    assert response.json()["month"] == 2


def test_spending_heatmap_for_past_year(client: TestClient, monthly_spending):
    data = client.get("/api/insights/spending-heatmap", params={"year": 2024}).json()

    assert len(data["days"]) == 366
    assert data["maxDailySpend"] == 320.0
    assert data["totalAnnualSpend"] == 1096.5
    busiest = [d for d in data["days"] if d["intensity"] == 4]
    assert {d["date"] for d in busiest} == {"2024-04-05", "2024-05-05", "2024-06-05"}


def test_merchant_trend_requires_merchant(client: TestClient):
    assert client.get("/api/insights/merchant-trend").status_code == 422


@patch("financial_guru.infrastructure.clients.ollama.OllamaClient.generate", new_callable=AsyncMock)
async def test_annual_review_falls_back_to_default_recommendations(mock_generate: AsyncMock, client: TestClient, monthly_spending):
    """Test GET /api/insights/annual-review when the model is down"""
    mock_generate.side_effect = OllamaUnavailableError("Cannot reach Ollama")

    response = client.get("/api/insights/annual-review", params={"year": 2024})

    assert response.status_code == 200
    data = response.json()
    assert data["totalSpending"] == 1096.5
    assert data["categoryBreakdown"][0] == {"category": "Groceries", "amount": 960.0}
    assert data["aiRecommendations"] == DEFAULT_RECOMMENDATIONS


def test_run_insights_returns_count(client: TestClient, monthly_spending):
    response = client.post("/api/insights/run")
    assert response.status_code == 200
    assert response.json()["count"] == len(client.get("/api/insights").json())


@patch("financial_guru.infrastructure.clients.ollama.OllamaClient.generate", new_callable=AsyncMock)
async def test_chat_answers_with_model_reply(mock_generate: AsyncMock, client: TestClient, credit_card):
    """Test POST /api/chat"""
    mock_generate.return_value = "Pay down Chase Freedom before the promo ends."

    response = client.post("/api/chat", json={"message": "Which card first?"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "Which card first?",
        "response": "Pay down Chase Freedom before the promo ends.",
    }
    prompt = mock_generate.call_args.args[0]
    assert "Chase Freedom" in prompt
    assert prompt.endswith("User question: Which card first?\n\nAnswer:")


@patch("financial_guru.infrastructure.clients.ollama.OllamaClient.generate", new_callable=AsyncMock)
async def test_chat_falls_back_when_model_unavailable(mock_generate: AsyncMock, client: TestClient):
    mock_generate.side_effect = OllamaUnavailableError("Cannot reach Ollama")

    response = client.post("/api/chat/enriched", json={"message": "How am I doing?"})

    assert response.status_code == 200
    assert response.json()["response"] == FALLBACK_RESPONSE


def test_chat_rejects_empty_message(client: TestClient):
    assert client.post("/api/chat", json={"message": ""}).status_code == 422


def test_chat_suggestions(client: TestClient):
    suggestions = client.get("/api/chat/suggestions").json()
    assert len(suggestions) == 10
    assert "How much did I spend last month?" in suggestions


def test_search_across_kinds(client: TestClient, monthly_spending):
    """Test GET /api/search"""
    data = client.get("/api/search", params={"q": "chipotle"}).json()
    assert data["query"] == "chipotle"
    assert len(data["transactions"]) == 3
    assert data["accounts"] == []

    data = client.get("/api/search", params={"q": "chase"}).json()
    assert [a["name"] for a in data["accounts"]] == ["Chase Freedom"]


def test_search_blank_query(client: TestClient, monthly_spending):
    data = client.get("/api/search", params={"q": "   "}).json()
    assert data["totalResults"] == 0


def test_weekly_digest(client: TestClient, coffee_today):
    response = client.get("/api/digest")

    assert response.status_code == 200
    data = response.json()
    assert data["weekEnd"] == date.today().isoformat()
    assert data["totalSpend"] == 18.75
    assert data["priorWeekSpend"] == 0.0
    assert data["spendingChangePercent"] == 0.0
    assert data["topTransactions"][0]["merchant"] == "BLUE BOTTLE COFFEE"


def test_export_transactions_csv(client: TestClient, monthly_spending):
    """Test GET /api/export/transactions/csv"""
    response = client.get(
        "/api/export/transactions/csv",
        params={"from": "2024-06-01", "to": "2024-06-30", "category": "groceries"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == "attachment; filename=transactions_2024-06-01_to_2024-06-30.csv"
    lines = response.text.strip().split("\n")
    assert lines[0] == "Date,Merchant,Category,Amount,Type,Account,Description"
    assert lines[1] == "2024-06-05,WHOLEFDS MKT,Groceries,320.00,DEBIT,Chase Freedom,WHOLEFDS MKT #10234"
    assert len(lines) == 2


def test_export_csv_rejects_inverted_range(client: TestClient):
    response = client.get("/api/export/transactions/csv", params={"from": "2024-06-30", "to": "2024-06-01"})
    assert response.status_code == 400


def test_export_monthly_pdf(client: TestClient, monthly_spending):
    response = client.get("/api/export/monthly-pdf", params={"year": 2024, "month": 6})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
