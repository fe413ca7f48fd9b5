"""
E2E tests for user personas driving the API end to end.

Every persona is built through the public endpoints only, starting from an
empty database; statement text extraction and the Ollama model are patched.

User personas:
- user_maxed: One card near its limit, poor credit estimate expected
- user_saver: Large cash reserves and a paid-off card, strong health score expected
- user_uploader: Starts from a statement upload, then asks the advisor
"""

import pytest
from unittest.mock import AsyncMock, patch
from datetime import date
from fastapi.testclient import TestClient
from financial_guru.domain.exceptions import OllamaUnavailableError
from financial_guru.services.advisor import FALLBACK_RESPONSE


UPLOADER_STATEMENT = "\n".join(
    [
        "Neighborhood Credit Union",
        "01/03/2024 SPOTIFY USA 10.99",
        "01/09/2024 SHELL OIL 57442 48.10",
        "01/21/2024 TRADER JOES #552 96.40",
    ]
)


@pytest.mark.integration
def test_user_maxed_poor_credit(client: TestClient):
    """
    user_maxed: $4,800 owed on a $5,000 card
    Expected: POOR utilization impact and a paydown recommendation
    """
    card = client.post(
        "/api/accounts",
        json={
            "name": "Platinum Rewards",
            "type": "CREDIT_CARD",
            "creditLimit": 5000,
            "currentBalance": 4800,
            "apr": 29.99,
            "paymentDueDay": 25,
            "minPayment": 120,
        },
    ).json()
    assert card["utilizationPercent"] == 96.0

    credit = client.get("/api/insights/credit-score").json()
    assert credit["utilizationImpact"] == "POOR"
    assert credit["estimatedScore"] == 650
    assert credit["cards"][0]["recommendedPayment"] == 3300.0, "Should pay down to 30% of the limit"

    payoff = client.get("/api/insights/debt-payoff", params={"extra": 100}).json()
    assert payoff["totalCurrentDebt"] == 4800.0
    assert payoff["avalanche"]["totalInterest"] > 0

    dashboard = client.get("/api/dashboard").json()
    assert dashboard["overallUtilizationPercent"] == 96.0
    assert dashboard["totalAvailableCredit"] == 200.0


@pytest.mark.integration
def test_user_saver_strong_position(client: TestClient):
    """
    user_saver: $50,000 in cash, a paid-off card, known income
    Expected: Positive net worth and a full emergency fund
    """
    client.post("/api/accounts", json={"name": "Joint Checking", "type": "CHECKING", "currentBalance": 20000})
    client.post("/api/accounts", json={"name": "High Yield Savings", "type": "SAVINGS", "currentBalance": 30000})
    client.post(
        "/api/accounts",
        json={"name": "Cash Back Card", "type": "CREDIT_CARD", "creditLimit": 10000, "currentBalance": 0},
    )
    client.put("/api/profile", json={"monthlyIncome": 8000, "emergencyFundTargetMonths": 6})

    net_worth = client.get("/api/networth").json()
    assert net_worth["netWorth"] == 50000.0
    assert net_worth["creditCardDebt"] == 0.0

    health = client.get("/api/insights/health-score").json()
    assert health["utilizationPercent"] == 0.0
    assert health["emergencyFundTarget"] == 6
    assert health["grade"] in ("A", "B"), "A debt-free saver should grade well"

    goal = client.post(
        "/api/goals",
        json={"name": "House down payment", "category": "DOWN_PAYMENT", "targetAmount": 60000, "currentAmount": 30000},
    ).json()
    assert goal["percentComplete"] == 50.0


@pytest.mark.integration
@patch("financial_guru.infrastructure.clients.ollama.OllamaClient.generate", new_callable=AsyncMock)
@patch("financial_guru.services.statements.extract_text")
async def test_user_uploader_statement_to_advice(mock_extract, mock_generate: AsyncMock, client: TestClient, db):
    """
    user_uploader: No accounts until a statement arrives
    Expected: Unlinked statement parsed, then advice falls back while the model is down
    """
    mock_extract.return_value = UPLOADER_STATEMENT
    mock_generate.side_effect = OllamaUnavailableError("Cannot reach Ollama")

    uploaded = client.post(
        "/api/statements/upload",
        files={"file": ("jan.pdf", b"%PDF-1.4 fake", "application/pdf")},
    ).json()

    db.expire_all()
    statement = client.get(f"/api/statements/{uploaded['id']}").json()
    assert statement["status"] == "COMPLETED"
    assert statement["accountId"] is None, "Generic statements stay unlinked"
    assert statement["totalDebits"] == 155.49
    assert statement["closingBalance"] == 155.49

    csv_lines = client.get(
        "/api/export/transactions/csv",
        params={"from": "2024-01-01", "to": date(2024, 1, 31).isoformat()},
    ).text.strip().split("\n")
    assert len(csv_lines) == 4

    advice = client.post("/api/chat", json={"message": "Where can I cut back?"}).json()
    assert advice["response"] == FALLBACK_RESPONSE
