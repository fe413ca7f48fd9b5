"""Integration tests for statement upload, background parsing and lifecycle"""

import uuid
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from financial_guru.domain.exceptions import StatementParseError
from financial_guru.domain.models import StatementStatus
from financial_guru.infrastructure.database.models import Statement


STATEMENT_TEXT = "\n".join(
    [
        "Community Credit Union",
        "Account activity",
        "01/12/2024 NETFLIX.COM 15.49",
        "01/15/2024 WHOLEFDS MKT #1234 82.45",
        "01/18/2024 BEST BUY 00123 612.00",
        "01/20/2024 PAYMENT THANK YOU -500.00",
    ]
)


def _upload(client: TestClient, account_id=None):
    data = {"accountId": str(account_id)} if account_id else {}
    return client.post(
        "/api/statements/upload",
        files={"file": ("january.pdf", b"%PDF-1.4 fake", "application/pdf")},
        data=data,
    )


@pytest.fixture
def pending_statement(db) -> Statement:
    statement = Statement(file_name="february.pdf", file_path="/tmp/missing.pdf", status=StatementStatus.PENDING.value)
    db.add(statement)
    db.commit()
    return statement


@patch("financial_guru.services.statements.extract_text")
def test_upload_parses_statement_in_background(mock_extract, client: TestClient, db, checking):
    """Test POST /api/statements/upload runs parsing after the response"""
    mock_extract.return_value = STATEMENT_TEXT

    response = _upload(client, checking.id)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["fileName"] == "january.pdf"
    assert data["account"]["name"] == "Everyday Checking"

    # processing committed through its own session
    db.expire_all()
    statement = client.get(f"/api/statements/{data['id']}").json()
    assert statement["status"] == "COMPLETED"
    assert statement["startDate"] == "2024-01-12"
    assert statement["endDate"] == "2024-01-20"
    assert statement["statementMonth"] == "2024-01-01"
    assert statement["totalDebits"] == 709.94
    assert statement["totalCredits"] == 500.0
    assert statement["closingBalance"] == 4200.0

    transactions = client.get("/api/transactions", params={"accountId": str(checking.id)}).json()
    assert transactions["totalElements"] == 4

    flagged = client.get("/api/transactions/anomalies").json()
    assert [t["merchantName"] for t in flagged] == ["BEST BUY"]

    alert_types = {a["type"] for a in client.get("/api/alerts").json()}
    assert "LARGE_TRANSACTION" in alert_types

    subscriptions = client.get("/api/subscriptions").json()
    assert len(subscriptions) == 1
    assert "NETFLIX" in subscriptions[0]["merchantName"].upper()


@patch("financial_guru.services.statements.extract_text")
def test_upload_records_parse_failure(mock_extract, client: TestClient, db):
    """Test a statement whose text cannot be extracted ends up FAILED"""
    mock_extract.side_effect = StatementParseError("No text layer found")

    response = _upload(client)
    assert response.status_code == 201

    db.expire_all()
    statement = client.get(f"/api/statements/{response.json()['id']}").json()
    assert statement["status"] == "FAILED"
    assert statement["errorMessage"] == "No text layer found"


def test_upload_rejects_empty_file(client: TestClient):
    response = client.post(
        "/api/statements/upload",
        files={"file": ("empty.pdf", b"", "application/pdf")},
    )
    assert response.status_code == 400


def test_upload_rejects_bad_account_id(client: TestClient):
    response = _upload(client, "not-a-uuid")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid account ID format"


def test_reprocess_rejected_while_pending(client: TestClient, pending_statement):
    """Test POST /api/statements/{id}/reprocess returns 409 for a PENDING statement"""
    response = client.post(f"/api/statements/{pending_statement.id}/reprocess")
    assert response.status_code == 409


@patch("financial_guru.services.statements.extract_text")
def test_reprocess_completed_statement(mock_extract, client: TestClient, db, checking):
    mock_extract.return_value = STATEMENT_TEXT
    statement_id = _upload(client, checking.id).json()["id"]

    response = client.post(f"/api/statements/{statement_id}/reprocess")
    assert response.status_code == 202
    assert response.json()["status"] == "PENDING"

    db.expire_all()
    assert client.get(f"/api/statements/{statement_id}").json()["status"] == "COMPLETED"
    transactions = client.get("/api/transactions", params={"accountId": str(checking.id)}).json()
    assert transactions["totalElements"] == 4


@patch("financial_guru.services.statements.extract_text")
def test_assign_account_backfills_transactions(mock_extract, client: TestClient, db, checking):
    """Test PUT /api/statements/{id}/assign-account/{accountId} on an unlinked statement"""
    mock_extract.return_value = STATEMENT_TEXT
    statement_id = _upload(client).json()["id"]
    db.expire_all()
    assert client.get("/api/transactions", params={"accountId": str(checking.id)}).json()["totalElements"] == 0

    response = client.put(f"/api/statements/{statement_id}/assign-account/{checking.id}")

    assert response.status_code == 200
    assert response.json()["accountId"] == str(checking.id)
    assert client.get("/api/transactions", params={"accountId": str(checking.id)}).json()["totalElements"] == 4


def test_assign_account_unknown_account(client: TestClient, pending_statement):
    response = client.put(f"/api/statements/{pending_statement.id}/assign-account/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Account not found"


@patch("financial_guru.services.statements.extract_text")
def test_delete_statement_removes_transactions(mock_extract, client: TestClient, db, checking):
    mock_extract.return_value = STATEMENT_TEXT
    statement_id = _upload(client, checking.id).json()["id"]
    db.expire_all()

    response = client.delete(f"/api/statements/{statement_id}")

    assert response.status_code == 204
    assert client.get(f"/api/statements/{statement_id}").status_code == 404
    assert client.get("/api/transactions").json()["totalElements"] == 0


def test_statement_not_found(client: TestClient):
    assert client.get(f"/api/statements/{uuid.uuid4()}").status_code == 404
    assert client.delete(f"/api/statements/{uuid.uuid4()}").status_code == 404
    assert client.get("/api/statements/bad-id").status_code == 400


def test_list_statements(client: TestClient, pending_statement):
    response = client.get("/api/statements")
    assert response.status_code == 200
    assert [s["fileName"] for s in response.json()] == ["february.pdf"]


def test_analysis_for_unknown_statement(client: TestClient):
    response = client.post(f"/api/analysis/run/{uuid.uuid4()}")
    assert response.status_code == 404


@patch("financial_guru.infrastructure.clients.ollama.OllamaClient.chat_json")
def test_analysis_run_is_accepted(mock_chat_json, client: TestClient, pending_statement):
    """Test POST /api/analysis/run/{id} starts the background review"""
    mock_chat_json.return_value = {}

    response = client.post(f"/api/analysis/run/{pending_statement.id}")

    assert response.status_code == 202
    assert response.json()["status"] == "STARTED"
    assert client.get(f"/api/analysis/{pending_statement.id}").status_code == 200
