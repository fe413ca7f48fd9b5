"""Unit tests for the AI advisor and statement analysis with a mocked model"""

from datetime import date
from unittest.mock import AsyncMock
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import OllamaUnavailableError
from financial_guru.domain.models import AnalysisType, StatementStatus, TransactionType
from financial_guru.infrastructure.clients.ollama import OllamaClient
from financial_guru.infrastructure.database.models import Account, AnalysisResult, Statement, Transaction
from financial_guru.services.advisor import FALLBACK_RESPONSE, AdvisorService
from financial_guru.services.analysis import AnalysisService


def _ollama(**mocks) -> OllamaClient:
    client = OllamaClient(model="test-model")
    for name, mock in mocks.items():
        setattr(client, name, mock)
    return client


async def test_chat_sends_account_context(db: Session, credit_card: Account, today: date):
    generate = AsyncMock(return_value="Pay down Chase Freedom first.")
    advisor = AdvisorService(db, _ollama(generate=generate))

    answer = await advisor.chat("Which card first?", "req-1", today)

    prompt = generate.call_args.args[0]
    assert answer == "Pay down Chase Freedom first."
    assert "Chase Freedom (CREDIT_CARD): Balance $2500.00, Limit $5000.00, APR 24.99%" in prompt
    assert "Today's date: 2024-06-15" in prompt
    assert prompt.endswith("User question: Which card first?\n\nAnswer:")


async def test_chat_falls_back_when_model_is_down(db: Session, credit_card: Account, today: date):
    advisor = AdvisorService(db, _ollama(generate=AsyncMock(side_effect=OllamaUnavailableError("down"))))

    answer = await advisor.chat("Hello?", today=today)

    assert answer == FALLBACK_RESPONSE


def test_enriched_context_derives_income_and_savings(
    db: Session, credit_card: Account, monthly_spending: list[Transaction], today: date
):
    context = AdvisorService(db, _ollama()).build_enriched_context(today)

    # three $4,000 paychecks over three months
    assert "MONTHLY INCOME: $4000/month" in context
    assert "- Groceries: $320/month" in context
    assert "TOTAL SPENDING: $366/month" in context
    assert "savings rate" in context


def _statement_with_transactions(db: Session, account: Account) -> Statement:
    statement = Statement(
        account_id=account.id,
        file_name="june.pdf",
        file_path="/tmp/june.pdf",
        status=StatementStatus.COMPLETED.value,
    )
    db.add(statement)
    db.flush()
    db.add_all(
        [
            Transaction(
                account_id=account.id,
                statement_id=statement.id,
                transaction_date=date(2024, 6, 3),
                description="SQ *BLUE BOTTLE",
                merchant_name=None,
                amount=6.5,
                type=TransactionType.DEBIT.value,
            ),
            Transaction(
                account_id=account.id,
                statement_id=statement.id,
                transaction_date=date(2024, 6, 4),
                description="WHOLEFDS MKT",
                merchant_name="WHOLEFDS MKT",
                category="Groceries",
                amount=80.0,
                type=TransactionType.DEBIT.value,
            ),
        ]
    )
    db.commit()
    return statement


async def test_analysis_applies_categories_and_skips_failed_step(db: Session, credit_card: Account):
    statement = _statement_with_transactions(db, credit_card)
    pending = db.query(Transaction).filter(Transaction.category.is_(None)).one()

    chat_json = AsyncMock(
        side_effect=[
            {
                "categorizations": [
                    {"id": str(pending.id), "category": "Dining", "subcategory": "Coffee", "normalizedMerchant": "Blue Bottle"}
                ]
            },
            OllamaUnavailableError("model unloaded"),
            {"summary": "Light month.", "topInsight": "Groceries lead", "recommendation": "Keep it up"},
        ]
    )
    results = await AnalysisService(db, _ollama(chat_json=chat_json)).run(statement.id)
    db.commit()

    assert [r.analysis_type for r in results] == [AnalysisType.CATEGORIZATION.value, AnalysisType.SUMMARY.value]
    assert all(r.model_used == "test-model" for r in results)
    assert db.query(AnalysisResult).count() == 2

    db.refresh(pending)
    assert pending.category == "Dining"
    assert pending.subcategory == "Coffee"
    assert pending.merchant_name == "Blue Bottle"


async def test_analysis_of_empty_statement_saves_nothing(db: Session, credit_card: Account):
    statement = Statement(account_id=credit_card.id, file_name="empty.pdf", file_path="/tmp/empty.pdf")
    db.add(statement)
    db.commit()
    chat_json = AsyncMock()

    results = await AnalysisService(db, _ollama(chat_json=chat_json)).run(statement.id)

    assert results == []
    chat_json.assert_not_called()
