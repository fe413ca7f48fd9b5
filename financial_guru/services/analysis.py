"""LLM review of a statement's transactions: categorization, anomalies, summary"""

import json
import logging
import time
import uuid
from typing import Any, Dict, List
from sqlalchemy.orm import Session, sessionmaker
from financial_guru.domain.exceptions import NotFoundError, OllamaUnavailableError
from financial_guru.domain.models import AnalysisType, TransactionType
from financial_guru.infrastructure.clients.ollama import OllamaClient
from financial_guru.infrastructure.database.models import AnalysisResult, Transaction
from financial_guru.infrastructure.database.repositories import (
    AnalysisResultRepository,
    StatementRepository,
    TransactionRepository,
)

logger = logging.getLogger(__name__)

CATEGORIZATION_BATCH = 100
ANOMALY_BATCH = 50

CATEGORIZATION_PROMPT = """Categorize these financial transactions. For each transaction, assign:
- category: one of (Dining, Groceries, Shopping, Travel, Gas, Entertainment, Utilities, Healthcare,
  Subscriptions, Education, Personal Care, Home, Automotive, Insurance, Investments, Fees, Other)
- subcategory: more specific (e.g. "Fast Food", "Streaming", "Clothing")
- normalizedMerchant: clean merchant name
Transactions:
{transactions}
Return JSON: {{"categorizations": [{{"id": "...", "category": "...", "subcategory": "...", "normalizedMerchant": "..."}}]}}
"""

ANOMALY_PROMPT = """Analyze these transactions for anomalies, unusual patterns, or concerning activity.
Look for: unusual amounts, suspicious merchants, patterns that don't match normal spending.
Transactions:
{transactions}
Return JSON: {{"anomalies": [{{"merchant": "...", "amount": ..., "reason": "...", "severity": "LOW|MEDIUM|HIGH"}}],
             "summary": "brief overall assessment"}}
"""

SUMMARY_PROMPT = """Write a brief financial summary for this statement period.
Total spending: ${total:.2f}
Category breakdown: {categories}
Transaction count: {count}
Write 2-3 sentences of actionable financial insight. Be specific with numbers.
Return JSON: {{"summary": "...", "topInsight": "...", "recommendation": "..."}}
"""


def _merchant(txn: Transaction) -> str | None:
    return txn.merchant_name if txn.merchant_name is not None else txn.description


class AnalysisService:
    def __init__(self, db: Session, ollama: OllamaClient):
        self.db = db
        self.ollama = ollama
        self.results = AnalysisResultRepository(db)
        self.statements = StatementRepository(db)
        self.transactions = TransactionRepository(db)

    def results_for(self, statement_id: uuid.UUID) -> List[AnalysisResult]:
        return self.results.for_statement(statement_id)

    def ensure_statement(self, statement_id: uuid.UUID) -> None:
        if self.statements.get(statement_id) is None:
            raise NotFoundError("Statement", statement_id)

    async def run(self, statement_id: uuid.UUID) -> List[AnalysisResult]:
        """
        Run the three analysis steps over a statement.

        Flow:
        1. Categorize uncategorized transactions and apply the answers
        2. Ask for an anomaly review
        3. Ask for a short summary

        A step whose model call fails is logged and skipped; the others still run.
        """
        self.ensure_statement(statement_id)
        transactions = self.transactions.for_statement(statement_id)
        if not transactions:
            logger.warning(f"No transactions found for statement {statement_id}")
            return []

        logger.info(f"Starting AI analysis for statement {statement_id}", extra={"statement_id": str(statement_id)})
        saved = []
        for analysis_type, step in (
            (AnalysisType.CATEGORIZATION, self._categorize),
            (AnalysisType.ANOMALY, self._anomalies),
            (AnalysisType.SUMMARY, self._summary),
        ):
            start = time.time()
            try:
                data = await step(transactions)
            except OllamaUnavailableError as e:
                logger.error(
                    f"{analysis_type.value} analysis failed: {e}",
                    extra={"statement_id": str(statement_id), "step": "analysis"},
                )
                continue
            saved.append(
                self.results.add(
                    AnalysisResult(
                        statement_id=statement_id,
                        analysis_type=analysis_type.value,
                        result_data=data,
                        model_used=self.ollama.model,
                        processing_ms=int((time.time() - start) * 1000),
                    )
                )
            )
        logger.info(f"Completed AI analysis for statement {statement_id}", extra={"statement_id": str(statement_id)})
        return saved

    async def _categorize(self, transactions: List[Transaction]) -> Dict[str, Any]:
        pending = [t for t in transactions if t.category is None][:CATEGORIZATION_BATCH]
        payload = [
            {
                "id": str(t.id),
                "merchant": _merchant(t),
                "amount": t.amount,
                "date": t.transaction_date.isoformat(),
            }
            for t in pending
        ]
        result = await self.ollama.chat_json(CATEGORIZATION_PROMPT.format(transactions=json.dumps(payload)))

        answers = result.get("categorizations")
        if isinstance(answers, list):
            by_id = {str(a.get("id")): a for a in answers if isinstance(a, dict)}
            for txn in pending:
                answer = by_id.get(str(txn.id))
                if answer is None:
                    continue
                txn.category = answer.get("category")
                txn.subcategory = answer.get("subcategory")
                if txn.merchant_name is None and answer.get("normalizedMerchant"):
                    txn.merchant_name = answer["normalizedMerchant"]
            self.db.flush()
        return result

    async def _anomalies(self, transactions: List[Transaction]) -> Dict[str, Any]:
        payload = [
            {
                "merchant": _merchant(t),
                "amount": t.amount,
                "date": t.transaction_date.isoformat(),
                "category": t.category,
            }
            for t in transactions[:ANOMALY_BATCH]
        ]
        return await self.ollama.chat_json(ANOMALY_PROMPT.format(transactions=json.dumps(payload)))

    async def _summary(self, transactions: List[Transaction]) -> Dict[str, Any]:
        categories: Dict[str, float] = {}
        for t in transactions:
            if t.category is not None:
                categories[t.category] = categories.get(t.category, 0.0) + t.amount
        total = sum(t.amount for t in transactions if t.type == TransactionType.DEBIT.value)
        prompt = SUMMARY_PROMPT.format(total=total, categories=json.dumps(categories), count=len(transactions))
        return await self.ollama.chat_json(prompt)


async def run_analysis_job(session_factory: sessionmaker, ollama: OllamaClient, statement_id: uuid.UUID) -> None:
    """Background entry point with its own session"""
    db = session_factory()
    try:
        await AnalysisService(db, ollama).run(statement_id)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"AI analysis failed for statement {statement_id}: {e}", extra={"statement_id": str(statement_id)})
    finally:
        db.close()
