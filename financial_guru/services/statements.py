"""Statement upload, background processing and lifecycle"""

import logging
import os
import time
import uuid
from datetime import date
from pathlib import Path
from typing import List, Optional
from sqlalchemy.orm import Session, sessionmaker
from financial_guru.config import settings
from financial_guru.domain.exceptions import InvalidStateError, NotFoundError
from financial_guru.domain.models import AccountFacts, AccountType, StatementStatus, TransactionType
from financial_guru.domain.parsers.institutions import (
    GENERIC,
    account_display_name,
    detect_institution,
    detect_last4,
    get_parser,
)
from financial_guru.infrastructure.database.models import Account, Statement, Transaction
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    StatementRepository,
    TransactionRepository,
)
from financial_guru.infrastructure.documents.pdf_text import extract_text
from financial_guru.infrastructure.observability.logging import log_statement_processed
from financial_guru.infrastructure.observability.metrics import record_statement, statement_processing_histogram
from financial_guru.services.anomalies import AnomalyDetectionService
from financial_guru.services.subscriptions import SubscriptionService
from financial_guru.utils.date_utils import month_start

logger = logging.getLogger(__name__)

REPROCESSABLE = (StatementStatus.COMPLETED.value, StatementStatus.FAILED.value)
DEBIT_TYPES = (TransactionType.DEBIT.value, TransactionType.FEE.value, TransactionType.INTEREST.value)

# Card metadata filled only when the account does not have it yet
FILL_IF_MISSING = ("last4", "credit_limit", "available_credit", "apr", "promo_apr", "promo_apr_end_date")


class StatementService:
    def __init__(self, db: Session, upload_dir: str | None = None):
        self.db = db
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.statements = StatementRepository(db)
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)

    def list_all(self) -> List[Statement]:
        return self.statements.list_all()

    def get(self, statement_id: uuid.UUID) -> Statement:
        statement = self.statements.get(statement_id)
        if statement is None:
            raise NotFoundError("Statement", statement_id)
        return statement

    def upload(self, file_name: str, content: bytes, account_id: Optional[uuid.UUID] = None) -> Statement:
        """Store the file as <uuid>_<name> and create a PENDING statement"""
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        safe_name = os.path.basename(file_name or "statement.pdf")
        path = self.upload_dir / f"{uuid.uuid4()}_{safe_name}"
        path.write_bytes(content)

        account = self.accounts.get(account_id) if account_id is not None else None
        return self.statements.add(
            Statement(
                account_id=account.id if account is not None else None,
                file_name=safe_name,
                file_path=str(path),
                status=StatementStatus.PENDING.value,
            )
        )

    def reprocess(self, statement_id: uuid.UUID) -> Statement:
        """
        Reset a finished statement so it can be parsed again.

        Raises:
            InvalidStateError: While the statement is still PENDING or PROCESSING
        """
        statement = self.get(statement_id)
        if statement.status not in REPROCESSABLE:
            raise InvalidStateError(f"Statement {statement_id} is {statement.status}; wait until processing finishes")

        removed = self.transactions.delete_for_statement(statement_id)
        if removed:
            logger.info(f"Deleted {removed} existing transactions before reprocessing statement {statement_id}")

        statement.status = StatementStatus.PENDING.value
        statement.error_message = None
        statement.payment_due_date = None
        statement.minimum_payment = None
        statement.start_date = None
        statement.end_date = None
        statement.ytd_total_fees = None
        statement.ytd_total_interest = None
        statement.ytd_year = None
        self.db.flush()
        return statement

    def delete(self, statement_id: uuid.UUID) -> None:
        statement = self.get(statement_id)
        removed = self.transactions.delete_for_statement(statement_id)
        self.statements.delete(statement)
        logger.info(f"Deleted statement {statement_id} and {removed} transactions")

    def assign_account(self, statement_id: uuid.UUID, account_id: uuid.UUID) -> Statement:
        """Link the statement to an account and back-fill it on the statement's transactions"""
        statement = self.get(statement_id)
        account = self.accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)

        statement.account_id = account.id
        transactions = self.transactions.for_statement(statement_id)
        for txn in transactions:
            txn.account_id = account.id
        self.db.flush()
        logger.info(f"Assigned account {account.name} to statement {statement_id} ({len(transactions)} transactions updated)")
        return statement

    def raw_text(self, statement_id: uuid.UUID) -> dict:
        statement = self.get(statement_id)
        if not Path(statement.file_path).exists():
            raise NotFoundError("Statement file", statement.file_path)
        text = extract_text(statement.file_path)
        return {
            "file_name": statement.file_name,
            "institution": detect_institution(text),
            "char_count": len(text),
            "line_count": len(text.split("\n")),
            "text": text,
        }

    def mark_processing(self, statement_id: uuid.UUID) -> Statement:
        statement = self.get(statement_id)
        statement.status = StatementStatus.PROCESSING.value
        self.db.flush()
        return statement

    def mark_failed(self, statement_id: uuid.UUID, error: str) -> None:
        statement = self.statements.get(statement_id)
        if statement is None:
            return
        statement.status = StatementStatus.FAILED.value
        statement.error_message = error
        self.db.flush()

    def process(self, statement_id: uuid.UUID, today: date | None = None) -> Statement:
        """
        Parse a PROCESSING statement into transactions.

        Flow:
        1. Extract text and detect the issuer
        2. Link or auto-create the account when the upload named none
        3. Parse with the issuer's parser and copy statement-level facts
        4. Update the account's card metadata and payment due day
        5. Derive period, statement month, totals and closing balance
        6. Save transactions, then run anomaly and subscription detection
        """
        today = today or date.today()
        statement = self.get(statement_id)
        started = time.time()

        # 1. Text and issuer
        text = extract_text(statement.file_path)
        institution = detect_institution(text)
        logger.info(f"Detected institution: {institution} for file: {statement.file_name}")

        # 2. Account
        account = statement.account
        if account is None:
            account = self._link_account(text, institution, statement)

        # 3. Parse
        parser = get_parser(institution, today)
        period = (statement.start_date, statement.end_date) if statement.start_date and statement.end_date else None
        result = parser.parse(text, period)
        facts = result.facts
        for field in (
            "start_date",
            "end_date",
            "opening_balance",
            "closing_balance",
            "minimum_payment",
            "payment_due_date",
            "ytd_total_fees",
            "ytd_total_interest",
            "ytd_year",
        ):
            value = getattr(facts, field)
            if value is not None:
                setattr(statement, field, value)

        # 4. Account metadata
        if account is not None:
            self._apply_account_facts(account, parser.extract_account_info(text))
            if statement.payment_due_date is not None:
                account.payment_due_day = statement.payment_due_date.day
                logger.info(f"Account {account.name}: payment due day set to {account.payment_due_day}")
            if statement.minimum_payment is not None:
                account.min_payment = statement.minimum_payment

        # 5. Period, totals and closing balance
        parsed = result.transactions
        if parsed:
            dates = [p.transaction_date for p in parsed]
            statement.start_date = statement.start_date or min(dates)
            statement.end_date = statement.end_date or max(dates)
        if statement.end_date is not None:
            statement.statement_month = month_start(statement.end_date)

        debits = round(sum(p.amount for p in parsed if p.type.value in DEBIT_TYPES), 2)
        credits = round(sum(p.amount for p in parsed if p.type.value not in DEBIT_TYPES), 2)
        statement.total_debits = debits
        statement.total_credits = credits
        if statement.closing_balance is None:
            if account is not None and account.current_balance is not None:
                statement.closing_balance = account.current_balance
            else:
                statement.closing_balance = round(debits - credits, 2)

        # 6. Persist and analyze
        rows = self.transactions.add_all(
            [
                Transaction(
                    account_id=account.id if account is not None else None,
                    statement_id=statement.id,
                    transaction_date=p.transaction_date,
                    description=p.description,
                    merchant_name=p.merchant_name,
                    category=p.category,
                    amount=p.amount,
                    type=p.type.value,
                )
                for p in parsed
            ]
        )
        logger.info(f"Saved {len(rows)} transactions for statement {statement_id}")

        if account is not None and rows:
            AnomalyDetectionService(self.db).detect(rows, account, today)
            SubscriptionService(self.db).detect_for_statement(rows, account)

        statement.status = StatementStatus.COMPLETED.value
        self.db.flush()

        duration = time.time() - started
        statement_processing_histogram.observe(duration)
        record_statement("completed", institution, len(rows))
        log_statement_processed(str(statement_id), institution, "completed", len(rows), duration * 1000)
        return statement

    def _link_account(self, text: str, institution: str, statement: Statement) -> Optional[Account]:
        """Find the issuer's account by last4, or create one; GENERIC statements stay unlinked"""
        if institution == GENERIC:
            logger.info("Could not detect institution - statement will have no account")
            return None

        last4 = detect_last4(text)
        if last4 is not None:
            for candidate in self.accounts.find_by_institution(institution):
                if candidate.last4 == last4:
                    statement.account_id = candidate.id
                    statement.account = candidate
                    logger.info(f"Auto-linked statement to {institution} account {candidate.name} (last4 match)")
                    return candidate

        account = self.accounts.add(
            Account(
                name=account_display_name(institution, last4),
                institution=institution,
                last4=last4,
                type=AccountType.CREDIT_CARD.value,
                is_active=True,
            )
        )
        statement.account_id = account.id
        statement.account = account
        logger.info(f"Auto-created {institution} account '{account.name}' for statement")
        return account

    def _apply_account_facts(self, account: Account, facts: AccountFacts) -> None:
        if facts.current_balance is not None:
            account.current_balance = facts.current_balance
        for field in FILL_IF_MISSING:
            value = getattr(facts, field)
            if value is not None and getattr(account, field) is None:
                setattr(account, field, value)


def process_statement_job(session_factory: sessionmaker, statement_id: uuid.UUID) -> None:
    """
    Background entry point: runs processing in its own session.

    PROCESSING is committed before parsing starts so pollers see progress;
    any failure rolls the work back and records FAILED with the error.
    """
    db = session_factory()
    service = StatementService(db)
    try:
        service.mark_processing(statement_id)
        db.commit()
        service.process(statement_id)
        db.commit()
        logger.info(f"Statement {statement_id} processing complete")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to process statement {statement_id}: {e}", extra={"statement_id": str(statement_id)})
        record_statement("failed", "UNKNOWN", 0)
        service.mark_failed(statement_id, str(e) or e.__class__.__name__)
        db.commit()
    finally:
        db.close()
