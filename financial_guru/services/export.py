"""CSV and PDF exports"""

import csv
import io
import uuid
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session
from financial_guru.infrastructure.database.repositories import TransactionRepository
from financial_guru.infrastructure.documents.monthly_report import render_monthly_summary
from financial_guru.utils.date_utils import month_bounds

CSV_HEADER = ("Date", "Merchant", "Category", "Amount", "Type", "Account", "Description")


class ExportService:
    def __init__(self, db: Session):
        self.transactions = TransactionRepository(db)

    def transactions_csv(
        self,
        start: date,
        end: date,
        account_id: Optional[uuid.UUID] = None,
        category: Optional[str] = None,
    ) -> bytes:
        """Transactions in [start, end], newest first; category compared case-insensitively"""
        rows = self.transactions.in_range(start, end, account_id)
        if category and category.strip():
            rows = [t for t in rows if t.category is not None and t.category.lower() == category.lower()]

        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for txn in rows:
            writer.writerow(
                [
                    txn.transaction_date.isoformat(),
                    txn.merchant_name or "",
                    txn.category or "",
                    f"{txn.amount:.2f}",
                    txn.type or "",
                    txn.account.name if txn.account is not None else "",
                    txn.description or "",
                ]
            )
        return buffer.getvalue().encode("utf-8")

    def monthly_pdf(self, year: int, month: int, today: date | None = None) -> bytes:
        first, last = month_bounds(year, month)
        return render_monthly_summary(
            year,
            month,
            self.transactions.sum_spending(first, last),
            self.transactions.category_totals(first, last),
            generated_on=today or date.today(),
        )
