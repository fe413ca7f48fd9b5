"""Cross-entity search over transactions, accounts and merchants"""

from dataclasses import dataclass, field
from datetime import date
from typing import List
from sqlalchemy.orm import Session
from financial_guru.infrastructure.database.models import Account, Transaction
from financial_guru.infrastructure.database.repositories import AccountRepository, TransactionRepository
from financial_guru.utils.date_utils import add_months

RESULT_LIMIT = 5


@dataclass
class SearchResult:
    query: str
    transactions: List[Transaction] = field(default_factory=list)
    accounts: List[Account] = field(default_factory=list)
    merchants: List[str] = field(default_factory=list)

    @property
    def total_results(self) -> int:
        return len(self.transactions) + len(self.accounts) + len(self.merchants)


class SearchService:
    def __init__(self, db: Session):
        self.transactions = TransactionRepository(db)
        self.accounts = AccountRepository(db)

    def search(self, query: str | None, today: date | None = None) -> SearchResult:
        """Up to five matches of each kind; a blank query matches nothing"""
        if query is None or not query.strip():
            return SearchResult(query=query or "")
        today = today or date.today()
        q = query.strip()
        needle = q.lower()

        accounts = [
            a
            for a in self.accounts.list_active()
            if needle in a.name.lower() or (a.institution is not None and needle in a.institution.lower())
        ]
        merchants = [
            merchant
            for merchant, _, _ in self.transactions.merchant_totals(add_months(today, -12), today)
            if needle in merchant.lower()
        ]
        return SearchResult(
            query=q,
            transactions=self.transactions.search_debits(q, RESULT_LIMIT),
            accounts=accounts[:RESULT_LIMIT],
            merchants=merchants[:RESULT_LIMIT],
        )
