"""Transaction queries and user edits"""

import uuid
from typing import Dict, List, Tuple
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import NotFoundError
from financial_guru.infrastructure.database.models import Transaction
from financial_guru.infrastructure.database.repositories import TransactionRepository

EDITABLE_FIELDS = ("category", "notes", "is_flagged", "flag_reason")


class TransactionService:
    def __init__(self, db: Session):
        self.db = db
        self.transactions = TransactionRepository(db)

    def get(self, transaction_id: uuid.UUID) -> Transaction:
        txn = self.transactions.get(transaction_id)
        if txn is None:
            raise NotFoundError("Transaction", transaction_id)
        return txn

    def search(self, page: int, size: int, **filters) -> Tuple[List[Transaction], int]:
        return self.transactions.search_page(page, size, **filters)

    def update(self, transaction_id: uuid.UUID, changes: dict) -> Transaction:
        txn = self.get(transaction_id)
        for field in EDITABLE_FIELDS:
            if changes.get(field) is not None:
                setattr(txn, field, changes[field])
        self.db.flush()
        return txn

    def bulk_categorize(self, categories: Dict[uuid.UUID, str]) -> int:
        """Set categories by id; unknown ids are ignored"""
        updated = 0
        for txn in self.transactions.get_many(categories.keys()):
            txn.category = categories[txn.id]
            updated += 1
        self.db.flush()
        return updated

    def anomalies(self) -> List[Transaction]:
        return self.transactions.flagged()
