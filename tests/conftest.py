"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from financial_guru.api.main import create_app
from financial_guru.config import settings
from financial_guru.domain.models import AccountType, TransactionType
from financial_guru.infrastructure.database.models import Account, Base, Transaction
from financial_guru.infrastructure.database.session import get_db, get_session_factory


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, tmp_path, monkeypatch) -> TestClient:
    """Create FastAPI test client with test database; the scheduler stays off"""
    monkeypatch.setattr(settings, "scheduler_enabled", False)
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    return TestClient(app)


@pytest.fixture
def today() -> date:
    return date(2024, 6, 15)


@pytest.fixture
def credit_card(db: Session) -> Account:
    """Chase card at 50% utilization with a promo APR"""
    account = Account(
        name="Chase Freedom",
        institution="CHASE",
        type=AccountType.CREDIT_CARD.value,
        last4="1234",
        credit_limit=5000.0,
        current_balance=2500.0,
        apr=24.99,
        promo_apr=0.0,
        promo_apr_end_date=date(2024, 7, 15),
        payment_due_day=20,
        min_payment=50.0,
        is_active=True,
    )
    db.add(account)
    db.commit()
    return account


@pytest.fixture
def checking(db: Session) -> Account:
    account = Account(
        name="Everyday Checking",
        institution="WELLS_FARGO",
        type=AccountType.CHECKING.value,
        current_balance=4200.0,
        is_active=True,
    )
    db.add(account)
    db.commit()
    return account


@pytest.fixture
def monthly_spending(db: Session, credit_card: Account, today: date) -> list[Transaction]:
    """Three months of groceries and dining plus a payroll deposit each month"""
    transactions = []
    for month_offset in range(3):
        base = date(today.year, today.month - month_offset, 5)
        transactions.append(
            Transaction(
                account_id=credit_card.id,
                transaction_date=base,
                description="WHOLEFDS MKT #10234",
                merchant_name="WHOLEFDS MKT",
                category="Groceries",
                amount=320.0,
                type=TransactionType.DEBIT.value,
            )
        )
        transactions.append(
            Transaction(
                account_id=credit_card.id,
                transaction_date=base + timedelta(days=3),
                description="CHIPOTLE 1123",
                merchant_name="CHIPOTLE",
                category="Dining",
                amount=45.5,
                type=TransactionType.DEBIT.value,
            )
        )
        transactions.append(
            Transaction(
                account_id=credit_card.id,
                transaction_date=base - timedelta(days=3),
                description="ACME CORP PAYROLL",
                merchant_name="ACME CORP PAYROLL",
                amount=4000.0,
                type=TransactionType.CREDIT.value,
            )
        )
    db.add_all(transactions)
    db.commit()
    return transactions
