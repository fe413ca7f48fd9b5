"""Unit tests for the dashboard aggregate"""

import pytest
from datetime import date
from sqlalchemy.orm import Session
from financial_guru.infrastructure.database.models import Account, Transaction
from financial_guru.services.dashboard import DashboardService, spending_bucket, years_to_retirement


@pytest.mark.parametrize(
    "rate, years",
    [(None, None), (0.0, None), (-5.0, None), (100.0, 0), (50.0, 7), (10.0, 42), (0.01, None)],
)
def test_years_to_retirement(rate, years):
    assert years_to_retirement(rate) == years


@pytest.mark.parametrize(
    "category, bucket",
    [
        ("Shopping", "THINGS"),
        ("Dining", "EXPERIENCES"),
        ("Travel", "EXPERIENCES"),
        ("Groceries", "NECESSITIES"),
        ("Utilities", "NECESSITIES"),
        ("Fees", "OTHER"),
    ],
)
def test_spending_bucket(category, bucket):
    assert spending_bucket(category) == bucket


def test_build_dashboard(
    db: Session, credit_card: Account, checking: Account, monthly_spending: list[Transaction], today: date
):
    dashboard = DashboardService(db).build(today)

    assert dashboard.total_credit_card_balance == 2500.0
    assert dashboard.total_credit_limit == 5000.0
    assert dashboard.total_available_credit == 2500.0
    assert dashboard.overall_utilization_percent == 50.0
    assert dashboard.total_checking_balance == 4200.0

    assert dashboard.current_month_spend == 365.5
    assert dashboard.last_month_spend == 365.5
    assert dashboard.spending_change_percent == 0.0
    assert [m["month"] for m in dashboard.monthly_spending_trend] == [
        "2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06",
    ]
    assert dashboard.monthly_spending_trend[-1]["amount"] == 365.5

    categories = {c["category"]: c for c in dashboard.category_breakdown}
    assert categories["Groceries"]["amount"] == 960.0
    assert categories["Dining"]["amount"] == 136.5

    payment = dashboard.upcoming_payments[0]
    assert payment["due_date"] == date(2024, 6, 20)
    assert payment["days_until_due"] == 5
    assert payment["min_payment"] == 50.0

    promo = dashboard.expiring_promo_aprs[0]
    assert promo["days_left"] == 30
    assert promo["regular_apr"] == 24.99

    assert dashboard.estimated_monthly_income == 4000.0
    assert dashboard.monthly_savings_rate == 90.9
    assert dashboard.avg_savings_rate_6_month == 90.9
    assert dashboard.freedom_months == round(4200.0 / 365.5, 2)
    assert dashboard.experiences_spend == 45.5
    assert dashboard.necessities_spend == 320.0
    assert dashboard.things_spend == 0.0
    assert {p["bucket"] for p in dashboard.paycheck_breakdown} == {"NECESSITIES", "EXPERIENCES"}


def test_build_empty_dashboard(db: Session, today: date):
    dashboard = DashboardService(db).build(today)

    assert dashboard.accounts == []
    assert dashboard.overall_utilization_percent == 0.0
    assert dashboard.spending_change_percent is None
    assert dashboard.monthly_savings_rate is None
    assert dashboard.years_to_retirement_at_current_rate is None
    assert dashboard.paycheck_breakdown == []
