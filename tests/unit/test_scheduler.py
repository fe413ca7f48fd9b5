"""Unit tests for the background job scheduler"""

from datetime import date
from sqlalchemy.orm import Session, sessionmaker
from financial_guru.domain.models import AlertType
from financial_guru.infrastructure.database.models import Account, Alert
from financial_guru.services.scheduler import (
    JobScheduler,
    ScheduledJob,
    check_due_dates,
    check_high_utilization,
    check_promo_apr_expiry,
)


def _scheduler(db: Session, jobs=None) -> JobScheduler:
    return JobScheduler(sessionmaker(bind=db.get_bind()), interval_seconds=1, jobs=jobs)


def test_due_date_reminder_seven_days_out(db: Session, credit_card: Account):
    created = check_due_dates(db, date(2024, 6, 13))

    alert = db.query(Alert).one()
    assert created == 1
    assert alert.type == AlertType.DUE_DATE.value
    assert alert.severity == "MEDIUM"
    assert alert.title == "Payment Due in 7 days"
    assert "2024-06-20" in alert.message


def test_due_date_reminder_day_before_is_high(db: Session, credit_card: Account):
    check_due_dates(db, date(2024, 6, 19))

    alert = db.query(Alert).one()
    assert alert.severity == "HIGH"
    assert alert.title == "Payment Due in 1 day"


def test_no_reminder_on_other_days(db: Session, credit_card: Account):
    assert check_due_dates(db, date(2024, 6, 10)) == 0


def test_promo_apr_expiry_reminders(db: Session, credit_card: Account):
    # promo ends 2024-07-15
    assert check_promo_apr_expiry(db, date(2024, 6, 15)) == 1
    assert check_promo_apr_expiry(db, date(2024, 7, 8)) == 1
    assert check_promo_apr_expiry(db, date(2024, 7, 2)) == 0

    severities = sorted(a.severity for a in db.query(Alert).all())
    assert severities == ["HIGH", "MEDIUM"]


def test_high_utilization_alert(db: Session, credit_card: Account):
    created = check_high_utilization(db, date(2024, 6, 16))

    alert = db.query(Alert).one()
    assert created == 1
    assert alert.type == AlertType.HIGH_UTILIZATION.value
    assert alert.severity == "MEDIUM"
    assert "50.0% utilization" in alert.message


def test_run_due_jobs_runs_each_job_once_per_day(db: Session, credit_card: Account):
    scheduler = _scheduler(db)

    first = scheduler.run_due_jobs(date(2024, 6, 13))
    second = scheduler.run_due_jobs(date(2024, 6, 13))

    assert first["due_dates"] == 1
    # weekly and monthly jobs are not due on a Thursday mid-month
    assert "high_utilization" not in first
    assert "net_worth_snapshot" not in first
    assert second == {}


def test_weekly_and_monthly_jobs_on_their_days(db: Session, credit_card: Account):
    scheduler = _scheduler(db)

    sunday = scheduler.run_due_jobs(date(2024, 6, 16))
    first_of_month = scheduler.run_due_jobs(date(2024, 7, 1))

    assert sunday["high_utilization"] == 1
    assert first_of_month["net_worth_snapshot"] == 1


def test_failing_job_is_contained(db: Session):
    def explode(session: Session, today: date) -> int:
        raise RuntimeError("boom")

    calls = []

    def record(session: Session, today: date) -> int:
        calls.append(today)
        return 3

    scheduler = _scheduler(db, jobs=[ScheduledJob("explode", explode), ScheduledJob("record", record)])

    results = scheduler.run_due_jobs(date(2024, 6, 13))

    assert results == {"explode": 0, "record": 3}
    assert calls == [date(2024, 6, 13)]
    assert scheduler.last_run["explode"] == date(2024, 6, 13)


async def test_start_and_stop(db: Session):
    scheduler = _scheduler(db, jobs=[])

    await scheduler.start()
    assert scheduler.running is True
    await scheduler.stop()

    assert scheduler.running is False
    assert scheduler._task is None
