"""Background scheduler for reminder alerts, budget checks, insights and snapshots"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional
from sqlalchemy.orm import Session, sessionmaker
from financial_guru.config import settings
from financial_guru.domain.credit_score import utilization_percent
from financial_guru.domain.models import AccountType, AlertSeverity, AlertType
from financial_guru.infrastructure.database.repositories import AccountRepository, SubscriptionRepository
from financial_guru.infrastructure.observability.metrics import scheduler_job_counter
from financial_guru.services.accounts import AccountService
from financial_guru.services.alerts import AlertRuleService, AlertService
from financial_guru.services.budgets import BudgetService
from financial_guru.services.digest import next_due_date
from financial_guru.services.insights import InsightService
from financial_guru.services.networth import NetWorthService

logger = logging.getLogger(__name__)

DUE_DATE_REMINDER_DAYS = (7, 3, 1)
PROMO_REMINDER_DAYS = (30, 14, 7)
UTILIZATION_WARNING = 30.0
UTILIZATION_HIGH = 70.0
SUBSCRIPTION_LOOKAHEAD_DAYS = 3
SUNDAY = 6


def check_due_dates(db: Session, today: date) -> int:
    """Remind 7, 3 and 1 day(s) before a card's payment due day"""
    alerts = AlertService(db)
    created = 0
    for account in AccountRepository(db).with_payment_due_days():
        due = next_due_date(account.payment_due_day, today)
        days = (due - today).days
        if days not in DUE_DATE_REMINDER_DAYS:
            continue
        alerts.create_alert(
            AlertType.DUE_DATE,
            AlertSeverity.HIGH if days == 1 else AlertSeverity.MEDIUM,
            f"Payment Due in {days} day{'' if days == 1 else 's'}",
            f"{account.name} payment due on {due.isoformat()}. "
            f"Balance: ${account.current_balance or 0:.2f}, Min payment: ${account.min_payment or 0:.2f}",
            account=account,
        )
        created += 1
    return created


def check_promo_apr_expiry(db: Session, today: date) -> int:
    alerts = AlertService(db)
    created = 0
    for account in AccountRepository(db).with_promo_apr():
        days = (account.promo_apr_end_date - today).days
        if days not in PROMO_REMINDER_DAYS:
            continue
        alerts.create_alert(
            AlertType.APR_EXPIRY,
            AlertSeverity.HIGH if days <= 7 else AlertSeverity.MEDIUM,
            f"Promo APR Expiring in {days} days",
            f"{account.name} promo APR ({account.promo_apr or 0:.2f}%) expires on "
            f"{account.promo_apr_end_date.isoformat()}. Regular APR {account.apr or 0:.2f}% will apply. "
            f"Balance: ${account.current_balance or 0:.2f}",
            account=account,
            ai_explanation="Consider paying down the balance before the promo APR expires to avoid higher interest charges.",
        )
        created += 1
    return created


def check_high_utilization(db: Session, today: date) -> int:
    alerts = AlertService(db)
    created = 0
    for account in AccountRepository(db).list_by_type(AccountType.CREDIT_CARD):
        if not account.credit_limit or account.current_balance is None:
            continue
        util = utilization_percent(account.current_balance, account.credit_limit)
        if util <= UTILIZATION_WARNING:
            continue
        alerts.create_alert(
            AlertType.HIGH_UTILIZATION,
            AlertSeverity.HIGH if util > UTILIZATION_HIGH else AlertSeverity.MEDIUM,
            "High Credit Utilization",
            f"{account.name} is at {util:.1f}% utilization "
            f"(${account.current_balance:.2f} / ${account.credit_limit:.2f}). High utilization hurts credit score.",
            account=account,
            ai_explanation="Keep utilization below 30% for a healthy credit score. Consider making an extra payment.",
        )
        created += 1
    return created


def check_upcoming_subscriptions(db: Session, today: date) -> int:
    alerts = AlertService(db)
    horizon = today + timedelta(days=SUBSCRIPTION_LOOKAHEAD_DAYS)
    created = 0
    for sub in SubscriptionRepository(db).list_active():
        if sub.next_expected_date is None or not today <= sub.next_expected_date <= horizon:
            continue
        alerts.create_alert(
            AlertType.SUBSCRIPTION,
            AlertSeverity.LOW,
            "Upcoming Subscription Charge",
            f"{sub.merchant_name} (${sub.amount:.2f}) expected on {sub.next_expected_date.isoformat()}",
            account=sub.account,
        )
        created += 1
    return created


def check_budgets(db: Session, today: date) -> int:
    return BudgetService(db).check_and_alert(today)


def evaluate_alert_rules(db: Session, today: date) -> int:
    return AlertRuleService(db).evaluate(today)


def run_insight_engine(db: Session, today: date) -> int:
    return len(InsightService(db).run_all(today))


def capture_balances(db: Session, today: date) -> int:
    return AccountService(db).capture_balances(today)


def capture_net_worth(db: Session, today: date) -> int:
    NetWorthService(db).capture_snapshot(today)
    return 1


@dataclass
class ScheduledJob:
    name: str
    run: Callable[[Session, date], int]
    due: Callable[[date], bool] = lambda today: True


JOBS: List[ScheduledJob] = [
    ScheduledJob("due_dates", check_due_dates),
    ScheduledJob("promo_apr_expiry", check_promo_apr_expiry),
    ScheduledJob("high_utilization", check_high_utilization, lambda today: today.weekday() == SUNDAY),
    ScheduledJob("upcoming_subscriptions", check_upcoming_subscriptions),
    ScheduledJob("budgets", check_budgets),
    ScheduledJob("alert_rules", evaluate_alert_rules),
    ScheduledJob("insights", run_insight_engine),
    ScheduledJob("balance_capture", capture_balances),
    ScheduledJob("net_worth_snapshot", capture_net_worth, lambda today: today.day == 1),
]


class JobScheduler:
    """Runs each job at most once per day from a polling loop"""

    def __init__(self, session_factory: sessionmaker, interval_seconds: Optional[int] = None, jobs: Optional[List[ScheduledJob]] = None):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds or settings.scheduler_interval_seconds
        self.jobs = jobs if jobs is not None else JOBS
        self.running = False
        self.last_run: Dict[str, date] = {}
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self.running:
            logger.warning("Job scheduler is already running")
            return
        self.running = True
        logger.info("Starting job scheduler...")
        self._task = asyncio.create_task(self._scheduler_loop())

    async def stop(self) -> None:
        self.running = False
        logger.info("Stopping job scheduler...")
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _scheduler_loop(self) -> None:
        while self.running:
            try:
                await asyncio.to_thread(self.run_due_jobs)
            except Exception as e:
                logger.error(f"Error in job scheduler loop: {e}", exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    def run_due_jobs(self, today: date | None = None) -> Dict[str, int]:
        """Run every job that is due today and has not run yet; returns counts by job"""
        today = today or date.today()
        results = {}
        for job in self.jobs:
            if self.last_run.get(job.name) == today or not job.due(today):
                continue
            results[job.name] = self.run_job(job, today)
        return results

    def run_job(self, job: ScheduledJob, today: date) -> int:
        db = self.session_factory()
        try:
            count = job.run(db, today)
            db.commit()
            scheduler_job_counter.labels(job=job.name, outcome="ok").inc()
            logger.info(f"Scheduled job {job.name} finished", extra={"step": "scheduled_job", "job": job.name, "count": count})
            return count
        except Exception as e:
            db.rollback()
            scheduler_job_counter.labels(job=job.name, outcome="error").inc()
            logger.error(f"Scheduled job {job.name} failed: {e}", extra={"step": "scheduled_job", "job": job.name})
            return 0
        finally:
            self.last_run[job.name] = today
            db.close()
