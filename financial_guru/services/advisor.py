"""AI financial advisor chat over the user's own data"""

import logging
import time
from datetime import date
from sqlalchemy.orm import Session
from financial_guru.domain.exceptions import OllamaUnavailableError
from financial_guru.domain.subscriptions import monthly_cost
from financial_guru.infrastructure.clients.ollama import OllamaClient
from financial_guru.infrastructure.database.repositories import (
    AccountRepository,
    ProfileRepository,
    SubscriptionRepository,
    TransactionRepository,
)
from financial_guru.infrastructure.observability.logging import log_chat
from financial_guru.utils.date_utils import add_months

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = (
    "I'm unable to reach the AI model right now. Please make sure Ollama is running "
    "(`ollama serve`) and the configured model has been pulled, then try again."
)

SUGGESTED_QUESTIONS = [
    "How much did I spend last month?",
    "Which account has the highest utilization?",
    "What subscriptions am I paying for?",
    "Do I have any unusual charges?",
    "Which credit card should I pay off first?",
    "How much am I spending on dining and food?",
    "Are there any duplicate subscriptions?",
    "What are my upcoming payment due dates?",
    "How does my spending this month compare to last month?",
    "Which card has the best rewards for my spending pattern?",
]

INCOME_MIN_AMOUNT = 200
AVERAGE_MONTHS = 3


class AdvisorService:
    def __init__(self, db: Session, ollama: OllamaClient):
        self.ollama = ollama
        self.accounts = AccountRepository(db)
        self.subscriptions = SubscriptionRepository(db)
        self.transactions = TransactionRepository(db)
        self.profiles = ProfileRepository(db)

    async def chat(self, message: str, request_id: str = "unknown", today: date | None = None) -> str:
        context = self.build_context(today or date.today())
        return await self._ask(f"{context}\n\nUser question: {message}\n\nAnswer:", request_id)

    async def chat_enriched(self, message: str, request_id: str = "unknown", today: date | None = None) -> str:
        context = self.build_enriched_context(today or date.today())
        return await self._ask(f"{context}\n\n{message}", request_id)

    async def _ask(self, prompt: str, request_id: str) -> str:
        start = time.time()
        fallback = False
        try:
            answer = await self.ollama.generate(prompt)
        except OllamaUnavailableError as e:
            logger.warning(f"Advisor chat fell back: {e}", extra={"request_id": request_id})
            answer = FALLBACK_RESPONSE
            fallback = True
        log_chat(request_id, self.ollama.model, fallback, (time.time() - start) * 1000)
        return answer

    def build_context(self, today: date) -> str:
        """Accounts and active subscriptions, one line each"""
        lines = [
            "You are a personal financial advisor AI. You have access to the user's financial data. "
            "Be concise, practical, and focused. Provide specific actionable advice.",
            "",
            "ACCOUNTS:",
        ]
        for account in self.accounts.list_active():
            line = f"- {account.name} ({account.type}): Balance ${account.current_balance or 0:.2f}"
            if account.credit_limit is not None:
                line += f", Limit ${account.credit_limit:.2f}"
            if account.apr is not None:
                line += f", APR {account.apr:.2f}%"
            if account.promo_apr is not None and account.promo_apr_end_date is not None:
                line += f", Promo APR {account.promo_apr:.2f}% until {account.promo_apr_end_date.isoformat()}"
            if account.payment_due_day is not None:
                line += f", Due day {account.payment_due_day}"
            lines.append(line)

        subscriptions = self.subscriptions.list_active()
        if subscriptions:
            lines += ["", "ACTIVE SUBSCRIPTIONS:"]
            for s in subscriptions:
                lines.append(f"- {s.merchant_name}: ${s.amount:.2f}/{s.frequency} (Annual: ${s.annual_cost or 0:.2f})")
            total = sum(monthly_cost(s.amount, s.frequency) for s in subscriptions)
            lines.append(f"Total monthly subscriptions: ${total:.2f}")

        lines += ["", f"Today's date: {today.isoformat()}"]
        return "\n".join(lines)

    def build_enriched_context(self, today: date) -> str:
        """
        Context with income, 3-month category averages and savings rate.

        Income is the profile's monthly income, else inflows of at least $200
        over the last three months divided by three.
        """
        since = add_months(today, -AVERAGE_MONTHS)
        lines = [
            "You are a highly experienced personal financial advisor with 15 years working with clients "
            "from all income levels. You have access to the user's complete financial data below. "
            "Be specific, use their actual numbers, give actionable advice. Never be vague or generic.",
            "",
        ]

        income = self.profiles.get_or_create().monthly_income or 0.0
        if income <= 0:
            income = round(self.transactions.sum_income(INCOME_MIN_AMOUNT, since, today) / AVERAGE_MONTHS, 2)
        if income > 0:
            lines += [f"MONTHLY INCOME: ${income:.0f}/month", ""]

        totals = self.transactions.category_totals(since, today)
        if totals:
            lines.append("SPENDING (3-month monthly average):")
            total_spend = 0.0
            for category, amount in totals:
                monthly = round(amount / AVERAGE_MONTHS, 2)
                total_spend += monthly
                lines.append(f"- {category}: ${monthly:.0f}/month")
            lines.append(f"TOTAL SPENDING: ${total_spend:.0f}/month")
            if income > 0:
                savings = income - total_spend
                lines += [f"SAVINGS: ${savings:.0f}/month ({savings / income * 100:.1f}% savings rate)", ""]

        lines.append("ACCOUNTS:")
        for account in self.accounts.list_active():
            line = f"- {account.name} ({account.type}): Balance ${account.current_balance or 0:.2f}"
            if account.credit_limit is not None:
                line += f", Limit ${account.credit_limit:.2f}"
            if account.apr is not None:
                line += f", APR {account.apr:.2f}%"
            lines.append(line)

        subscriptions = self.subscriptions.list_active()
        if subscriptions:
            total = sum(monthly_cost(s.amount, s.frequency) for s in subscriptions)
            lines += ["", f"SUBSCRIPTIONS: {len(subscriptions)} active, ${total:.0f}/month total"]
            for s in subscriptions[:5]:
                lines.append(f"- {s.merchant_name}: ${s.amount:.2f}/{s.frequency}")

        lines += [
            "",
            f"Today's date: {today.isoformat()}",
            "",
            "Answer the user's question with their SPECIFIC numbers. Be direct and actionable.",
        ]
        return "\n".join(lines)
