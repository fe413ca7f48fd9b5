"""Chase credit card statement parser"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple
from financial_guru.domain.categorization import categorize
from financial_guru.domain.models import (
    AccountFacts,
    AccountType,
    ParsedTransaction,
    ParseResult,
    StatementFacts,
    TransactionType,
)
from financial_guru.domain.parsers.generic import GenericStatementParser, normalize_merchant, parse_amount

logger = logging.getLogger(__name__)

# "01/15     AMAZON.COM*1A2B3C4D5  SEATTLE WA  23.45"
CHASE_TXN = re.compile(r"^(\d{2}/\d{2})\s{2,}(.+?)\s{2,}(-?[\d,]+\.\d{2})\s*$")
CHASE_TXN_LOOSE = re.compile(r"^(\d{2}/\d{2})\s+(.+?)\s+(-?[\d,]+\.\d{2})\s*$")

OPENING_CLOSING = re.compile(
    r"opening/closing\s+date\s+(\d{1,2}/\d{1,2}/\d{2,4})\s*[-–]\s*(\d{1,2}/\d{1,2}/\d{2,4})",
    re.IGNORECASE,
)
ACCOUNT_LAST4 = re.compile(r"account\s+number:\s+(?:X{4}\s+){3}(\d{4})", re.IGNORECASE)
NEW_BALANCE = re.compile(r"^new\s+balance\s+\$?([\d,]+\.\d{2})\s*$", re.IGNORECASE | re.MULTILINE)
CREDIT_LIMIT = re.compile(
    r"(?:credit\s+limit|credit\s+access\s+line)\s+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE
)
# tolerates a stray character after the "A" left by text extraction
AVAILABLE_CREDIT = re.compile(
    r"a\W?vailable\s+(?:credit|for\s+purchase)\s+\$?([\d,]+(?:\.\d{2})?)", re.IGNORECASE
)
REGULAR_APR = re.compile(r"^purchases\s+(\d{1,2}\.\d{2})%", re.IGNORECASE | re.MULTILINE)
PROMO_APR_ROW = re.compile(
    r"^purchases\s+(\d{1,2}\.\d{2})%[^\n]*(\d{2}/\d{2}/\d{2,4})", re.IGNORECASE | re.MULTILINE
)
YTD_FEES = re.compile(r"total\s+fees\s+charged\s+in\s+(\d{4})\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
YTD_INTEREST = re.compile(r"total\s+interest\s+charged\s+in\s+(\d{4})\s+\$?([\d,]+\.\d{2})", re.IGNORECASE)
PAYMENT_DUE_DATE = re.compile(r"payment\s+due\s+date.*?(\d{1,2}/\d{1,2}/\d{2,4})", re.IGNORECASE)
MIN_PAYMENT_LINE = re.compile(r"minimum\s+payment\s+due.*?\$?([\d,]+\.\d{2})", re.IGNORECASE)
YEAR_TOTALS_LINE = re.compile(r"^\d{4}\s")

SECTION_START = ("date of", "transaction merchant", "account activity", "transaction detail")
SECTION_END = ("totals year", "total fees", "total interest", "your annual percentage")

# Chase closes the billing cycle 28 days before the payment is due
DUE_DATE_OFFSET_DAYS = 28
PROMO_APR_CEILING = 10.0
REGULAR_APR_FLOOR = 5.0


def parse_short_date(value: Optional[str]) -> Optional[date]:
    """Parse MM/DD/YY or MM/DD/YYYY"""
    if value is None:
        return None
    value = value.strip()
    for fmt in ("%m/%d/%y", "%m/%d/%Y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def _money(value: str) -> float:
    if "." not in value:
        value = value + ".00"
    return parse_amount(value)


class ChaseStatementParser(GenericStatementParser):
    """
    Parses Chase card statements.

    Transaction lines carry only MM/DD; the year comes from the
    "Opening/Closing Date" period. Falls back to the generic parser when no
    activity line matches.
    """

    institution = "CHASE"

    def parse(self, text: str, period: Optional[Tuple[date, date]] = None) -> ParseResult:
        logger.info("Using Chase-specific parser")
        facts = StatementFacts()
        self._extract_payment_summary(text, facts)
        self._extract_ytd_totals(text, facts)

        start, end = self._detect_period(text, period)
        logger.info(f"Chase statement period: {start} to {end}")
        if facts.payment_due_date is None and end is not None:
            facts.payment_due_date = end + timedelta(days=DUE_DATE_OFFSET_DAYS)

        transactions = self._parse_activity(text, start, end)
        logger.info(f"Chase parser extracted {len(transactions)} transactions")
        if not transactions:
            logger.warning("Chase parser found 0 transactions, falling back to generic")
            transactions = self._parse_lines(text)

        return ParseResult(transactions=transactions, facts=facts)

    def extract_account_info(self, text: str) -> AccountFacts:
        """Card metadata found in the text; absent values stay None"""
        facts = AccountFacts(type=AccountType.CREDIT_CARD)

        match = ACCOUNT_LAST4.search(text)
        if match:
            facts.last4 = match.group(1)

        match = NEW_BALANCE.search(text)
        if match:
            facts.current_balance = parse_amount(match.group(1))

        match = CREDIT_LIMIT.search(text)
        if match:
            facts.credit_limit = _money(match.group(1))

        match = AVAILABLE_CREDIT.search(text)
        if match:
            facts.available_credit = _money(match.group(1))

        match = PROMO_APR_ROW.search(text)
        if match:
            promo = float(match.group(1))
            if promo < PROMO_APR_CEILING:
                facts.promo_apr = promo
                facts.promo_apr_end_date = parse_short_date(match.group(2))

        # The regular purchase APR is the last "Purchases XX.XX%" row above the floor
        for match in REGULAR_APR.finditer(text):
            candidate = float(match.group(1))
            if candidate > REGULAR_APR_FLOOR:
                facts.apr = candidate

        return facts

    def _parse_activity(self, text: str, start: Optional[date], end: Optional[date]) -> List[ParsedTransaction]:
        transactions = []
        in_section = False
        for raw in text.split("\n"):
            line = raw.strip()
            if not line:
                continue
            lower = line.lower()
            if any(marker in lower for marker in SECTION_START):
                in_section = True
                continue
            if YEAR_TOTALS_LINE.match(lower) or lower.startswith(SECTION_END):
                in_section = False
            if not in_section:
                continue

            match = CHASE_TXN.match(line) or CHASE_TXN_LOOSE.match(line)
            if not match:
                continue
            description = match.group(2).strip()
            if description.lower() in ("description", "amount"):
                continue
            txn_date = self._resolve_date(match.group(1), start, end)
            if txn_date is None:
                continue
            try:
                amount = parse_amount(match.group(3))
            except ValueError:
                logger.debug(f"Chase: could not parse line: {line}")
                continue

            upper = description.upper()
            if "PAYMENT" in upper or "AUTOPAY" in upper or amount < 0:
                txn_type = TransactionType.CREDIT
            elif "interest" in lower:
                txn_type = TransactionType.INTEREST
            elif "fee" in lower:
                txn_type = TransactionType.FEE
            else:
                txn_type = TransactionType.DEBIT

            merchant = normalize_merchant(description)
            transactions.append(
                ParsedTransaction(
                    transaction_date=txn_date,
                    description=description,
                    merchant_name=merchant,
                    amount=abs(amount),
                    type=txn_type,
                    category=categorize(merchant, txn_type),
                )
            )
        return transactions

    def _extract_payment_summary(self, text: str, facts: StatementFacts) -> None:
        match = MIN_PAYMENT_LINE.search(text)
        if match:
            facts.minimum_payment = parse_amount(match.group(1))
        match = PAYMENT_DUE_DATE.search(text)
        if match:
            facts.payment_due_date = parse_short_date(match.group(1))

    def _extract_ytd_totals(self, text: str, facts: StatementFacts) -> None:
        match = YTD_FEES.search(text)
        if match:
            facts.ytd_total_fees = parse_amount(match.group(2))
            facts.ytd_year = int(match.group(1))
        match = YTD_INTEREST.search(text)
        if match:
            facts.ytd_total_interest = parse_amount(match.group(2))
            if facts.ytd_year is None:
                facts.ytd_year = int(match.group(1))

    def _detect_period(
        self, text: str, period: Optional[Tuple[date, date]]
    ) -> Tuple[Optional[date], Optional[date]]:
        match = OPENING_CLOSING.search(text)
        if match:
            start = parse_short_date(match.group(1))
            end = parse_short_date(match.group(2))
            if start and end:
                return start, end
        if period and period[0] and period[1]:
            return period
        return self.today - timedelta(days=30), self.today

    def _resolve_date(self, mmdd: str, start: Optional[date], end: Optional[date]) -> Optional[date]:
        """Attach a year to MM/DD; dates past the period end belong to the prior year"""
        year = end.year if end else self.today.year
        candidate = _mmdd(mmdd, year)
        if candidate is None:
            return None
        if start and end and candidate > end:
            previous = _mmdd(mmdd, year - 1)
            if previous is not None and previous >= start:
                return previous
        return candidate


def _mmdd(mmdd: str, year: int) -> Optional[date]:
    try:
        return datetime.strptime(f"{mmdd}/{year}", "%m/%d/%Y").date()
    except ValueError:
        return None
