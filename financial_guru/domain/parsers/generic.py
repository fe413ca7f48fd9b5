"""Regex-based fallback parser for statement text of any institution"""

import logging
import re
from datetime import date, datetime
from typing import Optional, Tuple
from financial_guru.domain.categorization import categorize
from financial_guru.domain.models import AccountFacts, ParsedTransaction, ParseResult, TransactionType

logger = logging.getLogger(__name__)

# Tried in order; the MM/DD fallback with the current year comes last
DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%b %d, %Y", "%b %d %Y", "%d %b %Y", "%Y-%m-%d")

TRANSACTION_PATTERN = re.compile(
    r"(\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}(?:/\d{2,4})?|[A-Za-z]{3}\s+\d{1,2},?\s+\d{4}|\d{1,2}\s+[A-Za-z]{3}\s+\d{4})\s+"
    r"(.{10,60}?)\s+"
    r"(-?\$?\d{1,3}(?:,\d{3})*\.\d{2})"
)

COMMA_DECIMAL = re.compile(r"-?\d{1,3},\d{2}")
TRAILING_REFERENCE = re.compile(r"\s+\d{5,}.*$")
BANK_CODE_PREFIX = re.compile(r"^(POS |DDA |ACH |PPD |CCD )", re.IGNORECASE)
WHITESPACE = re.compile(r"\s+")


def parse_date(value: str, today: Optional[date] = None) -> Optional[date]:
    """Parse a statement date; None when no known format matches"""
    value = WHITESPACE.sub(" ", value.strip())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    year = (today or date.today()).year
    try:
        return datetime.strptime(f"{value}/{year}", "%m/%d/%Y").date()
    except ValueError:
        return None


def parse_amount(value: str) -> float:
    """
    Parse a money string such as "$1,234.56" or "-48.25".

    "48,25" (comma followed by exactly two digits) is read as a decimal comma;
    any other comma is a thousands separator.
    """
    cleaned = value.replace("$", "").strip()
    if COMMA_DECIMAL.fullmatch(cleaned):
        cleaned = cleaned.replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")
    return float(cleaned)


def normalize_merchant(description: Optional[str]) -> Optional[str]:
    """Strip reference numbers and bank routing prefixes from a description"""
    if description is None:
        return None
    merchant = TRAILING_REFERENCE.sub("", description)
    merchant = BANK_CODE_PREFIX.sub("", merchant)
    return WHITESPACE.sub(" ", merchant).strip()


class GenericStatementParser:
    """Line-by-line regex parser used when no institution-specific parser applies"""

    institution = "GENERIC"

    def __init__(self, today: Optional[date] = None):
        self.today = today or date.today()

    def parse(self, text: str, period: Optional[Tuple[date, date]] = None) -> ParseResult:
        """Extract transactions; `period` is the statement's known date range, if any"""
        result = ParseResult()
        result.transactions = self._parse_lines(text)
        logger.info(f"Generic parser extracted {len(result.transactions)} transactions")
        return result

    def extract_account_info(self, text: str) -> AccountFacts:
        return AccountFacts()

    def _parse_lines(self, text: str) -> list:
        transactions = []
        for raw in text.split("\n"):
            line = raw.strip()
            if not line:
                continue
            match = TRANSACTION_PATTERN.search(line)
            if not match:
                continue
            txn_date = parse_date(match.group(1), self.today)
            if txn_date is None:
                continue
            try:
                amount = parse_amount(match.group(3))
            except ValueError:
                logger.debug(f"Could not parse amount on line: {line}")
                continue

            description = match.group(2).strip()
            merchant = normalize_merchant(description)
            txn_type = TransactionType.CREDIT if amount < 0 else TransactionType.DEBIT
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
