"""Issuer detection and parser selection"""

import re
from datetime import date
from typing import Optional
from financial_guru.domain.parsers.chase import ChaseStatementParser
from financial_guru.domain.parsers.generic import GenericStatementParser

GENERIC = "GENERIC"

# Most specific first: a statement may name another bank (e.g. as the AutoPay source)
HEADER_KEYWORDS = (
    ("AMEX", ("american express", "americanexpress.com")),
    ("BANK_OF_AMERICA", ("bank of america", "bankofamerica")),
    ("WELLS_FARGO", ("wells fargo",)),
    ("CITI", ("citibank", "citi card", "citicards")),
    ("CAPITAL_ONE", ("capital one", "capitalone.com")),
    ("CHASE", ("chase", "jpmorgan")),
    ("DISCOVER", ("discover", "dfs services")),
    ("GOLDMAN_SACHS", ("goldman sachs", "apple card", "applecard.apple.com")),
)

HEADER_LENGTH = 1500

DISPLAY_NAMES = {
    "AMEX": "American Express Card",
    "CHASE": "Chase Card",
    "CITI": "Citi Card",
    "WELLS_FARGO": "Wells Fargo Card",
    "CAPITAL_ONE": "Capital One Card",
    "DISCOVER": "Discover Card",
    "BANK_OF_AMERICA": "Bank of America Card",
    "GOLDMAN_SACHS": "Apple Card",
}

LAST4_FROM_TEXT = re.compile(
    r"(?:account|card)\s*(?:number|ending|#)[:\s]+(?:[Xx*]{4}[\s-]*){2,3}(\d{4})",
    re.IGNORECASE,
)


def _match(text: str) -> Optional[str]:
    for institution, keywords in HEADER_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return institution
    return None


def detect_institution(text: str) -> str:
    """Identify the issuer from the statement header, then the full text"""
    header = text[:HEADER_LENGTH].lower()
    return _match(header) or _match(text.lower()) or GENERIC


def detect_last4(text: str) -> Optional[str]:
    match = LAST4_FROM_TEXT.search(text)
    return match.group(1) if match else None


def account_display_name(institution: str, last4: Optional[str] = None) -> str:
    """Name for an auto-created account, such as Chase ···1234"""
    name = DISPLAY_NAMES.get(institution, f"{institution} Card")
    if last4:
        name = name.replace(" Card", f" ···{last4}")
    return name


def get_parser(institution: str, today: Optional[date] = None) -> GenericStatementParser:
    if institution == ChaseStatementParser.institution:
        return ChaseStatementParser(today)
    return GenericStatementParser(today)
