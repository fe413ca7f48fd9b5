"""Unit tests for statement text parsing and categorization"""

import pytest
from datetime import date
from financial_guru.domain.categorization import categorize
from financial_guru.domain.models import AccountType, TransactionType
from financial_guru.domain.parsers.chase import ChaseStatementParser
from financial_guru.domain.parsers.generic import (
    GenericStatementParser,
    normalize_merchant,
    parse_amount,
    parse_date,
)
from financial_guru.domain.parsers.institutions import (
    account_display_name,
    detect_institution,
    detect_last4,
    get_parser,
)


CHASE_STATEMENT = """CHASE FREEDOM UNLIMITED
Account Number: XXXX XXXX XXXX 4321
Opening/Closing Date 12/10/23 - 01/09/24
Payment Due Date: 02/06/24
Minimum Payment Due: $40.00
New Balance $1,234.56
Credit Access Line $5,000
Available for Purchase $3,765.44
ACCOUNT ACTIVITY
12/15     WHOLEFDS MKT #10234 AUSTIN TX  82.45
12/28     NETFLIX.COM  15.49
01/03     AUTOMATIC PAYMENT - THANK YOU  -500.00
01/05     STARBUCKS STORE 1123  6.75
Totals Year-to-Date
Total fees charged in 2024 $0.00
Total interest charged in 2024 $12.34
Purchases 0.00% 06/30/24
Purchases 24.99%
"""


def test_parse_amount_formats():
    assert parse_amount("$1,234.56") == 1234.56
    assert parse_amount("-48.25") == -48.25
    assert parse_amount("48,25") == 48.25


def test_parse_date_formats():
    assert parse_date("01/15/2024") == date(2024, 1, 15)
    assert parse_date("Jan 15, 2024") == date(2024, 1, 15)
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("03/04", today=date(2023, 6, 1)) == date(2023, 3, 4)
    assert parse_date("not a date") is None


def test_parse_date_month_name_forms():
    assert parse_date("Jan 15 2024") == date(2024, 1, 15)
    assert parse_date("Jan  15,  2024") == date(2024, 1, 15)
    assert parse_date("15 Jan 2024") == date(2024, 1, 15)


def test_generic_parser_reads_every_date_layout():
    text = "\n".join(
        [
            "Jan 15 2024 WHOLEFDS MKT #1234 82.45",
            "Jan 16, 2024 SHELL OIL 57442 48.10",
            "17 Jan 2024 TRADER JOES #552 96.40",
            "2024-01-18 SPOTIFY USA NEW YORK 10.99",
        ]
    )

    result = GenericStatementParser(today=date(2024, 2, 1)).parse(text)

    assert [t.transaction_date for t in result.transactions] == [
        date(2024, 1, 15),
        date(2024, 1, 16),
        date(2024, 1, 17),
        date(2024, 1, 18),
    ]


def test_normalize_merchant_strips_references_and_prefixes():
    assert normalize_merchant("POS STARBUCKS  STORE 1234567 SEATTLE") == "STARBUCKS STORE"
    assert normalize_merchant(None) is None


def test_generic_parser_reads_debits_and_credits():
    text = "\n".join(
        [
            "Statement of account",
            "01/15/2024 WHOLEFDS MKT #1234 82.45",
            "01/20/2024 PAYMENT THANK YOU -500.00",
            "garbage line without amounts",
        ]
    )

    result = GenericStatementParser(today=date(2024, 2, 1)).parse(text)

    assert len(result.transactions) == 2
    purchase, payment = result.transactions
    assert purchase.transaction_date == date(2024, 1, 15)
    assert purchase.amount == 82.45
    assert purchase.type == TransactionType.DEBIT
    assert purchase.category == "Groceries"
    assert payment.amount == 500.0
    assert payment.type == TransactionType.CREDIT
    assert payment.category is None


def test_detect_institution_prefers_header():
    assert detect_institution(CHASE_STATEMENT) == "CHASE"
    assert detect_institution("American Express\nAutoPay from Chase checking") == "AMEX"
    assert detect_institution("Local credit union statement") == "GENERIC"


def test_detect_last4_and_display_name():
    assert detect_last4(CHASE_STATEMENT) == "4321"
    assert account_display_name("CHASE", "4321") == "Chase ···4321"
    assert account_display_name("NEWBANK") == "NEWBANK Card"


def test_get_parser_falls_back_to_generic():
    assert isinstance(get_parser("CHASE"), ChaseStatementParser)
    assert type(get_parser("CITI")) is GenericStatementParser


def test_chase_parser_resolves_years_across_period():
    result = ChaseStatementParser(today=date(2024, 2, 1)).parse(CHASE_STATEMENT)

    dates = [t.transaction_date for t in result.transactions]
    assert dates == [date(2023, 12, 15), date(2023, 12, 28), date(2024, 1, 3), date(2024, 1, 5)]

    payment = result.transactions[2]
    assert payment.type == TransactionType.CREDIT
    assert payment.amount == 500.0

    facts = result.facts
    assert facts.payment_due_date == date(2024, 2, 6)
    assert facts.minimum_payment == 40.0
    assert facts.ytd_total_interest == 12.34
    assert facts.ytd_year == 2024


def test_chase_account_info():
    facts = ChaseStatementParser().extract_account_info(CHASE_STATEMENT)

    assert facts.type == AccountType.CREDIT_CARD
    assert facts.last4 == "4321"
    assert facts.current_balance == 1234.56
    assert facts.credit_limit == 5000.0
    assert facts.available_credit == 3765.44
    assert facts.promo_apr == 0.0
    assert facts.promo_apr_end_date == date(2024, 6, 30)
    assert facts.apr == 24.99


@pytest.mark.parametrize(
    "merchant, txn_type, category",
    [
        ("WHOLEFDS MKT", TransactionType.DEBIT, "Groceries"),
        ("CHIPOTLE 1123", TransactionType.DEBIT, "Dining"),
        ("NETFLIX.COM", TransactionType.DEBIT, "Subscriptions"),
        ("LATE FEE", TransactionType.FEE, "Fees"),
        ("PURCHASE INTEREST CHARGE", TransactionType.INTEREST, "Fees"),
        ("REFUND WHOLEFDS", TransactionType.CREDIT, None),
        ("QQXJ VNDR", TransactionType.DEBIT, None),
        (None, TransactionType.DEBIT, None),
    ],
)
def test_categorize(merchant, txn_type, category):
    assert categorize(merchant, txn_type) == category
