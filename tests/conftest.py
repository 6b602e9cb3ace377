"""Shared pytest fixtures for ledger-modern tests.

The fixtures follow the data flow through the engine:

    ledger text → blocks → transactions → LedgerCache → queries
    LedgerEntry → formatter → ledger text
"""

import datetime
from decimal import Decimal
from pathlib import Path

import pytest

from ledger_modern.models import LedgerCache, LedgerEntry, RecurringRule
from ledger_modern.parser import parse_ledger


# =============================================================================
# Ledger Text Fixtures
# =============================================================================


@pytest.fixture
def sample_ledger_text() -> str:
    """A small but realistic ledger spanning two years.

    Line numbers (0-based) matter for source range tests:
        0      comment
        1      alias directive
        2      blank
        3-6    2023-12-31 opening balance (+ trailing blank)
        7-11   2024-01-01 salary (comment line, trailing blank)
        12-15  2024-01-03 groceries (pending)
        16-18  2024-01-03 rent (last block, no trailing newline)
    """
    return (
        "; Ledger 2024\n"
        "alias Checking = Assets:Bank:Checking\n"
        "\n"
        '2023-12-31 * "Opening"\n'
        "    Assets:Bank:Checking   1000.00 USD\n"
        "    Equity:OpeningBalances   -1000.00 USD\n"
        "\n"
        '2024-01-01 * "Employer" "January" salary monthly\n'
        "    ; paid on time\n"
        "    Checking   2500.00 USD\n"
        "    Income:Job   -2500.00 USD ; gross\n"
        "\n"
        '2024-01-03 ! "Grocer"\n'
        "    Expenses:Food:Groceries   42.50 USD\n"
        "    Assets:Bank:Checking   -42.50 USD\n"
        "\n"
        '2024-01-03 * "Landlord"\n'
        "    Expenses:Housing:Rent   1200.00 USD\n"
        "    Assets:Bank:Checking   -1200.00 USD"
    )


@pytest.fixture
def sandwiched_ledger_text() -> str:
    """One good transaction between two malformed blocks."""
    return (
        "2024-01-01 * Missing quotes\n"
        "    Assets:Cash   -5.00 USD\n"
        "    Expenses:Food   5.00 USD\n"
        "\n"
        '2024-01-02 * "Good"\n'
        "    Assets:Cash   -7.25 USD\n"
        "    Expenses:Food   7.25 USD\n"
        "\n"
        '2024-01-03 * "Single posting"\n'
        "    Assets:Cash   -1.00 USD\n"
        "\n"
    )


# =============================================================================
# Parsed Fixtures
# =============================================================================


@pytest.fixture
def sample_cache(sample_ledger_text) -> LedgerCache:
    """The sample ledger parsed with default settings."""
    return parse_ledger(sample_ledger_text)


# =============================================================================
# Entry Fixtures (formatter input)
# =============================================================================


@pytest.fixture
def rent_entry() -> LedgerEntry:
    """A cleared rent payment from checking."""
    return LedgerEntry(
        date=datetime.date(2024, 2, 1),
        payee="Landlord",
        from_account="Assets:Bank:Checking",
        to_account="Expenses:Housing:Rent",
        amount=Decimal("1200"),
        currency="USD",
        cleared=True,
    )


@pytest.fixture
def coffee_entry() -> LedgerEntry:
    """A pending entry with narration and tags."""
    return LedgerEntry(
        date=datetime.date(2024, 2, 2),
        payee="Cafe",
        narration="flat white",
        from_account="Liabilities:CreditCard",
        to_account="Expenses:Food:Coffee",
        amount=Decimal("4.5"),
        currency="EUR",
        tags=["treat", "morning"],
    )


# =============================================================================
# Recurring Rule Fixtures
# =============================================================================


@pytest.fixture
def rent_rule() -> RecurringRule:
    """Monthly rent on the 1st, never run."""
    return RecurringRule(
        id="rent",
        label='* "Landlord"',
        day_of_month=1,
        template=(
            "Expenses:Housing:Rent   1200.00 USD\n"
            "Assets:Bank:Checking   -1200.00 USD"
        ),
    )


@pytest.fixture
def ledger_file(sample_ledger_text, tmp_path) -> Path:
    """The sample ledger written to a temporary .ledger file."""
    path = tmp_path / "2024.ledger"
    path.write_text(sample_ledger_text, encoding="utf-8")
    return path
