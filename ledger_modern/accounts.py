"""Account classification and display-alias resolution.

Accounts are colon-delimited paths whose first segment is the top-level type:

    account_type("Expenses:Food:Groceries")  # AccountType.EXPENSES
    category("Expenses:Food:Groceries")      # "Food:Groceries"
    category("Assets:Cash")                  # ""

Display aliases (what a user picks in a form, e.g. "🛒 Groceries") resolve to
canonical paths through a plain mapping. Unknown aliases resolve to themselves
so free text still round-trips.
"""

import re
from collections.abc import Mapping
from enum import Enum

# What the posting grammar accepts as an account name
ACCOUNT_NAME_RE = re.compile(r"[\w:]+")


class AccountType(str, Enum):
    """Top-level account categories."""
    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    INCOME = "Income"
    EXPENSES = "Expenses"
    EQUITY = "Equity"


# Starter chart of accounts offered to entry forms
DEFAULT_ACCOUNT_OPTIONS: tuple[str, ...] = (
    "Assets:Cash",
    "Assets:Bank:Checking",
    "Assets:Bank:Savings",
    "Liabilities:CreditCard",
    "Liabilities:Loans",
    "Expenses:Food:Groceries",
    "Expenses:Housing:Rent",
    "Expenses:Utilities:Internet",
    "Expenses:Entertainment:Subscriptions",
    "Income:Job",
    "Income:Freelance",
    "Equity:OpeningBalances",
)

DEFAULT_ACCOUNT_ALIASES: dict[str, str] = {
    "💵 Cash": "Assets:Cash",
    "🏦 Checking": "Assets:Bank:Checking",
    "🏠 Rent": "Expenses:Housing:Rent",
    "🛒 Groceries": "Expenses:Food:Groceries",
    "💳 Credit Card": "Liabilities:CreditCard",
    "💼 Salary": "Income:Job",
}

_EXPENSES_PREFIX = AccountType.EXPENSES.value + ":"


def account_type(account: str) -> AccountType | None:
    """Return the top-level type of an account, or None if it has none."""
    root = account.split(":", 1)[0]
    try:
        return AccountType(root)
    except ValueError:
        return None


def category(account: str) -> str:
    """Budget category of an account.

    For `Expenses:` accounts this is the path without its first segment;
    every other account has no category.
    """
    if account.startswith(_EXPENSES_PREFIX):
        return account[len(_EXPENSES_PREFIX):]
    return ""


def is_valid_account_name(name: str) -> bool:
    """True if `name` can be written as the account of a posting line."""
    return ACCOUNT_NAME_RE.fullmatch(name) is not None


def dealias(name: str, aliases: Mapping[str, str] | None = None) -> str:
    """Resolve a display alias to its canonical account path.

    Names without a mapping entry are returned unchanged.
    """
    if not aliases:
        return name
    return aliases.get(name, name)
