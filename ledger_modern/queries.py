"""Derived views over a LedgerCache.

Every function here is pure: it reads an immutable cache plus caller filters
and returns new values. Money is summed as Decimal throughout; never pass
floats in here if you care about cents.

    cache = parse_ledger(text)
    running_balance(cache, ["Assets:Bank:Checking"], 2024)
    category_breakdown(cache, "Expenses:Food", 2024)
    budget_status(cache, {"Food:Groceries": Decimal("400")}, year=2024)
"""

import datetime
from collections import defaultdict
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Protocol

from ledger_modern.models import (
    BalanceSeries,
    BudgetStatus,
    LedgerCache,
    PostingRow,
    Transaction,
)

ZERO = Decimal("0")

# Budget limits may come from YAML/JSON as int, float or str
BudgetValue = Decimal | str | int | float


class _Categorised(Protocol):
    category: str
    amount: Decimal


def _to_decimal(value: BudgetValue) -> Decimal:
    # Convert via string to keep the typed digits of floats
    return value if isinstance(value, Decimal) else Decimal(str(value))


def transactions_in_year(cache: LedgerCache, year: int | None) -> list[Transaction]:
    """Transactions dated in `year` (all of them when year is None)."""
    if year is None:
        return list(cache.transactions)
    return [t for t in cache.transactions if t.date.year == year]


def transaction_years(cache: LedgerCache) -> list[int]:
    """Sorted years that have at least one transaction."""
    return sorted({t.date.year for t in cache.transactions})


def running_balance(
    cache: LedgerCache,
    accounts: Iterable[str],
    year: int,
) -> BalanceSeries:
    """Cumulative balance per account over the year's date axis.

    The axis is every distinct transaction date in `year`, ascending. Each
    selected account gets one value per label; a date without postings on
    that account repeats the previous total, so series never have gaps.
    Totals start from zero at the beginning of the year.

    The number of accounts is not capped here; limiting how many lines a
    chart shows is up to the caller.
    """
    selected = list(dict.fromkeys(accounts))
    txns = transactions_in_year(cache, year)
    labels = sorted({t.date for t in txns})

    deltas: dict[tuple[str, datetime.date], Decimal] = defaultdict(lambda: ZERO)
    wanted = set(selected)
    for txn in txns:
        for posting in txn.postings:
            if posting.account in wanted:
                deltas[(posting.account, txn.date)] += posting.amount

    series: dict[str, list[Decimal]] = {}
    for account in selected:
        balance = ZERO
        values = []
        for day in labels:
            balance += deltas.get((account, day), ZERO)
            values.append(balance)
        series[account] = values

    return BalanceSeries(labels=labels, series=series)


def category_breakdown(
    cache: LedgerCache,
    account: str,
    year: int,
) -> dict[str, Decimal]:
    """Sum of `account`'s postings in `year`, keyed by non-empty category."""
    totals: dict[str, Decimal] = {}
    for txn in transactions_in_year(cache, year):
        for posting in txn.postings:
            if posting.account == account and posting.category:
                totals[posting.category] = totals.get(posting.category, ZERO) + posting.amount
    return totals


def filter_postings(
    cache: LedgerCache,
    *,
    year: int | None = None,
    accounts: Iterable[str] | None = None,
) -> list[PostingRow]:
    """Flatten postings into rows, optionally restricted by year and account.

    An empty or missing account selection keeps every account.
    """
    wanted = set(accounts or ())
    rows = []
    for txn in transactions_in_year(cache, year):
        for posting in txn.postings:
            if wanted and posting.account not in wanted:
                continue
            rows.append(PostingRow(
                date=txn.date,
                payee=txn.payee,
                account=posting.account,
                amount=posting.amount,
                currency=posting.currency,
                category=posting.category,
            ))
    return rows


def budget_vs_spend(
    budgets: Mapping[str, BudgetValue],
    postings: Iterable[_Categorised],
) -> list[BudgetStatus]:
    """Compare spend against each configured budget category.

    Rows follow the order of `budgets`. `ratio` is spent / budget, or zero
    when the budget is not positive.
    """
    spent: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for posting in postings:
        if posting.category:
            spent[posting.category] += posting.amount

    result = []
    for name, limit in budgets.items():
        budget = _to_decimal(limit)
        total = spent.get(name, ZERO)
        result.append(BudgetStatus(
            category=name,
            spent=total,
            budget=budget,
            ratio=total / budget if budget > 0 else ZERO,
        ))
    return result


def budget_status(
    cache: LedgerCache,
    budgets: Mapping[str, BudgetValue],
    *,
    year: int | None = None,
    accounts: Iterable[str] | None = None,
) -> list[BudgetStatus]:
    """Budget vs. spend over the cache's postings, filtered by year/account."""
    return budget_vs_spend(budgets, filter_postings(cache, year=year, accounts=accounts))
