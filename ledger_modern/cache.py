"""Build the immutable LedgerCache from parsed transactions."""

from collections.abc import Iterable, Mapping

from ledger_modern.accounts import AccountType, account_type
from ledger_modern.models import LedgerCache, ParseIssue, Transaction


def collect_accounts(transactions: Iterable[Transaction]) -> list[str]:
    """Every posting account once, in first-seen source order."""
    seen: dict[str, None] = {}
    for txn in transactions:
        for posting in txn.postings:
            seen.setdefault(posting.account, None)
    return list(seen)


def build_cache(
    transactions: Iterable[Transaction],
    *,
    aliases: Mapping[str, str] | None = None,
    parsing_errors: Iterable[ParseIssue] = (),
) -> LedgerCache:
    """Aggregate parsed transactions into a LedgerCache.

    Transactions are kept in the order given and are not re-validated.
    The typed account subsets are filtered by top-level segment; an account
    with an unknown root lands in none of them.
    """
    txns = tuple(transactions)
    accounts = collect_accounts(txns)

    def of_type(kind: AccountType) -> tuple[str, ...]:
        return tuple(a for a in accounts if account_type(a) == kind)

    return LedgerCache(
        transactions=txns,
        accounts=tuple(accounts),
        expense_accounts=of_type(AccountType.EXPENSES),
        asset_accounts=of_type(AccountType.ASSETS),
        income_accounts=of_type(AccountType.INCOME),
        liability_accounts=of_type(AccountType.LIABILITIES),
        equity_accounts=of_type(AccountType.EQUITY),
        aliases=dict(aliases or {}),
        parsing_errors=tuple(parsing_errors),
    )
