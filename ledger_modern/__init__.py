from .parser import parse_ledger  # noqa: F401
from .formatter import format_entry  # noqa: F401

# Segmentation
from .blocks import (
    BlockStrategy,
    split_blank_line_blocks,
    split_date_line_blocks,
    split_into_blocks,
)

# Account taxonomy
from .accounts import (
    DEFAULT_ACCOUNT_ALIASES,
    DEFAULT_ACCOUNT_OPTIONS,
    AccountType,
    account_type,
    category,
    dealias,
)

from .cache import build_cache

# Queries over a parsed cache
from .queries import (
    budget_status,
    budget_vs_spend,
    category_breakdown,
    filter_postings,
    running_balance,
    transaction_years,
)

from .errors import CatastrophicInputError, LedgerError, SettingsError
from .settings import LedgerSettings, dump_settings, load_settings

# Recurring rules (driven by the host's scheduler)
from .recurring import (
    RecurringLedger,
    RecurringRun,
    apply_recurring,
    is_due,
    next_occurrence,
)

# Beancount export
from .importer import Importer, LedgerImportConfig, to_beancount

# Data models
from .models import (
    BalanceSeries,
    BudgetStatus,
    FileBlock,
    LedgerCache,
    LedgerEntry,
    ParseIssue,
    Posting,
    PostingRow,
    ReconcileState,
    RecurringRule,
    SkipReason,
    SourceRange,
    Transaction,
)

__all__ = [
    # Main entry points
    "parse_ledger",
    "format_entry",
    # Segmentation
    "BlockStrategy",
    "split_blank_line_blocks",
    "split_date_line_blocks",
    "split_into_blocks",
    # Accounts
    "DEFAULT_ACCOUNT_ALIASES",
    "DEFAULT_ACCOUNT_OPTIONS",
    "AccountType",
    "account_type",
    "category",
    "dealias",
    "build_cache",
    # Queries
    "budget_status",
    "budget_vs_spend",
    "category_breakdown",
    "filter_postings",
    "running_balance",
    "transaction_years",
    # Errors and settings
    "CatastrophicInputError",
    "LedgerError",
    "SettingsError",
    "LedgerSettings",
    "dump_settings",
    "load_settings",
    # Recurring
    "RecurringLedger",
    "RecurringRun",
    "apply_recurring",
    "is_due",
    "next_occurrence",
    # Beancount export
    "Importer",
    "LedgerImportConfig",
    "to_beancount",
    # Data models
    "BalanceSeries",
    "BudgetStatus",
    "FileBlock",
    "LedgerCache",
    "LedgerEntry",
    "ParseIssue",
    "Posting",
    "PostingRow",
    "ReconcileState",
    "RecurringRule",
    "SkipReason",
    "SourceRange",
    "Transaction",
]
