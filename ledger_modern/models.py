"""Data models for the ledger parsing and aggregation engine."""

import datetime
import math
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from ledger_modern.accounts import is_valid_account_name

CENTS = Decimal("0.01")
CURRENCY_RE = re.compile(r"\w+")
# Characters that would end a quoted header field or the header line itself
HEADER_BREAKERS = ('"', "\n", "\r")


class ReconcileState(str, Enum):
    """Reconcile marker of a transaction header (and its postings)."""
    NONE = ""
    CLEARED = "*"
    PENDING = "!"


class SkipReason(str, Enum):
    """Why a block was dropped during parsing."""
    STRUCTURAL = "structural"                # Header does not match the grammar
    INVALID_DATE = "invalid_date"            # Date syntax ok, calendar date impossible
    TOO_FEW_POSTINGS = "too_few_postings"    # Fewer than two posting lines


class SourceRange(BaseModel):
    """Inclusive, 0-based line range of a block in the source text."""
    model_config = ConfigDict(frozen=True)

    first_line: int
    last_line: int


class FileBlock(BaseModel):
    """Raw text block with its line numbers in the file."""
    model_config = ConfigDict(frozen=True)

    text: str
    first_line: int
    last_line: int

    @property
    def source_range(self) -> SourceRange:
        return SourceRange(first_line=self.first_line, last_line=self.last_line)

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")


class Posting(BaseModel):
    """One account/amount line of a transaction.

    `category` is derived from `account` (see accounts.category) and
    `canonical_account` is `account` after dealiasing.
    """
    model_config = ConfigDict(frozen=True)

    account: str
    amount: Decimal
    currency: str
    category: str = ""
    reconcile_state: ReconcileState = ReconcileState.NONE
    comment: str = ""
    canonical_account: str = ""


class Transaction(BaseModel):
    """A dated, payee-attributed group of at least two postings."""
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    payee: str = ""
    narration: str = ""
    status: ReconcileState = ReconcileState.NONE
    postings: tuple[Posting, ...]
    comments: tuple[str, ...] = ()
    source_range: SourceRange
    tags: tuple[str, ...] = ()
    tag: str = ""

    @field_validator("postings")
    @classmethod
    def validate_postings(cls, v):
        """A transaction must balance a transfer, so needs two legs."""
        if len(v) < 2:
            raise ValueError("a transaction needs at least two postings")
        return v


class ParseIssue(BaseModel):
    """Diagnostic for a block that was skipped (strict mode only)."""
    model_config = ConfigDict(frozen=True)

    kind: SkipReason
    message: str
    source_range: SourceRange


class LedgerCache(BaseModel):
    """Immutable snapshot produced by one parse pass.

    Rebuilt wholesale on every parse; never mutated after build, so it can be
    shared between readers without locking.
    """
    model_config = ConfigDict(frozen=True)

    transactions: tuple[Transaction, ...] = ()
    accounts: tuple[str, ...] = ()
    expense_accounts: tuple[str, ...] = ()
    asset_accounts: tuple[str, ...] = ()
    income_accounts: tuple[str, ...] = ()
    liability_accounts: tuple[str, ...] = ()
    equity_accounts: tuple[str, ...] = ()
    aliases: Mapping[str, str] = Field(default_factory=lambda: MappingProxyType({}))
    parsing_errors: tuple[ParseIssue, ...] = ()

    @field_validator("aliases")
    @classmethod
    def validate_aliases(cls, v):
        """Store a read-only copy of the alias map."""
        return MappingProxyType(dict(v))

    @field_serializer("aliases")
    def serialize_aliases(self, v):
        return dict(v)


class RecurringRule(BaseModel):
    """A monthly posting template applied by the scheduling collaborator."""
    id: str
    label: str
    day_of_month: int = Field(ge=1, le=31)
    active: bool = True
    template: str
    last_run_date: datetime.date | None = None


Frequency = Literal["daily", "weekly", "monthly"]


def validate_account_name(v: str) -> str:
    """Reject names the posting grammar would not read back."""
    if not is_valid_account_name(v):
        raise ValueError(f"account {v!r} may only contain letters, digits, '_' and ':'")
    return v


AccountName = Annotated[str, AfterValidator(validate_account_name)]


class LedgerEntry(BaseModel):
    """Structured input for a simple two-posting transfer.

    Accounts may be display aliases; they are checked against the account
    grammar after dealiasing, in format_entry.
    """
    # Entries changed with model_copy are checked again when formatted
    model_config = ConfigDict(revalidate_instances="always")

    date: datetime.date
    payee: str
    narration: str = ""
    from_account: str
    to_account: str
    amount: Decimal
    currency: str = "USD"
    tags: list[str] = Field(default_factory=list)
    cleared: bool = False
    recurring: bool = False
    frequency: Frequency | None = None

    @field_validator("payee", "from_account", "to_account", "currency")
    @classmethod
    def validate_not_blank(cls, v):
        """Required text fields may not be empty or whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("payee", "narration")
    @classmethod
    def validate_header_text(cls, v):
        """Payee and narration are written inside double quotes on one line."""
        if any(c in v for c in HEADER_BREAKERS):
            raise ValueError("must not contain double quotes or line breaks")
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        if not CURRENCY_RE.fullmatch(v):
            raise ValueError(f"currency {v!r} may only contain letters, digits and '_'")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v):
        """Tags are written space-separated after the header fields."""
        for tag in v:
            if not tag or tag != "".join(tag.split()) or '"' in tag:
                raise ValueError(f"invalid tag {tag!r}")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        """Ensure amount is a finite decimal in whole cents."""
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError("amount must be finite")
            # Convert via string to keep the typed digits
            v = str(v)
        if isinstance(v, (str, int)):
            try:
                v = Decimal(v)
            except InvalidOperation:
                raise ValueError(f"invalid amount: {v!r}") from None
        if isinstance(v, Decimal):
            if not v.is_finite():
                raise ValueError("amount must be finite")
            try:
                cents = v.quantize(CENTS)
            except InvalidOperation:
                raise ValueError(f"amount too large: {v}") from None
            if cents != v:
                raise ValueError(f"amount has more than two decimal places: {v}")
        return v


class BalanceSeries(BaseModel):
    """Running balance per account over a shared date axis."""
    labels: list[datetime.date] = Field(default_factory=list)
    series: dict[str, list[Decimal]] = Field(default_factory=dict)


class PostingRow(BaseModel):
    """A posting together with the date and payee of its transaction."""
    date: datetime.date
    payee: str = ""
    account: str
    amount: Decimal
    currency: str
    category: str = ""


class BudgetStatus(BaseModel):
    """Spend against a configured limit for one budget category."""
    category: str
    spent: Decimal
    budget: Decimal
    ratio: Decimal
