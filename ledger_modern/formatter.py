"""Render structured entries back into ledger text.

The output is exactly what parse_ledger accepts, so

    parse_ledger(format_entry(entry)).transactions

holds one transaction whose postings are the entry's two legs.
"""

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import TypeAdapter

from ledger_modern.accounts import dealias
from ledger_modern.models import CENTS, AccountName, LedgerEntry, ReconcileState

POSTING_INDENT = "    "
AMOUNT_SEPARATOR = "   "

_ACCOUNT_NAME = TypeAdapter(AccountName)


def format_amount(value: Decimal) -> str:
    """Render an amount with exactly two fractional digits.

    Rounds half-up and never prints a negative zero.
    """
    quantized = Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = abs(quantized)
    return f"{quantized:.2f}"


def format_header(entry: LedgerEntry) -> str:
    """Header line without the trailing newline."""
    status = ReconcileState.CLEARED if entry.cleared else ReconcileState.PENDING
    narration = f' "{entry.narration}"' if entry.narration else ""
    tags = " " + " ".join(entry.tags) if entry.tags else ""
    return f'{entry.date.isoformat()} {status.value} "{entry.payee}"{narration}{tags}'


def format_posting(account: str, amount: Decimal, currency: str) -> str:
    return f"{POSTING_INDENT}{account}{AMOUNT_SEPARATOR}{format_amount(amount)} {currency}"


def format_entry(
    entry: LedgerEntry | Mapping[str, Any],
    aliases: Mapping[str, str] | None = None,
) -> str:
    """Format a two-posting transfer as ledger text.

    The "from" account gets the negated amount and the "to" account the
    positive amount. The result ends with a blank line so it can be appended
    to a ledger file as is.

    Args:
        entry: A LedgerEntry, or a mapping that validates into one.
        aliases: Optional display alias -> canonical account mapping applied
                 to both accounts.

    Raises:
        pydantic.ValidationError: The entry would not parse back as written:
            a blank or quoted payee, an amount with more than two decimals,
            or an account (after dealiasing) or currency outside the
            posting grammar.
    """
    entry = LedgerEntry.model_validate(entry)

    from_account = _ACCOUNT_NAME.validate_python(dealias(entry.from_account, aliases))
    to_account = _ACCOUNT_NAME.validate_python(dealias(entry.to_account, aliases))

    lines = [
        format_header(entry),
        format_posting(from_account, -entry.amount, entry.currency),
        format_posting(to_account, entry.amount, entry.currency),
    ]
    return "\n".join(lines) + "\n\n"
