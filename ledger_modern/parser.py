"""Parse ledger text into a LedgerCache.

A transaction block looks like:

    2024-03-01 * "Grocer" "weekly shop" food
        ; paid by card
        Expenses:Food:Groceries   42.50 USD ; receipt #12
        Assets:Bank:Checking   -42.50 USD

Parsing is lenient: a block whose header does not match, whose date is not a
real calendar date, or which has fewer than two postings is skipped without
aborting the rest of the file. Pass strict=True to get those skips back as
ParseIssue diagnostics on the cache.
"""

import datetime
import logging
import re
from collections.abc import Mapping

from beancount.core.number import D

from ledger_modern.accounts import category, dealias
from ledger_modern.blocks import DATE_LINE_RE, split_date_line_blocks, split_lines
from ledger_modern.cache import build_cache
from ledger_modern.errors import CatastrophicInputError
from ledger_modern.models import (
    FileBlock,
    LedgerCache,
    ParseIssue,
    Posting,
    ReconcileState,
    SkipReason,
    Transaction,
)

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"

HEADER_RE = re.compile(
    r'^(\d{4}-\d{2}-\d{2})'       # date
    r'\s+(?:([*!])\s+)?'          # optional status
    r'"([^"]*)"'                  # payee
    r'(?:\s+"([^"]*)")?'          # optional narration
    r'(?:\s+(.+?))?\s*$'          # optional tags
)
POSTING_RE = re.compile(r"^([\w:]+)\s+(-?\d+\.\d{2})\s+(\w+)(?:\s+;\s*(.*))?$")
ALIAS_RE = re.compile(r"^alias\s+(.+?)\s*=\s*(.+?)\s*$")


def decode_text(text: str | bytes) -> str:
    """Return the ledger as str, or raise CatastrophicInputError."""
    if isinstance(text, (bytes, bytearray)):
        try:
            return bytes(text).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CatastrophicInputError(f"Ledger is not valid UTF-8: {e}") from e
    if not isinstance(text, str):
        raise CatastrophicInputError(
            f"Ledger must be text, got {type(text).__name__}"
        )
    return text.removeprefix("\ufeff")


def find_aliases(text: str) -> dict[str, str]:
    """Collect `alias NAME = Account:Path` directives (unindented lines only)."""
    aliases: dict[str, str] = {}
    for line in split_lines(text):
        if match := ALIAS_RE.match(line):
            aliases[match.group(1)] = match.group(2)
    return aliases


def parse_posting(
    line: str,
    status: ReconcileState,
    aliases: Mapping[str, str] | None = None,
) -> Posting | None:
    """Parse a stripped body line as a posting, or return None."""
    match = POSTING_RE.match(line)
    if match is None:
        return None

    account, amount_str, currency, comment = match.groups()
    return Posting(
        account=account,
        amount=D(amount_str),
        currency=currency,
        category=category(account),
        reconcile_state=status,
        comment=comment or "",
        canonical_account=dealias(account, aliases),
    )


def parse_block(
    block: FileBlock,
    aliases: Mapping[str, str] | None = None,
) -> Transaction | ParseIssue | None:
    """Interpret one date-line block.

    Returns a Transaction, a ParseIssue describing why a dated block was
    skipped, or None for blocks that never claimed to be transactions
    (leading comments, alias rules).
    """
    lines = block.lines
    header = lines[0]
    if not DATE_LINE_RE.match(header):
        return None

    def skip(kind: SkipReason, message: str) -> ParseIssue:
        return ParseIssue(kind=kind, message=message, source_range=block.source_range)

    header_match = HEADER_RE.match(header)
    if header_match is None:
        return skip(SkipReason.STRUCTURAL, f"Unrecognised transaction header: {header!r}")

    date_str, status_str, payee, narration, tags_str = header_match.groups()
    try:
        txn_date = datetime.datetime.strptime(date_str, DATE_FORMAT).date()
    except ValueError:
        return skip(SkipReason.INVALID_DATE, f"Invalid calendar date: {date_str}")

    status = ReconcileState(status_str or "")
    postings: list[Posting] = []
    comments: list[str] = []

    for raw in lines[1:]:
        line = raw.strip()
        if line.startswith(";"):
            comments.append(line[1:].lstrip())
            continue
        if posting := parse_posting(line, status, aliases):
            postings.append(posting)

    if len(postings) < 2:
        return skip(
            SkipReason.TOO_FEW_POSTINGS,
            f"Transaction on {date_str} has {len(postings)} posting(s), needs 2",
        )

    tags = tuple(tags_str.split()) if tags_str else ()
    return Transaction(
        date=txn_date,
        payee=payee,
        narration=narration or "",
        status=status,
        postings=tuple(postings),
        comments=tuple(comments),
        source_range=block.source_range,
        tags=tags,
        tag=tags[0] if tags else "",
    )


def parse_ledger(
    text: str | bytes,
    *,
    aliases: Mapping[str, str] | None = None,
    strict: bool = False,
) -> LedgerCache:
    """Parse a whole ledger into a LedgerCache.

    Args:
        text: The ledger contents (str, or UTF-8 bytes).
        aliases: Display alias -> canonical account mapping. Merged over any
                 `alias` directives found in the file; these entries win.
        strict: When True, skipped dated blocks are reported in
                `parsing_errors` instead of being dropped silently.

    Returns:
        A new LedgerCache. An empty ledger gives an empty cache.

    Raises:
        CatastrophicInputError: The input is not text or cannot be decoded.
    """
    text = decode_text(text)

    merged_aliases = find_aliases(text)
    merged_aliases.update(aliases or {})

    transactions: list[Transaction] = []
    issues: list[ParseIssue] = []
    for block in split_date_line_blocks(text):
        result = parse_block(block, merged_aliases)
        if isinstance(result, Transaction):
            transactions.append(result)
        elif isinstance(result, ParseIssue):
            logger.debug(
                "Skipping lines %d-%d: %s",
                block.first_line, block.last_line, result.message,
            )
            if strict:
                issues.append(result)

    logger.debug(
        "Parsed %d transaction(s), %d alias(es)",
        len(transactions), len(merged_aliases),
    )
    return build_cache(transactions, aliases=merged_aliases, parsing_errors=issues)
