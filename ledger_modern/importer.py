"""Beancount export and a beangulp importer for plain-text ledgers.

    bean-extract style usage:

        from ledger_modern.importer import Importer, LedgerImportConfig

        CONFIG = [
            Importer(LedgerImportConfig(account_name="Assets:Bank:Checking")),
        ]

Each parsed transaction becomes a beancount Transaction whose postings use the
canonical (dealiased) account names. Transactions already present in the
existing ledger are skipped by comparing a content fingerprint stored in the
`ledger-id` metadata field.
"""

import datetime
import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path

import beangulp
from beangulp import Ingest
from beancount.core import data
from beancount.core.amount import Amount

from ledger_modern.errors import CatastrophicInputError
from ledger_modern.models import LedgerCache, ReconcileState, Transaction
from ledger_modern.parser import parse_ledger

logger = logging.getLogger(__name__)

FINGERPRINT_KEY = "ledger-id"
DEFAULT_SUFFIXES = (".ledger", ".journal")


@dataclass
class LedgerImportConfig:
    """Configuration for importing a plain-text ledger file.

    Attributes:
        account_name: The account the imported file is filed under
                      (e.g., 'Assets:Bank:Checking').
        aliases: Display alias -> canonical account mapping applied to postings.
        suffixes: File suffixes (lower case) this importer accepts.
        skip_deduplication: When True, import every transaction even if its
                            fingerprint is already in the existing entries.
    """
    account_name: str
    aliases: dict[str, str] = field(default_factory=dict)
    suffixes: tuple[str, ...] = DEFAULT_SUFFIXES
    skip_deduplication: bool = False


def fingerprint(txn: Transaction) -> str:
    """Stable content hash of a transaction (date, payee, postings)."""
    parts = [txn.date.isoformat(), txn.payee, txn.narration]
    parts.extend(
        f"{p.canonical_account or p.account}|{p.amount}|{p.currency}"
        for p in txn.postings
    )
    return hashlib.sha1("\n".join(parts).encode("utf-8")).hexdigest()[:16]


def to_beancount(
    txn: Transaction,
    filename: str = "<ledger>",
    flag: str = "*",
) -> data.Transaction:
    """Convert a parsed Transaction into a beancount Transaction.

    Args:
        txn: The parsed transaction.
        filename: Source filename recorded in the metadata.
        flag: Flag used when the header carries no status marker.
    """
    meta = data.new_metadata(filename, txn.source_range.first_line + 1)
    meta[FINGERPRINT_KEY] = fingerprint(txn)
    if txn.comments:
        meta["comment"] = "\n".join(txn.comments)

    postings = []
    for posting in txn.postings:
        posting_meta = {"comment": posting.comment} if posting.comment else None
        postings.append(data.Posting(
            posting.canonical_account or posting.account,
            Amount(posting.amount, posting.currency),
            None, None, None, posting_meta,
        ))

    tags = frozenset(t.lstrip("#") for t in txn.tags if t.lstrip("#"))
    return data.Transaction(
        meta=meta,
        date=txn.date,
        flag=txn.status.value if txn.status != ReconcileState.NONE else flag,
        payee=txn.payee or None,
        narration=txn.narration,
        tags=tags or data.EMPTY_SET,
        links=data.EMPTY_SET,
        postings=postings,
    )


class Importer(beangulp.Importer):
    """Importer for plain-text ledger files."""

    def __init__(self, config: LedgerImportConfig, flag: str = "*"):
        self.account_name = config.account_name
        self.aliases = config.aliases
        self.suffixes = tuple(s.lower() for s in config.suffixes)
        self.skip_deduplication = config.skip_deduplication
        self.flag = flag

    def _parse_file(self, filepath: str) -> LedgerCache | None:
        """Parse the file, or return None if it cannot be read as a ledger."""
        try:
            return parse_ledger(Path(filepath).read_bytes(), aliases=self.aliases)
        except (OSError, CatastrophicInputError) as e:
            logger.warning("Cannot read ledger %s: %s", filepath, e)
            return None

    def _extract_existing_fingerprints(self, existing_entries: list[data.Directive]) -> set[str]:
        """Fingerprints of transactions already in the ledger."""
        found: set[str] = set()
        for entry in existing_entries:
            if isinstance(entry, data.Transaction):
                if value := entry.meta.get(FINGERPRINT_KEY):
                    found.add(value)
        return found

    def identify(self, filepath: str) -> bool:
        """Accept files with a ledger suffix that hold at least one transaction."""
        if Path(filepath).suffix.lower() not in self.suffixes:
            return False
        cache = self._parse_file(filepath)
        return cache is not None and bool(cache.transactions)

    def account(self, filepath: str) -> str:
        """Return the account name for the file."""
        return self.account_name

    def filename(self, filepath: str) -> str:
        return f"ledger.{Path(filepath).name}"

    def date(self, filepath: str) -> datetime.date | None:
        """Latest transaction date in the file."""
        cache = self._parse_file(filepath)
        if not cache or not cache.transactions:
            return datetime.date.today()
        return max(t.date for t in cache.transactions)

    def extract(self, filepath: str, existing_entries: list[data.Directive]) -> list[data.Directive]:
        """Extract every transaction of the ledger as a beancount directive.

        Args:
            filepath: Path to the ledger file.
            existing_entries: Existing directives, used for fingerprint
                              deduplication.

        Returns:
            Transactions in source order, minus those already present.
        """
        cache = self._parse_file(filepath)
        if cache is None:
            return []

        existing: set[str] = set()
        if not self.skip_deduplication:
            existing = self._extract_existing_fingerprints(existing_entries)

        entries = []
        skipped_duplicates = 0
        for txn in cache.transactions:
            entry = to_beancount(txn, filepath, self.flag)
            if entry.meta[FINGERPRINT_KEY] in existing:
                skipped_duplicates += 1
                continue
            entries.append(entry)

        if skipped_duplicates:
            logger.info("Deduplication: skipped %d duplicate transaction(s)", skipped_duplicates)
        return entries


def get_importers() -> list[beangulp.Importer]:
    """Importers used by the command-line entry point."""
    return [
        Importer(LedgerImportConfig(account_name="Assets:Bank:Checking")),
    ]


def main():
    """Entry point for the command-line interface (beangulp identify/extract)."""
    ingest = Ingest(get_importers())
    ingest.main()


if __name__ == '__main__':
    main()
