"""Tests for the beancount export and the beangulp importer (importer.py).

These tests verify the complete data flow:
    ledger file → parse → LedgerCache → Beancount Directives
"""

import datetime
import logging

import pytest
from beancount.core import data
from beancount.core.number import D

from ledger_modern.importer import (
    FINGERPRINT_KEY,
    Importer,
    LedgerImportConfig,
    fingerprint,
    to_beancount,
)
from ledger_modern.parser import parse_ledger


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def importer() -> Importer:
    """Importer with deduplication enabled (default)."""
    return Importer(LedgerImportConfig(account_name="Assets:Bank:Checking"))


@pytest.fixture
def importer_skip_deduplication() -> Importer:
    return Importer(LedgerImportConfig(
        account_name="Assets:Bank:Checking",
        skip_deduplication=True,
    ))


@pytest.fixture
def salary(sample_cache):
    """The 2024-01-01 salary transaction of the sample ledger."""
    return sample_cache.transactions[1]


# =============================================================================
# to_beancount() Tests
# =============================================================================


class TestToBeancount:
    """Conversion of one parsed transaction."""

    def test_header_fields(self, salary):
        entry = to_beancount(salary, "2024.ledger")
        assert entry.date == datetime.date(2024, 1, 1)
        assert entry.payee == "Employer"
        assert entry.narration == "January"
        assert entry.flag == "*"
        assert entry.tags == frozenset({"salary", "monthly"})

    def test_metadata(self, salary):
        entry = to_beancount(salary, "2024.ledger")
        assert entry.meta["filename"] == "2024.ledger"
        assert entry.meta["lineno"] == 8
        assert entry.meta["comment"] == "paid on time"
        assert entry.meta[FINGERPRINT_KEY] == fingerprint(salary)

    def test_postings_use_canonical_accounts(self, salary):
        entry = to_beancount(salary)
        assert [p.account for p in entry.postings] == ["Assets:Bank:Checking", "Income:Job"]
        assert entry.postings[0].units.number == D("2500.00")
        assert entry.postings[0].units.currency == "USD"

    def test_posting_comment_becomes_metadata(self, salary):
        entry = to_beancount(salary)
        assert entry.postings[0].meta is None
        assert entry.postings[1].meta == {"comment": "gross"}

    def test_pending_status_becomes_flag(self, sample_cache):
        entry = to_beancount(sample_cache.transactions[2])
        assert entry.flag == "!"

    def test_default_flag_without_status(self):
        [txn] = parse_ledger(
            '2024-05-01 "Shop"\n'
            "    Expenses:Food   3.00 USD\n"
            "    Assets:Cash   -3.00 USD\n"
        ).transactions
        assert to_beancount(txn, flag="!").flag == "!"
        assert to_beancount(txn).payee == "Shop"

    def test_empty_payee_is_none(self):
        [txn] = parse_ledger(
            '2024-05-01 * ""\n'
            "    Expenses:Food   3.00 USD\n"
            "    Assets:Cash   -3.00 USD\n"
        ).transactions
        assert to_beancount(txn).payee is None


class TestFingerprint:
    def test_stable(self, sample_ledger_text):
        first = parse_ledger(sample_ledger_text).transactions
        second = parse_ledger(sample_ledger_text).transactions
        assert [fingerprint(t) for t in first] == [fingerprint(t) for t in second]

    def test_distinct(self, sample_cache):
        prints = {fingerprint(t) for t in sample_cache.transactions}
        assert len(prints) == len(sample_cache.transactions)


# =============================================================================
# Importer Tests
# =============================================================================


class TestIdentify:
    """identify() accepts ledger files holding transactions."""

    def test_ledger_file(self, importer, ledger_file):
        assert importer.identify(str(ledger_file))

    def test_wrong_suffix(self, importer, sample_ledger_text, tmp_path):
        path = tmp_path / "2024.csv"
        path.write_text(sample_ledger_text, encoding="utf-8")
        assert not importer.identify(str(path))

    def test_uppercase_suffix(self, importer, sample_ledger_text, tmp_path):
        path = tmp_path / "2024.LEDGER"
        path.write_text(sample_ledger_text, encoding="utf-8")
        assert importer.identify(str(path))

    def test_no_transactions(self, importer, tmp_path):
        path = tmp_path / "empty.ledger"
        path.write_text("; nothing here\n", encoding="utf-8")
        assert not importer.identify(str(path))

    def test_binary_file(self, importer, tmp_path, caplog):
        path = tmp_path / "garbage.ledger"
        path.write_bytes(b"\xff\xfe\x00\x81")
        with caplog.at_level(logging.WARNING, logger="ledger_modern.importer"):
            assert not importer.identify(str(path))
        assert "Cannot read ledger" in caplog.text


class TestImporterMetadata:
    def test_account(self, importer, ledger_file):
        assert importer.account(str(ledger_file)) == "Assets:Bank:Checking"

    def test_filename(self, importer, ledger_file):
        assert importer.filename(str(ledger_file)) == "ledger.2024.ledger"

    def test_date_is_latest_transaction(self, importer, ledger_file):
        assert importer.date(str(ledger_file)) == datetime.date(2024, 1, 3)


class TestExtract:
    """extract() turns every transaction into a directive."""

    def test_extract_all(self, importer, ledger_file):
        entries = importer.extract(str(ledger_file), [])
        assert len(entries) == 4
        assert all(isinstance(e, data.Transaction) for e in entries)
        assert [e.payee for e in entries] == ["Opening", "Employer", "Grocer", "Landlord"]

    def test_filename_in_metadata(self, importer, ledger_file):
        entries = importer.extract(str(ledger_file), [])
        assert entries[0].meta["filename"] == str(ledger_file)
        assert entries[0].meta["lineno"] == 4

    def test_importer_aliases(self, tmp_path):
        path = tmp_path / "aliases.ledger"
        path.write_text(
            '2024-01-01 * "Cafe"\n'
            "    Coffee   4.00 USD\n"
            "    Cash   -4.00 USD\n",
            encoding="utf-8",
        )
        importer = Importer(LedgerImportConfig(
            account_name="Assets:Cash",
            aliases={"Coffee": "Expenses:Food:Coffee", "Cash": "Assets:Cash"},
        ))
        [entry] = importer.extract(str(path), [])
        assert [p.account for p in entry.postings] == ["Expenses:Food:Coffee", "Assets:Cash"]


class TestDeduplication:
    """Transactions already in the ledger are not imported twice."""

    def test_second_import_is_empty(self, importer, ledger_file, caplog):
        existing = importer.extract(str(ledger_file), [])
        with caplog.at_level(logging.INFO, logger="ledger_modern.importer"):
            assert importer.extract(str(ledger_file), existing) == []
        assert "skipped 4 duplicate" in caplog.text

    def test_partial_overlap(self, importer, ledger_file):
        existing = importer.extract(str(ledger_file), [])[:2]
        entries = importer.extract(str(ledger_file), existing)
        assert [e.payee for e in entries] == ["Grocer", "Landlord"]

    def test_entries_without_fingerprint_are_ignored(self, importer, ledger_file):
        other = data.Transaction(
            meta=data.new_metadata("other.beancount", 1),
            date=datetime.date(2024, 1, 1),
            flag="*",
            payee="Employer",
            narration="January",
            tags=data.EMPTY_SET,
            links=data.EMPTY_SET,
            postings=[],
        )
        assert len(importer.extract(str(ledger_file), [other])) == 4

    def test_skip_deduplication(self, importer, importer_skip_deduplication, ledger_file):
        existing = importer.extract(str(ledger_file), [])
        entries = importer_skip_deduplication.extract(str(ledger_file), existing)
        assert len(entries) == 4
