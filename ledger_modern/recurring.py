"""Recurring postings.

Timers, persistence and the "run now" button live in the host application.
This module holds the logic they call: deciding which rules are due, rendering
them as ledger text, and advancing `last_run_date`, which is the
de-duplication key that keeps each rule to one append per due date.
"""

import calendar
import datetime
import logging
import threading
from collections.abc import Iterable

from pydantic import BaseModel, Field

from ledger_modern.models import FileBlock, LedgerEntry, RecurringRule, Transaction
from ledger_modern.parser import parse_block

logger = logging.getLogger(__name__)

TEMPLATE_INDENT = "    "


class RecurringRun(BaseModel):
    """Outcome of applying recurring rules to a ledger."""
    text: str
    rules: list[RecurringRule]
    applied: list[str] = Field(default_factory=list)  # ids of rules that fired
    rejected: list[str] = Field(default_factory=list)  # due, but rendered text does not parse


def add_months(day: datetime.date, months: int) -> datetime.date:
    """Shift a date by whole months, clamping to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last))


def due_date(rule: RecurringRule, today: datetime.date) -> datetime.date:
    """This month's occurrence of the rule (day 31 becomes the 30th in April)."""
    last = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=min(rule.day_of_month, last))


def is_due(rule: RecurringRule, today: datetime.date) -> bool:
    """True if the rule should fire now and has not fired for this due date."""
    if not rule.active:
        return False
    due = due_date(rule, today)
    if today < due:
        return False
    return rule.last_run_date is None or rule.last_run_date < due


def render_rule(rule: RecurringRule, on: datetime.date) -> str:
    """Ledger text for one firing of `rule`."""
    body = "\n".join(
        TEMPLATE_INDENT + line.strip()
        for line in rule.template.splitlines()
        if line.strip()
    )
    return f"{on.isoformat()} {rule.label}\n{body}\n"


def _separator(text: str) -> str:
    if not text or text.endswith("\n\n"):
        return ""
    return "\n" if text.endswith("\n") else "\n\n"


def apply_recurring(
    ledger_text: str,
    rules: Iterable[RecurringRule],
    today: datetime.date,
) -> RecurringRun:
    """Append every due rule to the ledger.

    Inputs are left untouched; the returned rules carry the updated
    `last_run_date` and must be persisted by the caller together with the
    returned text. A due rule whose rendered text does not parse as a
    transaction is not appended and keeps its `last_run_date`, so it fires
    once it has been corrected.
    """
    text = ledger_text
    updated = []
    applied = []
    rejected = []

    for rule in rules:
        if is_due(rule, today):
            due = due_date(rule, today)
            rendered = render_rule(rule, due)
            result = parse_block(FileBlock(
                text=rendered,
                first_line=0,
                last_line=rendered.count("\n"),
            ))
            if isinstance(result, Transaction):
                text += _separator(text) + rendered
                rule = rule.model_copy(update={"last_run_date": due})
                applied.append(rule.id)
                logger.debug("Applied recurring rule %s for %s", rule.id, due)
            else:
                rejected.append(rule.id)
                reason = result.message if result else "no dated header"
                logger.warning("Recurring rule %s does not render a valid transaction: %s", rule.id, reason)
        updated.append(rule)

    return RecurringRun(text=text, rules=updated, applied=applied, rejected=rejected)


class RecurringLedger:
    """Ledger text and its recurring rules behind one lock.

    A scheduled run racing a manual "run now" sees the other's
    `last_run_date`, so each rule appends at most once per due date.
    """

    def __init__(self, text: str, rules: Iterable[RecurringRule]):
        self._lock = threading.Lock()
        self._text = text
        self._rules = list(rules)

    @property
    def text(self) -> str:
        with self._lock:
            return self._text

    @property
    def rules(self) -> list[RecurringRule]:
        with self._lock:
            return list(self._rules)

    def run(self, today: datetime.date) -> list[str]:
        """Apply due rules; returns the ids that fired."""
        with self._lock:
            result = apply_recurring(self._text, self._rules, today)
            self._text = result.text
            self._rules = result.rules
            return result.applied


def next_occurrence(entry: LedgerEntry) -> LedgerEntry:
    """The entry moved forward by its frequency.

    Raises:
        ValueError: The entry has no frequency.
    """
    match entry.frequency:
        case "daily":
            next_date = entry.date + datetime.timedelta(days=1)
        case "weekly":
            next_date = entry.date + datetime.timedelta(weeks=1)
        case "monthly":
            next_date = add_months(entry.date, 1)
        case _:
            raise ValueError("entry has no recurrence frequency")
    return entry.model_copy(update={"date": next_date})
