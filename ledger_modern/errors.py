"""Exceptions raised by the ledger engine.

Per-block problems (a header that does not match the grammar, an impossible
calendar date, too few postings) are not exceptions: the parser recovers from
them locally and, in strict mode, records them as `ParseIssue` values with a
`SkipReason`. Invalid formatter input raises pydantic's `ValidationError`.
"""


class LedgerError(Exception):
    """Base class for ledger engine errors."""


class CatastrophicInputError(LedgerError):
    """The input cannot be decoded or segmented at all; the parse is aborted."""


class SettingsError(LedgerError):
    """A settings or recurring-rule file cannot be read or validated."""
