"""Split ledger text into record blocks.

Two strategies are in use and both are kept:

- BLANK_LINE: a block runs until the first whitespace-only line. Used by
  navigation tooling that treats every paragraph (transaction, comment,
  alias rule) as a unit.
- DATE_LINE: a block starts at each `YYYY-MM-DD ` line and owns everything up
  to the next one, blank lines included. This is what the transaction parser
  consumes, and it covers the whole file without gaps.

Both report 0-based line indices so callers can edit the source in place.
"""

import re
from enum import Enum

from ledger_modern.models import FileBlock

DATE_LINE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\s")
LINE_SPLIT_RE = re.compile(r"\r?\n")


class BlockStrategy(str, Enum):
    """Named segmentation strategies."""
    BLANK_LINE = "blank_line"
    DATE_LINE = "date_line"


def split_lines(text: str) -> list[str]:
    """Split on LF or CRLF only, so indices match editor line numbers."""
    return LINE_SPLIT_RE.split(text)


def split_blank_line_blocks(text: str) -> list[FileBlock]:
    """Split text into blocks separated by blank lines.

    Blank lines belong to no block. A final block that is not followed by a
    blank line is still emitted.
    """
    if not text:
        return []

    blocks: list[FileBlock] = []
    current: list[str] = []
    first_line = 0

    for idx, line in enumerate(split_lines(text)):
        if not line.strip():
            if current:
                blocks.append(FileBlock(
                    text="\n".join(current),
                    first_line=first_line,
                    last_line=idx - 1,
                ))
                current = []
            continue
        if not current:
            first_line = idx
        current.append(line)

    if current:
        blocks.append(FileBlock(
            text="\n".join(current),
            first_line=first_line,
            last_line=first_line + len(current) - 1,
        ))
    return blocks


def split_date_line_blocks(text: str) -> list[FileBlock]:
    """Split text into blocks that each start at a dated header line.

    Lines before the first dated line form a leading block of their own.
    """
    if not text:
        return []

    lines = split_lines(text)
    blocks: list[FileBlock] = []
    current: list[str] = []
    first_line = 0

    for idx, line in enumerate(lines):
        if DATE_LINE_RE.match(line):
            if current:
                blocks.append(FileBlock(
                    text="\n".join(current),
                    first_line=first_line,
                    last_line=idx - 1,
                ))
            current = [line]
            first_line = idx
        else:
            current.append(line)

    if current:
        blocks.append(FileBlock(
            text="\n".join(current),
            first_line=first_line,
            last_line=len(lines) - 1,
        ))
    return blocks


def split_into_blocks(
    text: str,
    strategy: BlockStrategy = BlockStrategy.DATE_LINE,
) -> list[FileBlock]:
    """Split text using the named strategy."""
    match BlockStrategy(strategy):
        case BlockStrategy.BLANK_LINE:
            return split_blank_line_blocks(text)
        case BlockStrategy.DATE_LINE:
            return split_date_line_blocks(text)
