"""Sybil configuration for running the ledger examples in docs/."""

from sybil import Sybil
from sybil.parsers.markdown import PythonCodeBlockParser

# Only examples.md holds runnable code; README.md snippets read real files
pytest_collect_file = Sybil(
    parsers=[PythonCodeBlockParser()],
    patterns=["examples.md"],
).pytest()
