"""
Shared test fixtures.
"""

import pytest

from ai_context_guard.core.errors import TokenizerFailure


class FakeCounter:
    """Deterministic tokenizer: one token per whitespace-separated word.

    Records every call so tests can assert on tokenizer traffic.
    """

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def count(self, encoding, text):
        self.calls.append((encoding, text))
        if self.fail_on is not None and self.fail_on in text:
            raise TokenizerFailure(f"cannot tokenize {text!r}")
        return len(text.split())


@pytest.fixture
def counter():
    """Create a recording fake tokenizer."""
    return FakeCounter()
