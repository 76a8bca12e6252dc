"""
Tokenizer adapters.

Turns text into a token count for a named encoding. Accounting code only
depends on the TokenCounter protocol; failures surface as TokenizerFailure
and are never treated as zero tokens.
"""

import logging
import subprocess
import sys
from typing import Dict, Optional, Protocol, runtime_checkable

import tiktoken

from .errors import TokenizerFailure

logger = logging.getLogger(__name__)

BACKEND_TIKTOKEN = "tiktoken"
BACKEND_SUBPROCESS = "subprocess"

# Reads the text from stdin so arbitrary content never hits the argv limit.
_COUNT_SCRIPT = (
    "import sys, tiktoken\n"
    "text = sys.stdin.buffer.read().decode('utf-8')\n"
    "print(len(tiktoken.get_encoding(sys.argv[1]).encode(text)))\n"
)


@runtime_checkable
class TokenCounter(Protocol):
    """Anything that can count tokens of a text for an encoding."""

    def count(self, encoding: str, text: str) -> int:
        ...


class TiktokenCounter:
    """Counts tokens in-process with the tiktoken library.

    Loaded encodings are reused between calls; counts are not cached.
    """

    def __init__(self):
        self._encodings: Dict[str, tiktoken.Encoding] = {}

    def _get_encoding(self, encoding: str) -> tiktoken.Encoding:
        if encoding not in self._encodings:
            try:
                self._encodings[encoding] = tiktoken.get_encoding(encoding)
            except (ValueError, KeyError, OSError) as e:
                logger.warning("Could not load tiktoken encoding %s: %s", encoding, e)
                raise TokenizerFailure(f"Cannot load encoding {encoding}: {e}") from e
        return self._encodings[encoding]

    def count(self, encoding: str, text: str) -> int:
        """Count tokens of ``text`` with the named encoding.

        Raises:
            TokenizerFailure: If the encoding is unknown or text cannot be encoded
        """
        enc = self._get_encoding(encoding)
        try:
            return len(enc.encode(text))
        except ValueError as e:
            raise TokenizerFailure(f"Cannot encode text with {encoding}: {e}") from e


class SubprocessTokenCounter:
    """Counts tokens by running an external Python interpreter with tiktoken.

    Each call runs one short-lived process; ``subprocess.run`` reaps it on
    every path, including timeouts.
    """

    def __init__(self, python: Optional[str] = None, timeout: Optional[float] = None):
        self.python = python or sys.executable
        self.timeout = timeout

    def count(self, encoding: str, text: str) -> int:
        """Count tokens of ``text`` in a child interpreter.

        Raises:
            TokenizerFailure: If the process fails, times out or prints garbage
        """
        try:
            completed = subprocess.run(
                [self.python, "-c", _COUNT_SCRIPT, encoding],
                input=text.encode("utf-8"),
                capture_output=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode("utf-8", errors="replace").strip() if e.stderr else ""
            logger.warning("Tokenizer process exited with %s: %s", e.returncode, stderr)
            raise TokenizerFailure(
                f"Tokenizer process exited with status {e.returncode}: {stderr}"
            ) from e
        except (subprocess.SubprocessError, OSError) as e:
            logger.warning("Tokenizer process failed: %s", e)
            raise TokenizerFailure(f"Tokenizer process failed: {e}") from e

        output = completed.stdout.decode("utf-8", errors="replace").strip()
        try:
            tokens = int(output)
        except ValueError as e:
            raise TokenizerFailure(f"Unexpected tokenizer output: {output!r}") from e
        if tokens < 0:
            raise TokenizerFailure(f"Tokenizer returned a negative count: {tokens}")
        return tokens


def get_token_counter(
    backend: str = BACKEND_TIKTOKEN,
    python: Optional[str] = None,
    timeout: Optional[float] = None,
) -> TokenCounter:
    """Build a token counter for the named backend.

    Raises:
        ValueError: If backend is unknown
    """
    if backend == BACKEND_TIKTOKEN:
        return TiktokenCounter()
    if backend == BACKEND_SUBPROCESS:
        return SubprocessTokenCounter(python=python, timeout=timeout)
    raise ValueError(
        f"Unknown tokenizer backend: {backend} "
        f"(expected {BACKEND_TIKTOKEN} or {BACKEND_SUBPROCESS})"
    )
