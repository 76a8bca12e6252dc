"""
Error taxonomy for token accounting.

Every accounting failure is fatal to the count: there is no partial result.
"""


class TokenAccountingError(Exception):
    """Base class for failures that make a token estimate impossible."""


class UnsupportedModel(TokenAccountingError, ValueError):
    """Raised when a model identifier is absent from the registry."""

    def __init__(self, model: str, reason: str = ""):
        message = f"Unsupported model: {model}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.model = model


class UnsupportedContentType(TokenAccountingError):
    """Raised for message content, content parts or tool types that cannot be costed."""


class MalformedToolCall(TokenAccountingError):
    """Raised when a function tool call or declaration has no function payload."""


class TokenizerFailure(TokenAccountingError):
    """Raised by a tokenizer adapter when text could not be tokenized."""


class ContextBudgetExceeded(TokenAccountingError):
    """Raised when a request leaves less room than required for the response."""

    def __init__(self, message: str, report):
        super().__init__(message)
        self.report = report
