"""
AI Context Guard.

Estimates how many tokens a chat completion request consumes and how many
remain in the model's context window.
"""

from .core.accounting import count_prompt_tokens, count_request_tokens
from .core.budget import (
    BudgetReport,
    check_budget,
    find_fitting_model,
    remaining_prompt_tokens,
    remaining_tokens,
)
from .core.calibration import DEFAULT_CALIBRATION, Calibration
from .core.errors import (
    ContextBudgetExceeded,
    MalformedToolCall,
    TokenAccountingError,
    TokenizerFailure,
    UnsupportedContentType,
    UnsupportedModel,
)
from .core.models import MODEL_REGISTRY, ModelRegistry, ModelSpec
from .core.schema import ChatCompletionRequest
from .core.token_counter import get_token_counter

__version__ = "0.1.0"

__all__ = [
    "BudgetReport",
    "Calibration",
    "ChatCompletionRequest",
    "ContextBudgetExceeded",
    "DEFAULT_CALIBRATION",
    "MODEL_REGISTRY",
    "MalformedToolCall",
    "ModelRegistry",
    "ModelSpec",
    "TokenAccountingError",
    "TokenizerFailure",
    "UnsupportedContentType",
    "UnsupportedModel",
    "check_budget",
    "count_prompt_tokens",
    "count_request_tokens",
    "find_fitting_model",
    "get_token_counter",
    "remaining_prompt_tokens",
    "remaining_tokens",
]
