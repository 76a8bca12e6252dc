"""
Context budget calculations.

Subtracts request estimates from a model's context length. Results are never
clamped: a negative remainder means the request already overflows the model.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from .accounting import count_prompt_tokens, count_request_tokens
from .calibration import DEFAULT_CALIBRATION, Calibration
from .models import MODEL_REGISTRY, ModelRegistry
from .schema import ChatCompletionRequest
from .token_counter import TokenCounter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetReport:
    """Outcome of checking a request against its model's context window."""
    model: str
    context_length: int
    prompt_tokens: int
    reserve: int
    upgrade: Optional[str] = None

    @property
    def remaining(self) -> int:
        """Tokens left for the response (negative on overflow)."""
        return self.context_length - self.prompt_tokens

    @property
    def fits(self) -> bool:
        """True when the remainder covers the reserved response tokens."""
        return self.remaining >= self.reserve


def remaining_tokens(
    request: ChatCompletionRequest,
    counter: TokenCounter,
    registry: ModelRegistry = MODEL_REGISTRY,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> int:
    """Tokens left in the model's context after the request.

    Raises:
        UnsupportedModel: If the request's model is not catalogued
        TokenAccountingError: If the request cannot be costed
    """
    context = registry.context_length(request.model)
    return context - count_request_tokens(request, counter, registry, calibration)


def remaining_prompt_tokens(
    prompt: str,
    model: str,
    counter: TokenCounter,
    registry: ModelRegistry = MODEL_REGISTRY,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> int:
    """Tokens left in the model's context after a raw text prompt."""
    context = registry.context_length(model)
    return context - count_prompt_tokens(prompt, model, counter, registry, calibration)


def check_budget(
    request: ChatCompletionRequest,
    counter: TokenCounter,
    reserve: Optional[int] = None,
    registry: ModelRegistry = MODEL_REGISTRY,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> BudgetReport:
    """Check a request against its model's context window.

    Args:
        request: Chat completion request
        counter: Tokenizer adapter
        reserve: Tokens that must remain for the response (defaults to the
            request's max_tokens, or 0)
        registry: Model registry
        calibration: Correction constants

    Returns:
        BudgetReport naming the registry's upgrade model when the request does not fit
    """
    if reserve is None:
        reserve = request.max_tokens or 0
    if reserve < 0:
        raise ValueError("reserve must be >= 0")

    context = registry.context_length(request.model)
    prompt_tokens = count_request_tokens(request, counter, registry, calibration)
    report = BudgetReport(
        model=request.model,
        context_length=context,
        prompt_tokens=prompt_tokens,
        reserve=reserve,
    )
    if not report.fits:
        has_upgrade, next_model = registry.upgrade_path(request.model)
        if has_upgrade and next_model != request.model:
            report = replace(report, upgrade=next_model)
        logger.debug(
            "%s overflows by %d tokens (upgrade: %s)",
            request.model, reserve - report.remaining, report.upgrade,
        )
    return report


def find_fitting_model(
    request: ChatCompletionRequest,
    counter: TokenCounter,
    reserve: Optional[int] = None,
    registry: ModelRegistry = MODEL_REGISTRY,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> Optional[str]:
    """Walk the request model's upgrade chain for the first model that fits.

    Returns:
        The request's own model if it fits, the first fitting upgrade, or None
    """
    seen = set()
    model = request.model
    while model not in seen:
        seen.add(model)
        candidate = replace(request, model=model)
        report = check_budget(candidate, counter, reserve, registry, calibration)
        if report.fits:
            return model
        if report.upgrade is None:
            return None
        model = report.upgrade
    return None
