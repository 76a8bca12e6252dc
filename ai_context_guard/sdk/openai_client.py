"""
Guarded OpenAI client wrapper.

Checks a chat request against the model's context window before sending it.
"""

import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI

from ..config.loader import GuardConfig
from ..core.budget import BudgetReport, check_budget, find_fitting_model
from ..core.errors import ContextBudgetExceeded
from ..core.schema import ChatCompletionRequest
from ..core.token_counter import TokenCounter

logger = logging.getLogger(__name__)


class GuardedOpenAI:
    """OpenAI client wrapper that refuses requests that overflow the context.

    Requests that fit are forwarded unchanged. Estimation failures are loud:
    a request that cannot be costed is never sent.
    """

    def __init__(
        self,
        model: str,
        config: Optional[GuardConfig] = None,
        counter: Optional[TokenCounter] = None,
        auto_upgrade: bool = False,
    ):
        """Initialize guarded OpenAI client.

        Args:
            model: OpenAI model name (required)
            config: Calibration, registry and tokenizer settings
            counter: Tokenizer adapter (defaults to the configured backend)
            auto_upgrade: Switch to a larger-context sibling model on overflow

        Raises:
            ValueError: If model is missing/empty
            UnsupportedModel: If model is not catalogued
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.config = config or GuardConfig()
        self.config.registry.get_spec(model)
        self.model = model
        self.counter = counter or self.config.tokenizer.create_counter()
        self.auto_upgrade = auto_upgrade
        self.client = OpenAI()

    def check(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        max_tokens: Optional[int] = None,
    ) -> BudgetReport:
        """Estimate a request without sending it."""
        request = self._build_request(messages, tools, max_tokens)
        return check_budget(
            request,
            self.counter,
            registry=self.config.registry,
            calibration=self.config.calibration,
        )

    def chat(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any
    ):
        """Create chat completion after a context budget check.

        Args:
            messages: List of message dictionaries (required)
            tools: Tool declarations (optional)
            max_tokens: Tokens to reserve for the response (optional)
            **kwargs: Additional OpenAI parameters

        Returns:
            OpenAI chat completion response

        Raises:
            ValueError: If messages is empty
            ContextBudgetExceeded: If the request leaves less than max_tokens free
            TokenAccountingError: If the request cannot be estimated
            OpenAI API errors: Propagated without modification
        """
        if not messages:
            raise ValueError("messages is required and cannot be empty")

        request = self._build_request(messages, tools, max_tokens)
        report = check_budget(
            request,
            self.counter,
            registry=self.config.registry,
            calibration=self.config.calibration,
        )

        model = self.model
        if not report.fits:
            fitting_model = None
            if self.auto_upgrade and report.upgrade:
                fitting_model = find_fitting_model(
                    request,
                    self.counter,
                    registry=self.config.registry,
                    calibration=self.config.calibration,
                )
            if fitting_model is None:
                raise ContextBudgetExceeded(
                    f"Request needs {report.prompt_tokens:,} prompt tokens plus "
                    f"{report.reserve:,} reserved, but {report.model} allows "
                    f"{report.context_length:,}",
                    report,
                )
            logger.info("Upgrading %s to %s to fit the request", model, fitting_model)
            model = fitting_model

        params = dict(kwargs)
        if tools is not None:
            params["tools"] = tools
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        return self.client.chat.completions.create(
            model=model,
            messages=messages,
            **params
        )

    def _build_request(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]],
        max_tokens: Optional[int],
    ) -> ChatCompletionRequest:
        return ChatCompletionRequest.from_dict({
            "model": self.model,
            "messages": messages,
            "tools": tools or [],
            "max_tokens": max_tokens,
        })
