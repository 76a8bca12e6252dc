"""
Token accounting for chat completion requests.

Walks a request's messages and tool declarations and adds the per-field
overheads the provider charges on top of the raw text tokens.

Accounting order for a chat request:
1. Registry lookup - unknown models fail before any tokenizer call
2. Messages - per-message framing, text, tool calls
3. Reply priming
4. Tool declarations - names, descriptions, parameter properties
5. Final correction
"""

import json
import logging
from typing import Sequence

from .calibration import DEFAULT_CALIBRATION, Calibration
from .errors import MalformedToolCall, UnsupportedContentType
from .models import MODEL_REGISTRY, ModelRegistry
from .schema import (
    FUNCTION_TYPE,
    IMAGE_PARTS,
    TEXT_PART,
    ChatCompletionRequest,
    ChatMessage,
    ContentPart,
    FunctionCall,
    Tool,
)
from .token_counter import TokenCounter

logger = logging.getLogger(__name__)


def serialize_function_call(function: FunctionCall) -> str:
    """Compact JSON form of a function call, as sent on the wire."""
    return json.dumps(function.to_dict(), separators=(",", ":"), ensure_ascii=False)


def _count_text(counter: TokenCounter, encoding: str, text: str) -> int:
    if not text:
        return 0
    return counter.count(encoding, text)


def _count_content(content, encoding: str, counter: TokenCounter) -> int:
    if content is None:
        return 0
    if isinstance(content, str):
        return _count_text(counter, encoding, content)
    if not isinstance(content, (tuple, list)):
        raise UnsupportedContentType(
            f"Message content of type {type(content).__name__} is not supported"
        )

    num_tokens = 0
    for part in content:
        if not isinstance(part, ContentPart):
            raise UnsupportedContentType(
                f"Message content part of type {type(part).__name__} is not supported"
            )
        if part.type == TEXT_PART:
            num_tokens += _count_text(counter, encoding, part.text)
        elif part.type in IMAGE_PARTS:
            # Image cost is not modelled.
            continue
        else:
            raise UnsupportedContentType(
                f"Message content part of type {part.type!r} is not supported"
            )
    return num_tokens


def count_message_tokens(
    message: ChatMessage,
    encoding: str,
    per_message_overhead: int,
    counter: TokenCounter,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> int:
    """Count tokens consumed by one chat message.

    Args:
        message: Message to cost
        encoding: Tokenizer encoding of the request's model
        per_message_overhead: Framing tokens charged per message
        counter: Tokenizer adapter
        calibration: Correction constants

    Returns:
        Token count including framing and tool calls

    Raises:
        UnsupportedContentType: If content, a content part or a tool call type is unknown
        MalformedToolCall: If a function tool call has no function payload
        TokenizerFailure: If the tokenizer fails
    """
    num_tokens = per_message_overhead
    num_tokens += _count_content(message.content, encoding, counter)

    for tool_call in message.tool_calls:
        if tool_call.type != FUNCTION_TYPE:
            raise UnsupportedContentType(
                f"Tool call of type {tool_call.type!r} is not supported"
            )
        if tool_call.function is None:
            raise MalformedToolCall(
                "Message has a tool call of type function without a function"
            )
        num_tokens += calibration.tool_call_overhead
        num_tokens += counter.count(encoding, serialize_function_call(tool_call.function))

    return num_tokens


def count_tool_tokens(
    tools: Sequence[Tool],
    encoding: str,
    counter: TokenCounter,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> int:
    """Count tokens consumed by request-level tool declarations.

    Raises:
        UnsupportedContentType: If a tool type is not "function"
        MalformedToolCall: If a function tool has no function definition
        TokenizerFailure: If the tokenizer fails
    """
    num_tokens = 0
    for tool in tools:
        if tool.type != FUNCTION_TYPE:
            raise UnsupportedContentType(
                f"Tool declaration of type {tool.type!r} is not supported"
            )
        function = tool.function
        if function is None:
            raise MalformedToolCall(
                "Request has a tool of type function without a function definition"
            )

        num_tokens += _count_text(counter, encoding, function.name)
        num_tokens += _count_text(counter, encoding, function.description)

        if function.parameters is None:
            continue

        num_tokens += calibration.tool_parameters_overhead
        for prop_name, prop in function.parameters.properties.items():
            num_tokens += counter.count(encoding, prop_name)

            if prop.type:
                for _ in range(calibration.property_type_repeats):
                    num_tokens += calibration.property_type_overhead
                    num_tokens += counter.count(encoding, prop.type)

            if prop.enum:
                # enum members replace the flat property charge
                num_tokens -= calibration.enum_discount
                for value in prop.enum:
                    num_tokens += calibration.enum_value_overhead
                    num_tokens += counter.count(encoding, value)

    return num_tokens


def count_request_tokens(
    request: ChatCompletionRequest,
    counter: TokenCounter,
    registry: ModelRegistry = MODEL_REGISTRY,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> int:
    """Estimate the prompt tokens of a chat completion request.

    Raises:
        UnsupportedModel: If the request's model is not a catalogued chat model
        UnsupportedContentType: If any message or tool cannot be costed
        MalformedToolCall: If a function tool call or declaration lacks its function
        TokenizerFailure: If the tokenizer fails
    """
    encoding = registry.encoding_for(request.model)
    per_message = registry.per_message_overhead(request.model)

    num_tokens = 0
    for message in request.messages:
        num_tokens += count_message_tokens(message, encoding, per_message, counter, calibration)

    num_tokens += calibration.reply_priming
    num_tokens += count_tool_tokens(request.tools, encoding, counter, calibration)

    # Observed undercount relative to the provider
    num_tokens += calibration.request_correction

    logger.debug(
        "Estimated %d tokens for %s (%d messages, %d tools)",
        num_tokens, request.model, len(request.messages), len(request.tools),
    )
    return num_tokens


def count_prompt_tokens(
    prompt: str,
    model: str,
    counter: TokenCounter,
    registry: ModelRegistry = MODEL_REGISTRY,
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> int:
    """Estimate the tokens of a raw text prompt for a model.

    Raises:
        UnsupportedModel: If model is not catalogued
        TokenizerFailure: If the tokenizer fails
    """
    encoding = registry.encoding_for(model)
    num_tokens = counter.count(encoding, prompt)
    num_tokens += calibration.prompt_correction
    logger.debug("Estimated %d tokens for %s prompt", num_tokens, model)
    return num_tokens
