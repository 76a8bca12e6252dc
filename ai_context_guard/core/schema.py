"""
Chat completion request data model.

Immutable views of the request fields the accountants read, parsed from the
OpenAI chat-completions JSON shape.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

TEXT_PART = "text"
IMAGE_PARTS = ("image_url", "image")
FUNCTION_TYPE = "function"


def _require_object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class ContentPart:
    """One element of a multi-part message content."""
    type: str
    text: str = ""
    image_url: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContentPart":
        _require_object(data, "Content part")
        return cls(
            type=data.get("type", ""),
            text=data.get("text") or "",
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class FunctionCall:
    """Function invocation payload requested by the model."""
    name: str = ""
    arguments: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FunctionCall":
        _require_object(data, "Function call")
        return cls(name=data.get("name") or "", arguments=data.get("arguments") or "")

    def to_dict(self) -> Dict[str, str]:
        """Wire form; empty fields are omitted."""
        data = {}
        if self.name:
            data["name"] = self.name
        if self.arguments:
            data["arguments"] = self.arguments
        return data


@dataclass(frozen=True)
class ToolCall:
    """Tool invocation attached to an assistant message."""
    type: str
    function: Optional[FunctionCall] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ToolCall":
        _require_object(data, "Tool call")
        function = data.get("function")
        return cls(
            type=data.get("type", ""),
            function=FunctionCall.from_dict(function) if function is not None else None,
            id=data.get("id"),
        )


@dataclass(frozen=True)
class ChatMessage:
    """A single chat message."""
    role: str
    # None, plain text or content parts; other shapes are kept for the
    # accountant to reject.
    content: Any = None
    tool_calls: Tuple[ToolCall, ...] = ()
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChatMessage":
        """Parse a message dictionary.

        Content lists become tuples of ContentPart; other content shapes are
        preserved as-is.
        """
        _require_object(data, "Message")
        content = data.get("content")
        if isinstance(content, (list, tuple)):
            content = tuple(
                ContentPart.from_dict(part) if isinstance(part, Mapping) else part
                for part in content
            )
        tool_calls = tuple(ToolCall.from_dict(tc) for tc in data.get("tool_calls") or ())
        return cls(
            role=data.get("role", ""),
            content=content,
            tool_calls=tool_calls,
            name=data.get("name"),
        )


@dataclass(frozen=True)
class PropertySchema:
    """JSON-schema description of one function parameter."""
    type: str = ""
    enum: Tuple[str, ...] = ()
    description: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PropertySchema":
        _require_object(data, "Property schema")
        prop_type = data.get("type") or ""
        if not isinstance(prop_type, str):
            raise ValueError(f"property type must be a string, got {prop_type!r}")
        enum = data.get("enum") or ()
        if not isinstance(enum, (list, tuple)):
            raise ValueError(f"property enum must be a list, got {enum!r}")
        return cls(
            type=prop_type,
            enum=tuple(str(value) for value in enum),
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class ParameterSchema:
    """Parameters object of a function declaration."""
    properties: Mapping[str, PropertySchema] = field(default_factory=dict)
    required: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParameterSchema":
        _require_object(data, "Parameters")
        properties = _require_object(data.get("properties") or {}, "Properties")
        return cls(
            properties={name: PropertySchema.from_dict(prop) for name, prop in properties.items()},
            required=tuple(data.get("required") or ()),
        )


@dataclass(frozen=True)
class FunctionDefinition:
    """Schema of a callable function offered to the model."""
    name: str = ""
    description: str = ""
    parameters: Optional[ParameterSchema] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FunctionDefinition":
        _require_object(data, "Function definition")
        parameters = data.get("parameters")
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            parameters=ParameterSchema.from_dict(parameters) if parameters is not None else None,
        )


@dataclass(frozen=True)
class Tool:
    """Request-level tool declaration."""
    type: str
    function: Optional[FunctionDefinition] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tool":
        _require_object(data, "Tool")
        function = data.get("function")
        return cls(
            type=data.get("type", ""),
            function=FunctionDefinition.from_dict(function) if function is not None else None,
        )


@dataclass(frozen=True)
class ChatCompletionRequest:
    """The parts of a chat completion request that consume context."""
    model: str
    messages: Tuple[ChatMessage, ...] = ()
    tools: Tuple[Tool, ...] = ()
    max_tokens: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChatCompletionRequest":
        """Parse a chat-completions request body.

        Raises:
            ValueError: If model or messages are missing, or a nested value is
                not an object
        """
        _require_object(data, "Request")
        if not data.get("model"):
            raise ValueError("Missing required 'model' in request")
        if "messages" not in data or not isinstance(data["messages"], (list, tuple)):
            raise ValueError("Missing required 'messages' list in request")
        return cls(
            model=data["model"],
            messages=tuple(ChatMessage.from_dict(m) for m in data["messages"]),
            tools=tuple(Tool.from_dict(t) for t in data.get("tools") or ()),
            max_tokens=data.get("max_tokens"),
        )
