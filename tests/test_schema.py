"""
Unit tests for request parsing.

Tests conversion of chat-completions JSON into request objects.
"""

import pytest

from ai_context_guard.core.schema import (
    ChatCompletionRequest,
    ChatMessage,
    ContentPart,
    ParameterSchema,
    PropertySchema,
    Tool,
)


class TestChatMessageParsing:
    """Test message parsing."""

    def test_plain_text(self):
        """Verify plain text content is kept as a string."""
        message = ChatMessage.from_dict({"role": "user", "content": "Hello"})
        assert message.role == "user"
        assert message.content == "Hello"
        assert message.tool_calls == ()

    def test_content_parts(self):
        """Verify content lists become content parts."""
        message = ChatMessage.from_dict({
            "role": "user",
            "content": [
                {"type": "text", "text": "What is this?"},
                {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}},
            ],
        })
        assert message.content == (
            ContentPart(type="text", text="What is this?"),
            ContentPart(type="image_url", image_url={"url": "https://example.com/a.png"}),
        )

    def test_tool_calls(self):
        """Verify tool calls and their function payloads are parsed."""
        message = ChatMessage.from_dict({
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {"id": "call_1", "type": "function",
                 "function": {"name": "get_weather", "arguments": "{}"}},
                {"id": "call_2", "type": "function"},
            ],
        })
        assert message.content is None
        assert message.tool_calls[0].function.name == "get_weather"
        assert message.tool_calls[0].function.arguments == "{}"
        assert message.tool_calls[1].function is None

    def test_unknown_content_shape_preserved(self):
        """Verify unknown shapes are left for the accountant to reject."""
        message = ChatMessage.from_dict({"role": "user", "content": {"weird": True}})
        assert message.content == {"weird": True}


class TestRequestParsing:
    """Test full request parsing."""

    def test_request_with_tools(self):
        """Verify tools, parameters and enums are parsed."""
        request = ChatCompletionRequest.from_dict({
            "model": "gpt-4",
            "max_tokens": 256,
            "messages": [{"role": "user", "content": "Hi"}],
            "tools": [{
                "type": "function",
                "function": {
                    "name": "get_weather",
                    "description": "Get the weather",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "location": {"type": "string"},
                            "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
                        },
                        "required": ["location"],
                    },
                },
            }],
        })
        assert request.model == "gpt-4"
        assert request.max_tokens == 256
        assert len(request.messages) == 1
        function = request.tools[0].function
        assert function.parameters.required == ("location",)
        assert function.parameters.properties["unit"] == PropertySchema(
            type="string", enum=("celsius", "fahrenheit")
        )

    def test_missing_parameters_stay_none(self):
        """Verify absent parameters are distinguished from empty ones."""
        request = ChatCompletionRequest.from_dict({
            "model": "gpt-4",
            "messages": [],
            "tools": [{"type": "function", "function": {"name": "ping"}}],
        })
        assert request.tools[0].function.parameters is None

    def test_missing_model_rejected(self):
        """Verify model is required."""
        with pytest.raises(ValueError, match="model"):
            ChatCompletionRequest.from_dict({"messages": []})

    def test_missing_messages_rejected(self):
        """Verify messages are required."""
        with pytest.raises(ValueError, match="messages"):
            ChatCompletionRequest.from_dict({"model": "gpt-4"})

    def test_non_string_property_type_rejected(self):
        """Verify union property types are rejected."""
        with pytest.raises(ValueError, match="property type"):
            PropertySchema.from_dict({"type": ["string", "null"]})

    def test_string_enum_rejected(self):
        """Verify a string enum is not split into characters."""
        with pytest.raises(ValueError, match="property enum must be a list"):
            PropertySchema.from_dict({"type": "string", "enum": "abc"})

    def test_enum_tuple_accepted(self):
        """Verify list-like enums are kept in order."""
        prop = PropertySchema.from_dict({"type": "string", "enum": ("a", "b")})
        assert prop.enum == ("a", "b")


class TestNonObjectValues:
    """Test that non-object JSON values are rejected with ValueError."""

    def test_request_not_object(self):
        """Verify the request body must be an object."""
        with pytest.raises(ValueError, match="Request must be an object"):
            ChatCompletionRequest.from_dict(["gpt-4"])

    def test_message_not_object(self):
        """Verify a bare string message is rejected."""
        with pytest.raises(ValueError, match="Message must be an object, got str"):
            ChatCompletionRequest.from_dict({"model": "gpt-4", "messages": ["hi"]})

    def test_tool_call_not_object(self):
        """Verify tool calls must be objects."""
        with pytest.raises(ValueError, match="Tool call must be an object"):
            ChatMessage.from_dict({"role": "assistant", "tool_calls": ["call"]})

    def test_function_call_not_object(self):
        """Verify tool call functions must be objects."""
        with pytest.raises(ValueError, match="Function call must be an object"):
            ChatMessage.from_dict({
                "role": "assistant",
                "tool_calls": [{"type": "function", "function": "get_weather"}],
            })

    def test_tool_not_object(self):
        """Verify tool declarations must be objects."""
        with pytest.raises(ValueError, match="Tool must be an object"):
            ChatCompletionRequest.from_dict({"model": "gpt-4", "messages": [], "tools": [1]})

    def test_function_definition_not_object(self):
        """Verify tool functions must be objects."""
        with pytest.raises(ValueError, match="Function definition must be an object"):
            Tool.from_dict({"type": "function", "function": ["ping"]})

    def test_parameters_not_object(self):
        """Verify parameters must be objects."""
        with pytest.raises(ValueError, match="Parameters must be an object"):
            Tool.from_dict({"type": "function", "function": {"name": "ping", "parameters": "x"}})

    def test_properties_not_object(self):
        """Verify properties must be an object."""
        with pytest.raises(ValueError, match="Properties must be an object"):
            ParameterSchema.from_dict({"properties": ["location"]})

    def test_property_not_object(self):
        """Verify each property schema must be an object."""
        with pytest.raises(ValueError, match="Property schema must be an object"):
            ParameterSchema.from_dict({"properties": {"location": "string"}})

    def test_content_part_not_object(self):
        """Verify content parts parsed directly must be objects."""
        with pytest.raises(ValueError, match="Content part must be an object"):
            ContentPart.from_dict("text")
