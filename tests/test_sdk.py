"""
Unit tests for SDK layer.

Tests OpenAI client wrapper budget checks and request forwarding.
"""

from unittest.mock import Mock, patch

import pytest

from ai_context_guard.config.loader import GuardConfig
from ai_context_guard.core.calibration import Calibration
from ai_context_guard.core.errors import (
    ContextBudgetExceeded,
    UnsupportedContentType,
    UnsupportedModel,
)
from ai_context_guard.sdk.openai_client import GuardedOpenAI

from conftest import FakeCounter


class TestGuardedOpenAI:
    """Test GuardedOpenAI client wrapper."""

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_init_success(self, mock_openai_class):
        """Test successful initialization."""
        mock_openai_class.return_value = Mock()
        counter = FakeCounter()

        client = GuardedOpenAI(model="gpt-4", counter=counter)

        assert client.model == "gpt-4"
        assert client.counter is counter
        assert client.auto_upgrade is False
        assert client.client is not None

    def test_init_missing_model(self):
        """Test initialization fails with missing model."""
        with pytest.raises(ValueError, match="model is required"):
            GuardedOpenAI(model="")

        with pytest.raises(ValueError, match="model is required"):
            GuardedOpenAI(model=None)

    def test_init_unsupported_model(self):
        """Test initialization fails for uncatalogued models."""
        with pytest.raises(UnsupportedModel):
            GuardedOpenAI(model="dall-e-3", counter=FakeCounter())

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_chat_forwards_fitting_request(self, mock_openai_class):
        """Test a fitting request is sent unchanged."""
        mock_response = Mock()
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = mock_response
        mock_openai_class.return_value = mock_client

        client = GuardedOpenAI(model="gpt-4", counter=FakeCounter())
        messages = [{"role": "user", "content": "Hello"}]
        response = client.chat(messages=messages, max_tokens=100, temperature=0.2)

        mock_client.chat.completions.create.assert_called_once_with(
            model="gpt-4",
            messages=messages,
            max_tokens=100,
            temperature=0.2
        )
        assert response == mock_response

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_chat_forwards_tools(self, mock_openai_class):
        """Test tool declarations are costed and forwarded."""
        mock_client = Mock()
        mock_openai_class.return_value = mock_client
        counter = FakeCounter()

        tools = [{"type": "function", "function": {"name": "ping", "description": "Ping it"}}]
        client = GuardedOpenAI(model="gpt-4", counter=counter)
        client.chat(messages=[{"role": "user", "content": "Hello"}], tools=tools)

        assert ("cl100k_base", "ping") in counter.calls
        _, kwargs = mock_client.chat.completions.create.call_args
        assert kwargs["tools"] == tools

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_chat_overflow_raises(self, mock_openai_class):
        """Test an overflowing request is never sent."""
        mock_client = Mock()
        mock_openai_class.return_value = mock_client

        client = GuardedOpenAI(model="gpt-3.5-turbo", counter=FakeCounter())

        with pytest.raises(ContextBudgetExceeded) as exc_info:
            client.chat(messages=[{"role": "user", "content": "Hello"}], max_tokens=4090)

        assert exc_info.value.report.remaining == 4096 - 58
        assert exc_info.value.report.upgrade == "gpt-3.5-turbo-16k"
        mock_client.chat.completions.create.assert_not_called()

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_chat_auto_upgrade(self, mock_openai_class):
        """Test overflow switches to a fitting sibling when enabled."""
        mock_client = Mock()
        mock_openai_class.return_value = mock_client

        client = GuardedOpenAI(model="gpt-3.5-turbo", counter=FakeCounter(), auto_upgrade=True)
        client.chat(messages=[{"role": "user", "content": "Hello"}], max_tokens=4090)

        _, kwargs = mock_client.chat.completions.create.call_args
        assert kwargs["model"] == "gpt-3.5-turbo-16k"

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_chat_auto_upgrade_without_sibling_raises(self, mock_openai_class):
        """Test overflow on a terminal model still raises."""
        mock_client = Mock()
        mock_openai_class.return_value = mock_client

        client = GuardedOpenAI(model="gpt-3.5-turbo-0301", counter=FakeCounter(), auto_upgrade=True)

        with pytest.raises(ContextBudgetExceeded):
            client.chat(messages=[{"role": "user", "content": "Hello"}], max_tokens=4090)
        mock_client.chat.completions.create.assert_not_called()

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_chat_empty_messages(self, mock_openai_class):
        """Test chat fails with empty messages."""
        mock_openai_class.return_value = Mock()
        client = GuardedOpenAI(model="gpt-4", counter=FakeCounter())

        with pytest.raises(ValueError, match="messages is required"):
            client.chat(messages=[])

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_chat_unaccountable_request_not_sent(self, mock_openai_class):
        """Test requests that cannot be costed are never sent."""
        mock_client = Mock()
        mock_openai_class.return_value = mock_client
        client = GuardedOpenAI(model="gpt-4", counter=FakeCounter())

        messages = [{"role": "user", "content": [{"type": "input_audio"}]}]
        with pytest.raises(UnsupportedContentType):
            client.chat(messages=messages)
        mock_client.chat.completions.create.assert_not_called()

    @patch('ai_context_guard.sdk.openai_client.OpenAI')
    def test_check_uses_config(self, mock_openai_class):
        """Test estimates honour the configured calibration."""
        mock_openai_class.return_value = Mock()
        config = GuardConfig(calibration=Calibration(request_correction=0))
        client = GuardedOpenAI(model="gpt-4", config=config, counter=FakeCounter())

        report = client.check(messages=[{"role": "user", "content": "Hello"}])

        assert report.prompt_tokens == 3 + 1 + 3
        assert report.fits
