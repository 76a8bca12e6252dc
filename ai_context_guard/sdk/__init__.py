"""
SDK for AI Context Guard.

Provides context-budget checked access to hosted model APIs.
"""

from .openai_client import GuardedOpenAI

__all__ = ["GuardedOpenAI"]
