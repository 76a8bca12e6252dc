"""
Core modules for AI Context Guard.

This package contains the model registry, tokenizer adapters, token
accounting and context budget calculations.
"""
