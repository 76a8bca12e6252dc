"""
Command-line interface for AI Context Guard.
"""
