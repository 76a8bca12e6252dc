"""
Configuration loading for AI Context Guard.
"""
