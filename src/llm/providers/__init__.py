"""Concrete LLM provider implementations."""
