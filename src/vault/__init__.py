"""Markdown vault: the note collection the curator keeps tidy."""

from .storage import NoteInfo, NoteNotFoundError, VaultStorage, sanitize_text

__all__ = [
    "NoteInfo",
    "NoteNotFoundError",
    "VaultStorage",
    "sanitize_text",
]
