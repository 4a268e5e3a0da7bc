"""CLI command modules."""

from .config import config_cmd
from .tidy import scan, tidy
from .trash import trash
from .undo import undo

__all__ = [
    "config_cmd",
    "scan",
    "tidy",
    "trash",
    "undo",
]
