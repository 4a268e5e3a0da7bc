"""Session-based undo for destructive vault operations."""

from .models import History, Operation, Session, UndoDetail, UndoResult
from .store import (
    ContentExpiredError,
    SessionAlreadyUndoneError,
    SessionNotFoundError,
    UndoError,
    UndoHistoryError,
    UndoStore,
)

__all__ = [
    "ContentExpiredError",
    "History",
    "Operation",
    "Session",
    "SessionAlreadyUndoneError",
    "SessionNotFoundError",
    "UndoDetail",
    "UndoError",
    "UndoHistoryError",
    "UndoResult",
    "UndoStore",
]
