"""Session-keyed undo history stored as a single JSON file.

Content is retained for a limited window (7 days by default), then stripped
while the operation metadata is kept. At most `max_sessions` sessions are
retained; the oldest by start time are evicted first.

Every write is a whole-file read-modify-write with no locking, so only one
process should use a history file at a time.
"""

import json
import os
import time
from pathlib import Path
from typing import Callable

import structlog
from pydantic import ValidationError

from shared_types import OperationAction
from vault import NoteNotFoundError

from .models import History, Operation, Session, UndoDetail, UndoResult

logger = structlog.get_logger()

SECONDS_PER_DAY = 24 * 60 * 60


class UndoError(Exception):
    """Base class for undo failures."""


class SessionNotFoundError(UndoError):
    pass


class SessionAlreadyUndoneError(UndoError):
    pass


class ContentExpiredError(UndoError):
    pass


class UndoHistoryError(UndoError):
    """History file exists but cannot be read or parsed."""


class UndoStore:
    def __init__(
        self,
        history_path: str | Path,
        content_ttl_days: float = 7,
        max_sessions: int = 100,
        clock: Callable[[], float] = time.time,
    ):
        self.history_path = Path(history_path).expanduser()
        self.content_ttl_days = content_ttl_days
        self.max_sessions = max_sessions
        self.clock = clock

    # --- History I/O ---

    def load_history(self) -> History:
        """Read the history file. A missing file is an empty history."""
        if not self.history_path.exists():
            return History()
        try:
            raw = self.history_path.read_text(encoding="utf-8")
            return History.model_validate_json(raw)
        except (OSError, ValidationError, ValueError) as e:
            raise UndoHistoryError(f"Cannot read undo history {self.history_path}: {e}") from e

    def save_history(self, history: History) -> None:
        """Apply retention and capacity, then write atomically."""
        self._expire_content(history)
        self._evict_oldest(history)

        self.history_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.history_path.with_name(self.history_path.name + ".tmp")
        tmp.write_text(json.dumps(history.model_dump(mode="json"), indent=2), encoding="utf-8")
        os.replace(tmp, self.history_path)

    def _expire_content(self, history: History) -> None:
        cutoff = self.clock() - self.content_ttl_days * SECONDS_PER_DAY
        for session in history.sessions.values():
            if session.start_time >= cutoff:
                continue
            for op in session.operations:
                if not op.content_expired:
                    op.expire_content()

    def _evict_oldest(self, history: History) -> None:
        if len(history.sessions) <= self.max_sessions:
            return
        newest = sorted(history.sessions.items(), key=lambda kv: kv[1].start_time, reverse=True)
        evicted = len(newest) - self.max_sessions
        history.sessions = dict(newest[: self.max_sessions])
        logger.debug("undo.sessions_evicted", count=evicted)

    # --- Public API ---

    def track_operation(self, session_id: str, operation: Operation) -> None:
        """Append an operation to a session, creating the session on first use."""
        history = self.load_history()
        session = history.sessions.get(session_id)
        if session is None:
            session = Session(start_time=self.clock())
            history.sessions[session_id] = session
        session.operations.append(operation)
        self.save_history(history)
        logger.debug(
            "undo.operation_tracked",
            session_id=session_id,
            action=str(operation.action),
            path=operation.original_path,
        )

    def undo_session(self, session_id: str, vault) -> UndoResult:
        """Reverse a session's operations, newest first.

        Each operation succeeds or fails on its own; the session is marked
        undone once the replay finishes.
        """
        history = self.load_history()
        session = history.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f'Session "{session_id}" not found in undo history')
        if session.undone:
            raise SessionAlreadyUndoneError(f'Session "{session_id}" was already undone')

        indexed = list(enumerate(session.operations))
        ordered = [op for _, op in sorted(indexed, key=lambda p: (p[1].timestamp, p[0]), reverse=True)]

        result = UndoResult(session_id=session_id)
        for op in ordered:
            try:
                self.undo_operation(vault, op)
            except Exception as e:
                result.failed += 1
                result.details.append(
                    UndoDetail(action=op.action, path=op.original_path, status="failed", error=str(e))
                )
                logger.warning(
                    "undo.operation_failed",
                    session_id=session_id,
                    path=op.original_path,
                    error=str(e),
                )
                continue
            result.undone += 1
            result.details.append(UndoDetail(action=op.action, path=op.original_path, status="undone"))

        session.undone = True
        session.undone_at = self.clock()
        self.save_history(history)

        logger.info(
            "undo.session_undone",
            session_id=session_id,
            undone=result.undone,
            failed=result.failed,
        )
        return result

    def undo_operation(self, vault, op: Operation) -> None:
        """Reverse a single operation against the vault."""
        if op.content_expired:
            raise ContentExpiredError(
                f"Cannot undo: note content expired (older than {self.content_ttl_days:g} days). "
                f"Original path was: {op.original_path}"
            )

        if op.action == OperationAction.TIDY_DELETE:
            vault.write_note(op.original_path, op.original_content or "")

        elif op.action in (OperationAction.TIDY_MOVE, OperationAction.FILE, OperationAction.QUEUE):
            vault.write_note(op.original_path, op.original_content or "")
            if op.target_path and op.target_path != op.original_path:
                try:
                    vault.delete_note(op.target_path)
                except NoteNotFoundError:
                    logger.debug("undo.target_already_gone", path=op.target_path)

        else:
            raise UndoError(f'Unknown operation type: "{op.action}"')

    def get_recent_sessions(self, limit: int = 10, include_undone: bool = False) -> list[dict]:
        """Most recent sessions first."""
        history = self.load_history()
        sessions = [
            (sid, s) for sid, s in history.sessions.items() if include_undone or not s.undone
        ]
        sessions.sort(key=lambda kv: kv[1].start_time, reverse=True)
        return [
            {
                "session_id": sid,
                "start_time": s.start_time,
                "operation_count": len(s.operations),
                "actions": [str(op.action) for op in s.operations],
                "undone": s.undone,
            }
            for sid, s in sessions[:limit]
        ]

    def get_session(self, session_id: str) -> Session | None:
        return self.load_history().sessions.get(session_id)

    def clear_history(self) -> None:
        """Drop every session. Destructive."""
        self.save_history(History())
        logger.info("undo.history_cleared", path=str(self.history_path))
