"""Undo history models, persisted as JSON."""

from pydantic import BaseModel, Field

from shared_types import OperationAction

HISTORY_VERSION = 1


class Operation(BaseModel):
    """One reversible change to the vault."""

    action: OperationAction | str
    original_path: str
    target_path: str | None = None
    timestamp: float  # epoch seconds
    original_content: str | None = None
    new_content: str | None = None
    reason: str | None = None
    content_expired: bool = False

    def expire_content(self) -> None:
        self.original_content = None
        self.new_content = None
        self.content_expired = True


class Session(BaseModel):
    """All operations performed by one run, undone as a unit."""

    start_time: float
    operations: list[Operation] = Field(default_factory=list)
    undone: bool = False
    undone_at: float | None = None


class History(BaseModel):
    version: int = HISTORY_VERSION
    sessions: dict[str, Session] = Field(default_factory=dict)


class UndoDetail(BaseModel):
    action: OperationAction | str
    path: str
    status: str  # undone | failed
    error: str | None = None


class UndoResult(BaseModel):
    session_id: str
    undone: int = 0
    failed: int = 0
    details: list[UndoDetail] = Field(default_factory=list)
