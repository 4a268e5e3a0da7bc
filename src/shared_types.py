"""Shared enums and types for vault-curator."""

from enum import StrEnum


class IssueType(StrEnum):
    DUPLICATE = "duplicate"
    STRUCTURE = "structure"
    STUB = "stub"


class Action(StrEnum):
    DELETE = "delete"
    MOVE = "move"
    KEEP = "keep"
    MERGE = "merge"
    FLAG = "flag"


class OperationAction(StrEnum):
    TIDY_DELETE = "tidy-delete"
    TIDY_MOVE = "tidy-move"
    FILE = "file"
    QUEUE = "queue"


class CheckName(StrEnum):
    ALL = "all"
    DUPES = "dupes"
    STRUCTURE = "structure"
    STUBS = "stubs"
