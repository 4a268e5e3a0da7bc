"""Vault housekeeping: detect issues, triage the unclear ones, apply fixes."""

from .executor import TidyExecutor, generate_session_id
from .models import ActionResult, Decision, Issue, ScanResult, TidyReport, TidySettings
from .scanner import scan_vault
from .triage import AiTriage, parse_decision

__all__ = [
    "ActionResult",
    "AiTriage",
    "Decision",
    "Issue",
    "ScanResult",
    "TidyExecutor",
    "TidyReport",
    "TidySettings",
    "generate_session_id",
    "parse_decision",
    "scan_vault",
]
