"""Tidy executor: scan, partition by confidence, triage, apply.

Pipeline:
  1. Rule-based issues at or above the high-confidence threshold are auto-fixed
  2. The rest go to AI triage (or are flagged when no AI is configured)
  3. AI decisions below the act threshold, or with action=flag, are flagged

Every destructive action is recorded in the undo store under the run's session.
"""

import secrets
import time
from datetime import datetime

import structlog

from shared_types import Action, OperationAction
from undo.models import Operation

from .models import ActionResult, Decision, Issue, TidyReport, TidySettings
from .scanner import scan_vault
from .triage import AiTriage

logger = structlog.get_logger()

NO_AI_REASONING = "No AI configured; flagged for manual review"


def generate_session_id() -> str:
    """tidy-YYYYMMDD-<6 hex>"""
    return f"tidy-{datetime.now().strftime('%Y%m%d')}-{secrets.token_hex(3)}"


class TidyExecutor:
    """Runs one housekeeping pass over a vault."""

    def __init__(self, vault, undo_store, settings: TidySettings, provider=None):
        self.vault = vault
        self.undo_store = undo_store
        self.settings = settings
        self.provider = provider

    def run(self, checks=None, dry_run: bool = False, session_id: str | None = None) -> TidyReport:
        """Run the full pipeline.

        Scan errors and an unreadable undo history propagate before anything
        is changed; per-issue errors land in `failed`.
        """
        session_id = session_id or generate_session_id()
        if not dry_run:
            self.undo_store.load_history()
        scan = scan_vault(self.vault, self.settings, checks)

        threshold = self.settings.high_confidence_threshold
        high = [i for i in scan.issues if i.confidence >= threshold]
        low = [i for i in scan.issues if i.confidence < threshold]

        report = TidyReport(
            session_id=session_id,
            dry_run=dry_run,
            total_notes=len(scan.notes),
            total_issues=len(scan.issues),
            raw_issue_count=scan.raw_issue_count,
        )

        self._apply_rule_fixes(high, report, dry_run, session_id)
        self._apply_triaged(self._triage(low), report, dry_run, session_id)

        logger.info("tidy.run_complete", session_id=session_id, dry_run=dry_run, **report.counts())
        return report

    def _triage(self, issues: list[Issue]) -> list[tuple[Issue, Decision]]:
        if not issues:
            return []
        if self.provider is None:
            return [(issue, Decision.flag(NO_AI_REASONING)) for issue in issues]
        return AiTriage(self.vault, self.provider, self.settings).triage_issues(issues)

    def _apply_rule_fixes(self, issues, report: TidyReport, dry_run: bool, session_id: str):
        limit = self.settings.max_auto_actions
        applied = 0
        for issue in issues:
            if limit and applied >= limit:
                report.flagged.append(
                    ActionResult.for_issue(
                        issue,
                        action=Action.FLAG,
                        dry_run=dry_run,
                        flag_reason=f"Auto-action limit reached ({limit})",
                    )
                )
                continue

            try:
                result = self.execute_decision(
                    issue, issue.suggested_action, None, dry_run=dry_run, session_id=session_id
                )
            except Exception as e:
                self._record_failure(report, issue, e, dry_run, source="rule")
                continue

            if result.action == Action.FLAG:
                report.flagged.append(result)
            else:
                report.auto_fixed.append(result)
                applied += 1

    def _apply_triaged(self, triaged, report: TidyReport, dry_run: bool, session_id: str):
        for issue, decision in triaged:
            if decision.action == Action.FLAG or decision.confidence < self.settings.ai_act_threshold:
                report.flagged.append(
                    ActionResult.for_issue(
                        issue,
                        action=Action.FLAG,
                        source="ai",
                        dry_run=dry_run,
                        ai_reasoning=decision.reasoning,
                        flag_reason=decision.reasoning or "AI was not confident enough to act",
                    )
                )
                continue

            try:
                result = self.execute_decision(
                    issue,
                    decision.action,
                    decision.target_path,
                    dry_run=dry_run,
                    session_id=session_id,
                    decision=decision,
                    source="ai",
                )
            except Exception as e:
                self._record_failure(report, issue, e, dry_run, source="ai")
                continue

            if result.action == Action.FLAG:
                result.flag_reason = result.flag_reason or decision.reasoning
                report.flagged.append(result)
            else:
                report.ai_fixed.append(result)

    def _record_failure(self, report: TidyReport, issue: Issue, error: Exception, dry_run, source):
        logger.warning("tidy.action_failed", path=issue.path, source=source, error=str(error))
        report.failed.append(
            ActionResult.for_issue(issue, source=source, dry_run=dry_run, error=str(error))
        )

    def execute_decision(
        self,
        issue: Issue,
        action,
        target_path: str | None,
        *,
        dry_run: bool = False,
        session_id: str,
        decision: Decision | None = None,
        source: str = "rule",
    ) -> ActionResult:
        """Apply one action to one note. Raises on vault errors; the caller records failures."""
        result = ActionResult.for_issue(
            issue,
            action=action,
            target_path=target_path,
            confidence=decision.confidence if decision else issue.confidence,
            ai_reasoning=decision.reasoning if decision else None,
            source=source,
            dry_run=dry_run,
        )

        try:
            action = Action(action)
        except ValueError:
            return self._flag(result, f'Unknown action: "{action}"')
        result.action = action

        if action == Action.DELETE:
            if not dry_run:
                self._delete(issue, session_id)
            result.done = not dry_run

        elif action == Action.MOVE:
            if not target_path:
                return self._flag(result, "Move requires a target path")
            target_path = target_path.strip().lstrip("/")
            result.target_path = target_path
            if target_path == issue.path:
                return self._flag(result, "Move target is the note itself")
            if self.vault.read_note(target_path) is not None:
                return self._flag(result, f"Target already exists: {target_path}")
            if not dry_run:
                self._move(issue, target_path, session_id)
            result.done = not dry_run

        elif action == Action.KEEP:
            result.done = False

        elif action == Action.MERGE:
            return self._flag(result, "Merge requires manual review (automatic merge is not supported)")

        elif action == Action.FLAG:
            return self._flag(result, result.ai_reasoning or issue.reason)

        else:
            return self._flag(result, f'Unknown action: "{action}"')

        if result.done:
            logger.info(
                "tidy.action_applied",
                session_id=session_id,
                action=str(action),
                path=issue.path,
                target=result.target_path,
                source=source,
            )
        return result

    @staticmethod
    def _flag(result: ActionResult, reason: str) -> ActionResult:
        result.action = Action.FLAG
        result.flag_reason = reason
        result.done = False
        return result

    def _delete(self, issue: Issue, session_id: str):
        original_content = ""
        try:
            note = self.vault.read_note(issue.path)
            original_content = (note or {}).get("content") or ""
        except Exception as e:
            logger.debug("tidy.pre_delete_read_failed", path=issue.path, error=str(e))

        self.vault.delete_note(issue.path)
        try:
            self.undo_store.track_operation(
                session_id,
                Operation(
                    action=OperationAction.TIDY_DELETE,
                    original_path=issue.path,
                    timestamp=time.time(),
                    original_content=original_content,
                    new_content="",
                    reason=issue.reason,
                ),
            )
        except Exception:
            self.vault.write_note(issue.path, original_content)
            logger.warning("tidy.delete_rolled_back", path=issue.path)
            raise

    def _move(self, issue: Issue, target_path: str, session_id: str):
        note = self.vault.read_note(issue.path)
        if not note:
            raise FileNotFoundError(f"Note not found at {issue.path}")
        content = note.get("content") or ""

        self.vault.write_note(target_path, content)
        self.vault.delete_note(issue.path)
        try:
            self.undo_store.track_operation(
                session_id,
                Operation(
                    action=OperationAction.TIDY_MOVE,
                    original_path=issue.path,
                    target_path=target_path,
                    timestamp=time.time(),
                    original_content=content,
                    new_content=content,
                    reason=issue.reason,
                ),
            )
        except Exception:
            self.vault.write_note(issue.path, content)
            self.vault.delete_note(target_path)
            logger.warning("tidy.move_rolled_back", path=issue.path, target=target_path)
            raise
