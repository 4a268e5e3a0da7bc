"""AI triage for low-confidence housekeeping issues.

The provider's reply is untrusted text. parse_decision() turns it into a
validated Decision or a safe flag; AiTriage never raises to its caller.
"""

import json
import math
import re

import structlog

from cli.retry import llm_retry
from llm import LLMRateLimitError
from shared_types import Action, IssueType

from .models import Decision, Issue, TidySettings
from .prompts import (
    TRIAGE_SYSTEM,
    build_diverged_duplicate_prompt,
    build_generic_triage_prompt,
    build_structure_violation_prompt,
    build_stub_prompt,
    format_related_snippet,
)

logger = structlog.get_logger()

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)
_NULL_TARGETS = {"", "null", "none"}
MAX_RELATED_NOTES = 2


def parse_decision(raw: str | None) -> Decision:
    """Parse a provider reply into a Decision. Never raises."""
    match = _JSON_BLOCK.search(raw or "")
    if not match:
        return Decision.flag("Could not parse AI response: no JSON object found")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        return Decision.flag(f"JSON parse error: {e}")

    if not isinstance(data, dict):
        return Decision.flag("AI response JSON was not an object")

    try:
        action = Action(str(data.get("action", "")).strip().lower())
    except ValueError:
        action = Action.FLAG

    reasoning = data.get("reasoning")
    reasoning = "" if reasoning is None else str(reasoning)

    target = data.get("targetPath", data.get("target_path"))
    target = str(target).strip() if target is not None else ""
    if target.lower() in _NULL_TARGETS:
        target = ""

    if action == Action.MOVE and not target:
        return Decision.flag(
            f"AI suggested move but provided no target path. Original: {reasoning}"
        )

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = 0.5
    elif not math.isfinite(confidence):
        confidence = 0.5

    return Decision(
        action=action,
        reasoning=reasoning,
        target_path=target.lstrip("/") or None,
        confidence=confidence,
    )


def count_words(text: str) -> int:
    return len(text.split())


class AiTriage:
    """Asks an LLM to classify issues the rule engine could not resolve."""

    def __init__(self, vault, provider, settings: TidySettings):
        if vault is None:
            raise ValueError("AiTriage requires a vault")
        if provider is None:
            raise ValueError("AiTriage requires an LLM provider")
        self.vault = vault
        self.provider = provider
        self.settings = settings

    def triage_issues(self, issues: list[Issue]) -> list[tuple[Issue, Decision]]:
        """Triage issues one at a time, in order."""
        results = []
        for issue in issues:
            try:
                decision = self.triage_issue(issue)
            except Exception as e:
                logger.warning("tidy.triage_failed", path=issue.path, error=str(e))
                decision = Decision.flag(f"AI triage failed: {e}")
            results.append((issue, decision))
        return results

    def triage_issue(self, issue: Issue) -> Decision:
        """Build the prompt for one issue, ask the provider, parse the reply."""
        note = self.vault.read_note(issue.path)
        if not note:
            return Decision.flag("Note no longer exists in vault")

        content = (note.get("content") or "").strip()
        prompt = self.build_prompt(issue, content)
        raw = self._generate(prompt)
        decision = parse_decision(raw)
        logger.debug(
            "tidy.triage_decision",
            path=issue.path,
            action=str(decision.action),
            confidence=decision.confidence,
        )
        return decision

    def build_prompt(self, issue: Issue, content: str) -> str:
        folders = self.settings.canonical_folders
        if issue.type == IssueType.DUPLICATE and issue.subtype == "diverged":
            return build_diverged_duplicate_prompt(
                issue, content, self._related_snippets(issue), folders
            )
        if issue.type == IssueType.STRUCTURE:
            return build_structure_violation_prompt(
                issue, content, folders, example_folder=self.settings.active_folder
            )
        if issue.type == IssueType.STUB:
            return build_stub_prompt(issue, content, count_words(content), folders)
        return build_generic_triage_prompt(issue, content, folders)

    def _related_snippets(self, issue: Issue) -> list[str]:
        snippets = []
        for rel_path in issue.related_paths[:MAX_RELATED_NOTES]:
            try:
                rel_note = self.vault.read_note(rel_path)
            except Exception as e:
                logger.debug("tidy.related_read_failed", path=rel_path, error=str(e))
                continue
            if rel_note:
                snippets.append(format_related_snippet(rel_path, rel_note.get("content") or ""))
        return snippets

    @llm_retry(exceptions=(LLMRateLimitError,))
    def _generate(self, prompt: str) -> str:
        return self.provider.generate(
            messages=[{"role": "user", "content": prompt}],
            system=TRIAGE_SYSTEM,
            max_tokens=self.settings.triage_max_tokens,
        )
