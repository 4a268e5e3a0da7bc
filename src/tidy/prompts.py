"""Prompt templates for AI triage of housekeeping issues.

Folder names come from settings, never hardcoded. Every template asks for a
single JSON object: {"action", "reasoning", "targetPath", "confidence"}.
"""

from pathlib import PurePosixPath

from .models import Issue

# Max content characters sent for the note under review
MAX_TIDY_CONTENT_CHARS = 1200
# Max content characters per related note
MAX_RELATED_CONTENT_CHARS = 500

TRIAGE_SYSTEM = """You are a vault housekeeping assistant for a markdown note collection.
You review one note at a time and decide what should happen to it.
Be conservative: when unsure, choose "flag" so a human can review.
Output ONLY a JSON object. No preamble, no markdown fences."""

_DIVERGED_DUPLICATE = """Two notes share the same filename but have different content (they may have diverged).

NOTE UNDER REVIEW
Path: {path}
Content (truncated):
{content}

RELATED NOTE(S):
{related}

Canonical vault folders: {folders}

DECISION:
- delete: This note is clearly redundant; the canonical copy is elsewhere
- keep: Both notes serve different purposes and both should stay
- merge: The notes should be combined (flag for manual merge)
- flag: Uncertain, needs manual review

Reply with ONLY valid JSON:
{{
  "action": "delete|keep|merge|flag",
  "reasoning": "one sentence explanation",
  "targetPath": null,
  "confidence": 0.0
}}"""

_STRUCTURE_VIOLATION = """A note is outside the canonical folder structure.

NOTE UNDER REVIEW
Path: {path}
Issue: {reason}
Content (truncated):
{content}

Canonical vault folders: {folders}

DECISION:
- move: Move the note to the correct canonical folder (provide targetPath)
- delete: The note is throwaway/test/empty
- keep: The note is correctly placed
- flag: Uncertain, needs manual review

If action is "move", targetPath must be the full path including filename:
  e.g. "{example_folder}/project-name/{filename}"

Reply with ONLY valid JSON:
{{
  "action": "move|delete|keep|flag",
  "reasoning": "one sentence explanation",
  "targetPath": "canonical/folder/filename.md or null",
  "confidence": 0.0
}}"""

_STUB = """A note may be an abandoned draft or stub.

NOTE UNDER REVIEW
Path: {path}
Issue: {reason}
Word count: approximately {word_count}
Content:
{content}

Canonical vault folders: {folders}

DECISION:
- delete: Note is empty, contains only test content, or has been abandoned with no value
- keep: Note is a complete atomic note or has genuine reference value
- move: Note has value but is misplaced (provide targetPath)
- flag: Uncertain, needs manual review

Reply with ONLY valid JSON:
{{
  "action": "delete|keep|move|flag",
  "reasoning": "one sentence explanation",
  "targetPath": "path/if/moving.md or null",
  "confidence": 0.0
}}"""

_GENERIC = """Review this note.

NOTE UNDER REVIEW
Path: {path}
Issue type: {type} ({subtype})
Issue: {reason}

Content (truncated):
{content}

Canonical vault folders: {folders}

DECISION: delete / move / keep / flag

Reply with ONLY valid JSON:
{{
  "action": "delete|move|keep|flag",
  "reasoning": "one sentence explanation",
  "targetPath": "path/if/moving.md or null",
  "confidence": 0.0
}}"""


def _folders(canonical_folders) -> str:
    return ", ".join(canonical_folders) or "(none configured)"


def format_related_snippet(path: str, content: str) -> str:
    return f"Path: {path}\nContent (truncated):\n{content[:MAX_RELATED_CONTENT_CHARS]}"


def build_diverged_duplicate_prompt(
    issue: Issue, content: str, related_snippets: list[str], canonical_folders
) -> str:
    return _DIVERGED_DUPLICATE.format(
        path=issue.path,
        content=content[:MAX_TIDY_CONTENT_CHARS],
        related="\n\n---\n\n".join(related_snippets) or "(could not be read)",
        folders=_folders(canonical_folders),
    )


def build_structure_violation_prompt(
    issue: Issue, content: str, canonical_folders, example_folder: str = "Projects"
) -> str:
    return _STRUCTURE_VIOLATION.format(
        path=issue.path,
        reason=issue.reason,
        content=content[:MAX_TIDY_CONTENT_CHARS],
        folders=_folders(canonical_folders),
        example_folder=example_folder,
        filename=PurePosixPath(issue.path).name,
    )


def build_stub_prompt(issue: Issue, content: str, word_count: int, canonical_folders) -> str:
    return _STUB.format(
        path=issue.path,
        reason=issue.reason,
        word_count=word_count,
        content=content[:MAX_TIDY_CONTENT_CHARS],
        folders=_folders(canonical_folders),
    )


def build_generic_triage_prompt(issue: Issue, content: str, canonical_folders) -> str:
    return _GENERIC.format(
        path=issue.path,
        type=issue.type,
        subtype=issue.subtype or "",
        reason=issue.reason,
        content=content[:MAX_TIDY_CONTENT_CHARS],
        folders=_folders(canonical_folders),
    )
