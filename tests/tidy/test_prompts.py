"""Tests for triage prompt construction."""

from shared_types import Action, IssueType
from tidy.models import Issue
from tidy.prompts import (
    MAX_RELATED_CONTENT_CHARS,
    build_diverged_duplicate_prompt,
    build_generic_triage_prompt,
    build_structure_violation_prompt,
    build_stub_prompt,
    format_related_snippet,
)

FOLDERS = ("inbox", "Slipbox", "References")


def _issue(path="Random/x.md", type_=IssueType.STRUCTURE, subtype="non-canonical-folder"):
    return Issue(
        type=type_,
        subtype=subtype,
        path=path,
        confidence=0.62,
        reason='In non-canonical top-level folder "Random"',
        suggested_action=Action.MOVE,
    )


def test_folders_come_from_settings():
    prompt = build_structure_violation_prompt(_issue(), "body", FOLDERS, example_folder="Slipbox")
    assert "inbox, Slipbox, References" in prompt
    assert "Slipbox/project-name/x.md" in prompt
    assert "Projects" not in prompt


def test_no_folders_configured():
    prompt = build_generic_triage_prompt(_issue(), "body", ())
    assert "(none configured)" in prompt


def test_related_snippet_truncated():
    snippet = format_related_snippet("Projects/x.md", "z" * 2000)
    assert snippet.startswith("Path: Projects/x.md")
    assert snippet.count("z") == MAX_RELATED_CONTENT_CHARS


def test_diverged_prompt_without_readable_related():
    prompt = build_diverged_duplicate_prompt(
        _issue(type_=IssueType.DUPLICATE, subtype="diverged"), "body", [], FOLDERS
    )
    assert "(could not be read)" in prompt


def test_every_prompt_asks_for_json():
    issue = _issue()
    prompts = [
        build_diverged_duplicate_prompt(issue, "body", ["Path: a.md"], FOLDERS),
        build_structure_violation_prompt(issue, "body", FOLDERS),
        build_stub_prompt(issue, "body", 1, FOLDERS),
        build_generic_triage_prompt(issue, "body", FOLDERS),
    ]
    for prompt in prompts:
        assert "Reply with ONLY valid JSON" in prompt
        assert '"targetPath"' in prompt
        assert '"confidence"' in prompt


def test_generic_prompt_names_issue_type():
    prompt = build_generic_triage_prompt(_issue(), "body", FOLDERS)
    assert "structure (non-canonical-folder)" in prompt
