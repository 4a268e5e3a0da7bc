"""Tests for the tidy executor pipeline."""

import dataclasses
import json
import re
from unittest.mock import MagicMock

import pytest

from shared_types import Action, IssueType, OperationAction
from tidy.executor import TidyExecutor, generate_session_id
from tidy.models import Issue
from undo import UndoHistoryError
from vault import VaultStorage


def _reply(action, confidence=0.9, target=None, reasoning="because"):
    return json.dumps(
        {"action": action, "reasoning": reasoning, "targetPath": target, "confidence": confidence}
    )


def _by_path(results):
    return {r.path: r for r in results}


@pytest.fixture
def executor(vault, undo_store, settings):
    return TidyExecutor(vault, undo_store, settings)


@pytest.fixture
def ai_executor(vault, undo_store, settings, provider):
    return TidyExecutor(vault, undo_store, settings, provider=provider)


class TestSessionId:
    def test_format(self):
        assert re.match(r"^tidy-\d{8}-[0-9a-f]{6}$", generate_session_id())

    def test_generated_when_missing(self, executor):
        report = executor.run()
        assert report.session_id.startswith("tidy-")

    def test_explicit_session_id_kept(self, executor):
        assert executor.run(session_id="tidy-manual").session_id == "tidy-manual"


class TestRuleBasedFixes:
    def test_high_confidence_delete_applied(self, make_notes, executor, undo_store, vault):
        make_notes({"Projects/empty.md": "", "Projects/real.md": "r" * 400})

        report = executor.run(session_id="s1")

        assert report.total_notes == 2
        assert report.total_issues == 1
        [fixed] = report.auto_fixed
        assert fixed.path == "Projects/empty.md"
        assert fixed.action == Action.DELETE
        assert fixed.source == "rule"
        assert fixed.done is True
        assert vault.read_note("Projects/empty.md") is None

        [op] = undo_store.get_session("s1").operations
        assert op.action == OperationAction.TIDY_DELETE
        assert op.original_path == "Projects/empty.md"
        assert op.original_content == ""

    def test_delete_captures_content(self, make_notes, executor, undo_store):
        make_notes({"Projects/test-spike.md": "spike notes " * 40})

        executor.run(session_id="s1")

        [op] = undo_store.get_session("s1").operations
        assert op.original_content == "spike notes " * 40
        assert op.reason.startswith("Test/placeholder filename")

    def test_rule_move_without_target_is_flagged(self, make_notes, executor, vault):
        make_notes({"Random/x.md": "x" * 400})

        report = executor.run()

        assert report.auto_fixed == []
        [flagged] = report.flagged
        assert flagged.action == Action.FLAG
        assert flagged.source == "rule"
        assert "target path" in flagged.flag_reason
        assert vault.read_note("Random/x.md") is not None

    def test_auto_action_limit(self, make_notes, vault, undo_store, settings):
        make_notes({"Projects/a.md": "", "Projects/b.md": "", "Projects/c.md": ""})
        executor = TidyExecutor(vault, undo_store, dataclasses.replace(settings, max_auto_actions=2))

        report = executor.run()

        assert len(report.auto_fixed) == 2
        [flagged] = report.flagged
        assert "limit" in flagged.flag_reason
        assert vault.read_note(flagged.path) is not None

    def test_failure_is_isolated(self, tmp_path, undo_store, settings):
        class FlakyVault(VaultStorage):
            def delete_note(self, note_path):
                if note_path == "Projects/bad.md":
                    raise OSError("disk on fire")
                super().delete_note(note_path)

        vault = FlakyVault(tmp_path / "flaky")
        vault.write_note("Projects/bad.md", "")
        vault.write_note("Projects/good.md", "")

        report = TidyExecutor(vault, undo_store, settings).run(session_id="s1")

        [failed] = report.failed
        assert failed.path == "Projects/bad.md"
        assert "disk on fire" in failed.error
        assert [r.path for r in report.auto_fixed] == ["Projects/good.md"]
        ops = undo_store.get_session("s1").operations
        assert [op.original_path for op in ops] == ["Projects/good.md"]

    def test_corrupt_history_aborts_before_changes(self, make_notes, executor, undo_store, vault):
        make_notes({"Projects/test-a.md": "a" * 400, "Projects/test-b.md": "b" * 400})
        undo_store.history_path.parent.mkdir(parents=True, exist_ok=True)
        undo_store.history_path.write_text("{not json")

        with pytest.raises(UndoHistoryError):
            executor.run(session_id="s1")

        assert vault.read_note("Projects/test-a.md") is not None
        assert vault.read_note("Projects/test-b.md") is not None

    def test_corrupt_history_allows_dry_run(self, make_notes, executor, undo_store, vault):
        make_notes({"Projects/test-a.md": "a" * 400})
        undo_store.history_path.parent.mkdir(parents=True, exist_ok=True)
        undo_store.history_path.write_text("{not json")

        report = executor.run(dry_run=True)

        assert [r.path for r in report.auto_fixed] == ["Projects/test-a.md"]
        assert vault.read_note("Projects/test-a.md") is not None

    def test_untracked_delete_is_rolled_back(self, make_notes, vault, settings):
        make_notes({"Projects/test-a.md": "spike " * 60})
        store = MagicMock()
        store.track_operation.side_effect = OSError("history disk full")

        report = TidyExecutor(vault, store, settings).run(session_id="s1")

        [failed] = report.failed
        assert "history disk full" in failed.error
        assert report.auto_fixed == []
        assert vault.read_note("Projects/test-a.md")["content"] == "spike " * 60

    def test_untracked_move_is_rolled_back(self, make_notes, vault, settings):
        make_notes({"Areas/x.md": "x" * 400})
        store = MagicMock()
        store.track_operation.side_effect = OSError("history disk full")
        executor = TidyExecutor(vault, store, settings)
        issue = Issue(
            type=IssueType.STRUCTURE,
            subtype="non-canonical-folder",
            path="Areas/x.md",
            reason="misplaced",
            suggested_action=Action.MOVE,
            confidence=0.82,
        )

        with pytest.raises(OSError):
            executor.execute_decision(issue, Action.MOVE, "Projects/x.md", session_id="s1")

        assert vault.read_note("Areas/x.md")["content"] == "x" * 400
        assert vault.read_note("Projects/x.md") is None


class TestWithoutAI:
    def test_low_confidence_flagged(self, make_notes, executor, vault):
        make_notes({"Areas/idea.md": "tiny", "scratch.md": "s" * 500})

        report = executor.run()

        flagged = _by_path(report.flagged)
        assert set(flagged) == {"Areas/idea.md", "scratch.md"}
        assert all(r.source == "ai" for r in flagged.values())
        assert all("No AI configured" in r.flag_reason for r in flagged.values())
        assert report.ai_fixed == []
        assert vault.read_note("scratch.md") is not None


class TestWithAI:
    def test_ai_delete_applied(self, make_notes, ai_executor, provider, vault, undo_store):
        make_notes({"Areas/idea.md": "tiny"})
        provider.generate.return_value = _reply("delete", 0.85, reasoning="abandoned")

        report = ai_executor.run(session_id="s1")

        [fixed] = report.ai_fixed
        assert fixed.action == Action.DELETE
        assert fixed.source == "ai"
        assert fixed.confidence == 0.85
        assert fixed.ai_reasoning == "abandoned"
        assert vault.read_note("Areas/idea.md") is None
        assert undo_store.get_session("s1").operations[0].action == OperationAction.TIDY_DELETE

    def test_ai_move_applied(self, make_notes, ai_executor, provider, vault, undo_store):
        make_notes({"scratch.md": "s" * 500})
        provider.generate.return_value = _reply("move", 0.8, target="Projects/site/scratch.md")

        report = ai_executor.run(session_id="s1")

        [fixed] = report.ai_fixed
        assert fixed.action == Action.MOVE
        assert fixed.target_path == "Projects/site/scratch.md"
        assert vault.read_note("scratch.md") is None
        assert vault.read_note("Projects/site/scratch.md")["content"] == "s" * 500

        [op] = undo_store.get_session("s1").operations
        assert op.action == OperationAction.TIDY_MOVE
        assert op.original_path == "scratch.md"
        assert op.target_path == "Projects/site/scratch.md"
        assert op.original_content == "s" * 500

    def test_keep_has_no_side_effect(self, make_notes, ai_executor, provider, vault, undo_store):
        make_notes({"Areas/idea.md": "tiny"})
        provider.generate.return_value = _reply("keep", 0.9)

        report = ai_executor.run(session_id="s1")

        [kept] = report.ai_fixed
        assert kept.action == Action.KEEP
        assert kept.done is False
        assert vault.read_note("Areas/idea.md") is not None
        assert undo_store.get_session("s1") is None

    @pytest.mark.parametrize("reply", [_reply("delete", 0.59), _reply("flag", 0.99), "garbage"])
    def test_unsure_ai_is_flagged(self, make_notes, ai_executor, provider, vault, reply):
        make_notes({"Areas/idea.md": "tiny"})
        provider.generate.return_value = reply

        report = ai_executor.run()

        assert report.ai_fixed == []
        assert [r.path for r in report.flagged] == ["Areas/idea.md"]
        assert vault.read_note("Areas/idea.md") is not None

    def test_merge_is_flagged(self, make_notes, ai_executor, provider, vault):
        make_notes({"Areas/idea.md": "tiny"})
        provider.generate.return_value = _reply("merge", 0.95)

        report = ai_executor.run()

        [flagged] = report.flagged
        assert flagged.action == Action.FLAG
        assert "Merge" in flagged.flag_reason
        assert vault.read_note("Areas/idea.md") is not None

    def test_move_never_overwrites(self, make_notes, ai_executor, provider, vault):
        make_notes({"scratch.md": "s" * 500, "Projects/site/scratch.md": "other"})
        provider.generate.return_value = _reply("move", 0.9, target="Projects/site/scratch.md")

        report = ai_executor.run()

        flagged = _by_path(report.flagged)
        assert "already exists" in flagged["scratch.md"].flag_reason
        assert "itself" in flagged["Projects/site/scratch.md"].flag_reason
        assert vault.read_note("scratch.md")["content"] == "s" * 500
        assert vault.read_note("Projects/site/scratch.md")["content"] == "other"

    def test_high_confidence_issues_skip_ai(self, make_notes, ai_executor, provider):
        make_notes({"Projects/empty.md": ""})

        report = ai_executor.run()

        provider.generate.assert_not_called()
        assert len(report.auto_fixed) == 1


class TestDryRun:
    def test_no_writes_deletes_or_undo_entries(self, make_notes, vault, undo_store, settings, provider):
        make_notes(
            {
                "Projects/empty.md": "",
                "scratch.md": "s" * 500,
                "Areas/idea.md": "tiny",
                "Random/x.md": "x" * 400,
            }
        )

        def reply(messages, system=None, max_tokens=2000):
            if "scratch.md" in messages[0]["content"]:
                return _reply("move", 0.9, target="Projects/scratch.md")
            return _reply("delete", 0.9)

        provider.generate.side_effect = reply
        spy_vault = MagicMock(wraps=vault)
        spy_store = MagicMock(wraps=undo_store)

        report = TidyExecutor(spy_vault, spy_store, settings, provider=provider).run(dry_run=True)

        spy_vault.write_note.assert_not_called()
        spy_vault.delete_note.assert_not_called()
        spy_store.track_operation.assert_not_called()

        assert report.dry_run is True
        assert {r.path for r in report.auto_fixed} == {"Projects/empty.md"}
        assert {r.path for r in report.ai_fixed} == {"scratch.md", "Areas/idea.md"}
        assert all(r.dry_run and not r.done for r in report.auto_fixed + report.ai_fixed)
        assert [r.path for r in report.flagged] == ["Random/x.md"]
        assert vault.read_note("Projects/empty.md") is not None
        assert not undo_store.history_path.exists()


class TestExecuteDecision:
    def _issue(self, path="Areas/x.md"):
        return Issue(
            type=IssueType.STUB,
            subtype="tiny",
            path=path,
            confidence=0.38,
            reason="short",
            suggested_action=Action.FLAG,
        )

    def test_unknown_action_flagged(self, executor):
        result = executor.execute_decision(self._issue(), "archive", None, session_id="s1")
        assert result.action == Action.FLAG
        assert 'Unknown action: "archive"' in result.flag_reason

    def test_flag_action_never_applied(self, make_notes, executor, vault):
        make_notes({"Areas/x.md": "x"})
        result = executor.execute_decision(self._issue(), Action.FLAG, None, session_id="s1")
        assert result.action == Action.FLAG
        assert result.done is False
        assert vault.read_note("Areas/x.md") is not None

    def test_move_of_missing_note_raises(self, executor):
        with pytest.raises(FileNotFoundError):
            executor.execute_decision(self._issue(), Action.MOVE, "Areas/y.md", session_id="s1")


class TestRoundTrip:
    def test_run_then_undo_restores_vault(self, make_notes, ai_executor, provider, vault, undo_store):
        make_notes({"Projects/empty.md": "", "scratch.md": "s" * 500})
        provider.generate.return_value = _reply("move", 0.9, target="Projects/site/scratch.md")

        report = ai_executor.run()
        assert vault.read_note("scratch.md") is None

        result = undo_store.undo_session(report.session_id, vault)

        assert result.undone == 2
        assert result.failed == 0
        assert vault.read_note("scratch.md")["content"] == "s" * 500
        assert vault.read_note("Projects/site/scratch.md") is None
        assert vault.read_note("Projects/empty.md")["content"] == ""
