"""Data models for vault housekeeping."""

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

from shared_types import Action, IssueType

if TYPE_CHECKING:
    from cli.config_models import CuratorConfig

REASONING_MAX_CHARS = 300


def clamp_confidence(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass
class Issue:
    """A detected problem with one note."""

    type: IssueType
    subtype: str
    path: str
    confidence: float
    reason: str
    suggested_action: Action
    related_paths: list[str] = field(default_factory=list)


@dataclass
class Decision:
    """Resolution for an issue, produced by AI triage or synthesized by the executor."""

    action: Action
    reasoning: str = ""
    target_path: str | None = None
    confidence: float = 0.0

    def __post_init__(self):
        self.confidence = clamp_confidence(self.confidence)
        self.reasoning = (self.reasoning or "")[:REASONING_MAX_CHARS]
        if self.action != Action.MOVE:
            self.target_path = None
        elif not self.target_path:
            self.action = Action.FLAG
            self.reasoning = (
                f"Move suggested without a target path. {self.reasoning}".strip()
            )[:REASONING_MAX_CHARS]

    @classmethod
    def flag(cls, reasoning: str, confidence: float = 0.0) -> "Decision":
        return cls(action=Action.FLAG, reasoning=reasoning, confidence=confidence)


@dataclass(frozen=True)
class TidySettings:
    """Everything the scanner, triage and executor read from configuration.

    Passed explicitly to each component so two pipelines with different
    settings can run side by side.
    """

    canonical_folders: tuple[str, ...] = ()
    active_folder: str = "Projects"
    system_paths: tuple[str, ...] = ()
    protected_paths: tuple[str, ...] = ()
    root_exceptions: tuple[str, ...] = ("Index.md", "Welcome.md", "README.md")
    test_patterns: tuple[str, ...] = ("test-*", "Test*", "Untitled*")
    tiny_note_threshold: int = 300
    inbox_folder: str = "inbox"
    high_confidence_threshold: float = 0.8
    ai_act_threshold: float = 0.6
    max_auto_actions: int = 0
    triage_max_tokens: int = 400

    @classmethod
    def from_config(cls, config: "CuratorConfig") -> "TidySettings":
        structure = config.structure
        folders = structure.resolved_folders()
        return cls(
            canonical_folders=tuple(structure.canonical_folders()),
            active_folder=folders.get("projects", "Projects"),
            system_paths=tuple(structure.system_paths),
            protected_paths=tuple(config.tidy.protected_paths),
            root_exceptions=tuple(structure.root_exceptions),
            test_patterns=tuple(config.tidy.test_patterns),
            tiny_note_threshold=config.tidy.tiny_note_threshold,
            inbox_folder=folders.get("inbox", "inbox"),
            high_confidence_threshold=config.tidy.high_confidence_threshold,
            ai_act_threshold=config.tidy.ai_act_threshold,
            max_auto_actions=config.tidy.max_auto_actions,
            triage_max_tokens=config.llm.max_tokens,
        )


@dataclass
class ScanResult:
    notes: list
    issues: list[Issue]
    raw_issue_count: int = 0


@dataclass
class ActionResult:
    """Outcome of handling one issue during a run."""

    type: IssueType
    subtype: str
    path: str
    action: Action | str
    reason: str
    confidence: float
    source: str = "rule"  # rule | ai
    target_path: str | None = None
    dry_run: bool = False
    done: bool = False
    ai_reasoning: str | None = None
    flag_reason: str | None = None
    error: str | None = None

    @classmethod
    def for_issue(cls, issue: Issue, **kwargs) -> "ActionResult":
        kwargs.setdefault("action", issue.suggested_action)
        kwargs.setdefault("confidence", issue.confidence)
        return cls(
            type=issue.type,
            subtype=issue.subtype,
            path=issue.path,
            reason=issue.reason,
            **kwargs,
        )


@dataclass
class TidyReport:
    """Caller-facing summary of one housekeeping run."""

    session_id: str
    dry_run: bool
    total_notes: int = 0
    total_issues: int = 0
    raw_issue_count: int = 0
    auto_fixed: list[ActionResult] = field(default_factory=list)
    ai_fixed: list[ActionResult] = field(default_factory=list)
    flagged: list[ActionResult] = field(default_factory=list)
    failed: list[ActionResult] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "auto_fixed": len(self.auto_fixed),
            "ai_fixed": len(self.ai_fixed),
            "flagged": len(self.flagged),
            "failed": len(self.failed),
        }

    def to_dict(self) -> dict:
        return asdict(self)
