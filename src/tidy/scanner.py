"""Rule-based issue detection for vault housekeeping.

Detects:
  - Exact duplicates (same filename + same byte size)
  - Diverged duplicates (same filename, different sizes)
  - Structure violations (notes outside canonical folders)
  - Dead notes (0-byte, test filenames, tiny stubs)

Every threshold and folder list comes from TidySettings. The scanner reads the
note listing only; it never writes to the vault.
"""

from collections import defaultdict
from collections.abc import Iterable
from pathlib import PurePosixPath

import structlog

from shared_types import Action, CheckName, IssueType

from .models import Issue, ScanResult, TidySettings

logger = structlog.get_logger()

INTENTIONALLY_SHORT_NAMES = {"readme", "index", "__readme", "_readme", "_index"}


# --- Path helpers ---


def _path_of(note) -> str:
    return note["path"] if isinstance(note, dict) else note.path


def _size_of(note) -> int | None:
    return note.get("size") if isinstance(note, dict) else note.size


def is_system_path(note_path: str | None, system_paths: Iterable[str]) -> bool:
    """True if the note lives under a path that must never be touched."""
    if not note_path:
        return True
    lower = note_path.lower()
    return any(lower.startswith(prefix.lower()) for prefix in system_paths)


def get_top_level_folder(note_path: str) -> str | None:
    """'Projects/foo/bar.md' -> 'Projects'; root notes -> None."""
    parts = note_path.split("/")
    return parts[0] if len(parts) > 1 else None


def is_at_root(note_path: str) -> bool:
    return "/" not in note_path


def is_root_exception(note_path: str, root_exceptions: Iterable[str]) -> bool:
    name = PurePosixPath(note_path).name.lower()
    return name in {e.lower() for e in root_exceptions}


def is_in_canonical_folder(note_path: str, canonical_folders: Iterable[str]) -> bool:
    top = get_top_level_folder(note_path)
    if not top:
        return False
    return top.lower() in {f.lower() for f in canonical_folders}


def is_index_or_readme(note_path: str) -> bool:
    """README/INDEX-style notes are short on purpose."""
    return PurePosixPath(note_path).stem.lower() in INTENTIONALLY_SHORT_NAMES


def is_test_filename(note_path: str, test_patterns: Iterable[str]) -> bool:
    """Match the file stem against glob-style patterns (test-*, Untitled*)."""
    stem = PurePosixPath(note_path).stem.lower()
    for pattern in test_patterns:
        pattern = pattern.lower()
        if pattern.endswith("*"):
            if stem.startswith(pattern[:-1]):
                return True
        elif stem == pattern:
            return True
    return False


def is_misplaced(note_path: str, settings: TidySettings) -> bool:
    """At root without being a root exception, or in a non-canonical folder."""
    if is_at_root(note_path):
        return not is_root_exception(note_path, settings.root_exceptions)
    return not is_in_canonical_folder(note_path, settings.canonical_folders)


def _canonical_rank(note_path: str, settings: TidySettings) -> tuple:
    """Sort key: canonical folder first, then the active folder, then deeper paths."""
    in_canonical = is_in_canonical_folder(note_path, settings.canonical_folders)
    top = get_top_level_folder(note_path) or ""
    in_active = top.lower() == settings.active_folder.lower()
    depth = len(note_path.split("/"))
    return (not in_canonical, not in_active, -depth)


# --- Detectors ---


def detect_duplicates(notes: list, settings: TidySettings) -> list[Issue]:
    """Same filename + same size -> exact; same filename + different sizes -> diverged."""
    issues: list[Issue] = []

    by_filename: dict[str, list] = defaultdict(list)
    for note in notes:
        by_filename[PurePosixPath(_path_of(note)).name.lower()].append(note)

    for group in by_filename.values():
        if len(group) < 2:
            continue

        # 0 and None both mean "size unknown" for grouping purposes
        by_size: dict[int, list] = defaultdict(list)
        for note in group:
            size = _size_of(note)
            if size:
                by_size[size].append(note)

        exact_paths = set()
        for size, same_size in by_size.items():
            if len(same_size) < 2:
                continue
            ranked = sorted(same_size, key=lambda n: _canonical_rank(_path_of(n), settings))
            canonical = _path_of(ranked[0])
            for dupe in ranked[1:]:
                dupe_path = _path_of(dupe)
                placed = is_in_canonical_folder(dupe_path, settings.canonical_folders)
                issues.append(
                    Issue(
                        type=IssueType.DUPLICATE,
                        subtype="exact",
                        path=dupe_path,
                        confidence=0.72 if placed else 0.92,
                        reason=f"Exact duplicate of {canonical} (same filename + {size} bytes)",
                        suggested_action=Action.DELETE,
                        related_paths=[canonical],
                    )
                )
                exact_paths.add(dupe_path)

        if len(by_size) < 2:
            continue

        misplaced = [n for n in group if is_misplaced(_path_of(n), settings)]
        placed = [_path_of(n) for n in group if not is_misplaced(_path_of(n), settings)]
        if not misplaced or not placed:
            continue

        for note in misplaced:
            note_path = _path_of(note)
            if note_path in exact_paths:
                continue
            issues.append(
                Issue(
                    type=IssueType.DUPLICATE,
                    subtype="diverged",
                    path=note_path,
                    confidence=0.5,
                    reason=(
                        f"Possible duplicate of {', '.join(placed[:2])} "
                        "(same filename, different sizes)"
                    ),
                    suggested_action=Action.FLAG,
                    related_paths=placed,
                )
            )

    return issues


def detect_structure_violations(notes: list, settings: TidySettings) -> list[Issue]:
    """Notes at the vault root or under a non-canonical top-level folder."""
    issues: list[Issue] = []

    for note in notes:
        note_path = _path_of(note)
        if is_at_root(note_path):
            if is_root_exception(note_path, settings.root_exceptions):
                continue
            if is_test_filename(note_path, settings.test_patterns) or _size_of(note) == 0:
                issues.append(
                    Issue(
                        type=IssueType.STRUCTURE,
                        subtype="root-stub",
                        path=note_path,
                        confidence=0.92,
                        reason="Root-level note with test/placeholder filename or empty content",
                        suggested_action=Action.DELETE,
                    )
                )
            else:
                issues.append(
                    Issue(
                        type=IssueType.STRUCTURE,
                        subtype="root-misplaced",
                        path=note_path,
                        confidence=0.62,
                        reason="Note at vault root (should be inside a canonical folder)",
                        suggested_action=Action.MOVE,
                    )
                )
        elif not is_in_canonical_folder(note_path, settings.canonical_folders):
            top = get_top_level_folder(note_path)
            issues.append(
                Issue(
                    type=IssueType.STRUCTURE,
                    subtype="non-canonical-folder",
                    path=note_path,
                    confidence=0.82,
                    reason=f'In non-canonical top-level folder "{top}"',
                    suggested_action=Action.MOVE,
                )
            )

    return issues


def detect_dead_notes(notes: list, settings: TidySettings) -> list[Issue]:
    """Empty notes, test/placeholder filenames and tiny abandoned drafts."""
    issues: list[Issue] = []
    inbox = settings.inbox_folder.lower()

    for note in notes:
        note_path = _path_of(note)
        size = _size_of(note)

        if size == 0:
            issues.append(
                Issue(
                    type=IssueType.STUB,
                    subtype="empty",
                    path=note_path,
                    confidence=0.95,
                    reason="0-byte note (completely empty)",
                    suggested_action=Action.DELETE,
                )
            )
        elif is_test_filename(note_path, settings.test_patterns):
            issues.append(
                Issue(
                    type=IssueType.STUB,
                    subtype="test-filename",
                    path=note_path,
                    confidence=0.87,
                    reason=f'Test/placeholder filename: "{PurePosixPath(note_path).stem}"',
                    suggested_action=Action.DELETE,
                )
            )
        elif size is not None and size < settings.tiny_note_threshold:
            top = (get_top_level_folder(note_path) or "").lower()
            if top == inbox:
                continue
            if is_at_root(note_path) and is_root_exception(note_path, settings.root_exceptions):
                continue
            if is_index_or_readme(note_path):
                continue
            issues.append(
                Issue(
                    type=IssueType.STUB,
                    subtype="tiny",
                    path=note_path,
                    confidence=0.38,
                    reason=f"Very short note ({size} bytes), may be an abandoned draft",
                    suggested_action=Action.FLAG,
                )
            )

    return issues


def deduplicate_by_path(issues: list[Issue]) -> list[Issue]:
    """Keep one issue per path: the highest confidence, first seen on ties."""
    by_path: dict[str, Issue] = {}
    for issue in issues:
        current = by_path.get(issue.path)
        if current is None or issue.confidence > current.confidence:
            by_path[issue.path] = issue
    return list(by_path.values())


def resolve_checks(checks: Iterable[str] | None) -> set[CheckName]:
    """Validate check names; 'all' (or nothing) enables every detector."""
    names = list(checks or [CheckName.ALL])
    try:
        resolved = {CheckName(name) for name in names}
    except ValueError:
        valid = ", ".join(c.value for c in CheckName)
        raise ValueError(f"Unknown check(s): {', '.join(names)}. Valid: {valid}")
    if CheckName.ALL in resolved:
        return {CheckName.DUPES, CheckName.STRUCTURE, CheckName.STUBS}
    return resolved


def scan_vault(vault, settings: TidySettings, checks: Iterable[str] | None = None) -> ScanResult:
    """List the vault and run the selected detectors.

    Vault errors propagate: a scan never returns partial results.
    """
    enabled = resolve_checks(checks)
    excluded = (*settings.system_paths, *settings.protected_paths)

    all_notes = vault.list_notes()
    notes = [n for n in all_notes if not is_system_path(_path_of(n), excluded)]

    raw: list[Issue] = []
    if CheckName.DUPES in enabled:
        raw.extend(detect_duplicates(notes, settings))
    if CheckName.STRUCTURE in enabled:
        raw.extend(detect_structure_violations(notes, settings))
    if CheckName.STUBS in enabled:
        raw.extend(detect_dead_notes(notes, settings))

    issues = deduplicate_by_path(raw)
    logger.info(
        "tidy.scan_complete",
        notes=len(notes),
        excluded=len(all_notes) - len(notes),
        raw_issues=len(raw),
        issues=len(issues),
    )
    return ScanResult(notes=notes, issues=issues, raw_issue_count=len(raw))
