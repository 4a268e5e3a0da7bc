"""Markdown vault CRUD operations with soft delete."""

import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import frontmatter
import structlog

logger = structlog.get_logger()

# Control characters except tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

NOTE_SUFFIX = ".md"


class NoteNotFoundError(FileNotFoundError):
    """Raised when a note path does not exist in the vault."""


@dataclass
class NoteInfo:
    """Listing entry for one note."""

    path: str
    size: int | None
    mtime: float | None = None


def sanitize_text(text: str) -> str:
    """Strip control characters before writing, keeping normal whitespace."""
    if not isinstance(text, str):
        text = str(text or "")
    return _CONTROL_CHARS.sub("", text)


class VaultStorage:
    """Directory of markdown notes addressed by vault-relative POSIX paths."""

    def __init__(self, vault_dir: str | Path, trash_dir: str = ".trash"):
        self.vault_dir = Path(vault_dir).expanduser().resolve()
        self.vault_dir.mkdir(parents=True, exist_ok=True)
        self.trash_dir = (self.vault_dir / trash_dir).resolve()

    def _resolve(self, note_path: str) -> Path:
        """Map a note path to a file, refusing anything outside the vault."""
        if not note_path or not note_path.strip():
            raise ValueError("Note path must not be empty")
        resolved = (self.vault_dir / note_path.lstrip("/")).resolve()
        if not resolved.is_relative_to(self.vault_dir) or resolved == self.vault_dir:
            raise ValueError(f"Path escapes vault directory: {note_path}")
        if resolved.is_relative_to(self.trash_dir):
            raise ValueError(f"Path points into the trash: {note_path}")
        return resolved

    def list_notes(self) -> list[NoteInfo]:
        """List every markdown note, skipping dot-directories and the trash."""
        notes = []
        for root, dirs, files in os.walk(self.vault_dir):
            dirs[:] = sorted(
                d for d in dirs if not d.startswith(".") and Path(root) / d != self.trash_dir
            )
            for name in sorted(files):
                if not name.endswith(NOTE_SUFFIX):
                    continue
                full = Path(root) / name
                try:
                    stat = full.stat()
                except OSError as e:
                    logger.warning("vault.stat_failed", path=str(full), error=str(e))
                    continue
                rel = full.relative_to(self.vault_dir).as_posix()
                notes.append(NoteInfo(path=rel, size=stat.st_size, mtime=stat.st_mtime))
        return notes

    def read_note(self, note_path: str) -> dict | None:
        """Read a note. Returns None if it does not exist."""
        filepath = self._resolve(note_path)
        if not filepath.is_file():
            return None
        stat = filepath.stat()
        return {
            "path": note_path,
            "content": filepath.read_text(encoding="utf-8", errors="replace"),
            "size": stat.st_size,
            "mtime": stat.st_mtime,
        }

    def write_note(self, note_path: str, content: str) -> None:
        """Create or overwrite a note, creating parent folders."""
        filepath = self._resolve(note_path)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(sanitize_text(content), encoding="utf-8")
        logger.debug("vault.note_written", path=note_path)

    def delete_note(self, note_path: str) -> None:
        """Soft-delete: move the note into the trash as a frontmatter tombstone."""
        filepath = self._resolve(note_path)
        if not filepath.is_file():
            raise NoteNotFoundError(f"Note not found: {note_path}")

        content = filepath.read_text(encoding="utf-8", errors="replace")
        post = frontmatter.Post(content)
        post["original_path"] = note_path
        post["deleted_at"] = datetime.now().isoformat()

        base = self.trash_dir / note_path
        tombstone = base
        counter = 1
        while tombstone.exists():
            tombstone = base.with_name(f"{base.stem}_{counter}{base.suffix}")
            counter += 1
        tombstone.parent.mkdir(parents=True, exist_ok=True)
        tombstone.write_text(frontmatter.dumps(post), encoding="utf-8")

        filepath.unlink()
        logger.debug("vault.note_deleted", path=note_path, tombstone=str(tombstone))

    def list_trash(self) -> list[dict]:
        """List tombstones left behind by soft deletes."""
        if not self.trash_dir.exists():
            return []
        entries = []
        for f in sorted(self.trash_dir.rglob(f"*{NOTE_SUFFIX}")):
            try:
                post = frontmatter.load(f)
            except (OSError, ValueError):
                continue
            entries.append(
                {
                    "tombstone": f.relative_to(self.trash_dir).as_posix(),
                    "original_path": post.get("original_path"),
                    "deleted_at": post.get("deleted_at"),
                    "content": post.content,
                }
            )
        return entries
