"""Shared CLI utilities."""

import sys
from pathlib import Path

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components(config_path: Path | None = None, use_ai: bool = True):
    """Initialize vault, undo store, settings and (optionally) the LLM provider from config.

    Args:
        config_path: Explicit config file (None = search standard locations)
        use_ai: If False, skip provider init (scan, undo and --no-ai runs)
    """
    from cli.config import load_config_model
    from llm import LLMError, provider_from_config
    from tidy.models import TidySettings
    from undo import UndoStore
    from vault import VaultStorage

    config_model = load_config_model(config_path)

    vault = VaultStorage(config_model.vault.path, trash_dir=config_model.vault.trash_dir)
    undo_cfg = config_model.undo
    undo_store = UndoStore(
        undo_cfg.history_file,
        content_ttl_days=undo_cfg.content_ttl_days,
        max_sessions=undo_cfg.max_sessions,
    )
    settings = TidySettings.from_config(config_model)

    provider = None
    if use_ai:
        try:
            provider = provider_from_config(config_model.llm)
        except LLMError as e:
            console.print(f"[red]Config error:[/] {e}")
            sys.exit(1)

    return {
        "config_model": config_model,
        "vault": vault,
        "undo_store": undo_store,
        "settings": settings,
        "provider": provider,
    }
