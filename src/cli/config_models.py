"""Pydantic configuration models for the vault curator."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LLM_PROVIDERS = {"none", "auto", "claude", "openai", "gemini"}

PRESET_FOLDERS: dict[str, dict[str, str]] = {
    "para": {
        "inbox": "inbox",
        "projects": "Projects",
        "areas": "Areas",
        "resources": "Resources",
        "archive": "Archives",
    },
    "zettelkasten": {
        "inbox": "inbox",
        "slipbox": "Slipbox",
        "references": "References",
        "projects": "Projects",
        "archive": "Archives",
    },
    # Johnny-Decimal users define their numeric categories as custom folders
    "johnny-decimal": {"inbox": "inbox"},
    "flat": {"inbox": "inbox"},
    "custom": {},
}


class VaultConfig(BaseModel):
    """Location of the markdown vault."""

    path: Path = Path("~/vault")
    trash_dir: str = ".trash"

    @model_validator(mode="after")
    def expand_paths(self):
        self.path = self.path.expanduser()
        return self


class StructureConfig(BaseModel):
    """Canonical folder layout."""

    preset: str = "para"
    folders: dict[str, str] = Field(default_factory=dict)  # role -> folder, overrides preset
    custom_folders: list[str] = Field(default_factory=list)
    tasks_folder: Optional[str] = "Tasks"
    root_exceptions: list[str] = Field(default_factory=lambda: ["Index.md", "Welcome.md", "README.md"])
    system_paths: list[str] = Field(default_factory=lambda: ["logs/", "ix:"])

    @field_validator("preset")
    @classmethod
    def validate_preset(cls, v: str) -> str:
        if v not in PRESET_FOLDERS:
            raise ValueError(f"Invalid structure preset: {v}. Must be one of {sorted(PRESET_FOLDERS)}")
        return v

    def resolved_folders(self) -> dict[str, str]:
        """Preset folders with user overrides applied."""
        return {**PRESET_FOLDERS[self.preset], **self.folders}

    def canonical_folders(self) -> list[str]:
        """Every top-level folder a note may live in, de-duplicated in order."""
        names = [f for f in self.resolved_folders().values() if f]
        if self.tasks_folder:
            names.append(self.tasks_folder)
        names.extend(self.custom_folders)
        return list(dict.fromkeys(names))


class TidyConfig(BaseModel):
    """Housekeeping thresholds and patterns."""

    test_patterns: list[str] = Field(default_factory=lambda: ["test-*", "Test*", "Untitled*"])
    tiny_note_threshold: int = Field(default=300, ge=0)
    high_confidence_threshold: float = 0.8
    ai_act_threshold: float = 0.6
    max_auto_actions: int = Field(default=50, ge=0)  # 0 = unlimited
    protected_paths: list[str] = Field(default_factory=list)

    @field_validator("high_confidence_threshold", "ai_act_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Threshold must be 0-1, got {v}")
        return v


class UndoConfig(BaseModel):
    """Undo history retention."""

    history_file: Path = Path("~/.vault-curator/filing-history.json")
    content_ttl_days: float = Field(default=7, gt=0)
    max_sessions: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def expand_paths(self):
        self.history_file = self.history_file.expanduser()
        return self


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "none"
    model: Optional[str] = None  # None = cheap model of the provider
    api_key: Optional[str] = None
    max_tokens: int = Field(default=400, ge=1)

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    json_logs: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class CuratorConfig(BaseModel):
    """Main configuration model."""

    vault: VaultConfig = Field(default_factory=VaultConfig)
    structure: StructureConfig = Field(default_factory=StructureConfig)
    tidy: TidyConfig = Field(default_factory=TidyConfig)
    undo: UndoConfig = Field(default_factory=UndoConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in API keys."""
        if self.llm.api_key:
            key = self.llm.api_key
            if key.startswith("${") and key.endswith("}"):
                env_var = key[2:-1]
                self.llm.api_key = os.getenv(env_var, "")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "CuratorConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
