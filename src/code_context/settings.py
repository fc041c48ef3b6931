from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from code_context.config import DEFAULT_PRESETS_PATH, PRESETS_ENV_VAR

ENV_FILE = find_dotenv(usecwd=True)


def default_presets_file() -> Path:
    """Locate the preset store.

    Lookup order: the `CODE_CONTEXT_PRESETS` environment variable, the same
    key in the nearest `.env` file, then `~/.config/code_context/presets.toml`.

    Returns:
        Path: the preset store path (it may not exist)
    """
    value = os.environ.get(PRESETS_ENV_VAR)
    if not value and ENV_FILE:
        value = dotenv_values(ENV_FILE).get(PRESETS_ENV_VAR)
    return Path(value or DEFAULT_PRESETS_PATH).expanduser()


class Settings(BaseModel):
    """Configuration settings for the code_context command."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    repo: Path = Field(default_factory=Path.cwd, description="Project root.")
    preset: str | None = Field(default=None, description="Preset key (defaults to the root name).")
    tree: bool = Field(default=False, description="Show only the directory tree.")

    include: list[str] = Field(default_factory=list, description="Content patterns.")
    include_in_tree: list[str] = Field(default_factory=list, description="Tree-only patterns.")
    exclude: list[str] = Field(default_factory=list, description="Exclusion patterns.")

    presets_file: Path = Field(default_factory=default_presets_file, description="Preset store.")
    no_gitignore: bool = Field(default=False, description="Do not prune .gitignore'd paths.")
    log_file: str = Field(default="", description="Log file path.")

    @property
    def project_root(self) -> Path:
        """Absolute project root."""
        return self.repo.expanduser().resolve()

    @property
    def project_name(self) -> str:
        """Name of the project root directory, used as fallback preset key."""
        return self.project_root.name
