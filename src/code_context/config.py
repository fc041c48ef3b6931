from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

VCS_DIR = ".git"
"""Version-control metadata directory, always pruned from the walk."""

GITIGNORE_FILE = ".gitignore"

GIT_INFO_EXCLUDE = Path(VCS_DIR) / "info" / "exclude"

TREE_INDENT = "    "

DIR_MARKER = "/"

PRESETS_ENV_VAR = "CODE_CONTEXT_PRESETS"

DEFAULT_PRESETS_PATH = Path("~/.config/code_context/presets.toml")


class Preset(BaseModel):
    """A named bundle of pattern lists read from the preset store.

    Every list is optional; unknown keys are ignored so that a preset file can
    carry notes or keys meant for other tools.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    include: list[str] | None = Field(default=None, description="Content patterns.")
    exclude: list[str] | None = Field(default=None, description="Exclusion patterns.")
    include_in_tree: list[str] | None = Field(default=None, description="Tree-only patterns.")


class RuntimeConfig(BaseModel):
    """Effective configuration after merging a preset with explicit patterns.

    Attributes:
        include: patterns selecting files whose content is rendered.
        exclude: patterns removing files and directories entirely.
        include_in_tree: patterns selecting files shown in the tree without content.
        tree_only_output: when True the content section is never rendered.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    include_in_tree: tuple[str, ...] = ()
    tree_only_output: bool = False

    @property
    def has_selection_patterns(self) -> bool:
        """Whether any include or tree-only pattern is configured."""
        return bool(self.include or self.include_in_tree)


class FileEntry(BaseModel):
    """One classified filesystem object under the project root.

    Attributes:
        path: Absolute path on disk.
        rel: Path relative to the project root, with POSIX separators.
        depth: Number of path segments in `rel` (drives tree indentation).
        is_dir: Whether the entry is a directory.
        include_content: Whether the file content is rendered.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute path")
    rel: str = Field(..., min_length=1, description="Path relative to the project root")
    depth: int = Field(..., ge=1, description="Number of segments in rel")
    is_dir: bool = Field(default=False, description="Directory flag")
    include_content: bool = Field(default=False, description="Content-eligible flag")

    @model_validator(mode="after")
    def _directories_have_no_content(self) -> FileEntry:
        if self.is_dir and self.include_content:
            msg = f"Directory entry cannot be content-eligible: {self.rel}"
            raise ValueError(msg)
        return self

    @property
    def name(self) -> str:
        """Base name displayed in the tree."""
        return self.path.name

    @property
    def sort_key(self) -> tuple[str, ...]:
        """Ordering key: absolute path compared segment by segment."""
        return self.path.parts
