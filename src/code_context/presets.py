"""Preset store loading and resolution of the effective configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import tomlkit
import yaml
from pydantic import ValidationError
from tomlkit.exceptions import TOMLKitError

from code_context.config import Preset, RuntimeConfig
from code_context.exceptions import PresetFileError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from pathlib import Path


def _parse_toml(text: str) -> Any:  # noqa: ANN401
    return tomlkit.parse(text).unwrap()


def _parse_yaml(text: str) -> Any:  # noqa: ANN401
    return yaml.safe_load(text) or {}


_PARSERS: dict[str, Callable[[str], Any]] = {
    ".toml": _parse_toml,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
}


def load_presets(path: Path) -> dict[str, Preset]:
    """Load the preset store.

    The store maps preset names to tables holding optional `include`,
    `exclude` and `include_in_tree` lists, e.g. in TOML:

        [my_project]
        include = ["src/**/*.py"]
        exclude = ["**/__pycache__"]

    `.yaml`/`.yml` files are read as YAML, anything else as TOML.

    Args:
        path (Path): location of the preset store

    Raises:
        PresetFileError: if the store exists but cannot be read, parsed or validated

    Returns:
        dict[str, Preset]: presets by name (empty if the store does not exist)
    """
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PresetFileError(path=path, reason=str(e)) from e

    parser = _PARSERS.get(path.suffix.lower(), _parse_toml)
    try:
        data = parser(text)
    except (TOMLKitError, yaml.YAMLError) as e:
        raise PresetFileError(path=path, reason=f"parse error: {e}") from e

    if not isinstance(data, dict):
        raise PresetFileError(path=path, reason="expected a mapping of preset names to tables")

    presets: dict[str, Preset] = {}
    for name, table in data.items():
        try:
            presets[str(name)] = Preset.model_validate(table)
        except ValidationError as e:
            msg = f"preset {name!r}: {e.error_count()} validation error(s): {e.errors()[0]['msg']}"
            raise PresetFileError(path=path, reason=msg) from e
    return presets


def merge_patterns(
    preset_patterns: Iterable[str] | None,
    explicit_patterns: Iterable[str] | None,
) -> tuple[str, ...]:
    """Merge preset and explicit patterns, preset first, dropping duplicates.

    Args:
        preset_patterns (Iterable[str] | None): patterns contributed by the preset
        explicit_patterns (Iterable[str] | None): patterns given by the caller

    Returns:
        tuple[str, ...]: merged patterns, first occurrence kept

    Example:
        >>> merge_patterns(["src/**"], ["src/**", "*.md"])
        ('src/**', '*.md')
    """
    combined = [*(preset_patterns or ()), *(explicit_patterns or ())]
    return tuple(dict.fromkeys(combined))


def select_preset_key(explicit: str | None, project_name: str | None) -> str | None:
    """Pick the preset key: the explicit flag, else the project directory name.

    Args:
        explicit (str | None): value of `--preset`
        project_name (str | None): name of the project root directory

    Returns:
        str | None: the key to look up, if any
    """
    return explicit or project_name or None


def resolve_config(
    *,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
    include_in_tree: Iterable[str] | None = None,
    tree_only: bool = False,
    preset_key: str | None = None,
    presets: Mapping[str, Preset] | None = None,
) -> RuntimeConfig:
    """Build the effective configuration.

    A missing key or an empty store contributes nothing; it is not an error.

    Args:
        include (Iterable[str] | None): explicit content patterns
        exclude (Iterable[str] | None): explicit exclusion patterns
        include_in_tree (Iterable[str] | None): explicit tree-only patterns
        tree_only (bool): tree-only output flag
        preset_key (str | None): preset to look up
        presets (Mapping[str, Preset] | None): available presets (read-only)

    Returns:
        RuntimeConfig: the merged, deduplicated configuration
    """
    preset = Preset()
    if preset_key is not None and presets:
        preset = presets.get(preset_key, preset)

    return RuntimeConfig(
        include=merge_patterns(preset.include, include),
        exclude=merge_patterns(preset.exclude, exclude),
        include_in_tree=merge_patterns(preset.include_in_tree, include_in_tree),
        tree_only_output=tree_only,
    )
