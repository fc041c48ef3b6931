"""
code_context: gather a filtered view of a codebase for an LLM.

Overview
--------
The command walks a project root and writes one document to stdout:

1) a `<directory_structure>` section with an indented tree of the kept entries;
2) unless `--tree` is given, a `<file_contents>` section with one
   `<file path="...">` block per content-eligible file.

Which entries are kept is decided by three glob lists, each merged from a
preset (looked up by `--preset`, else by the project directory name) and
from the command line:

- `--include`: files shown in the tree *and* with their content;
- `--include-in-tree`: files shown in the tree only (this wins over `--include`);
- `--exclude`: files and directories removed entirely (this wins over everything).

`.gitignore`d paths and the `.git` directory are never walked.

Usage
-----
Run `python -m code_context.cli --help` for full options. Common examples:
    - Rust sources with content, manifests in the tree only:
        code-context --include "src/**/*.rs" --include-in-tree "Cargo.*"

    - Tree only, using the preset named after the current directory:
        code-context --tree

    - Explicit preset and extra exclusions, diagnostics to a file:
        code-context --preset backend --exclude "**/migrations/**" --log-file ctx.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from code_context import __version__
from code_context.exceptions import ConfigurationError
from code_context.file_manipulation import scan
from code_context.globbing import compile_patterns
from code_context.logging import logger, setup_logging
from code_context.output_construction import build_document
from code_context.presets import load_presets, resolve_config, select_preset_key
from code_context.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from code_context.config import RuntimeConfig


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    p = argparse.ArgumentParser(
        prog="code-context",
        description="Gather and display codebase context for LLMs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "--repo",
        type=Path,
        default=Path.cwd(),
        help="Project root (default: current directory).",
    )
    p.add_argument(
        "--preset",
        type=str,
        default=None,
        help="Use a predefined set of patterns from the preset store (default: project directory name).",
    )
    p.add_argument(
        "--tree",
        action="store_true",
        help="Show only the directory tree structure.",
    )
    p.add_argument(
        "--include",
        nargs="+",
        action="extend",
        default=[],
        metavar="PATTERN",
        help="Patterns for files to include with content (e.g. 'src/**/*.py').",
    )
    p.add_argument(
        "--include-in-tree",
        nargs="+",
        action="extend",
        default=[],
        metavar="PATTERN",
        help="Patterns for files to show in the tree but without content.",
    )
    p.add_argument(
        "--exclude",
        nargs="+",
        action="extend",
        default=[],
        metavar="PATTERN",
        help="Patterns for files or directories to exclude.",
    )
    p.add_argument(
        "--presets-file",
        type=Path,
        default=None,
        help="Preset store (default: $CODE_CONTEXT_PRESETS or ~/.config/code_context/presets.toml).",
    )
    p.add_argument(
        "--no-gitignore",
        action="store_true",
        help="Do not prune paths ignored by .gitignore files.",
    )
    p.add_argument("--log-file", type=str, default="", help="Write diagnostics to this file.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line arguments into settings.

    Args:
        argv (Sequence[str] | None): Optional CLI args.

    Returns:
        Settings: Parsed settings.
    """
    args = build_parser().parse_args(argv)
    values = {k: v for k, v in vars(args).items() if v is not None}
    return Settings(**values)


def load_runtime_config(settings: Settings) -> RuntimeConfig:
    """Load the preset store and merge it with the command-line patterns.

    Args:
        settings (Settings): parsed settings

    Raises:
        PresetFileError: if the preset store is malformed

    Returns:
        RuntimeConfig: the effective configuration
    """
    presets = load_presets(settings.presets_file)
    preset_key = select_preset_key(settings.preset, settings.project_name)
    if settings.preset and settings.preset not in presets:
        logger.warning("Preset %r not found in %s", settings.preset, settings.presets_file)
    return resolve_config(
        include=settings.include,
        exclude=settings.exclude,
        include_in_tree=settings.include_in_tree,
        tree_only=settings.tree,
        preset_key=preset_key,
        presets=presets,
    )


def generate(settings: Settings) -> str:
    """Run configuration, scan and rendering, and return the document.

    Args:
        settings (Settings): parsed settings

    Raises:
        ConfigurationError: for a malformed preset store or an invalid pattern,
            before the filesystem is walked

    Returns:
        str: the complete document
    """
    config = load_runtime_config(settings)
    include = compile_patterns(config.include)
    exclude = compile_patterns(config.exclude)
    include_in_tree = compile_patterns(config.include_in_tree)

    if not config.has_selection_patterns:
        logger.warning("No include patterns provided (via CLI or presets); the output will be empty.")

    entries = scan(
        settings.project_root,
        include=include,
        exclude=exclude,
        include_in_tree=include_in_tree,
        respect_gitignore=not settings.no_gitignore,
    )
    if not entries:
        logger.warning("No content found for the specified criteria.")

    return build_document(entries, tree_only=config.tree_only_output)


def main(argv: Sequence[str] | None = None) -> int:
    """Gather the codebase context and write it to stdout.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.

    Returns:
        int: Process exit code.
    """
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)

    root = settings.project_root
    if not root.is_dir():
        logger.error("Project root is not a directory: %s", root)
        return 1

    try:
        document = generate(settings)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1

    sys.stdout.write(document + "\n")
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
