from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from code_context.config import VCS_DIR, FileEntry
from code_context.exceptions import TraversalError
from code_context.gitignore import IgnoreRules
from code_context.logging import logger

if TYPE_CHECKING:
    from code_context.globbing import GlobMatcher


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
    """
    return path.relative_to(root).as_posix()


def path_depth(rel: str) -> int:
    """Count the segments of a relative path.

    Args:
        rel (str): relative path with POSIX separators

    Returns:
        int: number of segments (`a/b.txt` -> 2)
    """
    return len(PurePosixPath(rel).parts)


def is_vcs_path(rel: str) -> bool:
    """Check whether a relative path lies in version-control metadata.

    Args:
        rel (str): relative path with POSIX separators

    Returns:
        bool: True if any segment is the `.git` directory or gitlink file
    """
    return VCS_DIR in PurePosixPath(rel).parts


def classify_entry(
    path: Path,
    root: Path,
    *,
    is_dir: bool,
    include: GlobMatcher,
    exclude: GlobMatcher,
    include_in_tree: GlobMatcher,
) -> FileEntry | None:
    """Decide whether a visited path is dropped, tree-only or content-eligible.

    The rules apply in strict order:
    1) a path matching `exclude` is dropped, whatever else it matches;
    2) a surviving directory is kept as a structural node;
    3) a surviving file is kept only if it matches `include` or `include_in_tree`;
    4) a kept file is content-eligible iff it matches `include` and not
       `include_in_tree` (a tree-only match vetoes content).

    Args:
        path (Path): absolute path of the visited entry
        root (Path): project root
        is_dir (bool): whether the entry is a directory
        include (GlobMatcher): content patterns
        exclude (GlobMatcher): exclusion patterns
        include_in_tree (GlobMatcher): tree-only patterns

    Returns:
        FileEntry | None: the classified entry, or None if it is dropped
    """
    if path == root:
        return None
    rel = relpath(path, root)
    if is_vcs_path(rel):
        return None
    if exclude.matches(rel, is_dir=is_dir):
        return None

    if is_dir:
        return FileEntry(path=path, rel=rel, depth=path_depth(rel), is_dir=True)

    matches_include = include.matches(rel)
    matches_tree = include_in_tree.matches(rel)
    if not matches_include and not matches_tree:
        return None

    return FileEntry(
        path=path,
        rel=rel,
        depth=path_depth(rel),
        is_dir=False,
        include_content=matches_include and not matches_tree,
    )


def _warn_walk_error(error: OSError) -> None:
    """Log a per-entry walk failure; the walk continues without that entry.

    Args:
        error (OSError): error raised by `os.scandir` during the walk
    """
    failure = TraversalError(path=Path(error.filename or "?"), reason=error.strerror or str(error))
    logger.warning("Error walking entry %s: %s", failure.path, failure.reason)


def scan(
    root: Path,
    *,
    include: GlobMatcher,
    exclude: GlobMatcher,
    include_in_tree: GlobMatcher,
    respect_gitignore: bool = True,
) -> list[FileEntry]:
    """Walk `root` and return its classified entries.

    Pruning happens during the walk, so pruned directories are never entered:
    - `.git` is always pruned, while other dotfiles stay visible;
    - paths ignored by `.gitignore` files are pruned (unless `respect_gitignore` is False);
    - directories matching `exclude` are pruned together with their subtree.

    Symlinks are listed but never followed. Errors on single entries are
    logged as warnings and the entry is skipped.

    Args:
        root (Path): absolute project root
        include (GlobMatcher): content patterns
        exclude (GlobMatcher): exclusion patterns
        include_in_tree (GlobMatcher): tree-only patterns
        respect_gitignore (bool, optional): prune `.gitignore`d paths. Defaults to True.

    Returns:
        list[FileEntry]: entries sorted by absolute path, so that every
            directory precedes its descendants
    """
    ignore_rules = IgnoreRules(root) if respect_gitignore else None
    entries: list[FileEntry] = []

    def visit(path: Path, *, is_dir: bool) -> FileEntry | None:
        if path.name == VCS_DIR:
            return None
        if ignore_rules is not None and ignore_rules.is_ignored(path, is_dir=is_dir):
            return None
        return classify_entry(
            path,
            root,
            is_dir=is_dir,
            include=include,
            exclude=exclude,
            include_in_tree=include_in_tree,
        )

    for dirpath, dirnames, filenames in os.walk(root, onerror=_warn_walk_error):
        current = Path(dirpath)

        descend: list[str] = []
        for name in sorted(dirnames):
            entry = visit(current / name, is_dir=True)
            if entry is None:
                continue
            entries.append(entry)
            descend.append(name)
        # os.walk only enters what is left in dirnames
        dirnames[:] = descend

        for name in sorted(filenames):
            entry = visit(current / name, is_dir=False)
            if entry is not None:
                entries.append(entry)

    return sorted(entries, key=lambda e: e.sort_key)
