"""Version-control ignore rules (`.gitignore` files) used to prune the walk."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from pathspec import GitIgnoreSpec

from code_context.config import GIT_INFO_EXCLUDE, GITIGNORE_FILE, VCS_DIR
from code_context.exceptions import TraversalError
from code_context.logging import logger


def find_repository_root(start: Path) -> Path | None:
    """Find the enclosing repository: the nearest directory holding `.git`.

    Args:
        start (Path): absolute directory to search from (included)

    Returns:
        Path | None: the repository root, or None outside any repository
    """
    for candidate in (start, *start.parents):
        if (candidate / VCS_DIR).exists():
            return candidate
    return None


def load_ignore_file(path: Path) -> GitIgnoreSpec | None:
    """Read an ignore file and return its compiled spec.

    Args:
        path (Path): the ignore file (`.gitignore`, `.git/info/exclude`)

    Raises:
        TraversalError: if the file exists but cannot be read or compiled

    Returns:
        GitIgnoreSpec | None: the spec, or None if the file is missing or has no rules
    """
    if not path.is_file():
        return None
    try:
        spec = GitIgnoreSpec.from_lines(path.read_text(encoding="utf-8", errors="replace").splitlines())
    except (OSError, ValueError) as e:
        raise TraversalError(path=path, reason=str(e)) from e
    # comments and blank lines compile to patterns without a verdict
    if not any(pattern.include is not None for pattern in spec.patterns):
        return None
    return spec


class IgnoreRules:
    """Hierarchical `.gitignore` evaluation for one project root.

    When the root lies inside a repository, every `.gitignore` from the
    repository root down to an entry's parent applies, each relative to its
    own directory, plus the repository's `.git/info/exclude`. Outside a
    repository the root's own `.gitignore` files are used. As in git, the
    deepest file with a verdict on a path wins, and within one file the last
    matching rule wins (so `!` negations work).
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.base = find_repository_root(root) or root
        self._cache: dict[Path, list[GitIgnoreSpec]] = {}

    def is_ignored(self, path: Path, *, is_dir: bool) -> bool:
        """Tell whether `path` is ignored by the applicable ignore files.

        Args:
            path (Path): absolute path of an entry under the root
            is_dir (bool): whether the entry is a directory

        Returns:
            bool: True if the entry must be pruned from the walk
        """
        rel_parts = path.relative_to(self.base).parts
        verdict: bool | None = None
        directory = self.base
        for depth in range(len(rel_parts)):
            if depth:
                directory = directory / rel_parts[depth - 1]
            candidate = str(PurePosixPath(*rel_parts[depth:]))
            if is_dir:
                candidate += "/"
            for spec in self._specs_for(directory):
                result = spec.check_file(candidate)
                if result.include is not None:
                    verdict = result.include
        return bool(verdict)

    def _specs_for(self, directory: Path) -> list[GitIgnoreSpec]:
        """Load and cache the ignore specs that live in `directory`.

        Args:
            directory (Path): a directory under (or equal to) the repository root

        Returns:
            list[GitIgnoreSpec]: specs in application order
        """
        if directory not in self._cache:
            sources = [directory / GITIGNORE_FILE]
            if directory == self.base:
                sources.insert(0, directory / GIT_INFO_EXCLUDE)
            specs: list[GitIgnoreSpec] = []
            for source in sources:
                try:
                    spec = load_ignore_file(source)
                except TraversalError as e:
                    logger.warning("Ignoring unreadable ignore file %s: %s", e.path, e.reason)
                    continue
                if spec is not None:
                    specs.append(spec)
            self._cache[directory] = specs
        return self._cache[directory]
