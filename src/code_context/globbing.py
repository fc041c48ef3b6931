"""Glob pattern compilation over slash-normalized relative paths."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pathspec import GitIgnoreSpec

from code_context.exceptions import InvalidPatternError

if TYPE_CHECKING:
    from collections.abc import Iterable

_LITERAL_PREFIXES = ("!", "#")


class GlobMatcher:
    """Compiled, reusable matcher for an ordered set of glob patterns.

    Patterns use wildmatch syntax (`**`, `*`, `?`, `[a-z]`, `{a,b}`). A pattern
    without a slash matches the base name at any depth, a pattern that
    matches a directory also matches everything beneath it, and a trailing
    slash restricts a pattern to directories.

    A path matches when at least one pattern matches it; patterns carry no
    other weight.

    Example:
        >>> matcher = compile_patterns(["src/**/*.py", "*.md"])
        >>> matcher.matches("src/pkg/mod.py")
        True
        >>> matcher.matches("docs/guide.md")
        True
        >>> matcher.matches("setup.cfg")
        False
    """

    def __init__(self, patterns: tuple[str, ...], spec: GitIgnoreSpec) -> None:
        self.patterns = patterns
        self._spec = spec

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f"GlobMatcher(patterns={self.patterns!r})"

    def matches(self, rel: str, *, is_dir: bool = False) -> bool:
        """Test a single relative path.

        Args:
            rel (str): path relative to the project root, using forward slashes
            is_dir (bool): whether `rel` names a directory, which lets
                directory-only patterns (`build/`) apply

        Returns:
            bool: True iff at least one pattern matches `rel`
        """
        if not self.patterns:
            return False
        if self._spec.match_file(rel):
            return True
        return is_dir and self._spec.match_file(rel + "/")


def _class_end(pattern: str, start: int) -> int | None:
    """Find the `]` closing the character class opened at `start`.

    A `]` right after `[` (or after `[!` / `[^`) is a literal member.

    Returns:
        int | None: index of the closing bracket, or None if the class is unclosed
    """
    i = start + 1
    if i < len(pattern) and pattern[i] in "!^":
        i += 1
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern):
        if pattern[i] == "\\":
            i += 2
            continue
        if pattern[i] == "]":
            return i
        i += 1
    return None


def expand_alternates(pattern: str) -> list[str]:
    """Expand `{a,b}` alternate groups into one pattern per alternative.

    Escaped characters and character classes are copied as they are, so
    `\\{` and `[{]` stay literal. Groups do not nest.

    Args:
        pattern (str): a single glob pattern

    Raises:
        InvalidPatternError: on an unclosed character class, an unclosed or
            unopened alternate group, or a nested group

    Returns:
        list[str]: the expanded patterns, in order

    Example:
        >>> expand_alternates("src/**/*.{rs,toml}")
        ['src/**/*.rs', 'src/**/*.toml']
    """
    results = [""]
    group: list[str] | None = None
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "{":
            if group is not None:
                raise InvalidPatternError(pattern=pattern, reason="nested alternate groups are not allowed")
            group = [""]
            i += 1
            continue
        if char == "}":
            if group is None:
                raise InvalidPatternError(pattern=pattern, reason="unopened alternate group; missing '{'")
            results = [prefix + option for prefix in results for option in group]
            group = None
            i += 1
            continue
        if char == "," and group is not None:
            group.append("")
            i += 1
            continue

        if char == "\\":
            token = pattern[i : i + 2]
        elif char == "[":
            end = _class_end(pattern, i)
            if end is None:
                raise InvalidPatternError(pattern=pattern, reason="unclosed character class; missing ']'")
            token = pattern[i : end + 1]
        else:
            token = char
        i += len(token)

        if group is not None:
            group[-1] += token
        else:
            results = [prefix + token for prefix in results]

    if group is not None:
        raise InvalidPatternError(pattern=pattern, reason="unclosed alternate group; missing '}'")
    return results


def _to_spec_lines(pattern: str) -> list[str]:
    """Turn a glob pattern into wildmatch lines with no gitignore side meaning.

    Args:
        pattern (str): raw pattern as supplied by the caller

    Raises:
        InvalidPatternError: if the pattern, or one of its alternatives, is
            empty, or if its brackets or braces are unbalanced

    Returns:
        list[str]: one line per alternative, stripped, with a leading `!` or `#` escaped
    """
    lines = []
    for alternative in expand_alternates(pattern):
        line = alternative.strip()
        if not line:
            raise InvalidPatternError(pattern=pattern, reason="empty pattern")
        if line.startswith(_LITERAL_PREFIXES):
            line = "\\" + line
        lines.append(line)
    return lines


def compile_patterns(patterns: Iterable[str]) -> GlobMatcher:
    """Compile ordered glob patterns into a matcher.

    Each pattern is compiled on its own first so that a syntax error names
    the offending pattern. Alternate groups (`*.{rs,toml}`) expand to one
    compiled pattern per alternative.

    Args:
        patterns (Iterable[str]): glob patterns, in order

    Raises:
        InvalidPatternError: if any pattern is empty or not valid glob syntax

    Returns:
        GlobMatcher: matcher over all patterns (never matches when empty)
    """
    originals = tuple(patterns)
    compiled = []
    for pattern in originals:
        lines = _to_spec_lines(pattern)
        try:
            single = GitIgnoreSpec.from_lines(lines)
        except ValueError as exc:
            raise InvalidPatternError(pattern=pattern, reason=str(exc)) from exc
        compiled.extend(single.patterns)
    return GlobMatcher(originals, GitIgnoreSpec(compiled))
