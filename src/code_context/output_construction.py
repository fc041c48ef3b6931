from __future__ import annotations

import io
from typing import TYPE_CHECKING

from code_context.config import DIR_MARKER, TREE_INDENT
from code_context.exceptions import ContentReadError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from code_context.config import FileEntry


def build_tree(entries: Sequence[FileEntry]) -> str:
    """Render the indented directory tree.

    Each entry gives one line: the indentation unit repeated `depth - 1`
    times, the base name, and a trailing `/` for directories. Entries must
    already be sorted so that directories precede their descendants.

    Args:
        entries (Sequence[FileEntry]): classified entries, sorted

    Returns:
        str: the tree text, without trailing blank lines
    """
    out = io.StringIO()
    for entry in entries:
        marker = DIR_MARKER if entry.is_dir else ""
        out.write(f"{TREE_INDENT * (entry.depth - 1)}{entry.name}{marker}\n")
    return out.getvalue().rstrip()


def read_entry_text(entry: FileEntry) -> str:
    """Read the full text of a content-eligible file.

    Newlines are kept as they are on disk.

    Args:
        entry (FileEntry): the entry to read

    Raises:
        ContentReadError: if the file cannot be opened, read, or decoded as UTF-8

    Returns:
        str: the file text
    """
    try:
        with entry.path.open(encoding="utf-8", newline="") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ContentReadError(rel=entry.rel, reason=str(e)) from e


def render_file_block(entry: FileEntry) -> str:
    """Wrap one file's text in a `<file>` block tagged with its relative path.

    A read failure yields an error block in place of the content.

    Args:
        entry (FileEntry): a content-eligible entry

    Returns:
        str: the `<file>` block
    """
    try:
        text = read_entry_text(entry)
    except ContentReadError as e:
        return f'<file path="{e.rel}" error="true">Error reading file: {e}</file>'
    return f'<file path="{entry.rel}">\n{text}\n</file>'


def build_contents(entries: Sequence[FileEntry]) -> str:
    """Render the blocks of every content-eligible entry, in order.

    Args:
        entries (Sequence[FileEntry]): classified entries, sorted

    Returns:
        str: blocks joined by a blank line (empty if no entry is content-eligible)
    """
    return "\n\n".join(render_file_block(entry) for entry in entries if entry.include_content)


def build_document(entries: Sequence[FileEntry], *, tree_only: bool) -> str:
    """Assemble the final document.

    The tree always comes first in a `directory_structure` section. The
    `file_contents` section follows only outside tree-only mode and only
    when at least one content block exists.

    Args:
        entries (Sequence[FileEntry]): classified entries, sorted
        tree_only (bool): omit the content section unconditionally

    Returns:
        str: the complete document, without a trailing newline
    """
    out = io.StringIO()
    out.write("<directory_structure>\n")
    out.write(build_tree(entries))
    out.write("\n</directory_structure>")
    if tree_only:
        return out.getvalue()

    contents = build_contents(entries)
    if contents:
        out.write("\n\n<file_contents>\n")
        out.write(contents)
        out.write("\n</file_contents>")
    return out.getvalue()
