from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import pytest

from code_context import file_manipulation
from code_context.file_manipulation import classify_entry, is_vcs_path, path_depth, relpath, scan
from code_context.globbing import compile_patterns

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from code_context.config import FileEntry


def _scan(
    root: Path,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
    include_in_tree: Sequence[str] = (),
    *,
    respect_gitignore: bool = True,
) -> list[FileEntry]:
    return scan(
        root,
        include=compile_patterns(include),
        exclude=compile_patterns(exclude),
        include_in_tree=compile_patterns(include_in_tree),
        respect_gitignore=respect_gitignore,
    )


def _rels(entries: Sequence[FileEntry]) -> list[str]:
    return [e.rel for e in entries]


@pytest.mark.unit
def test_path_helpers(tmp_path: Path) -> None:
    assert relpath(tmp_path / "a" / "b.txt", tmp_path) == "a/b.txt"
    assert path_depth("a/b.txt") == 2
    assert path_depth("README.md") == 1
    assert is_vcs_path(".git/config")
    assert is_vcs_path("vendor/.git")
    assert not is_vcs_path(".github/workflows/ci.yml")


@pytest.mark.unit
def test_classify_entry_precedence(tmp_path: Path) -> None:
    include = compile_patterns(["**/*.py"])
    exclude = compile_patterns(["secret.py"])
    tree = compile_patterns(["tests/**"])

    def classify(rel: str, *, is_dir: bool = False) -> FileEntry | None:
        return classify_entry(
            tmp_path / rel,
            tmp_path,
            is_dir=is_dir,
            include=include,
            exclude=exclude,
            include_in_tree=tree,
        )

    assert classify("secret.py") is None
    assert classify("notes.txt") is None

    content = classify("app/main.py")
    assert content is not None
    assert content.include_content
    assert content.depth == 2

    vetoed = classify("tests/test_main.py")
    assert vetoed is not None
    assert not vetoed.include_content

    directory = classify("empty_dir", is_dir=True)
    assert directory is not None
    assert directory.is_dir
    assert not directory.include_content


@pytest.mark.unit
def test_classify_entry_drops_root_and_vcs_paths(tmp_path: Path) -> None:
    everything = compile_patterns(["**"])
    nothing = compile_patterns([])
    kwargs = {"include": everything, "exclude": nothing, "include_in_tree": nothing}

    assert classify_entry(tmp_path, tmp_path, is_dir=True, **kwargs) is None
    assert classify_entry(tmp_path / ".git" / "HEAD", tmp_path, is_dir=False, **kwargs) is None


@pytest.mark.unit
def test_scan_skips_vcs_and_excluded(make_files: Callable[[dict], Path]) -> None:
    root = make_files({"a/b.txt": "hello", "a/.git/config": "[core]", "c.log": "log"})

    entries = _scan(root, include=["a/**"], exclude=["*.log"])

    assert _rels(entries) == ["a", "a/b.txt"]
    assert [e.depth for e in entries] == [1, 2]
    assert [e.include_content for e in entries] == [False, True]


@pytest.mark.unit
def test_scan_exclude_wins_and_prunes_subtrees(make_files: Callable[[dict], Path]) -> None:
    root = make_files({"src/app.py": "", "src/gen/auto.py": "", "src/gen/nested/deep.py": "", "keep.py": ""})

    entries = _scan(root, include=["**/*.py"], exclude=["gen", "keep.py"])

    assert _rels(entries) == ["src", "src/app.py"]


@pytest.mark.unit
def test_scan_keeps_directories_without_matching_files(make_files: Callable[[dict], Path]) -> None:
    root = make_files({"docs/guide.md": "", "src/lib.rs": ""})

    entries = _scan(root, include=["src/**"])

    assert _rels(entries) == ["docs", "src", "src/lib.rs"]
    assert entries[0].is_dir


@pytest.mark.unit
def test_scan_tree_only_patterns_veto_content(make_files: Callable[[dict], Path]) -> None:
    root = make_files({"Cargo.toml": "", "src/main.rs": ""})

    entries = {e.rel: e for e in _scan(root, include=["**"], include_in_tree=["Cargo.toml"])}

    assert not entries["Cargo.toml"].include_content
    assert entries["src/main.rs"].include_content


@pytest.mark.unit
def test_scan_orders_parents_before_children(make_files: Callable[[dict], Path]) -> None:
    root = make_files({"a.txt": "", "a/b": "", "b/c/d.txt": "", "B.txt": ""})

    entries = _scan(root, include=["**"])

    assert _rels(entries) == ["B.txt", "a", "a/b", "a.txt", "b", "b/c", "b/c/d.txt"]
    positions = {e.rel: i for i, e in enumerate(entries)}
    for entry in entries:
        parent = entry.rel.rpartition("/")[0]
        if parent:
            assert positions[parent] < positions[entry.rel]


@pytest.mark.unit
def test_scan_shows_dotfiles(make_files: Callable[[dict], Path]) -> None:
    root = make_files({".env.example": "KEY=", ".github/ci.yml": ""})

    entries = _scan(root, include=[".env.example", ".github/**"])

    assert _rels(entries) == [".env.example", ".github", ".github/ci.yml"]


@pytest.mark.unit
def test_scan_respects_gitignore(make_files: Callable[[dict], Path]) -> None:
    root = make_files({".gitignore": "build/\n*.tmp\n", "build/out.txt": "", "x.tmp": "", "src/a.txt": ""})

    ignored = _scan(root, include=["**"])
    unfiltered = _scan(root, include=["**"], respect_gitignore=False)

    assert _rels(ignored) == [".gitignore", "src", "src/a.txt"]
    assert "build/out.txt" in _rels(unfiltered)
    assert "x.tmp" in _rels(unfiltered)


@pytest.mark.unit
def test_scan_empty_patterns_keep_only_directories(make_files: Callable[[dict], Path]) -> None:
    root = make_files({"a/b.txt": "", "c.txt": ""})

    entries = _scan(root)

    assert _rels(entries) == ["a"]


@pytest.mark.unit
@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_scan_lists_symlinked_directory_without_following(make_files: Callable[[dict], Path]) -> None:
    root = make_files({"real/file.txt": ""})
    (root / "link").symlink_to(root / "real", target_is_directory=True)

    entries = _scan(root, include=["**"])

    assert _rels(entries) == ["link", "real", "real/file.txt"]


@pytest.mark.unit
def test_walk_errors_are_logged_and_skipped(caplog: pytest.LogCaptureFixture) -> None:
    error = PermissionError(13, "Permission denied", "/project/locked")

    with caplog.at_level(logging.WARNING):
        file_manipulation._warn_walk_error(error)  # noqa: SLF001

    assert "Error walking entry /project/locked: Permission denied" in caplog.text


@pytest.mark.unit
@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores permissions")
def test_scan_continues_past_unreadable_directory(
    make_files: Callable[[dict], Path],
    caplog: pytest.LogCaptureFixture,
) -> None:
    root = make_files({"locked/inner.txt": "", "open/ok.txt": ""})
    (root / "locked").chmod(0)
    try:
        with caplog.at_level(logging.WARNING):
            entries = _scan(root, include=["**"])
    finally:
        (root / "locked").chmod(0o755)

    assert "open/ok.txt" in _rels(entries)
    assert "locked/inner.txt" not in _rels(entries)
    assert "Error walking entry" in caplog.text
