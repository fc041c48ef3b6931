from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def make_files(tmp_path: Path) -> Callable[[dict[str, str | bytes]], Path]:
    """Create files (and their parent directories) under `tmp_path`.

    Returns:
        Callable: factory taking a mapping of relative path -> text or bytes, returning the root.
    """

    def _make(files: dict[str, str | bytes]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make
