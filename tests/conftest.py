"""Shared test fixtures for ironsmith."""

from pathlib import Path

import pytest

from ironsmith import Ironsmith


INDEX_MD = "---\ntitle: A Title\ndate: 2013-12-02\n---\nbody"
NESTED_MD = "---\ntitle: Nested\n---\nnested body"


def write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Create *files* (relative path -> text or bytes) under *root*."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content)
    return root


def read_tree(root: Path) -> dict[str, bytes]:
    """Snapshot a directory as {posix relative path: bytes}."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def smith(tmp_path):
    return Ironsmith(tmp_path)


@pytest.fixture
def basic_site(tmp_path):
    """Working directory with src/index.md and src/nested/index.md."""
    write_tree(tmp_path / "src", {"index.md": INDEX_MD, "nested/index.md": NESTED_MD})
    return tmp_path


@pytest.fixture
def many_files_site(tmp_path):
    """Ten plain files, two levels deep."""
    files = {f"file{i}.txt": f"contents {i}\n" for i in range(5)}
    files.update({f"sub/file{i}.txt": f"nested {i}\n" for i in range(5, 10)})
    write_tree(tmp_path / "src", files)
    return tmp_path
