"""Tests for the file system scanner."""

import os
from pathlib import Path

import pytest

from docman.config import ScanningSettings
from docman.database import DatabaseManager
from docman.scanning import FileScanner, creation_date


def _build_tree(root: Path) -> None:
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / ".hidden").mkdir()
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / ".secret").write_text("s", encoding="utf-8")
    (root / "sub" / "b.pdf").write_text("b", encoding="utf-8")
    (root / "sub" / "deeper" / "c.md").write_text("c", encoding="utf-8")
    (root / ".hidden" / "d.txt").write_text("d", encoding="utf-8")


def test_scan_builds_relative_tree(tmp_path: Path) -> None:
    source = tmp_path / "collection"
    source.mkdir()
    _build_tree(source)

    root = FileScanner(source).scan()

    assert root.path == ""
    assert root.name == "collection"
    assert [doc.absolute_path for doc in root.documents] == ["a.txt"]
    assert [entry.path for entry in root.all_directories()] == ["", "sub", "sub/deeper"]
    assert sorted(doc.absolute_path for doc in root.all_documents()) == [
        "a.txt",
        "sub/b.pdf",
        "sub/deeper/c.md",
    ]
    nested = root.directories[0].directories[0].documents[0]
    assert nested.parent_path == "sub/deeper"
    assert nested.tags == []
    assert nested.creation_date == creation_date(
        (source / "sub" / "deeper" / "c.md").stat()
    )


def test_scan_includes_hidden_entries_when_configured(tmp_path: Path) -> None:
    _build_tree(tmp_path)

    scanner = FileScanner.from_settings(tmp_path, ScanningSettings(include_hidden=True))
    root = scanner.scan()

    paths = sorted(doc.absolute_path for doc in root.all_documents())
    assert ".secret" in paths
    assert ".hidden/d.txt" in paths


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_scan_skips_symlinks_unless_followed(tmp_path: Path) -> None:
    source = tmp_path / "source"
    target = tmp_path / "target"
    source.mkdir()
    target.mkdir()
    (target / "linked.txt").write_text("l", encoding="utf-8")
    (source / "link").symlink_to(target, target_is_directory=True)
    (source / "loop").symlink_to(source, target_is_directory=True)

    assert FileScanner(source).scan().all_documents() == []

    followed = FileScanner(source, follow_symlinks=True).scan()
    assert [doc.absolute_path for doc in followed.all_documents()] == ["link/linked.txt"]


def test_scan_rejects_missing_source(tmp_path: Path) -> None:
    with pytest.raises(NotADirectoryError):
        FileScanner(tmp_path / "missing").scan()


def test_scanned_tree_persists(tmp_path: Path, manager: DatabaseManager) -> None:
    source = tmp_path / "collection"
    source.mkdir()
    _build_tree(source)
    root = FileScanner(source).scan()

    assert manager.persist_directory(root, str(source))
    assert manager.count_documents_not_in(root) == 0

    stored = manager.get_directory("")
    assert stored is not None
    assert [child.path for child in stored.directories] == ["sub"]
