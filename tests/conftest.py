"""Shared fixtures for store-backed tests."""

from datetime import date
from pathlib import Path
from typing import Iterator

import pytest

from docman.database import DatabaseManager
from docman.entities import Directory, Document, PropertyValueSet, Tag
from docman.store import DocumentStore


@pytest.fixture
def store(tmp_path: Path) -> Iterator[DocumentStore]:
    store = DocumentStore.from_url(f"sqlite:///{tmp_path / 'docman.db'}")
    yield store
    store.close()


@pytest.fixture
def manager(store: DocumentStore) -> DatabaseManager:
    return DatabaseManager(store)


def make_document(
    path: str,
    *tags: str,
    properties: tuple[tuple[str, str], ...] = (),
    created: date | None = None,
) -> Document:
    """Build a document whose filename is the last segment of ``path``."""
    return Document(
        filename=path.rsplit("/", 1)[-1],
        absolute_path=path,
        tags=[Tag(name=name) for name in tags],
        properties=[PropertyValueSet.of(name, value) for name, value in properties],
        creation_date=created,
    )


@pytest.fixture
def sample_tree() -> Directory:
    """Root ``C`` holding ``n1`` and a subdirectory ``sub`` holding ``n2``."""
    sub = Directory(path="C/sub", name="sub", documents=[make_document("C/sub/n2")])
    return Directory(
        path="C",
        name="C",
        documents=[make_document("C/n1")],
        directories=[sub],
    )
