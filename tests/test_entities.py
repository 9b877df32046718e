"""Tests for entity models and tree flattening."""

from datetime import date

import pytest
from pydantic import ValidationError

from docman.entities import (
    Directory,
    Document,
    Property,
    PropertyValue,
    PropertyValueSet,
    Tag,
    flatten_directories,
    flatten_documents,
)

from conftest import make_document


def test_parent_path_strips_filename() -> None:
    document = make_document("C/sub/n2")

    assert document.parent_path == "C/sub"


def test_parent_path_is_empty_for_top_level_and_mismatched_paths() -> None:
    assert make_document("n1").parent_path == ""
    assert Document(filename="long-name.txt", absolute_path="x").parent_path == ""


def test_document_equality_uses_path_only() -> None:
    first = make_document("a/b", "t1", created=date(2020, 1, 1))
    second = make_document("a/b")

    assert first == second
    assert hash(first) == hash(second)
    assert make_document("a/a") < make_document("a/b")


def test_entities_of_different_kinds_are_not_equal() -> None:
    assert Tag(name="x") != PropertyValue(value="x")


def test_document_collapses_duplicate_tags_and_properties() -> None:
    document = make_document("a", "t", "t", properties=(("p", "v"), ("p", "v"), ("p", "w")))

    assert document.tag_names() == ["t"]
    assert [pair.as_tuple() for pair in document.properties] == [("p", "v"), ("p", "w")]


def test_property_add_value_dedupes_by_content() -> None:
    prop = Property(name="author")

    first = prop.add_value("kim")
    again = prop.add_value(PropertyValue(value="kim"))

    assert first is again
    assert prop.values == [PropertyValue(value="kim")]


def test_property_value_set_equality_uses_both_fields() -> None:
    assert PropertyValueSet.of("p", "v") == PropertyValueSet.of("p", "v")
    assert PropertyValueSet.of("p", "v") != PropertyValueSet.of("p", "w")


def test_tags_are_immutable() -> None:
    tag = Tag(name="a")

    with pytest.raises(ValidationError):
        tag.name = "b"  # type: ignore[misc]


def test_flatten_scenario(sample_tree: Directory) -> None:
    documents = flatten_documents(sample_tree)
    directories = flatten_directories(sample_tree)

    assert sorted(doc.absolute_path for doc in documents) == ["C/n1", "C/sub/n2"]
    assert [entry.path for entry in directories] == ["C", "C/sub"]
    assert sample_tree.all_documents() == documents


def test_flatten_handles_deep_trees_without_recursion() -> None:
    root = Directory(path="", name="root")
    current = root
    for depth in range(2_000):
        child = Directory(
            path=f"{current.path}/d{depth}",
            name=f"d{depth}",
            documents=[make_document(f"{current.path}/d{depth}/f")],
        )
        current.directories.append(child)
        current = child

    assert len(flatten_directories(root)) == 2_001
    assert len(flatten_documents(root)) == 2_000
