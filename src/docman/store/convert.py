"""Conversion between entity models and table rows."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple, cast

from sqlalchemy import Table

from docman.entities import (
    Directory,
    Document,
    Property,
    PropertyValue,
    PropertyValueSet,
    Tag,
)

from .schema import (
    DirectoryRow,
    DocumentPropertyRow,
    DocumentRow,
    PropertyRow,
    PropertyValueRow,
    TagRow,
    directory_children,
    directory_documents,
    document_tags,
    property_value_links,
)

InsertBatch = Tuple[Table, List[Dict[str, Any]]]

_tags = cast(Table, TagRow.__table__)
_property_values = cast(Table, PropertyValueRow.__table__)
_properties = cast(Table, PropertyRow.__table__)
_documents = cast(Table, DocumentRow.__table__)
_document_properties = cast(Table, DocumentPropertyRow.__table__)
_directories = cast(Table, DirectoryRow.__table__)


def tag_from_row(row: TagRow) -> Tag:
    """Build a tag entity from its row."""
    return Tag(name=row.name)


def property_value_from_row(row: PropertyValueRow) -> PropertyValue:
    """Build a property value entity from its row."""
    return PropertyValue(value=row.value)


def property_from_row(row: PropertyRow) -> Property:
    """Build a property entity, with its allowed values in ascending order, from a row."""
    return Property(name=row.name, values=[property_value_from_row(v) for v in row.values])


def document_from_row(row: DocumentRow) -> Document:
    """Build a document entity, including tags and property pairs, from a row."""
    return Document(
        filename=row.filename,
        absolute_path=row.absolute_path,
        creation_date=row.creation_date,
        tags=[tag_from_row(tag) for tag in row.tags],
        properties=[PropertyValueSet.of(p.property_name, p.value) for p in row.properties],
    )


def directory_from_row(row: DirectoryRow) -> Directory:
    """Build a directory entity holding its documents and shallow subdirectory stubs.

    Subdirectories carry only their key and name; use
    :meth:`docman.database.DatabaseManager.get_directory` for a full subtree.
    """
    return Directory(
        path=row.path,
        name=row.name,
        documents=[document_from_row(doc) for doc in row.documents],
        directories=[Directory(path=child.path, name=child.name) for child in row.directories],
    )


def tag_rows(tags: Sequence[Tag]) -> List[InsertBatch]:
    """Return the insert batch for ``tags``.

    Args:
        tags: Tags not stored yet.

    Returns:
        List[InsertBatch]: One batch targeting the tags table.
    """
    return [(_tags, [{"name": tag.name} for tag in tags])]


def property_value_rows(values: Sequence[PropertyValue]) -> List[InsertBatch]:
    """Return the insert batch for ``values``."""
    return [(_property_values, [{"value": v.value} for v in values])]


def property_rows(properties: Sequence[Property]) -> List[InsertBatch]:
    """Return the insert batches for ``properties`` and their value links.

    Args:
        properties: Properties not stored yet. Their values must be stored.

    Returns:
        List[InsertBatch]: Property rows followed by property/value link rows.
    """
    links = [
        {"property_name": prop.name, "value": value.value}
        for prop in properties
        for value in prop.values
    ]
    return [
        (_properties, [{"name": prop.name} for prop in properties]),
        (property_value_links, links),
    ]


def document_rows(documents: Sequence[Document]) -> List[InsertBatch]:
    """Return the insert batches for ``documents`` and their associations.

    Args:
        documents: Documents not stored yet. Their tags, properties and values
            must be stored.

    Returns:
        List[InsertBatch]: Document rows, then tag links, then property pairs.
    """
    rows = [
        {
            "absolute_path": doc.absolute_path,
            "filename": doc.filename,
            "parent_path": doc.parent_path,
            "creation_date": doc.creation_date,
        }
        for doc in documents
    ]
    tags = [
        {"document_path": doc.absolute_path, "tag_name": tag.name}
        for doc in documents
        for tag in doc.tags
    ]
    properties = [
        {
            "document_path": doc.absolute_path,
            "property_name": pair.property.name,
            "value": pair.value.value,
        }
        for doc in documents
        for pair in doc.properties
    ]
    return [
        (_documents, rows),
        (document_tags, tags),
        (_document_properties, properties),
    ]


def directory_link_rows(directories: Sequence[Directory]) -> List[InsertBatch]:
    """Return the child-link rows of ``directories`` (documents and subdirectories)."""
    documents = [
        {"directory_path": directory.path, "document_path": doc.absolute_path}
        for directory in directories
        for doc in directory.documents
    ]
    children = [
        {"parent_path": directory.path, "child_path": child.path}
        for directory in directories
        for child in directory.directories
    ]
    return [(directory_documents, documents), (directory_children, children)]


def directory_rows(directories: Sequence[Directory]) -> List[InsertBatch]:
    """Return the insert batches for ``directories`` followed by their child links."""
    rows = [{"path": directory.path, "name": directory.name} for directory in directories]
    return [(_directories, rows), *directory_link_rows(directories)]


__all__ = [
    "InsertBatch",
    "tag_from_row",
    "property_value_from_row",
    "property_from_row",
    "document_from_row",
    "directory_from_row",
    "tag_rows",
    "property_value_rows",
    "property_rows",
    "document_rows",
    "directory_rows",
    "directory_link_rows",
]
