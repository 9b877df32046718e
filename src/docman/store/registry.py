"""Static registry mapping entity kinds to their tables.

Each entry names the row type, the key column, how to read an entity's key,
how to turn a row into an entity, and how to turn entities into insert
batches. Nothing is discovered at runtime; adding an entity kind means adding
an entry here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple, Type

from sqlalchemy import Column
from sqlalchemy.orm import selectinload

from docman.entities import Directory, Document, Property, PropertyValue, Tag

from . import convert
from .schema import (
    Base,
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

_document_properties = DocumentPropertyRow.__table__.c


@dataclass(frozen=True, slots=True)
class EntityMapping:
    """How one entity kind is stored.

    Attributes:
        name: Human-readable kind name used in log messages.
        row: ORM row class.
        key_column: Name of the primary key attribute on ``row``.
        key: Extracts the natural key from an entity.
        from_row: Builds an entity from a loaded row.
        to_rows: Builds ordered insert batches for a list of entities.
        load_options: Loader options applied when rows are read as entities.
        dependents: Columns of association tables that reference the key; rows
            matching a deleted key are removed with it.
    """

    name: str
    row: Type[Base]
    key_column: str
    key: Callable[[Any], str]
    from_row: Callable[[Any], Any]
    to_rows: Callable[[Sequence[Any]], List[convert.InsertBatch]]
    load_options: Tuple[Any, ...] = ()
    dependents: Tuple[Column[Any], ...] = ()

    @property
    def column(self) -> Any:
        """Return the instrumented key column of ``row``."""
        return getattr(self.row, self.key_column)


REGISTRY: Dict[type, EntityMapping] = {
    Tag: EntityMapping(
        name="tag",
        row=TagRow,
        key_column="name",
        key=lambda tag: tag.name,
        from_row=convert.tag_from_row,
        to_rows=convert.tag_rows,
        dependents=(document_tags.c.tag_name,),
    ),
    PropertyValue: EntityMapping(
        name="property value",
        row=PropertyValueRow,
        key_column="value",
        key=lambda value: value.value,
        from_row=convert.property_value_from_row,
        to_rows=convert.property_value_rows,
        dependents=(property_value_links.c.value, _document_properties["value"]),
    ),
    Property: EntityMapping(
        name="property",
        row=PropertyRow,
        key_column="name",
        key=lambda prop: prop.name,
        from_row=convert.property_from_row,
        to_rows=convert.property_rows,
        load_options=(selectinload(PropertyRow.values),),
        dependents=(property_value_links.c.property_name, _document_properties["property_name"]),
    ),
    Document: EntityMapping(
        name="document",
        row=DocumentRow,
        key_column="absolute_path",
        key=lambda doc: doc.absolute_path,
        from_row=convert.document_from_row,
        to_rows=convert.document_rows,
        load_options=(selectinload(DocumentRow.tags), selectinload(DocumentRow.properties)),
        dependents=(
            document_tags.c.document_path,
            _document_properties["document_path"],
            directory_documents.c.document_path,
        ),
    ),
    Directory: EntityMapping(
        name="directory",
        row=DirectoryRow,
        key_column="path",
        key=lambda directory: directory.path,
        from_row=convert.directory_from_row,
        to_rows=convert.directory_rows,
        load_options=(
            selectinload(DirectoryRow.documents).selectinload(DocumentRow.tags),
            selectinload(DirectoryRow.documents).selectinload(DocumentRow.properties),
            selectinload(DirectoryRow.directories),
        ),
        dependents=(
            directory_documents.c.directory_path,
            directory_children.c.parent_path,
            directory_children.c.child_path,
        ),
    ),
}


def mapping_for(kind: type) -> EntityMapping:
    """Return the registry entry for ``kind``.

    Raises:
        KeyError: If ``kind`` is not a stored entity type.
    """
    try:
        return REGISTRY[kind]
    except KeyError:
        raise KeyError(f"{kind.__name__} is not a stored entity type") from None


__all__ = ["EntityMapping", "REGISTRY", "mapping_for"]
