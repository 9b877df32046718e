"""Entity models describing stored documents and their metadata.

Every entity is identified by a natural string key (tag name, property name,
property value, document path, directory path). Equality, hashing and
ordering use that key only, so entities can be reconciled against the store
with :func:`docman.reconciliation.remove_all`.
"""

from __future__ import annotations

from datetime import date
from functools import total_ordering
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from docman.reconciliation import null_first


@total_ordering
class EntityModel(BaseModel):
    """Shared configuration and key-based comparison for entity models."""

    model_config = ConfigDict(extra="forbid")

    def sort_key(self) -> Any:
        """Return the natural key used for equality and ordering."""
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.sort_key() == other.sort_key()  # type: ignore[attr-defined]

    def __lt__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        other_key = other.sort_key()  # type: ignore[attr-defined]
        return null_first(self.sort_key()) < null_first(other_key)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.sort_key()))


class Tag(EntityModel):
    """A tag attached to documents.

    Attributes:
        name: Unique tag name.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str

    def sort_key(self) -> Any:
        return self.name


class PropertyValue(EntityModel):
    """A value that properties may take.

    Attributes:
        value: Unique value string.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    value: str

    def sort_key(self) -> Any:
        return self.value


class Property(EntityModel):
    """A named property together with the values it is known to take.

    Attributes:
        name: Unique property name.
        values: Known values; duplicates are collapsed by content.
    """

    name: str
    values: List[PropertyValue] = Field(default_factory=list)

    @field_validator("values")
    @classmethod
    def _dedupe_values(cls, values: List[PropertyValue]) -> List[PropertyValue]:
        return list(dict.fromkeys(values))

    def sort_key(self) -> Any:
        return self.name

    def add_value(self, value: PropertyValue | str) -> PropertyValue:
        """Append ``value`` unless an equal value is already known.

        Args:
            value: Value entity or raw value string.

        Returns:
            PropertyValue: The value entity that is now part of ``values``.
        """
        candidate = value if isinstance(value, PropertyValue) else PropertyValue(value=value)
        for existing in self.values:
            if existing == candidate:
                return existing
        self.values.append(candidate)
        return candidate


class PropertyValueSet(EntityModel):
    """A property/value pair owned by a document.

    Attributes:
        property: The property.
        value: The value assigned to the property for the owning document.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    property: Property
    value: PropertyValue

    def sort_key(self) -> Any:
        return (self.property.name, self.value.value)

    @classmethod
    def of(cls, name: str, value: str) -> "PropertyValueSet":
        """Build a pair from raw strings."""
        prop = Property(name=name)
        prop_value = prop.add_value(value)
        return cls(property=prop, value=prop_value)

    def as_tuple(self) -> Tuple[str, str]:
        """Return the pair as ``(property name, value)``."""
        return (self.property.name, self.value.value)


class Document(EntityModel):
    """A file tracked by the store.

    Attributes:
        filename: Name of the file.
        absolute_path: Unique path of the file within the scanned collection.
        tags: Tags attached to the document; duplicates are collapsed.
        properties: Property/value pairs; duplicates are collapsed.
        creation_date: Calendar date the file was created.
    """

    filename: str
    absolute_path: str
    tags: List[Tag] = Field(default_factory=list)
    properties: List[PropertyValueSet] = Field(default_factory=list)
    creation_date: Optional[date] = None

    @field_validator("tags", "properties")
    @classmethod
    def _dedupe(cls, values: List[Any]) -> List[Any]:
        return list(dict.fromkeys(values))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def parent_path(self) -> str:
        """Path of the directory holding the document.

        Derived by stripping ``"/" + filename`` from the end of
        ``absolute_path``; empty when the path is too short to contain it.
        """
        cut = len(self.absolute_path) - (len(self.filename) + 1)
        if cut < 0:
            return ""
        return self.absolute_path[:cut]

    def sort_key(self) -> Any:
        return self.absolute_path

    def tag_names(self) -> List[str]:
        """Return the names of all attached tags."""
        return [tag.name for tag in self.tags]


class Directory(EntityModel):
    """A directory node of a scanned collection tree.

    Child lists are filled while the tree is built and are not modified by
    filtering or persistence.

    Attributes:
        path: Unique path of the directory; the scan root uses ``""``.
        name: Directory name.
        documents: Documents located directly in this directory.
        directories: Direct subdirectories.
    """

    path: str
    name: str
    documents: List[Document] = Field(default_factory=list)
    directories: List["Directory"] = Field(default_factory=list)

    def sort_key(self) -> Any:
        return self.path

    def all_documents(self) -> List[Document]:
        """Return every document reachable from this directory."""
        from .tree import flatten_documents

        return flatten_documents(self)

    def all_directories(self) -> List["Directory"]:
        """Return this directory and every directory below it."""
        from .tree import flatten_directories

        return flatten_directories(self)

    def __repr__(self) -> str:
        return (
            f"Directory(path={self.path!r}, name={self.name!r}, "
            f"documents={len(self.documents)}, directories={len(self.directories)})"
        )


class DatabaseInfo(BaseModel):
    """Singleton record describing where the stored collection was scanned from.

    Attributes:
        source_path: Root path of the scanned collection.
    """

    model_config = ConfigDict(extra="forbid")

    source_path: str


__all__ = [
    "EntityModel",
    "Tag",
    "PropertyValue",
    "Property",
    "PropertyValueSet",
    "Document",
    "Directory",
    "DatabaseInfo",
]
