"""Entity models and tree helpers for stored file metadata."""

from .models import (
    DatabaseInfo,
    Directory,
    Document,
    EntityModel,
    Property,
    PropertyValue,
    PropertyValueSet,
    Tag,
)
from .tree import flatten_directories, flatten_documents

__all__ = [
    "EntityModel",
    "Tag",
    "Property",
    "PropertyValue",
    "PropertyValueSet",
    "Document",
    "Directory",
    "DatabaseInfo",
    "flatten_documents",
    "flatten_directories",
]
