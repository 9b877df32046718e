"""Composable document filters and their translation into store queries."""

from .composition import DocumentFilter
from .errors import FilterError
from .models import (
    FILTER_TYPES,
    DateFilter,
    DirectoryFilter,
    FilenameFilter,
    FilterKind,
    PropertyFilter,
    TagFilter,
)
from .query import QueryContribution, accuracy_for, contribution_for, matching_documents

__all__ = [
    "DocumentFilter",
    "FilterError",
    "FilterKind",
    "FILTER_TYPES",
    "TagFilter",
    "PropertyFilter",
    "FilenameFilter",
    "DateFilter",
    "DirectoryFilter",
    "QueryContribution",
    "contribution_for",
    "accuracy_for",
    "matching_documents",
]
