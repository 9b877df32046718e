"""Ranked retrieval, bulk persistence and synchronization on top of the store."""

from .manager import DatabaseManager, merge_properties, property_value_sets
from .search import SearchResult, rank

__all__ = [
    "DatabaseManager",
    "SearchResult",
    "merge_properties",
    "property_value_sets",
    "rank",
]
