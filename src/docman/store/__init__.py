"""Relational store for documents, tags, properties and directories."""

from .engine import DEFAULT_BATCH_SIZE, DocumentStore, build_url
from .errors import StoreError, StoreLookupError, StoreWriteError
from .registry import REGISTRY, EntityMapping, mapping_for

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DocumentStore",
    "build_url",
    "StoreError",
    "StoreLookupError",
    "StoreWriteError",
    "REGISTRY",
    "EntityMapping",
    "mapping_for",
]
