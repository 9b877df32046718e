"""Database manager: ranked retrieval, bulk persistence and tree synchronization.

Every bulk write follows the same reconciliation pattern: look up which keys
already exist (in chunks bounded by the store's batch size), subtract them
with :func:`docman.reconciliation.remove_all`, and insert only what is left
inside a single transaction. Nothing is written when nothing is missing.

All public methods of one manager are serialized by a single re-entrant lock.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Mapping as MappingABC
from datetime import date
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from sqlalchemy import select

from docman.config.models import DocmanConfig, SearchSettings
from docman.entities import (
    DatabaseInfo,
    Directory,
    Document,
    Property,
    PropertyValue,
    PropertyValueSet,
    Tag,
)
from docman.filters import DocumentFilter
from docman.reconciliation import remove_all
from docman.store import DocumentStore, StoreError, mapping_for
from docman.store.convert import directory_link_rows
from docman.store.schema import (
    DATABASE_INFO_ID,
    DatabaseInfoRow,
    DocumentRow,
    PropertyRow,
    PropertyValueRow,
    TagRow,
    directory_children,
    directory_documents,
    property_value_links,
)

from .search import SearchResult, rank

LOGGER = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

PropertyInput = Union[
    Mapping[str, Union[str, Iterable[str]]],
    Iterable[Union[Tuple[str, str], PropertyValueSet]],
]


def _synchronized(method: F) -> F:
    @functools.wraps(method)
    def wrapper(self: "DatabaseManager", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def merge_properties(properties: Iterable[Property]) -> List[Property]:
    """Merge properties sharing a name into one property holding all their values."""
    merged: Dict[str, Property] = {}
    for prop in properties:
        target = merged.get(prop.name)
        if target is None:
            target = merged[prop.name] = Property(name=prop.name)
        for value in prop.values:
            target.add_value(value)
    return list(merged.values())


def property_value_sets(properties: Optional[PropertyInput]) -> List[PropertyValueSet]:
    """Normalize a mapping or a sequence of pairs into property/value sets.

    Mapping values may be a single value or an iterable of values.
    """
    if properties is None:
        return []
    if isinstance(properties, MappingABC):
        pairs: List[PropertyValueSet] = []
        for name, values in properties.items():
            for value in (values,) if isinstance(values, str) else values:
                pairs.append(PropertyValueSet.of(name, value))
        return pairs
    return [
        pair if isinstance(pair, PropertyValueSet) else PropertyValueSet.of(*pair)
        for pair in properties
    ]


class DatabaseManager:
    """Entry point for storing and querying document metadata.

    Args:
        store: Store handle the manager operates on.
        settings: Query limits; defaults apply when omitted.
    """

    def __init__(self, store: DocumentStore, *, settings: SearchSettings | None = None) -> None:
        self._store = store
        self._settings = settings or SearchSettings()
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: DocmanConfig) -> "DatabaseManager":
        """Open the store described by ``config`` and wrap it in a manager."""
        return cls(DocumentStore.from_settings(config.store), settings=config.search)

    @property
    def store(self) -> DocumentStore:
        """Return the store handle."""
        return self._store

    @_synchronized
    def close(self) -> None:
        """Release the store's connections."""
        self._store.close()

    # Retrieval --------------------------------------------------------

    @_synchronized
    def search_results(
        self, document_filter: DocumentFilter, offset: int = 0
    ) -> List[SearchResult]:
        """Return one page of matching documents, ranked by accuracy.

        The page holds at most ``search.page_size`` documents, taken in key
        order starting at ``offset``, and is then sorted by ascending
        accuracy. Documents with equal accuracy stay in key order.

        Raises:
            ValueError: If ``offset`` is negative.
            StoreLookupError: If the query fails.
        """
        if offset < 0:
            raise ValueError(f"Offset must not be negative, got {offset}.")
        statement = (
            select(DocumentRow)
            .where(DocumentRow.absolute_path.in_(document_filter.statement().correlate(None)))
            .order_by(DocumentRow.absolute_path)
            .offset(offset)
            .limit(self._settings.page_size)
        )
        return rank(self._store.query(Document, statement), document_filter)

    def search(self, document_filter: DocumentFilter, offset: int = 0) -> List[Document]:
        """Return one page of matching documents, best match first."""
        return [result.document for result in self.search_results(document_filter, offset)]

    @_synchronized
    def count(self, document_filter: DocumentFilter) -> int:
        """Return the total number of documents matching ``document_filter``."""
        return self._store.count(document_filter.statement())

    @_synchronized
    def tags_like(self, prefix: str) -> List[Tag]:
        """Return tags whose name starts with ``prefix``."""
        statement = select(TagRow).where(TagRow.name.like(f"{prefix}%")).order_by(TagRow.name)
        return self._store.query(Tag, statement.limit(self._settings.fuzzy_limit))

    @_synchronized
    def properties_like(self, prefix: str) -> List[Property]:
        """Return properties whose name starts with ``prefix``."""
        statement = (
            select(PropertyRow)
            .where(PropertyRow.name.like(f"{prefix}%"))
            .order_by(PropertyRow.name)
        )
        return self._store.query(Property, statement.limit(self._settings.fuzzy_limit))

    @_synchronized
    def property_values_like(self, prefix: str) -> List[PropertyValue]:
        """Return property values starting with ``prefix``."""
        statement = (
            select(PropertyValueRow)
            .where(PropertyValueRow.value.like(f"{prefix}%"))
            .order_by(PropertyValueRow.value)
        )
        return self._store.query(PropertyValue, statement.limit(self._settings.fuzzy_limit))

    # Lookups ----------------------------------------------------------

    def get_all_tags_in(self, tags: Iterable[Tag]) -> List[Tag]:
        """Return the stored counterparts of ``tags``.

        Raises:
            StoreLookupError: If the lookup fails.
        """
        return self._get_all_in(Tag, tags)

    def get_all_property_values_in(self, values: Iterable[PropertyValue]) -> List[PropertyValue]:
        """Return the stored counterparts of ``values``.

        Args:
            values: Property values to look up by their text.

        Returns:
            List[PropertyValue]: Stored values in ascending order.
        """
        return self._get_all_in(PropertyValue, values)

    def get_all_properties_in(self, properties: Iterable[Property]) -> List[Property]:
        """Return the stored counterparts of ``properties`` with their allowed values."""
        return self._get_all_in(Property, properties)

    def get_all_documents_in(self, documents: Iterable[Document]) -> List[Document]:
        """Return the stored counterparts of ``documents``.

        Args:
            documents: Documents to look up by absolute path.

        Returns:
            List[Document]: Stored documents with their tags and properties.
        """
        return self._get_all_in(Document, documents)

    def get_all_directories_in(self, directories: Iterable[Directory]) -> List[Directory]:
        """Return the stored counterparts of ``directories`` with shallow children."""
        return self._get_all_in(Directory, directories)

    @_synchronized
    def get_tag(self, name: str) -> Optional[Tag]:
        """Return the stored tag called ``name``, or ``None``."""
        return self._store.find(Tag, name)

    @_synchronized
    def get_property(self, name: str) -> Optional[Property]:
        """Return the stored property called ``name`` with its allowed values, or ``None``."""
        return self._store.find(Property, name)

    @_synchronized
    def get_property_value(self, value: str) -> Optional[PropertyValue]:
        """Return the stored property value ``value``, or ``None``."""
        return self._store.find(PropertyValue, value)

    @_synchronized
    def get_document(self, absolute_path: str) -> Optional[Document]:
        """Return the stored document at ``absolute_path``.

        Args:
            absolute_path: Key of the document.

        Returns:
            Optional[Document]: The document with its tags and properties, or
            ``None`` when nothing is stored under that path.
        """
        return self._store.find(Document, absolute_path)

    @_synchronized
    def get_directory(self, path: str) -> Optional[Directory]:
        """Return the stored directory at ``path`` with its complete subtree.

        The subtree is loaded one level at a time, with one chunked lookup per
        level.
        """
        root = self._store.find(Directory, path)
        if root is None:
            return None
        level = [root]
        while level:
            child_keys = [child.path for parent in level for child in parent.directories]
            loaded = {
                child.path: child for child in self._store.find_all_in(Directory, child_keys)
            }
            next_level: List[Directory] = []
            for parent in level:
                parent.directories = [
                    loaded[child.path] for child in parent.directories if child.path in loaded
                ]
                next_level.extend(parent.directories)
            level = next_level
        return root

    @_synchronized
    def get_database_info(self) -> Optional[DatabaseInfo]:
        """Return the stored source description, if one was persisted."""
        statement = select(DatabaseInfoRow.source_path).where(
            DatabaseInfoRow.id == DATABASE_INFO_ID
        )
        found = self._store.scalars(statement)
        return DatabaseInfo(source_path=found[0]) if found else None

    @_synchronized
    def tag_exists(self, name: str) -> bool:
        """Return whether a tag called ``name`` is stored."""
        return bool(self._store.existing_keys(Tag, [name]))

    @_synchronized
    def property_exists(self, name: str) -> bool:
        """Return whether a property called ``name`` is stored."""
        return bool(self._store.existing_keys(Property, [name]))

    @_synchronized
    def property_value_exists(self, value: str) -> bool:
        """Return whether the property value ``value`` is stored."""
        return bool(self._store.existing_keys(PropertyValue, [value]))

    @_synchronized
    def count_documents_not_in(self, directory: Directory) -> int:
        """Return how many documents of ``directory``'s tree are not stored yet."""
        local = [doc.absolute_path for doc in directory.all_documents()]
        return len(remove_all(local, self._store.existing_keys(Document, local), distinct=True))

    @_synchronized
    def count_directories_not_in(self, directory: Directory) -> int:
        """Return how many directories of ``directory``'s tree are not stored yet."""
        local = [entry.path for entry in directory.all_directories()]
        return len(remove_all(local, self._store.existing_keys(Directory, local), distinct=True))

    @_synchronized
    def all_documents(self) -> List[Document]:
        """Return every stored document ordered by path."""
        return self._store.all(Document)

    @_synchronized
    def all_directories(self) -> List[Directory]:
        """Return every stored directory ordered by path.

        Subdirectories are shallow; see :meth:`get_directory` for full trees.
        """
        return self._store.all(Directory)

    # Persistence ------------------------------------------------------

    def persist_tags(self, tags: Sequence[Tag]) -> bool:
        """Store every tag not stored yet. Returns ``False`` on failure."""
        return self._persist(Tag, tags)

    def persist_property_values(self, values: Sequence[PropertyValue]) -> bool:
        """Store every property value not stored yet. Returns ``False`` on failure."""
        return self._persist(PropertyValue, values)

    @_synchronized
    def persist_properties(self, properties: Sequence[Property]) -> bool:
        """Store new properties and link known ones to values they did not have.

        Properties sharing a name are merged first. Their values must already
        be stored.

        Returns:
            bool: ``True`` on success, ``False`` if a lookup or write failed.
        """
        merged = merge_properties(properties)
        if not merged:
            return True
        mapping = mapping_for(Property)
        try:
            stored = self._store.find_all_in(Property, [prop.name for prop in merged])
            missing = remove_all(merged, stored, distinct=True, key=mapping.key)
            stored_names = {prop.name for prop in stored}
            new_links = remove_all(
                [
                    (prop.name, value.value)
                    for prop in merged
                    if prop.name in stored_names
                    for value in prop.values
                ],
                [(prop.name, value.value) for prop in stored for value in prop.values],
                distinct=True,
            )
            if not missing and not new_links:
                LOGGER.debug("All %d properties already stored.", len(merged))
                return True
            with self._store.transaction() as session:
                self._store.insert(session, Property, missing)
                link_rows = [{"property_name": name, "value": value} for name, value in new_links]
                self._store.insert_batches(session, [(property_value_links, link_rows)])
        except StoreError as exc:
            LOGGER.error("Failed to persist properties: %s", exc)
            return False
        LOGGER.debug("Stored %d properties and %d new value links.", len(missing), len(new_links))
        return True

    @_synchronized
    def persist_documents(self, documents: Sequence[Document]) -> bool:
        """Store documents along with the tags, values and properties they reference.

        Dependencies are stored first; the first failing step stops the rest.
        """
        pairs = [pair for doc in documents for pair in doc.properties]
        return (
            self.persist_tags([tag for doc in documents for tag in doc.tags])
            and self.persist_property_values([pair.value for pair in pairs])
            and self.persist_properties([pair.property for pair in pairs])
            and self._persist(Document, documents)
        )

    def persist_directories(self, directories: Sequence[Directory]) -> bool:
        """Store directories not stored yet, linking them to their children.

        The documents and subdirectories they reference must be stored as well.
        """
        return self._persist(Directory, directories)

    @_synchronized
    def persist_database_info(self, info: DatabaseInfo) -> bool:
        """Store ``info`` as the single source description, replacing any previous one."""
        try:
            with self._store.transaction() as session:
                session.merge(DatabaseInfoRow(id=DATABASE_INFO_ID, source_path=info.source_path))
        except StoreError as exc:
            LOGGER.error("Failed to persist database info: %s", exc)
            return False
        return True

    @_synchronized
    def persist_directory(self, directory: Directory, source_path: str) -> bool:
        """Store a scanned tree: its source description, documents, then directories."""
        return (
            self.persist_database_info(DatabaseInfo(source_path=source_path))
            and self.persist_documents(directory.all_documents())
            and self.persist_directories(directory.all_directories())
        )

    @_synchronized
    def persist_property_value_sets(self, sets: Iterable[PropertyValueSet]) -> bool:
        """Store the values and properties used by ``sets``.

        Pairs with an empty property name or value are skipped.
        """
        usable = [pair for pair in sets if pair.property.name and pair.value.value]
        return self.persist_property_values(
            [pair.value for pair in usable]
        ) and self.persist_properties([pair.property for pair in usable])

    # Creation helpers -------------------------------------------------

    @_synchronized
    def create_tag(self, name: str) -> Optional[Tag]:
        """Store a tag named ``name`` and return it, or ``None`` on failure."""
        tag = Tag(name=name)
        return tag if self.persist_tags([tag]) else None

    @_synchronized
    def create_property(self, name: str, *values: str) -> Optional[Property]:
        """Store a property with ``values`` and return it, or ``None`` on failure."""
        prop = Property(name=name, values=[PropertyValue(value=value) for value in values])
        if self.persist_property_values(prop.values) and self.persist_properties([prop]):
            return prop
        return None

    @_synchronized
    def create_property_value_set(
        self, prop: Union[Property, str], value: Union[PropertyValue, str]
    ) -> PropertyValueSet:
        """Pair ``prop`` with ``value``, reusing the stored property when one exists.

        Nothing is written; persist the pair through a document or
        :meth:`persist_property_value_sets`.
        """
        if isinstance(prop, str):
            prop = self._store.find(Property, prop) or Property(name=prop)
        return PropertyValueSet(property=prop, value=prop.add_value(value))

    @_synchronized
    def create_document(
        self,
        filename: str,
        absolute_path: str,
        properties: Optional[PropertyInput] = None,
        creation_date: Optional[date] = None,
        *tag_names: str,
    ) -> Optional[Document]:
        """Build and store a document, returning it or ``None`` on failure.

        Args:
            filename: Name of the file.
            absolute_path: Unique path of the file.
            properties: Mapping of property names to one value or a list of
                values, or a sequence of ``(name, value)`` pairs.
            creation_date: Creation date of the file.
            *tag_names: Tags to attach.
        """
        document = Document(
            filename=filename,
            absolute_path=absolute_path,
            properties=property_value_sets(properties),
            creation_date=creation_date,
            tags=[Tag(name=name) for name in tag_names],
        )
        return document if self.persist_documents([document]) else None

    # Synchronization --------------------------------------------------

    @_synchronized
    def synchronize(self, root: Directory, source_path: Optional[str] = None) -> bool:
        """Make the store mirror the tree below ``root``.

        Stored documents and directories missing from the tree are deleted,
        then the tree is persisted. Directories that were already stored get
        their child links replaced by the tree's; documents that were already
        stored keep their tags and properties.

        Args:
            root: Root of the local tree.
            source_path: When given, also replaces the stored source description.

        Returns:
            bool: ``True`` on success, ``False`` if any step failed.
        """
        documents = root.all_documents()
        directories = root.all_directories()
        try:
            stored_directories = self._store.all_keys(Directory)
            stale_documents = remove_all(
                self._store.all_keys(Document),
                [doc.absolute_path for doc in documents],
                distinct=True,
            )
            stale_directories = remove_all(
                stored_directories, [entry.path for entry in directories], distinct=True
            )
            if stale_documents or stale_directories:
                with self._store.transaction() as session:
                    self._store.delete_keys(session, Document, stale_documents)
                    self._store.delete_keys(session, Directory, stale_directories)
        except StoreError as exc:
            LOGGER.error("Failed to remove stale entries: %s", exc)
            return False
        LOGGER.info(
            "Removed %d stale documents and %d stale directories.",
            len(stale_documents),
            len(stale_directories),
        )

        if source_path is not None and not self.persist_database_info(
            DatabaseInfo(source_path=source_path)
        ):
            return False
        if not (self.persist_documents(documents) and self.persist_directories(directories)):
            return False

        kept = set(stored_directories)
        retained = [entry for entry in directories if entry.path in kept]
        if not retained:
            return True
        keys = [entry.path for entry in retained]
        try:
            with self._store.transaction() as session:
                self._store.delete_where(session, directory_documents.c.directory_path, keys)
                self._store.delete_where(session, directory_children.c.parent_path, keys)
                self._store.insert_batches(session, directory_link_rows(retained))
        except StoreError as exc:
            LOGGER.error("Failed to relink directories: %s", exc)
            return False
        return True

    def copy_to(self, other: "DatabaseManager") -> bool:
        """Persist every stored entry into ``other`` without removing anything there.

        The entries are read under this manager's lock, which is released
        before ``other`` is written, so two managers may copy into each other
        concurrently.

        Args:
            other: Manager receiving the entries.

        Returns:
            bool: ``True`` on success, ``False`` if reading or writing failed.
        """
        try:
            with self._lock:
                info = self.get_database_info()
                documents = self.all_documents()
                directories = self.all_directories()
        except StoreError as exc:
            LOGGER.error("Failed to read entries for copying: %s", exc)
            return False
        if info is not None and not other.persist_database_info(info):
            return False
        return other.persist_documents(documents) and other.persist_directories(directories)

    # Internal helpers -------------------------------------------------

    @_synchronized
    def _get_all_in(self, kind: type, entities: Iterable[Any]) -> List[Any]:
        key = mapping_for(kind).key
        return self._store.find_all_in(kind, [key(entity) for entity in entities])

    @_synchronized
    def _persist(self, kind: type, entities: Sequence[Any]) -> bool:
        mapping = mapping_for(kind)
        if not entities:
            return True
        by_key: Dict[str, Any] = {}
        for entity in entities:
            by_key.setdefault(mapping.key(entity), entity)
        try:
            existing = self._store.existing_keys(kind, list(by_key))
            missing = [by_key[key] for key in remove_all(list(by_key), existing, distinct=True)]
            if not missing:
                LOGGER.debug("All %d %s entries already stored.", len(by_key), mapping.name)
                return True
            with self._store.transaction() as session:
                rows = self._store.insert(session, kind, missing)
        except StoreError as exc:
            LOGGER.error("Failed to persist %s entries: %s", mapping.name, exc)
            return False
        LOGGER.debug("Stored %d %s entries (%d rows).", len(missing), mapping.name, rows)
        return True


__all__ = ["DatabaseManager", "merge_properties", "property_value_sets"]
