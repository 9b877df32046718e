"""SQLAlchemy-backed store for entities.

:class:`DocumentStore` owns the engine and session factory and exposes the
primitive operations the database manager builds on: key lookups, predicate
queries, counts, batched inserts, keyed deletes and explicit transactions.
Lookup failures surface as :class:`StoreLookupError`; failed transactions are
rolled back and surface as :class:`StoreWriteError`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence, TypeVar

from sqlalchemy import Select, create_engine, delete, func, insert, select
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from docman.config.models import StoreSettings
from docman.reconciliation import partition

from .convert import InsertBatch
from .errors import StoreLookupError, StoreWriteError
from .registry import mapping_for
from .schema import Base

LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 999

E = TypeVar("E")


def build_url(settings: StoreSettings) -> URL | str:
    """Return the SQLAlchemy URL described by ``settings``."""
    if settings.url:
        return settings.url
    if settings.provider == "mariadb":
        return URL.create(
            "mysql+pymysql",
            username=settings.user,
            password=settings.password,
            host=settings.host,
            port=settings.port,
            database=settings.database,
            query={"charset": "utf8mb4"},
        )
    return URL.create("sqlite", database=str(Path(settings.database_file).expanduser()))


class DocumentStore:
    """Entity store over a SQLAlchemy engine.

    Args:
        engine: Engine bound to the target database.
        batch_size: Maximum number of keys or rows sent in a single statement.
    """

    def __init__(self, engine: Engine, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {batch_size}.")
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        self._batch_size = batch_size

    @classmethod
    def from_url(
        cls,
        url: URL | str,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        echo: bool = False,
        schema_action: str = "create",
    ) -> "DocumentStore":
        """Open a store for ``url`` and prepare its schema.

        Args:
            url: SQLAlchemy database URL.
            batch_size: Maximum keys or rows per statement.
            echo: Whether SQLAlchemy logs every statement.
            schema_action: ``create`` adds missing tables, ``recreate`` drops
                and recreates all tables, ``none`` leaves the schema alone.

        Returns:
            DocumentStore: Ready-to-use store.
        """
        store = cls(create_engine(url, echo=echo), batch_size=batch_size)
        if schema_action == "recreate":
            store.create_schema(drop_existing=True)
        elif schema_action == "create":
            store.create_schema()
        return store

    @classmethod
    def from_settings(cls, settings: StoreSettings) -> "DocumentStore":
        """Open a store as described by the ``store`` configuration section."""
        return cls.from_url(
            build_url(settings),
            batch_size=settings.batch_size,
            echo=settings.echo,
            schema_action=settings.schema_action,
        )

    @property
    def engine(self) -> Engine:
        """Return the underlying engine."""
        return self._engine

    @property
    def batch_size(self) -> int:
        """Return the per-statement key and row limit."""
        return self._batch_size

    def create_schema(self, *, drop_existing: bool = False) -> None:
        """Create all tables, optionally dropping existing ones first."""
        try:
            if drop_existing:
                Base.metadata.drop_all(self._engine)
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Failed to prepare schema: {exc}") from exc

    def close(self) -> None:
        """Release every pooled connection."""
        self._engine.dispose()

    # Transactions -----------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Run a block inside one write transaction.

        The session is flushed and committed when the block exits normally and
        rolled back otherwise.

        Raises:
            StoreWriteError: If any statement, the flush or the commit fails.
        """
        session = self._sessions()
        try:
            with session.begin():
                yield session
                session.flush()
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Transaction rolled back: {exc}") from exc
        finally:
            session.close()

    @contextmanager
    def _reading(self, action: str) -> Iterator[Session]:
        try:
            with self._sessions() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreLookupError(f"Failed to {action}: {exc}") from exc

    # Reads ------------------------------------------------------------

    def find(self, kind: type[E], key: str) -> Optional[E]:
        """Return the stored entity of ``kind`` with ``key``, if any."""
        mapping = mapping_for(kind)
        statement = select(mapping.row).where(mapping.column == key).options(*mapping.load_options)
        with self._reading(f"look up {mapping.name} {key!r}") as session:
            row = session.scalars(statement).first()
            return mapping.from_row(row) if row is not None else None

    def find_all_in(self, kind: type[E], keys: Iterable[str]) -> List[E]:
        """Return every stored entity of ``kind`` whose key is in ``keys``.

        Keys are deduplicated and looked up in chunks of at most
        :attr:`batch_size`.
        """
        mapping = mapping_for(kind)
        found: List[E] = []
        with self._reading(f"look up {mapping.name} entries") as session:
            for chunk in partition(sorted(set(keys)), self._batch_size):
                statement = (
                    select(mapping.row)
                    .where(mapping.column.in_(chunk))
                    .options(*mapping.load_options)
                )
                found.extend(mapping.from_row(row) for row in session.scalars(statement))
        return found

    def existing_keys(self, kind: type, keys: Iterable[str]) -> List[str]:
        """Return the subset of ``keys`` already stored for ``kind``."""
        mapping = mapping_for(kind)
        found: List[str] = []
        with self._reading(f"check {mapping.name} keys") as session:
            for chunk in partition(sorted(set(keys)), self._batch_size):
                statement = select(mapping.column).where(mapping.column.in_(chunk))
                found.extend(session.scalars(statement))
        return found

    def all_keys(self, kind: type) -> List[str]:
        """Return every stored key of ``kind`` in ascending order."""
        mapping = mapping_for(kind)
        with self._reading(f"list {mapping.name} keys") as session:
            return list(session.scalars(select(mapping.column).order_by(mapping.column)))

    def all(self, kind: type[E]) -> List[E]:
        """Return every stored entity of ``kind`` ordered by key."""
        mapping = mapping_for(kind)
        return self.query(kind, select(mapping.row).order_by(mapping.column))

    def query(self, kind: type[E], statement: Select[Any]) -> List[E]:
        """Run a row ``statement`` for ``kind`` and convert the rows to entities."""
        mapping = mapping_for(kind)
        with self._reading(f"query {mapping.name} entries") as session:
            rows = session.scalars(statement.options(*mapping.load_options))
            return [mapping.from_row(row) for row in rows]

    def scalars(self, statement: Select[Any]) -> List[Any]:
        """Run ``statement`` and return its first column."""
        with self._reading("run query") as session:
            return list(session.scalars(statement))

    def count(self, statement: Select[Any]) -> int:
        """Return the number of rows ``statement`` yields."""
        counting = select(func.count()).select_from(statement.subquery())
        with self._reading("count query results") as session:
            return int(session.scalar(counting) or 0)

    # Writes -----------------------------------------------------------

    def insert_batches(self, session: Session, batches: Sequence[InsertBatch]) -> int:
        """Insert rows table by table, chunked to :attr:`batch_size`.

        Returns:
            int: Number of rows sent.
        """
        sent = 0
        for table, rows in batches:
            for chunk in partition(rows, self._batch_size):
                session.execute(insert(table), chunk)
                sent += len(chunk)
        return sent

    def insert(self, session: Session, kind: type, entities: Sequence[Any]) -> int:
        """Insert ``entities`` of ``kind`` together with their association rows."""
        if not entities:
            return 0
        return self.insert_batches(session, mapping_for(kind).to_rows(entities))

    def delete_keys(self, session: Session, kind: type, keys: Sequence[str]) -> None:
        """Delete entities of ``kind`` by key along with every row referencing them."""
        mapping = mapping_for(kind)
        for chunk in partition(list(keys), self._batch_size):
            for column in mapping.dependents:
                session.execute(delete(column.table).where(column.in_(chunk)))
            session.execute(delete(mapping.row).where(mapping.column.in_(chunk)))

    def delete_where(self, session: Session, column: Any, keys: Sequence[str]) -> None:
        """Delete rows of ``column``'s table whose ``column`` value is in ``keys``."""
        for chunk in partition(list(keys), self._batch_size):
            session.execute(delete(column.table).where(column.in_(chunk)))


__all__ = ["DEFAULT_BATCH_SIZE", "DocumentStore", "build_url"]
