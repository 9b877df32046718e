"""Composition of independent filters into one document query."""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Tuple

from sqlalchemy import Select

from docman.entities import Document

from .errors import FilterError
from .models import FILTER_TYPES, FilterKind
from .query import accuracy_for, matching_documents


class DocumentFilter:
    """An ordered collection of filters that must all match.

    Example::

        DocumentFilter.create(TagFilter("invoice"), DateFilter.for_year(2019))
    """

    def __init__(self, filters: Iterable[FilterKind] = ()) -> None:
        self._filters: list[FilterKind] = []
        for document_filter in filters:
            self.add(document_filter)

    @classmethod
    def create(cls, *filters: FilterKind) -> "DocumentFilter":
        """Return a collection holding ``filters`` in the given order."""
        return cls(filters)

    def add(self, document_filter: FilterKind) -> "DocumentFilter":
        """Append a filter and return ``self`` for chaining.

        Raises:
            FilterError: If ``document_filter`` is not a filter variant.
        """
        if not isinstance(document_filter, FILTER_TYPES):
            raise FilterError(f"Not a document filter: {document_filter!r}")
        self._filters.append(document_filter)
        return self

    @property
    def filters(self) -> Tuple[FilterKind, ...]:
        """Return the filters in the order they were added."""
        return tuple(self._filters)

    def statement(self) -> Select[Any]:
        """Return a statement selecting the keys of all matching documents."""
        return matching_documents(self._filters)

    def accuracy(self, document: Document) -> int:
        """Return the summed accuracy of ``document`` over every filter."""
        return sum(accuracy_for(document_filter, document) for document_filter in self._filters)

    def __iter__(self) -> Iterator[FilterKind]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __repr__(self) -> str:
        return f"DocumentFilter({', '.join(repr(f) for f in self._filters)})"


__all__ = ["DocumentFilter"]
