"""Translation of filter variants into SQL and accuracy scores.

Every filter contributes a :class:`QueryContribution`. Filters over
one-to-many associations (tags, property pairs) join their own alias of the
association table, count distinct matching rows per document and declare how
many matches they require. :func:`matching_documents` combines all
contributions into one grouped statement whose ``HAVING`` clause compares the
sum of those counts against the sum of the requirements. Since each count is
bounded by its own requirement, the sum reaches the total only when every
filter is fully satisfied.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Iterable, List, Tuple

from sqlalchemy import Select, and_, distinct, func, or_, select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.expression import FromClause

from docman.entities import Document
from docman.store.schema import DocumentPropertyRow, DocumentRow, document_tags

from .models import (
    DateFilter,
    DirectoryFilter,
    FilenameFilter,
    FilterKind,
    PropertyFilter,
    TagFilter,
)


@dataclass
class QueryContribution:
    """The part of the combined query one filter is responsible for.

    Attributes:
        where: Predicates joined with ``AND``.
        joins: Association tables to join, each with its ``ON`` clause.
        match_counts: Per-document match counts that require grouping.
        required_matches: Number of matches the counts must add up to.
    """

    where: List[ColumnElement[bool]] = field(default_factory=list)
    joins: List[Tuple[FromClause, ColumnElement[bool]]] = field(default_factory=list)
    match_counts: List[ColumnElement[Any]] = field(default_factory=list)
    required_matches: int = 0


def contribution_for(document_filter: FilterKind) -> QueryContribution:
    """Return the query contribution of a single filter."""
    if isinstance(document_filter, TagFilter):
        tags = document_tags.alias()
        return QueryContribution(
            where=[tags.c.tag_name.in_(document_filter.names)],
            joins=[(tags, tags.c.document_path == DocumentRow.absolute_path)],
            match_counts=[func.count(distinct(tags.c.tag_name))],
            required_matches=len(document_filter.names),
        )
    if isinstance(document_filter, PropertyFilter):
        properties = DocumentPropertyRow.__table__.alias()
        pairs = [
            and_(properties.c.property_name == name, properties.c.value == value)
            for name, value in document_filter.pairs
        ]
        return QueryContribution(
            where=[or_(*pairs)],
            joins=[(properties, properties.c.document_path == DocumentRow.absolute_path)],
            match_counts=[func.count(distinct(properties.c.id))],
            required_matches=len(document_filter.pairs),
        )
    if isinstance(document_filter, FilenameFilter):
        if document_filter.exact_match:
            return QueryContribution(where=[DocumentRow.filename == document_filter.text])
        return QueryContribution(where=[DocumentRow.filename.like(document_filter.pattern)])
    if isinstance(document_filter, DateFilter):
        if document_filter.end is None:
            return QueryContribution(where=[DocumentRow.creation_date == document_filter.begin])
        return QueryContribution(
            where=[DocumentRow.creation_date.between(document_filter.begin, document_filter.end)]
        )
    if isinstance(document_filter, DirectoryFilter):
        return QueryContribution(where=[DocumentRow.parent_path == document_filter.path])
    raise TypeError(f"Unsupported filter type: {type(document_filter).__name__}")


def accuracy_for(document_filter: FilterKind, document: Document) -> int:
    """Return how far ``document`` is from an exact match of one filter.

    Zero is an exact match; larger values rank lower.
    """
    if isinstance(document_filter, TagFilter):
        return len(document.tags) - len(document_filter.names)
    if isinstance(document_filter, PropertyFilter):
        return len(document.properties) - len(document_filter.pairs)
    if isinstance(document_filter, FilenameFilter):
        if document_filter.exact_match:
            return 0
        return abs(len(document_filter.text) - len(document.filename or ""))
    if isinstance(document_filter, DateFilter):
        return 0 if document_filter.end is None else 1
    if isinstance(document_filter, DirectoryFilter):
        return 0
    raise TypeError(f"Unsupported filter type: {type(document_filter).__name__}")


def matching_documents(filters: Iterable[FilterKind]) -> Select[Any]:
    """Return a statement selecting the keys of every document matching all ``filters``.

    Without filters every document matches.
    """
    statement = select(DocumentRow.absolute_path)
    counts: List[ColumnElement[Any]] = []
    required = 0
    for document_filter in filters:
        contribution = contribution_for(document_filter)
        for target, onclause in contribution.joins:
            statement = statement.join(target, onclause)
        if contribution.where:
            statement = statement.where(*contribution.where)
        counts.extend(contribution.match_counts)
        required += contribution.required_matches

    if counts:
        statement = statement.group_by(DocumentRow.absolute_path).having(
            reduce(operator.add, counts) >= required
        )
    return statement


__all__ = ["QueryContribution", "contribution_for", "accuracy_for", "matching_documents"]
