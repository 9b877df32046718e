"""Accuracy ranking of search results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from docman.entities import Document
from docman.filters import DocumentFilter


@dataclass(frozen=True)
class SearchResult:
    """A matching document with its accuracy score.

    Attributes:
        document: The matching document.
        accuracy: Sum of the per-filter accuracies; ``0`` is an exact match.
    """

    document: Document
    accuracy: int


def rank(documents: Iterable[Document], document_filter: DocumentFilter) -> List[SearchResult]:
    """Score ``documents`` against ``document_filter`` and sort them best first.

    The sort is stable, so documents with equal accuracy keep the order the
    store returned them in.
    """
    results = [SearchResult(doc, document_filter.accuracy(doc)) for doc in documents]
    results.sort(key=lambda result: result.accuracy)
    return results


__all__ = ["SearchResult", "rank"]
