"""Filter variants accepted by :class:`~docman.filters.DocumentFilter`.

Each variant is an immutable value carrying only its parameters. How a
variant restricts the query and how it scores a matching document is decided
in :mod:`docman.filters.query`.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Tuple, Union

from docman.entities import PropertyValueSet, Tag

from .errors import FilterError

_WILDCARD_RUN = re.compile(r"\*+")


@dataclass(frozen=True, slots=True, init=False)
class TagFilter:
    """Match documents carrying every named tag.

    Attributes:
        names: Distinct tag names, in the order first given.
    """

    names: Tuple[str, ...]

    def __init__(self, *names: Union[str, Tag]) -> None:
        resolved = tuple(dict.fromkeys(n.name if isinstance(n, Tag) else n for n in names))
        if not resolved:
            raise FilterError("A tag filter needs at least one tag name.")
        object.__setattr__(self, "names", resolved)


@dataclass(frozen=True, slots=True, init=False)
class PropertyFilter:
    """Match documents carrying every given property/value pair.

    Built from a flat argument list alternating names and values::

        PropertyFilter("author", "kim", "year", "2019")

    Attributes:
        pairs: Distinct ``(property name, value)`` pairs.
    """

    pairs: Tuple[Tuple[str, str], ...]

    def __init__(self, *flat: str) -> None:
        if len(flat) % 2:
            raise FilterError(
                f"Property filter arguments must alternate names and values, got {len(flat)}."
            )
        resolved = tuple(dict.fromkeys(zip(flat[::2], flat[1::2])))
        if not resolved:
            raise FilterError("A property filter needs at least one name/value pair.")
        object.__setattr__(self, "pairs", resolved)

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[Union[Tuple[str, str], PropertyValueSet]]
    ) -> "PropertyFilter":
        """Build a filter from ``(name, value)`` tuples or property/value sets."""
        flat: list[str] = []
        for pair in pairs:
            name, value = pair.as_tuple() if isinstance(pair, PropertyValueSet) else pair
            flat.extend((name, value))
        return cls(*flat)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Union[str, Iterable[str]]]) -> "PropertyFilter":
        """Build a filter from a mapping of names to one value or a list of values."""
        flat: list[str] = []
        for name, values in mapping.items():
            for value in (values,) if isinstance(values, str) else values:
                flat.extend((name, value))
        return cls(*flat)


@dataclass(frozen=True, slots=True)
class FilenameFilter:
    """Match documents by file name.

    Attributes:
        text: Name to look for. Without ``exact_match`` a ``*`` matches any run
            of characters; text without ``*`` matches anywhere in the name.
        exact_match: Require the file name to equal ``text``.
    """

    text: str
    exact_match: bool = False

    def __post_init__(self) -> None:
        if not self.text:
            raise FilterError("A filename filter needs a non-empty name.")

    @property
    def pattern(self) -> str:
        """Return the SQL ``LIKE`` pattern, or the literal name for exact matches."""
        if self.exact_match:
            return self.text
        if "*" in self.text:
            return _WILDCARD_RUN.sub("%", self.text)
        return f"%{self.text}%"


@dataclass(frozen=True, slots=True)
class DateFilter:
    """Match documents by creation date.

    A filter without ``end`` matches a single day; otherwise it matches the
    inclusive range ``begin..end``.

    Attributes:
        begin: The day to match, or the first day of the range.
        end: Last day of the range.
    """

    begin: date
    end: Optional[date] = None

    def __post_init__(self) -> None:
        if self.end is not None and self.begin > self.end:
            raise FilterError(f"Date range starts after it ends: {self.begin} > {self.end}.")

    @property
    def is_range(self) -> bool:
        return self.end is not None

    @classmethod
    def on(cls, day: date) -> "DateFilter":
        """Match a single day."""
        return cls(day)

    @classmethod
    def between(cls, begin: date, end: date) -> "DateFilter":
        """Match every day from ``begin`` through ``end``."""
        return cls(begin, end)

    @classmethod
    def for_year(cls, year: int) -> "DateFilter":
        """Match every day of ``year``."""
        return cls(date(year, 1, 1), date(year, 12, 31))

    @classmethod
    def for_month(cls, year: int, month: int) -> "DateFilter":
        """Match every day of ``month`` in ``year``."""
        if not 1 <= month <= 12:
            raise FilterError(f"Month must be between 1 and 12, got {month}.")
        last_day = calendar.monthrange(year, month)[1]
        return cls(date(year, month, 1), date(year, month, last_day))

    @classmethod
    def for_day(cls, year: int, month: int, day: int) -> "DateFilter":
        """Match a single day given by its parts."""
        try:
            return cls(date(year, month, day))
        except ValueError as exc:
            raise FilterError(f"Invalid date {year}-{month}-{day}: {exc}") from exc

    @classmethod
    def today(cls) -> "DateFilter":
        """Match documents created today."""
        return cls(date.today())


@dataclass(frozen=True, slots=True)
class DirectoryFilter:
    """Match documents located directly in a directory.

    Attributes:
        path: Directory path; the scan root is ``""``.
    """

    path: str


FilterKind = Union[TagFilter, PropertyFilter, FilenameFilter, DateFilter, DirectoryFilter]

FILTER_TYPES: Tuple[type, ...] = (
    TagFilter,
    PropertyFilter,
    FilenameFilter,
    DateFilter,
    DirectoryFilter,
)


__all__ = [
    "TagFilter",
    "PropertyFilter",
    "FilenameFilter",
    "DateFilter",
    "DirectoryFilter",
    "FilterKind",
    "FILTER_TYPES",
]
