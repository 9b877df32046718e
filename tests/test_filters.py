"""Tests for filter construction, composition and accuracy."""

from datetime import date

import pytest

from docman.entities import PropertyValueSet, Tag
from docman.filters import (
    DateFilter,
    DirectoryFilter,
    DocumentFilter,
    FilenameFilter,
    FilterError,
    PropertyFilter,
    TagFilter,
    accuracy_for,
    contribution_for,
)

from conftest import make_document


def test_tag_filter_dedupes_names_and_accepts_tags() -> None:
    tag_filter = TagFilter("a", Tag(name="b"), "a")

    assert tag_filter.names == ("a", "b")
    assert contribution_for(tag_filter).required_matches == 2


def test_empty_tag_filter_is_rejected() -> None:
    with pytest.raises(FilterError):
        TagFilter()


def test_property_filter_requires_pairs() -> None:
    with pytest.raises(FilterError):
        PropertyFilter("author", "kim", "year")

    with pytest.raises(ValueError):
        PropertyFilter()


def test_property_filter_constructors_agree() -> None:
    flat = PropertyFilter("author", "kim", "year", "2019")

    assert PropertyFilter.from_pairs([("author", "kim"), ("year", "2019")]) == flat
    mixed = [PropertyValueSet.of("author", "kim"), ("year", "2019")]
    assert PropertyFilter.from_pairs(mixed) == flat
    assert PropertyFilter.from_mapping({"author": "kim", "year": ["2019"]}) == flat
    assert contribution_for(flat).required_matches == 2


def test_filename_pattern() -> None:
    assert FilenameFilter("report").pattern == "%report%"
    assert FilenameFilter("rep**rt*").pattern == "rep%rt%"
    assert FilenameFilter("report", exact_match=True).pattern == "report"

    with pytest.raises(FilterError):
        FilenameFilter("")


def test_filename_accuracy() -> None:
    assert accuracy_for(FilenameFilter("n"), make_document("C/n1")) == 1
    assert accuracy_for(FilenameFilter("n1", exact_match=True), make_document("C/n1")) == 0
    assert accuracy_for(FilenameFilter("longer"), make_document("C/n1")) == 4


def test_tag_and_property_accuracy_count_extra_entries() -> None:
    document = make_document("d", "t1", "t2", "t3", properties=(("p", "v"), ("q", "w")))

    assert accuracy_for(TagFilter("t1", "t2"), document) == 1
    assert accuracy_for(PropertyFilter("p", "v"), document) == 1


def test_date_filter_shapes_and_accuracy() -> None:
    document = make_document("d", created=date(2019, 2, 3))

    assert accuracy_for(DateFilter.on(date(2019, 2, 3)), document) == 0
    assert accuracy_for(DateFilter.for_year(2019), document) == 1
    assert DateFilter.for_month(2020, 2) == DateFilter(date(2020, 2, 1), date(2020, 2, 29))
    assert DateFilter.for_year(2019).end == date(2019, 12, 31)
    assert DateFilter.for_day(2019, 2, 3) == DateFilter(date(2019, 2, 3))
    assert not DateFilter.today().is_range


@pytest.mark.parametrize(
    "build",
    [
        lambda: DateFilter(date(2020, 1, 2), date(2020, 1, 1)),
        lambda: DateFilter.for_month(2020, 13),
        lambda: DateFilter.for_day(2019, 2, 30),
    ],
)
def test_invalid_dates_are_rejected(build) -> None:
    with pytest.raises(FilterError):
        build()


def test_directory_filter_has_no_accuracy_cost() -> None:
    assert accuracy_for(DirectoryFilter("C"), make_document("C/n1", "t")) == 0


def test_document_filter_sums_accuracy() -> None:
    document = make_document("C/n1", "t1", "t2", created=date(2019, 5, 1))
    document_filter = DocumentFilter.create(TagFilter("t1"), DateFilter.for_year(2019))
    document_filter.add(DirectoryFilter("C"))

    assert len(document_filter) == 3
    assert document_filter.accuracy(document) == 2


def test_document_filter_rejects_unknown_filters() -> None:
    with pytest.raises(FilterError):
        DocumentFilter.create("tag")  # type: ignore[arg-type]


def test_filters_property_is_a_copy() -> None:
    document_filter = DocumentFilter.create(TagFilter("a"))

    assert document_filter.filters == (TagFilter("a"),)
    assert isinstance(document_filter.filters, tuple)


def test_grouped_statement_only_for_association_filters() -> None:
    plain = str(DocumentFilter.create(FilenameFilter("n")).statement())
    grouped = str(DocumentFilter.create(TagFilter("a"), PropertyFilter("p", "v")).statement())

    assert "GROUP BY" not in plain
    assert "GROUP BY" in grouped
    assert "HAVING" in grouped
