"""Library filter and sort tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional

import pytest

from reeltrack.domain import Abandoned, Completed, InProgress, LibraryEntry, Movie, Series
from reeltrack.query import (
    LibraryFilters,
    SortDirection,
    SortKey,
    StatusFilter,
    apply_filters,
    normalize_title,
    title_matches,
)

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entry(
    entry_id: int,
    title: str,
    *,
    rating: Optional[int] = None,
    year: Optional[int] = None,
    tags: frozenset[int] = frozenset(),
    status=None,
    series: bool = False,
) -> LibraryEntry:
    released = date(year, 6, 1) if year else None
    media = (
        Series(title=title, first_air_date=released)
        if series
        else Movie(title=title, release_date=released)
    )
    extra = {"watch_status": status} if status is not None else {}
    return LibraryEntry(
        id=entry_id,
        media=media,
        personal_rating=rating,
        tags=tags,
        date_added=BASE + timedelta(days=entry_id),
        **extra,
    )


@pytest.fixture
def library() -> list[LibraryEntry]:
    return [
        _entry(1, "The Matrix", rating=5, year=1999, tags=frozenset({1}), status=Completed()),
        _entry(2, "Breaking Bad", rating=3, year=2008, series=True, status=InProgress()),
        _entry(3, "Matrix Reloaded", rating=1, year=2003, tags=frozenset({2})),
        _entry(4, "Arrival", year=2016, tags=frozenset({1, 2}), status=Abandoned(reason="slow")),
    ]


def test_normalize_title_collapses_whitespace_and_case() -> None:
    assert normalize_title("  The\tMATRIX \n ") == "the matrix"


def test_title_matches_is_plain_case_insensitive_substring() -> None:
    assert title_matches("The Matrix", "MATRIX")
    assert title_matches("The Matrix", "e m")
    assert title_matches("Anything", "")
    assert not title_matches("The Matrix", "  matrix ")
    assert not title_matches("Anything", "   ")
    assert not title_matches("Arrival", "matrix")


def test_trailing_whitespace_in_search_text_is_significant(
    library: list[LibraryEntry],
) -> None:
    assert apply_filters(LibraryFilters(search_text="arrival "), library) == []
    assert [entry.id for entry in apply_filters(LibraryFilters(search_text="arrival"), library)] == [4]


def test_default_filters_keep_every_entry(library: list[LibraryEntry]) -> None:
    visible = apply_filters(LibraryFilters(), library)

    assert [entry.id for entry in visible] == [4, 3, 2, 1]


def test_search_text_is_case_insensitive(library: list[LibraryEntry]) -> None:
    filters = LibraryFilters(search_text="MATRIX", sort_key=SortKey.TITLE, direction=SortDirection.ASCENDING)

    visible = apply_filters(filters, library)

    assert [entry.title for entry in visible] == ["Matrix Reloaded", "The Matrix"]


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (StatusFilter.NOT_STARTED, {3}),
        (StatusFilter.IN_PROGRESS, {2}),
        (StatusFilter.COMPLETED, {1}),
        (StatusFilter.ABANDONED, {4}),
        (StatusFilter.ALL, {1, 2, 3, 4}),
    ],
)
def test_status_filter(library: list[LibraryEntry], status: StatusFilter, expected: set[int]) -> None:
    visible = apply_filters(LibraryFilters(status=status), library)

    assert {entry.id for entry in visible} == expected


def test_tag_filter_matches_any_selected_tag(library: list[LibraryEntry]) -> None:
    filters = LibraryFilters().toggle_tag(1)
    assert {entry.id for entry in apply_filters(filters, library)} == {1, 4}

    filters = filters.toggle_tag(2)
    assert {entry.id for entry in apply_filters(filters, library)} == {1, 3, 4}

    filters = filters.toggle_tag(1).toggle_tag(2)
    assert filters.tag_ids == frozenset()


def test_min_rating_excludes_unrated(library: list[LibraryEntry]) -> None:
    visible = apply_filters(LibraryFilters(min_rating=3), library)

    assert {entry.id for entry in visible} == {1, 2}


def test_min_rating_outside_range_is_rejected() -> None:
    with pytest.raises(ValueError):
        LibraryFilters().with_min_rating(6)
    assert LibraryFilters().with_min_rating(None).min_rating is None


def test_rating_descending_puts_unrated_last(library: list[LibraryEntry]) -> None:
    filters = LibraryFilters(sort_key=SortKey.RATING, direction=SortDirection.DESCENDING)

    ratings = [entry.personal_rating for entry in apply_filters(filters, library)]

    assert ratings == [5, 3, 1, None]


def test_year_sort_treats_missing_year_as_zero() -> None:
    entries = [_entry(1, "Undated"), _entry(2, "Old", year=1950), _entry(3, "New", year=2020)]
    filters = LibraryFilters(sort_key=SortKey.YEAR, direction=SortDirection.ASCENDING)

    assert [entry.title for entry in apply_filters(filters, entries)] == ["Undated", "Old", "New"]


def test_descending_reverses_ties() -> None:
    entries = [_entry(1, "Same"), _entry(2, "same"), _entry(3, "SAME")]
    ascending = LibraryFilters(sort_key=SortKey.TITLE, direction=SortDirection.ASCENDING)

    forward = [entry.id for entry in apply_filters(ascending, entries)]
    backward = [entry.id for entry in apply_filters(ascending.toggle_direction(), entries)]

    assert forward == [1, 2, 3]
    assert backward == [3, 2, 1]


def test_filtering_returns_subset_of_input(library: list[LibraryEntry]) -> None:
    filters = LibraryFilters(search_text="a", min_rating=1, status=StatusFilter.ALL).toggle_tag(2)

    visible = apply_filters(filters, library)

    assert set(visible) <= set(library)
    assert len(visible) <= len(library)
