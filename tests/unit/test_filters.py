from __future__ import annotations

import pytest

from recordstore.database.filters import MOVIE_SORT_SAFELIST, Filters, Metadata
from recordstore.domain.errors import UnsafeSortError
from recordstore.domain.validator import Validator


def _filters(**kwargs) -> Filters:
    kwargs.setdefault("sort_safelist", MOVIE_SORT_SAFELIST)
    return Filters(**kwargs)


def test_limit_and_offset_follow_page_and_size() -> None:
    filters = _filters(page=3, page_size=20)
    assert filters.limit() == 20
    assert filters.offset() == 40


def test_first_page_has_zero_offset() -> None:
    assert _filters(page=1, page_size=5).offset() == 0


@pytest.mark.parametrize(
    ("sort", "column", "direction"),
    [("title", "title", "ASC"), ("-year", "year", "DESC"), ("id", "id", "ASC")],
)
def test_sort_column_and_direction(sort: str, column: str, direction: str) -> None:
    filters = _filters(sort=sort)
    assert filters.sort_column() == column
    assert filters.sort_direction() == direction


def test_unknown_sort_key_is_rejected_not_defaulted() -> None:
    filters = _filters(sort="title; DROP TABLE movies")
    with pytest.raises(UnsafeSortError):
        filters.sort_column()


def test_sort_key_must_match_allow_list_exactly() -> None:
    with pytest.raises(UnsafeSortError):
        _filters(sort="--title").sort_column()


def test_validate_filters_reports_field_messages() -> None:
    v = Validator()
    _filters(page=0, page_size=101, sort="rating").validate_filters(v)
    assert v.errors == {
        "page": "must be greater than zero",
        "page_size": "must be a maximum of 100",
        "sort": "invalid sort value",
    }


def test_validate_filters_caps_page_number() -> None:
    v = Validator()
    _filters(page=10_000_001).validate_filters(v)
    assert v.errors == {"page": "must be a maximum of 10 million"}


def test_valid_filters_have_no_errors() -> None:
    v = Validator()
    _filters(page=2, page_size=100, sort="-runtime").validate_filters(v)
    assert v.valid


def test_metadata_for_45_records_in_pages_of_20() -> None:
    metadata = Metadata.calculate(total_records=45, page=1, page_size=20)
    assert metadata == Metadata(
        current_page=1,
        page_size=20,
        first_page=1,
        last_page=3,
        total_records=45,
    )


def test_metadata_exact_multiple_does_not_add_a_page() -> None:
    assert Metadata.calculate(total_records=40, page=2, page_size=20).last_page == 2


def test_metadata_for_zero_records_is_the_zero_value() -> None:
    metadata = Metadata.calculate(total_records=0, page=4, page_size=20)
    assert metadata == Metadata()
    assert metadata.last_page == 0
    assert metadata.to_json_dict() == {}


def test_metadata_json_omits_nothing_when_populated() -> None:
    payload = Metadata.calculate(total_records=1, page=1, page_size=10).to_json_dict()
    assert payload == {
        "current_page": 1,
        "page_size": 10,
        "first_page": 1,
        "last_page": 1,
        "total_records": 1,
    }
