import pytest

from messages_api.errors import InvalidArgument
from messages_api.models import MessageStatus
from messages_api.query_builder import (
    MAX_INT64,
    SearchRequest,
    SortField,
    SortOrder,
    build_query_plan,
)


def test_defaults_applied() -> None:
    plan = build_query_plan(SearchRequest())
    assert plan.text_contains is None
    assert plan.status is None
    assert plan.sort_field is SortField.CREATED_AT
    assert plan.sort_order is SortOrder.DESC
    assert plan.page == 1
    assert plan.limit == 10
    assert plan.offset == 0


def test_full_request() -> None:
    plan = build_query_plan(
        SearchRequest(
            query="hello",
            status="active",
            sortBy="message",
            sortOrder="ASC",
            page=3,
            limit=5,
        )
    )
    assert plan.text_contains == "hello"
    assert plan.status is MessageStatus.ACTIVE
    assert plan.sort_field is SortField.MESSAGE
    assert plan.sort_order is SortOrder.ASC
    assert plan.offset == 10
    assert plan.limit == 5


@pytest.mark.parametrize("order", ["desc", "Desc", " DESC "])
def test_sort_order_is_case_insensitive(order: str) -> None:
    assert build_query_plan(SearchRequest(sortOrder=order)).sort_order is SortOrder.DESC


def test_empty_query_adds_no_predicate() -> None:
    assert build_query_plan(SearchRequest(query="")).text_contains is None


@pytest.mark.parametrize("sort_by", ["invalidField", "id; DROP TABLE messages", "created_at", ""])
def test_rejects_unknown_sort_field(sort_by: str) -> None:
    with pytest.raises(InvalidArgument) as exc_info:
        build_query_plan(SearchRequest(sortBy=sort_by))
    assert exc_info.value.field == "sortBy"


def test_rejects_unknown_sort_order() -> None:
    with pytest.raises(InvalidArgument) as exc_info:
        build_query_plan(SearchRequest(sortOrder="sideways"))
    assert exc_info.value.field == "sortOrder"


def test_rejects_unknown_status() -> None:
    with pytest.raises(InvalidArgument) as exc_info:
        build_query_plan(SearchRequest(status="archived"))
    assert exc_info.value.field == "status"


@pytest.mark.parametrize("field", ["page", "limit"])
@pytest.mark.parametrize("value", [0, -1, "0", "abc", 1.5, True])
def test_rejects_bad_page_and_limit(field: str, value) -> None:
    with pytest.raises(InvalidArgument) as exc_info:
        build_query_plan(SearchRequest(**{field: value}))
    assert exc_info.value.field == field


def test_numeric_strings_are_coerced() -> None:
    plan = build_query_plan(SearchRequest(page="2", limit="5"))
    assert (plan.page, plan.limit, plan.offset) == (2, 5, 5)


@pytest.mark.parametrize("field", ["page", "limit"])
def test_rejects_values_beyond_64_bits(field: str) -> None:
    with pytest.raises(InvalidArgument) as exc_info:
        build_query_plan(SearchRequest(**{field: str(10**19)}))
    assert exc_info.value.field == field


def test_largest_64_bit_values_are_accepted() -> None:
    assert build_query_plan(SearchRequest(limit=MAX_INT64)).limit == MAX_INT64
    plan = build_query_plan(SearchRequest(page=MAX_INT64, limit=1))
    assert plan.offset == MAX_INT64 - 1


def test_rejects_offset_beyond_64_bits() -> None:
    with pytest.raises(InvalidArgument) as exc_info:
        build_query_plan(SearchRequest(page=2**62, limit=4))
    assert exc_info.value.field == "page"
