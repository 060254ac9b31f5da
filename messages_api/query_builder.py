import enum
from dataclasses import dataclass
from typing import Any, Optional

from .errors import InvalidArgument
from .models import MessageStatus

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
# largest value a 64-bit signed INTEGER column or OFFSET can hold
MAX_INT64 = 2**63 - 1


class SortField(str, enum.Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    MESSAGE = "message"


class SortOrder(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass
class SearchRequest:
    """Raw search parameters, as received from the caller.

    Nothing here is trusted; ``build_query_plan`` validates every field.
    ``None`` means "not supplied" and picks up the default.
    """

    query: Optional[str] = None
    status: Optional[str] = None
    sortBy: Optional[str] = None
    sortOrder: Optional[str] = None
    page: Any = None
    limit: Any = None


@dataclass(frozen=True)
class QueryPlan:
    text_contains: Optional[str]
    status: Optional[MessageStatus]
    sort_field: SortField
    sort_order: SortOrder
    page: int
    limit: int
    offset: int


def _parse_sort_field(value: Optional[str]) -> SortField:
    if value is None:
        return SortField.CREATED_AT
    try:
        return SortField(value)
    except ValueError:
        allowed = ", ".join(f.value for f in SortField)
        raise InvalidArgument("sortBy", f"Invalid sort field: {value!r} (expected one of {allowed})")


def _parse_sort_order(value: Optional[str]) -> SortOrder:
    if value is None:
        return SortOrder.DESC
    normalized = str(value).strip().upper()
    try:
        return SortOrder(normalized)
    except ValueError:
        raise InvalidArgument("sortOrder", f"Invalid sort order: {value!r} (expected ASC or DESC)")


def _parse_status(value: Optional[str]) -> Optional[MessageStatus]:
    if value is None:
        return None
    try:
        return MessageStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in MessageStatus)
        raise InvalidArgument("status", f"Invalid status: {value!r} (expected one of {allowed})")


def _parse_positive_int(field: str, value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise InvalidArgument(field, f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(field, f"{field} must be an integer, got {value!r}")
    if isinstance(value, float) and number != value:
        raise InvalidArgument(field, f"{field} must be an integer, got {value!r}")
    if number < 1:
        raise InvalidArgument(field, f"{field} must be >= 1, got {number}")
    if number > MAX_INT64:
        raise InvalidArgument(field, f"{field} must be <= {MAX_INT64}, got {number}")
    return number


def build_query_plan(request: SearchRequest) -> QueryPlan:
    """Validate a search request and turn it into a query plan.

    Raises InvalidArgument for the first bad field found. Performs no I/O.
    """
    sort_field = _parse_sort_field(request.sortBy)
    sort_order = _parse_sort_order(request.sortOrder)
    status = _parse_status(request.status)
    page = _parse_positive_int("page", request.page, DEFAULT_PAGE)
    limit = _parse_positive_int("limit", request.limit, DEFAULT_LIMIT)
    offset = (page - 1) * limit
    if offset > MAX_INT64:
        raise InvalidArgument("page", f"page {page} with limit {limit} is past the last addressable row")

    return QueryPlan(
        text_contains=request.query or None,
        status=status,
        sort_field=sort_field,
        sort_order=sort_order,
        page=page,
        limit=limit,
        offset=offset,
    )
