"""Runs validated query plans against the messages table."""
import logging
import math
from dataclasses import dataclass
from typing import List

from sqlalchemy import String, func, literal
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from .errors import StoreUnavailable
from .models import Message
from .query_builder import QueryPlan, SearchRequest, SortField, SortOrder, build_query_plan

logger = logging.getLogger("messages_api.search")

LIKE_ESCAPE = "/"

SORT_COLUMNS = {
    SortField.CREATED_AT: Message.created_at,
    SortField.UPDATED_AT: Message.updated_at,
    SortField.MESSAGE: Message.message,
}


@dataclass
class PageMeta:
    total: int
    page: int
    limit: int
    totalPages: int


@dataclass
class SearchResult:
    items: List[Message]
    meta: PageMeta


def total_pages(total: int, limit: int) -> int:
    if total == 0:
        return 0
    return math.ceil(total / limit)


def like_pattern(text: str) -> str:
    """Wrap text for a substring LIKE, matching % and _ literally."""
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _filtered(db: Session, plan: QueryPlan) -> Query:
    query = db.query(Message)

    if plan.text_contains:
        query = query.filter(
            func.lower(Message.message, type_=String).like(
                func.lower(literal(like_pattern(plan.text_contains), String)),
                escape=LIKE_ESCAPE,
            )
        )

    if plan.status is not None:
        query = query.filter(Message.status == plan.status)

    return query


def _ordered(query: Query, plan: QueryPlan) -> Query:
    column = SORT_COLUMNS[plan.sort_field]
    if plan.sort_order is SortOrder.ASC:
        return query.order_by(column.asc(), Message.id.asc())
    # id breaks ties so repeated calls page identically
    return query.order_by(column.desc(), Message.id.desc())


def execute_plan(db: Session, plan: QueryPlan) -> SearchResult:
    query = _filtered(db, plan)

    try:
        total = query.count()
    except SQLAlchemyError as exc:
        raise StoreUnavailable("count", f"Failed to count messages: {exc}") from exc

    try:
        items = _ordered(query, plan).offset(plan.offset).limit(plan.limit).all()
    except SQLAlchemyError as exc:
        raise StoreUnavailable("items", f"Failed to fetch messages: {exc}") from exc

    logger.debug(
        "search sort=%s %s page=%s limit=%s total=%s returned=%s",
        plan.sort_field.value,
        plan.sort_order.value,
        plan.page,
        plan.limit,
        total,
        len(items),
    )

    return SearchResult(
        items=items,
        meta=PageMeta(
            total=total,
            page=plan.page,
            limit=plan.limit,
            totalPages=total_pages(total, plan.limit),
        ),
    )


def search_messages(db: Session, request: SearchRequest) -> SearchResult:
    plan = build_query_plan(request)
    return execute_plan(db, plan)
