import re
from datetime import datetime
from typing import Dict, Optional

from fastapi import (
    Depends,
    FastAPI,
    HTTPException,
    Path,
    Query,
    Request,
    status,
)
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import text
from sqlalchemy.orm import Session

from .errors import InvalidArgument, NotFound, StoreUnavailable
from .logging_utils import logger, logging_middleware
from .metrics import inc_search_result, observe_search_page_size, render_metrics
from .models import Message, MessageStatus
from .query_builder import SearchRequest
from .search import search_messages
from .storage import create_message, get_db, get_message, get_translation, init_db


app = FastAPI(title="Translated Messages API")

app.middleware("http")(logging_middleware)

LANGUAGE_CODE_RE = re.compile(r"^[a-z]{2}$")


# ---------- Pydantic Models ----------


class MessageCreate(BaseModel):
    message: str = Field(min_length=1)
    status: MessageStatus = MessageStatus.PENDING
    translations: Optional[Dict[str, str]] = None

    @field_validator("translations")
    @classmethod
    def validate_language_codes(cls, v: Optional[Dict[str, str]]) -> Dict[str, str]:
        if v is None:
            return {}
        for code in v:
            if not LANGUAGE_CODE_RE.match(code):
                raise ValueError(f"invalid language code {code!r}, expected two lowercase letters")
        return v


class MessageSummary(BaseModel):
    id: int
    message: str
    status: MessageStatus
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_row(cls, m: Message) -> "MessageSummary":
        return cls(
            id=m.id,
            message=m.message,
            status=m.status,
            createdAt=m.created_at,
            updatedAt=m.updated_at,
        )


class MessageOut(MessageSummary):
    translations: Dict[str, str]

    @classmethod
    def from_row(cls, m: Message) -> "MessageOut":
        return cls(
            id=m.id,
            message=m.message,
            status=m.status,
            translations=m.translations or {},
            createdAt=m.created_at,
            updatedAt=m.updated_at,
        )


class PageMetaOut(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class SearchResponse(BaseModel):
    items: list[MessageOut]
    meta: PageMetaOut


# ---------- Startup ----------


@app.on_event("startup")
def on_startup() -> None:
    init_db()


# ---------- Exception handlers ----------


def _log_extra(request: Request) -> dict:
    extra = getattr(request.state, "log_extra", None)
    if not isinstance(extra, dict):
        extra = {}
        request.state.log_extra = extra
    return extra


def _is_search(request: Request) -> bool:
    return request.url.path == "/messages/search"


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    if _is_search(request):
        inc_search_result("invalid_argument")
    _log_extra(request).update({"result": "invalid_argument", "field": exc.field})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "field": exc.field},
    )


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    _log_extra(request).update({"result": "not_found"})
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    if _is_search(request):
        inc_search_result("store_unavailable")
    _log_extra(request).update({"result": "store_unavailable", "stage": exc.stage})
    logger.error("store unavailable during %s: %s", exc.stage, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    _log_extra(request).update({"result": "validation_error"})
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()},
    )


# ---------- Endpoints ----------


@app.get("/health/live")
def health_live():
    return {"status": "ok"}


@app.get("/health/ready")
def health_ready(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"DB error: {e}")
    return {"status": "ok"}


@app.post("/messages", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def create(payload: MessageCreate, request: Request, db: Session = Depends(get_db)):
    msg = create_message(
        db,
        message=payload.message,
        status=payload.status,
        translations=payload.translations,
    )
    _log_extra(request).update({"message_id": msg.id, "result": "created"})
    return MessageOut.from_row(msg)


# page/limit arrive as strings so that bad values get the same 400 as other fields
@app.get("/messages/search", response_model=SearchResponse)
def search(
    request: Request,
    db: Session = Depends(get_db),
    query: Optional[str] = Query(default=None, description="Text to search in messages"),
    status_: Optional[str] = Query(default=None, alias="status", description="Message status filter"),
    sortBy: Optional[str] = Query(default=None, description="createdAt, updatedAt or message"),
    sortOrder: Optional[str] = Query(default=None, description="ASC or DESC"),
    page: Optional[str] = Query(default=None, description="Page number, starts at 1"),
    limit: Optional[str] = Query(default=None, description="Items per page, at least 1"),
):
    result = search_messages(
        db,
        SearchRequest(
            query=query,
            status=status_,
            sortBy=sortBy,
            sortOrder=sortOrder,
            page=page,
            limit=limit,
        ),
    )
    inc_search_result("ok")
    observe_search_page_size(len(result.items))
    _log_extra(request).update(
        {
            "result": "ok",
            "total": result.meta.total,
            "returned": len(result.items),
        }
    )

    return SearchResponse(
        items=[MessageOut.from_row(m) for m in result.items],
        meta=PageMetaOut(
            total=result.meta.total,
            page=result.meta.page,
            limit=result.meta.limit,
            totalPages=result.meta.totalPages,
        ),
    )


@app.get("/messages/{message_id}", response_model=MessageSummary)
def find_one(message_id: int, db: Session = Depends(get_db)):
    return MessageSummary.from_row(get_message(db, message_id))


@app.get("/messages/{message_id}/{language}", response_model=str)
def find_translation(
    message_id: int,
    language: str = Path(pattern=r"^[a-z]{2}$"),
    db: Session = Depends(get_db),
):
    return get_translation(db, message_id, language)


@app.get("/metrics")
def metrics():
    body = render_metrics()
    return PlainTextResponse(content=body, media_type="text/plain")
