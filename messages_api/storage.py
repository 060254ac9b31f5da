from typing import Dict, Iterable, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .errors import NotFound, StoreUnavailable
from .models import Base, Message, MessageStatus


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise each session gets an empty db
        kwargs["poolclass"] = StaticPool
    return kwargs


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_conn, connection_record) -> None:
    # builtin lower() only folds ASCII letters
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


def make_engine(url: str, echo: bool = False) -> Engine:
    engine = create_engine(url, echo=echo, **_engine_kwargs(url))
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _register_sqlite_functions)
    return engine


engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(bind: Optional[Engine] = None) -> None:
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Iterable[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_message(
    db: Session,
    *,
    message: str,
    status: MessageStatus = MessageStatus.PENDING,
    translations: Optional[Dict[str, str]] = None,
) -> Message:
    msg = Message(
        message=message,
        status=status,
        translations=dict(translations or {}),
    )
    db.add(msg)
    try:
        db.commit()
        db.refresh(msg)
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreUnavailable("create", f"Failed to create message: {exc}") from exc
    return msg


def get_message(db: Session, message_id: int) -> Message:
    try:
        msg = db.get(Message, message_id)
    except SQLAlchemyError as exc:
        raise StoreUnavailable("get", f"Failed to find message: {exc}") from exc
    if msg is None:
        raise NotFound(f"Message with ID {message_id} not found")
    return msg


def get_translation(db: Session, message_id: int, language: str) -> str:
    msg = get_message(db, message_id)
    translations = msg.translations or {}
    if language not in translations:
        raise NotFound(f"Translation for language {language} not found")
    return translations[language]
