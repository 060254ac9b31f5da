import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from messages_api.main import app  # noqa: E402
from messages_api.metrics import reset_metrics  # noqa: E402
from messages_api.models import Message, MessageStatus  # noqa: E402
from messages_api.storage import get_db, init_db, make_engine  # noqa: E402

BASE_TIME = datetime(2024, 5, 23, 15, 58, 35, tzinfo=timezone.utc)


@pytest.fixture
def db_engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db):
    """Insert a message with a predictable createdAt (BASE_TIME + minutes)."""

    def _seed(
        text: str,
        status: MessageStatus = MessageStatus.ACTIVE,
        translations=None,
        minutes: int = 0,
    ) -> Message:
        ts = BASE_TIME + timedelta(minutes=minutes)
        msg = Message(
            message=text,
            status=status,
            translations=translations or {},
            created_at=ts,
            updated_at=ts,
        )
        db.add(msg)
        db.commit()
        db.refresh(msg)
        return msg

    return _seed


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    reset_metrics()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
