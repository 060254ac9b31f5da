import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    SPAM = "spam"
    DELETED = "deleted"


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    message = Column(Text, nullable=False)
    status = Column(
        Enum(
            MessageStatus,
            name="message_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=MessageStatus.PENDING,
    )
    # language code -> translated text, {} when there are none
    translations = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )
    created_at = Column("createdAt", DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        "updatedAt",
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )
