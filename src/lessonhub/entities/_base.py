import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from pydantic import BaseModel
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


def is_valid_id(value: str) -> bool:
    """Return True when `value` is shaped like an identifier this store assigns."""
    try:
        uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True


class Entity(BaseModel):
    """Domain object with a store-assigned id and audit timestamps."""

    id: str = PydanticField(default_factory=new_id, description="Store-assigned UUID")
    created_at: datetime = PydanticField(default_factory=utcnow)
    updated_at: datetime = PydanticField(default_factory=utcnow)


class EntityTable(SQLModel, table=False):
    """Columns shared by every table: UUID primary key and audit timestamps."""

    id: str = Field(primary_key=True, default_factory=new_id, description="Store-assigned UUID")
    created_at: datetime = Field(default_factory=utcnow)
    # the database refreshes this on every UPDATE as well
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
