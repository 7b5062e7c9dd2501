from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class IocRecord(SQLModel, table=True):
    __tablename__ = "iocs"

    id: Optional[int] = Field(default=None, primary_key=True)
    # not unique: two concurrent first-time analyses may both insert
    url: str = Field(index=True)
    raw_content: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    indicators: Any = Field(sa_column=Column(JSONType, nullable=False))  # {indicators, categories}
    user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True)

    created_at: str = Field(default_factory=utc_timestamp)
