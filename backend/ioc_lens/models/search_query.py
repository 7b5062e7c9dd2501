from typing import Any, Optional

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from ioc_lens.models.ioc import JSONType, utc_timestamp


class SearchQuery(SQLModel, table=True):
    __tablename__ = "search_queries"

    id: Optional[int] = Field(default=None, primary_key=True)
    ioc_id: int = Field(foreign_key="iocs.id", index=True)

    qradar_queries: Any = Field(default_factory=list, sa_column=Column(JSONType, nullable=False))
    sentinel_queries: Any = Field(default_factory=list, sa_column=Column(JSONType, nullable=False))

    created_at: str = Field(default_factory=utc_timestamp)
