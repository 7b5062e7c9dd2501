from typing import Optional

from sqlmodel import Field, SQLModel

from ioc_lens.models.ioc import utc_timestamp


class RecordAccess(SQLModel, table=True):
    """A user served someone else's record through the URL cache."""

    __tablename__ = "ioc_access"

    id: Optional[int] = Field(default=None, primary_key=True)
    ioc_id: int = Field(foreign_key="iocs.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)

    granted_at: str = Field(default_factory=utc_timestamp)
