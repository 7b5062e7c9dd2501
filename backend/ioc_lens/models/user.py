from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    username: Optional[str] = None
    google_id: Optional[str] = Field(default=None, unique=True, index=True)
