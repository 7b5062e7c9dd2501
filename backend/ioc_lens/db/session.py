from sqlmodel import Session, SQLModel, create_engine

from ioc_lens.core.config import settings

_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args)


def init_db() -> None:
    # register tables on the metadata before create_all
    import ioc_lens.models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
