import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, or_, select

from ioc_lens.core.errors import StorageError
from ioc_lens.models.ioc import IocRecord
from ioc_lens.models.record_access import RecordAccess
from ioc_lens.models.search_query import SearchQuery
from ioc_lens.models.user import User

logger = logging.getLogger(__name__)


class IndicatorStore:
    """Persistence for analysed URLs, their search queries and users.

    Every create commits before returning. Backing-store failures surface as
    ``StorageError``; nothing is cached in-process.
    """

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, op: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("storage operation %s failed", op)
            raise StorageError(f"Storage unavailable during {op}") from e

    def _insert(self, obj, op: str):
        with self._guard(op):
            self.session.add(obj)
            self.session.commit()
            self.session.refresh(obj)
        return obj

    # analysis records

    def create_record(
        self,
        url: str,
        indicators: dict[str, Any],
        raw_content: Optional[str] = None,
        owner_user_id: Optional[int] = None,
    ) -> IocRecord:
        record = IocRecord(
            url=url,
            raw_content=raw_content,
            indicators=indicators,
            user_id=owner_user_id,
        )
        return self._insert(record, "create_record")

    def get_record_by_id(self, record_id: int) -> Optional[IocRecord]:
        with self._guard("get_record_by_id"):
            return self.session.get(IocRecord, record_id)

    def get_record_by_url(self, url: str) -> Optional[IocRecord]:
        # exact match, no normalisation
        with self._guard("get_record_by_url"):
            q = select(IocRecord).where(IocRecord.url == url).order_by(IocRecord.id)
            return self.session.exec(q).first()

    def list_records_by_owner(self, owner_user_id: int) -> list[IocRecord]:
        with self._guard("list_records_by_owner"):
            q = select(IocRecord).where(IocRecord.user_id == owner_user_id).order_by(IocRecord.id)
            return list(self.session.exec(q).all())

    def list_records(self) -> list[IocRecord]:
        with self._guard("list_records"):
            return list(self.session.exec(select(IocRecord).order_by(IocRecord.id)).all())

    def list_records_visible_to(self, user_id: int) -> list[IocRecord]:
        """Records the user owns plus those served to them from the URL cache."""
        with self._guard("list_records_visible_to"):
            linked = select(RecordAccess.ioc_id).where(RecordAccess.user_id == user_id)
            q = (
                select(IocRecord)
                .where(or_(IocRecord.user_id == user_id, IocRecord.id.in_(linked)))
                .order_by(IocRecord.id)
            )
            return list(self.session.exec(q).all())

    # cache-hit access links

    def grant_access(self, ioc_id: int, user_id: int) -> RecordAccess:
        existing = self.get_access(ioc_id, user_id)
        if existing is not None:
            return existing
        return self._insert(RecordAccess(ioc_id=ioc_id, user_id=user_id), "grant_access")

    def get_access(self, ioc_id: int, user_id: int) -> Optional[RecordAccess]:
        with self._guard("get_access"):
            q = select(RecordAccess).where(RecordAccess.ioc_id == ioc_id, RecordAccess.user_id == user_id)
            return self.session.exec(q).first()

    # search queries

    def create_search_queries(
        self,
        ioc_id: int,
        qradar_queries: list[dict[str, str]],
        sentinel_queries: list[dict[str, str]],
    ) -> SearchQuery:
        sq = SearchQuery(
            ioc_id=ioc_id,
            qradar_queries=qradar_queries,
            sentinel_queries=sentinel_queries,
        )
        return self._insert(sq, "create_search_queries")

    def get_search_query(self, search_query_id: int) -> Optional[SearchQuery]:
        with self._guard("get_search_query"):
            return self.session.get(SearchQuery, search_query_id)

    def get_search_queries_by_record_id(self, ioc_id: int) -> Optional[SearchQuery]:
        # several rows may exist per record; the most recent one wins
        with self._guard("get_search_queries_by_record_id"):
            q = select(SearchQuery).where(SearchQuery.ioc_id == ioc_id).order_by(SearchQuery.id.desc())
            return self.session.exec(q).first()

    # users

    def get_user(self, user_id: int) -> Optional[User]:
        with self._guard("get_user"):
            return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._guard("get_user_by_email"):
            return self.session.exec(select(User).where(User.email == email)).first()

    def get_user_by_google_id(self, google_id: str) -> Optional[User]:
        with self._guard("get_user_by_google_id"):
            return self.session.exec(select(User).where(User.google_id == google_id)).first()

    def create_user(
        self,
        email: str,
        username: Optional[str] = None,
        google_id: Optional[str] = None,
    ) -> User:
        return self._insert(User(email=email, username=username, google_id=google_id), "create_user")
