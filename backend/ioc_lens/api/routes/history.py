from typing import Optional

from fastapi import APIRouter, Depends

from ioc_lens.api.deps import get_current_user, get_store, require_user
from ioc_lens.core.errors import NotFound
from ioc_lens.models.search_query import SearchQuery
from ioc_lens.models.user import User
from ioc_lens.services.history import get_record_for_user, list_history
from ioc_lens.services.storage import IndicatorStore

router = APIRouter(prefix="/api", tags=["history"])


def _search_query_dict(sq: SearchQuery) -> dict:
    return {
        "id": sq.id,
        "iocId": sq.ioc_id,
        "qradar": sq.qradar_queries,
        "sentinel": sq.sentinel_queries,
        "createdAt": sq.created_at,
    }


@router.get("/history")
def history(store: IndicatorStore = Depends(get_store), user: User = Depends(require_user)):
    return [s.model_dump(by_alias=True) for s in list_history(store, user.id)]


@router.get("/iocs/{record_id}")
def get_ioc(
    record_id: int,
    store: IndicatorStore = Depends(get_store),
    user: Optional[User] = Depends(get_current_user),
):
    record = get_record_for_user(store, record_id, user.id if user else None)
    sq = store.get_search_queries_by_record_id(record.id)
    return {
        "id": record.id,
        "url": record.url,
        "indicators": record.indicators,
        "createdAt": record.created_at,
        "searchQueries": _search_query_dict(sq) if sq else None,
    }


@router.get("/iocs/{record_id}/search-queries")
def get_ioc_search_queries(
    record_id: int,
    store: IndicatorStore = Depends(get_store),
    user: Optional[User] = Depends(get_current_user),
):
    record = get_record_for_user(store, record_id, user.id if user else None)
    sq = store.get_search_queries_by_record_id(record.id)
    if sq is None:
        raise NotFound(f"No search queries stored for IOC record {record_id}")
    return _search_query_dict(sq)
