from typing import Any, Iterable, Optional

from ioc_lens.core.errors import Forbidden, NotFound
from ioc_lens.models.ioc import IocRecord
from ioc_lens.schemas.ioc import CategoryCount, HistorySummary, RecordSummary
from ioc_lens.services.storage import IndicatorStore

RISK_RANK = {"unknown": 0, "low": 1, "medium": 2, "high": 3}


def _risk_of(indicator: Any) -> str:
    if isinstance(indicator, dict):
        return indicator.get("riskLevel", "unknown")
    return getattr(indicator, "risk_level", "unknown")


def highest_risk_level(indicators: Iterable[Any]) -> str:
    best = "unknown"
    for ind in indicators:
        level = _risk_of(ind)
        if level == "high":
            return "high"
        if RISK_RANK.get(level, 0) > RISK_RANK[best]:
            best = level
    return best


def summarize(record: IocRecord) -> HistorySummary:
    data = record.indicators or {}
    indicators = data.get("indicators") or []
    categories = data.get("categories") or []
    return HistorySummary(
        id=record.id,
        url=record.url,
        created_at=record.created_at,
        summary=RecordSummary(
            total_indicators=len(indicators),
            categories=[CategoryCount(name=c["name"], count=c["count"]) for c in categories],
            highest_risk_level=highest_risk_level(indicators),
        ),
    )


def get_record_for_user(store: IndicatorStore, record_id: int, user_id: Optional[int]) -> IocRecord:
    record = store.get_record_by_id(record_id)
    if record is None:
        raise NotFound(f"IOC record {record_id} not found")
    # unowned records are public
    if record.user_id is None or record.user_id == user_id:
        return record
    if user_id is None or store.get_access(record.id, user_id) is None:
        raise Forbidden(f"IOC record {record_id} belongs to another user")
    return record


def list_history(store: IndicatorStore, user_id: int) -> list[HistorySummary]:
    records = store.list_records_visible_to(user_id)
    return [summarize(r) for r in reversed(records)]
