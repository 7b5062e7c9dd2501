import logging
from typing import Any, Optional

from ioc_lens.core.errors import ValidationError
from ioc_lens.metrics.prometheus import search_query_generations_total
from ioc_lens.schemas.ioc import Indicator, SearchQueryResult, parse_search_query_result
from ioc_lens.services.llm import parse_json_payload
from ioc_lens.services.prompts import SEARCH_QUERY_INSTRUCTION, search_query_message
from ioc_lens.services.storage import IndicatorStore

logger = logging.getLogger(__name__)


def generate_queries(
    indicators: list[Indicator],
    associated_record_id: Optional[int] = None,
    *,
    store: IndicatorStore,
    reasoner,
) -> SearchQueryResult:
    """Ask for QRadar/Sentinel queries; persist only when tied to a record.

    Nothing is cached, identical indicator sets are re-queried every time.
    """
    if not indicators:
        raise ValidationError(
            "Valid indicators are required",
            errors=[{"loc": "indicators", "msg": "empty list", "type": "too_short", "expected": "non-empty list"}],
        )

    payload: list[dict[str, Any]] = [i.model_dump(by_alias=True) for i in indicators]
    raw = reasoner.complete_json(SEARCH_QUERY_INSTRUCTION, search_query_message(payload), task="search_queries")
    result = parse_search_query_result(parse_json_payload(raw))

    if associated_record_id is not None:
        sq = store.create_search_queries(
            ioc_id=associated_record_id,
            qradar_queries=[q.model_dump() for q in result.qradar],
            sentinel_queries=[q.model_dump() for q in result.sentinel],
        )
        logger.info("stored search queries %s for record %s", sq.id, associated_record_id)

    search_query_generations_total.labels(persisted=str(associated_record_id is not None).lower()).inc()
    return result
