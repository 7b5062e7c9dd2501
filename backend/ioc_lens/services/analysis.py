"""Fetch-or-reuse IOC analysis of a URL.

A URL that was analysed once is served from its stored record forever: no
re-scrape, no re-validation, no staleness check. A logged-in user served
someone else's record is linked to it so they can read it and build searches
for it afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional
from urllib.parse import urlparse

from ioc_lens.core.errors import ValidationError
from ioc_lens.metrics.prometheus import analyses_total
from ioc_lens.schemas.ioc import parse_ioc_result
from ioc_lens.services.llm import parse_json_payload
from ioc_lens.services.prompts import IOC_EXTRACTION_INSTRUCTION, extraction_message
from ioc_lens.services.storage import IndicatorStore

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    record_id: Optional[int]
    origin: Literal["fresh", "cache"]
    indicators: dict[str, Any]  # {indicators, categories}

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.record_id,
            "origin": self.origin,
            "indicators": self.indicators,
        }
        if self.origin == "cache":
            out["message"] = "Retrieved from cache"
        return out


def validate_url(url: Optional[str]) -> str:
    if not url or not url.strip():
        raise ValidationError(
            "URL is required",
            errors=[{"loc": "url", "msg": "missing", "type": "missing", "expected": "http(s) URL"}],
        )
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(
            f"Not an http(s) URL: {url}",
            errors=[{"loc": "url", "msg": "invalid URL", "type": "url_parsing", "expected": "http(s) URL"}],
        )
    return url


def analyze_url(
    url: str,
    owner_user_id: Optional[int],
    *,
    store: IndicatorStore,
    retriever,
    reasoner,
) -> AnalysisResult:
    url = validate_url(url)

    existing = store.get_record_by_url(url)
    if existing is not None:
        logger.info("cache hit for %s (record %s)", url, existing.id)
        analyses_total.labels(origin="cache").inc()
        record_id: Optional[int] = existing.id
        if existing.user_id is not None and existing.user_id != owner_user_id:
            if owner_user_id is None:
                # anonymous callers get the indicators but not a foreign record id
                record_id = None
            else:
                store.grant_access(existing.id, owner_user_id)
        return AnalysisResult(record_id=record_id, origin="cache", indicators=existing.indicators)

    page = retriever.fetch(url)
    logger.info("retrieved %d chars from %s via %s", len(page.text), url, page.tier)

    raw = reasoner.complete_json(IOC_EXTRACTION_INSTRUCTION, extraction_message(page.text), task="extract_iocs")
    result = parse_ioc_result(parse_json_payload(raw))
    indicators = result.model_dump(by_alias=True)

    record = store.create_record(
        url=url,
        indicators=indicators,
        raw_content=page.text,
        owner_user_id=owner_user_id,
    )
    logger.info("stored %d indicators for %s as record %s", len(result.indicators), url, record.id)
    analyses_total.labels(origin="fresh").inc()
    return AnalysisResult(record_id=record.id, origin="fresh", indicators=indicators)
