"""Shapes exchanged with the reasoning capability and the HTTP client.

External JSON is camelCase (``riskLevel``, ``createdAt``); the models accept
either spelling and dump with aliases.
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ioc_lens.core.errors import ValidationError

logger = logging.getLogger(__name__)

KNOWN_CATEGORIES = frozenset(
    {
        "ip",
        "domain",
        "url",
        "hash",
        "email",
        "file",
        "cve",
        "registry",
        "process",
        "path",
        "command",
        "user-agent",
        "script",
    }
)

RiskLevel = Literal["high", "medium", "low", "unknown"]


class Indicator(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    value: str
    category: str = Field(min_length=1)
    risk_level: RiskLevel = Field(alias="riskLevel")
    description: str

    @field_validator("category")
    @classmethod
    def _warn_unknown_category(cls, v: str) -> str:
        # the allow-list is advisory; the model may emit new categories
        if v.lower() not in KNOWN_CATEGORIES:
            logger.warning("Unknown IOC category received: %r", v)
        return v


class Category(BaseModel):
    name: str
    count: int
    indicators: list[Indicator]

    @model_validator(mode="after")
    def _count_matches(self) -> "Category":
        if self.count != len(self.indicators):
            raise ValueError(
                f"count is {self.count} but category holds {len(self.indicators)} indicators"
            )
        return self


class IocResult(BaseModel):
    indicators: list[Indicator]
    categories: list[Category]


class QueryItem(BaseModel):
    name: str
    query: str


class SearchQueryResult(BaseModel):
    qradar: list[QueryItem]
    sentinel: list[QueryItem]


class CategoryCount(BaseModel):
    name: str
    count: int


class RecordSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_indicators: int = Field(alias="totalIndicators")
    categories: list[CategoryCount]
    highest_risk_level: RiskLevel = Field(alias="highestRiskLevel")


class HistorySummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    url: str
    created_at: str = Field(alias="createdAt")
    summary: RecordSummary


class _IndicatorList(BaseModel):
    indicators: list[Indicator]


def describe_error(err: dict[str, Any]) -> dict[str, Any]:
    ctx = err.get("ctx") or {}
    return {
        "loc": ".".join(str(p) for p in err.get("loc", ())) or "<root>",
        "msg": err.get("msg", ""),
        "type": err.get("type", ""),
        "expected": ctx.get("expected"),
    }


def _validate(model: type[BaseModel], data: Any, label: str, upstream: bool):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = [describe_error(err) for err in e.errors()]
        first = errors[0]
        raise ValidationError(
            f"Invalid {label}: {first['loc']}: {first['msg']}",
            errors=errors,
            upstream=upstream,
        ) from e


def parse_ioc_result(data: Any, upstream: bool = True) -> IocResult:
    return _validate(IocResult, data, "IOC result", upstream)


def parse_search_query_result(data: Any, upstream: bool = True) -> SearchQueryResult:
    return _validate(SearchQueryResult, data, "search query result", upstream)


def parse_indicators(data: Any) -> list[Indicator]:
    """Validate a caller-supplied indicator list (client error on failure)."""
    wrapped = _validate(_IndicatorList, {"indicators": data}, "indicators", upstream=False)
    return wrapped.indicators
