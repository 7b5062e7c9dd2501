from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ioc_lens.api.deps import get_current_user, get_reasoner, get_store
from ioc_lens.models.user import User
from ioc_lens.schemas.ioc import parse_indicators
from ioc_lens.services.history import get_record_for_user
from ioc_lens.services.queries import generate_queries
from ioc_lens.services.storage import IndicatorStore

router = APIRouter(prefix="/api", tags=["searches"])


class GenerateSearchesRequest(BaseModel):
    indicators: Any = None
    ioc_id: Optional[int] = Field(default=None, alias="iocId")


@router.post("/generate-searches")
def generate_searches(
    body: GenerateSearchesRequest,
    store: IndicatorStore = Depends(get_store),
    reasoner=Depends(get_reasoner),
    user: Optional[User] = Depends(get_current_user),
):
    indicators = parse_indicators(body.indicators)

    # the record must exist and be visible before spending a reasoning call
    if body.ioc_id is not None:
        get_record_for_user(store, body.ioc_id, user.id if user else None)

    result = generate_queries(indicators, body.ioc_id, store=store, reasoner=reasoner)
    return result.model_dump()
