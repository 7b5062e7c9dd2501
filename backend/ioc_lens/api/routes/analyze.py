from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ioc_lens.api.deps import get_current_user, get_reasoner, get_retriever, get_store
from ioc_lens.models.user import User
from ioc_lens.services.analysis import analyze_url
from ioc_lens.services.storage import IndicatorStore

router = APIRouter(prefix="/api", tags=["analyze"])


class AnalyzeRequest(BaseModel):
    url: Optional[str] = None


@router.post("/analyze-url")
def analyze(
    body: AnalyzeRequest,
    store: IndicatorStore = Depends(get_store),
    retriever=Depends(get_retriever),
    reasoner=Depends(get_reasoner),
    user: Optional[User] = Depends(get_current_user),
):
    result = analyze_url(
        body.url,
        user.id if user else None,
        store=store,
        retriever=retriever,
        reasoner=reasoner,
    )
    return result.to_dict()
