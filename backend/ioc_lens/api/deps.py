from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from ioc_lens.core.config import settings
from ioc_lens.db.session import get_session
from ioc_lens.models.user import User
from ioc_lens.services.llm import ReasoningClient
from ioc_lens.services.scraper import ContentRetriever
from ioc_lens.services.storage import IndicatorStore


def get_store(session: Session = Depends(get_session)) -> IndicatorStore:
    return IndicatorStore(session)


@lru_cache
def get_retriever() -> ContentRetriever:
    return ContentRetriever(
        firecrawl_api_key=settings.firecrawl_api_key,
        firecrawl_base_url=settings.firecrawl_base_url,
        timeout=settings.http_timeout_seconds,
    )


@lru_cache
def get_reasoner() -> ReasoningClient:
    return ReasoningClient(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.http_timeout_seconds,
    )


def get_current_user(request: Request, store: IndicatorStore = Depends(get_store)) -> Optional[User]:
    user_id = request.session.get("user_id")
    if user_id is None:
        return None
    return store.get_user(user_id)


def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
