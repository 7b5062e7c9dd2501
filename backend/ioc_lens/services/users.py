import logging
from typing import Optional

from ioc_lens.models.user import User
from ioc_lens.services.storage import IndicatorStore

logger = logging.getLogger(__name__)


def get_or_create_user(
    store: IndicatorStore,
    google_id: str,
    email: str = "",
    username: Optional[str] = None,
) -> User:
    """Look a user up by their Google id, creating them on first login."""
    user = store.get_user_by_google_id(google_id)
    if user is None:
        user = store.create_user(email=email, username=username, google_id=google_id)
        logger.info("created user %s for %s", user.id, email or google_id)
    return user
