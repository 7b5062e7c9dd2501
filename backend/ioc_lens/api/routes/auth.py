import logging
from typing import Optional

from authlib.integrations.starlette_client import OAuth, OAuthError
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from ioc_lens.api.deps import get_current_user, get_store
from ioc_lens.core.config import settings
from ioc_lens.models.user import User
from ioc_lens.services.storage import IndicatorStore
from ioc_lens.services.users import get_or_create_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

oauth = OAuth()
oauth.register(
    name="google",
    server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
    client_id=settings.google_client_id,
    client_secret=settings.google_client_secret,
    client_kwargs={"scope": "openid email profile"},
)


@router.get("/auth/google")
async def login_google(request: Request):
    redirect_uri = request.url_for("auth_google_callback")
    return await oauth.google.authorize_redirect(request, str(redirect_uri))


@router.get("/auth/google/callback", name="auth_google_callback")
async def auth_google_callback(request: Request, store: IndicatorStore = Depends(get_store)):
    try:
        token = await oauth.google.authorize_access_token(request)
    except OAuthError as e:
        logger.warning("Google login failed: %s", e.error)
        return RedirectResponse("/")

    info = token.get("userinfo") or {}
    if not info.get("sub"):
        logger.warning("Google login returned no subject; not signing in")
        return RedirectResponse("/")

    user = get_or_create_user(
        store,
        google_id=info["sub"],
        email=info.get("email", ""),
        username=info.get("name"),
    )
    request.session["user_id"] = user.id
    return RedirectResponse("/")


@router.post("/api/logout")
def logout(request: Request):
    request.session.pop("user_id", None)
    return {"success": True}


@router.get("/api/current-user")
def current_user(user: Optional[User] = Depends(get_current_user)):
    if user is None:
        return None
    return {"id": user.id, "email": user.email, "username": user.username}
