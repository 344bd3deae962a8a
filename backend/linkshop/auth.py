import hmac
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status

from .config import Settings
from .deps import get_app_settings

SESSION_COOKIE = "session"
SESSION_ADMIN = "admin"
TOKEN_HEADER = "X-Admin-Token"


def token_matches(candidate: Optional[str], secret: Optional[str]) -> bool:
    if not candidate or not secret:
        return False
    return hmac.compare_digest(candidate.encode(), secret.encode())


def is_admin(request: Request, settings: Settings) -> bool:
    """
    Admin if the session cookie carries the admin sentinel, or the shared
    ADMIN_TOKEN is sent as X-Admin-Token header or ?token= query parameter.
    """
    if request.cookies.get(SESSION_COOKIE) == SESSION_ADMIN:
        return True
    if token_matches(request.headers.get(TOKEN_HEADER), settings.admin_token):
        return True
    return token_matches(request.query_params.get("token"), settings.admin_token)


def require_admin(request: Request, settings: Settings = Depends(get_app_settings)) -> None:
    if not is_admin(request, settings):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")


def check_credentials(username: str, password: str, settings: Settings) -> bool:
    return token_matches(username, settings.admin_username) and token_matches(password, settings.admin_password)


def set_session_cookie(response: Response, settings: Settings) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        SESSION_ADMIN,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
