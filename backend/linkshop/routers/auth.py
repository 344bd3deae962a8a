import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..auth import check_credentials, clear_session_cookie, set_session_cookie
from ..config import Settings
from ..deps import get_app_settings
from ..models import LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
def login(payload: LoginRequest, response: Response, settings: Settings = Depends(get_app_settings)):
    """
    Check the admin credentials and hand out the admin session cookie.
    """
    if not check_credentials(payload.username, payload.password, settings):
        logger.warning("failed admin login for %r", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    set_session_cookie(response, settings)
    return {"status": "ok"}


@router.post("/logout")
def logout(response: Response):
    clear_session_cookie(response)
    return {"status": "ok"}
