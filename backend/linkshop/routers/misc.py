from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from ..auth import token_matches
from ..config import Settings
from ..deps import get_app_settings

router = APIRouter()

ICON_DIR = "img"
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico"}


@router.get("/ping", response_class=PlainTextResponse)
def ping(token: str | None = Query(default=None), settings: Settings = Depends(get_app_settings)):
    """Liveness check for the self-pinger; token-gated when SELF_PING_TOKEN is set."""
    if settings.self_ping_token and not token_matches(token, settings.self_ping_token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    return "Pong\n"


@router.get("/api/static-imgs", response_model=List[str])
def static_images(settings: Settings = Depends(get_app_settings)):
    """Icon filenames the admin page can pick from for social links."""
    icon_dir = settings.static_dir / ICON_DIR
    if not icon_dir.is_dir():
        return []
    return sorted(
        p.name for p in icon_dir.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
    )
